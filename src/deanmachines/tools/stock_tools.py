"""
Stock price and thread info tools.

Both read their preferences (currency, data source, debug) from the runtime
context of the current call.
"""

import asyncio
import typing as t
from datetime import datetime, timezone

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from deanmachines.runtime_context import ContextModel, get_runtime_context, parse_context
from deanmachines.settings import get_settings
from deanmachines.tools.http import http_get
from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError
from deanmachines.utilities.utils import generate_id


class StockAPIError(ToolExecutionError):
    """Raised when the stock data API fails or returns unusable data."""


class StockContext(ContextModel):
    user_id: str = Field(default="anonymous", alias="user-id")
    session_id: str = Field(default="default", alias="session-id")
    currency_preference: t.Literal["USD", "EUR", "GBP", "JPY"] = Field(
        default="USD", alias="currency-preference"
    )
    data_source: str = Field(default="mastra-stock-data", alias="data-source")
    include_extended_hours: bool = Field(default=False, alias="include-extended-hours")
    debug: bool = False


class StockPriceInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: str = Field(
        min_length=1,
        max_length=10,
        pattern=r"^[A-Z0-9.-]+$",
        description="The stock ticker symbol (e.g., AAPL, MSFT, GOOGL)",
    )

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, value: str) -> str:
        return value.upper()


class StockPriceOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: str = Field(description="Stock ticker symbol")
    price: float = Field(gt=0, description="Current stock price")
    currency: str = Field(default="USD", description="Currency of the price")
    timestamp: datetime = Field(description="Data timestamp")
    request_id: str = Field(description="Unique request identifier")
    source: str = Field(default="mastra-stock-data", description="Data source")
    user_id: str | None = None
    session_id: str | None = None


def parse_close_price(data: t.Any) -> float:
    """Read ``prices["4. close"]`` from a stock API payload."""
    prices = data.get("prices") if isinstance(data, dict) else None
    if not isinstance(prices, dict) or prices.get("4. close") is None:
        raise StockAPIError("Stock price data missing '4. close' field")
    close = prices["4. close"]
    try:
        return float(close)
    except (TypeError, ValueError) as e:
        raise StockAPIError(f"Invalid close price: {close!r}") from e


class StockPriceTool(BaseTool[StockPriceInput, StockPriceOutput]):
    _name = "stock-price"
    description = "Fetches the current stock price for a given ticker symbol"
    _input = StockPriceInput
    _output = StockPriceOutput

    def __init__(
        self, api_url: str | None = None, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.api_url = api_url or get_settings().stock_api_url
        self.http_client = http_client

    async def fetch_price(self, symbol: str) -> float:
        try:
            response = await http_get(
                self.api_url, params={"symbol": symbol}, client=self.http_client
            )
        except httpx.HTTPError as e:
            raise StockAPIError(f"Stock API request failed: {e}") from e
        if not response.is_success:
            raise StockAPIError(
                f"Stock API error: {response.status_code} - {response.reason_phrase}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise StockAPIError(f"Stock API returned invalid JSON: {e}") from e
        return parse_close_price(data)

    def invoke(self, input: StockPriceInput) -> StockPriceOutput:
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: StockPriceInput) -> StockPriceOutput:
        ctx = parse_context(StockContext, get_runtime_context())
        request_id = generate_id()
        if ctx.debug:
            logger.debug(
                "[{}] Stock price request started | symbol={} | user={} | session={}",
                request_id,
                input.symbol,
                ctx.user_id,
                ctx.session_id,
            )

        try:
            price = await self.fetch_price(input.symbol)
        except StockAPIError as e:
            logger.error(
                "[{}] Stock price request failed | symbol={} | error={}",
                request_id,
                input.symbol,
                e,
            )
            raise

        result = StockPriceOutput(
            symbol=input.symbol,
            price=price,
            currency=ctx.currency_preference,
            timestamp=datetime.now(timezone.utc),
            request_id=request_id,
            source=ctx.data_source,
            user_id=ctx.user_id,
            session_id=ctx.session_id,
        )
        if ctx.debug:
            logger.debug(
                "[{}] Stock price request completed | symbol={} | price={}",
                request_id,
                result.symbol,
                result.price,
            )
        return result

    example_inputs = (StockPriceInput(symbol="AAPL"),)


class ThreadInfoInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    include_resource: bool = Field(
        default=False,
        description="Whether to include resource information in the response",
    )


class ThreadInfoOutput(BaseModel):
    thread_id: str = Field(description="Current conversation thread ID")
    resource_id: str | None = Field(default=None, description="Resource ID if requested")
    timestamp: datetime
    request_id: str
    user_id: str | None = None
    session_id: str | None = None


class ThreadInfoTool(BaseTool[ThreadInfoInput, ThreadInfoOutput]):
    _name = "thread-info"
    description = "Returns information about the current conversation thread"
    _input = ThreadInfoInput
    _output = ThreadInfoOutput

    def invoke(self, input: ThreadInfoInput) -> ThreadInfoOutput:
        ctx = parse_context(StockContext, get_runtime_context())
        request_id = generate_id()
        if ctx.debug:
            logger.debug(
                "[{}] Thread info request | include_resource={} | user={}",
                request_id,
                input.include_resource,
                ctx.user_id,
            )
        return ThreadInfoOutput(
            # the session doubles as the thread
            thread_id=ctx.session_id,
            resource_id=(
                f"resource-{ctx.user_id}-{ctx.session_id}"
                if input.include_resource
                else None
            ),
            timestamp=datetime.now(timezone.utc),
            request_id=request_id,
            user_id=ctx.user_id,
            session_id=ctx.session_id,
        )

    async def ainvoke(self, input: ThreadInfoInput) -> ThreadInfoOutput:
        return self.invoke(input)
