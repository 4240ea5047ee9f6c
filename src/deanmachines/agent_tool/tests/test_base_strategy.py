"""Tests for StrategyOutput and the shared response mapping."""

from deanmachines.agent_tool.base_strategy import PlanningStrategy, StrategyOutput
from deanmachines.llm_core.llm_client import ToolCall, ToolCallResponse


class _Strategy(PlanningStrategy):
    async def plan(self, messages, tools, parallel_tool_calls=True):
        return StrategyOutput()


def test_strategy_output_defaults():
    output = StrategyOutput()
    assert output.messages == []
    assert output.tool_calls == []
    assert output.finished is False
    assert output.success is True
    assert output.result is None


class TestToOutput:
    def test_no_tool_calls_is_unsuccessful_finish(self):
        output = _Strategy()._to_output(ToolCallResponse(tool_calls=[], content="hm"))
        assert output.finished
        assert output.success is False
        assert output.result == "hm"

    def test_no_call_result_takes_precedence(self):
        output = _Strategy()._to_output(
            ToolCallResponse(tool_calls=[], content="hm"), no_call_result="reasoning"
        )
        assert output.result == "reasoning"

    def test_finish_call_carries_result_and_success(self):
        response = ToolCallResponse(
            tool_calls=[
                ToolCall(
                    id="1",
                    tool_name="FINISH",
                    arguments={"result": "Could not find it", "success": False},
                )
            ]
        )
        output = _Strategy()._to_output(response)
        assert output.finished
        assert output.success is False
        assert output.result == "Could not find it"

    def test_other_calls_continue(self):
        calls = [ToolCall(id="1", tool_name="QUOTE", arguments={"symbol": "AAPL"})]
        output = _Strategy()._to_output(ToolCallResponse(tool_calls=calls))
        assert not output.finished
        assert output.tool_calls == calls

    def test_temperature_forwarded_only_when_set(self):
        strategy = _Strategy()
        assert strategy._generation_kwargs() == {}
        strategy.temperature = 0.2
        assert strategy._generation_kwargs() == {"temperature": 0.2}
