import numexpr  # type: ignore
from pydantic import BaseModel, Field

from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError


class CalculatorInput(BaseModel):
    expression: str = Field(
        description="""Mathematical expression for the numexpr library, consisting only of numeric values and:
- Bitwise operators (and, or, not, xor): &, |, ~, ^
- Comparison operators: <, <=, ==, !=, >=, >
- Unary arithmetic operators: -
- Binary arithmetic operators: +, -, *, /, **, %, <<, >>"""
    )


class CalculatorOutput(BaseModel):
    result: float = Field(description="The value of the expression.")


class CalculatorTool(BaseTool[CalculatorInput, CalculatorOutput]):
    _name = "calculator"
    description = "Evaluate numeric expressions (arithmetic, comparison and bitwise operations)"
    _input = CalculatorInput
    _output = CalculatorOutput

    def invoke(self, input: CalculatorInput) -> CalculatorOutput:
        try:
            result = numexpr.evaluate(input.expression)  # type: ignore
        except (SyntaxError, KeyError, TypeError, ValueError) as e:
            raise ToolExecutionError(f"Cannot evaluate '{input.expression}': {e}") from e
        return CalculatorOutput(result=float(result))

    example_inputs = (
        CalculatorInput(expression="3+4"),
        CalculatorInput(expression="(4*5)/3"),
    )
    example_outputs = (CalculatorOutput(result=7.0),)
