# calculator.py

import math
import re
from enum import Enum
from typing import Dict, Optional


class Operation(str, Enum):
    """
    The arithmetic operations the service can perform.
    The value of each member is the tag stored with every calculation record.
    """
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    POWER = "power"
    SQRT = "sqrt" # The only operation that takes a single operand
    MODULO = "modulo"

    @property
    def is_unary(self) -> bool:
        return self is Operation.SQRT


# Message returned when an operand for the given operation is not a number
INVALID_INPUT_MESSAGES: Dict[Operation, str] = {
    Operation.ADD: "Please press the number you want to add",
    Operation.SUBTRACT: "Please press the number you want to subtract",
    Operation.MULTIPLY: "Please press the number you want to multiply",
    Operation.DIVIDE: "Please press the number you want to divide",
    Operation.POWER: "(num1)base and (num2)exponent should be numbers",
    Operation.SQRT: "Please press the number you want to do sqrt",
    Operation.MODULO: "Please press the number you want to modulo",
}

# Plain ASCII decimal with an optional exponent, e.g. "5", "-2.5", ".5", "1e3"
# float() alone would also take "1_000", "inf" and non-ASCII digits
NUMBER_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


# --- Errors raised while validating or evaluating a calculation ---

class CalculationError(ValueError):
    """Base class for every error that makes a calculation request invalid."""

    default_message = "Invalid calculation"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(CalculationError):
    default_message = "Operands must be numbers"


class DivisionByZero(CalculationError):
    default_message = "Cannot divide by zero"


class ModuloByZero(CalculationError):
    default_message = "Cannot modulo by zero"


class NegativeOperand(CalculationError):
    default_message = "Please input positive numbers, this function can't deal with negative numbers"


class NonFiniteResult(CalculationError):
    default_message = "Result is not a finite number"


def parse_operand(raw: Optional[str], message: Optional[str] = None) -> float:
    """
    Converts a query-string value into a float.
    Only plain ASCII decimals (optionally with an exponent) are accepted. Missing,
    blank, non-numeric and overflowing values all raise InvalidInput, so nothing
    downstream ever sees a value that is not a finite number.
    """
    # A missing query parameter arrives as None
    if raw is None:
        raise InvalidInput(message)

    text = raw.strip()
    if not NUMBER_PATTERN.fullmatch(text):
        raise InvalidInput(message)

    value = float(text)
    # Values such as "1e400" match the pattern but overflow to infinity
    if not math.isfinite(value):
        raise InvalidInput(message)
    return value


def evaluate(operation: Operation, num1: float, num2: float = 0.0) -> float:
    """
    Applies the operation to the operands with IEEE-754 double semantics.
    Raises a CalculationError subclass when the operation is undefined for the input.
    """
    try:
        if operation == Operation.ADD:
            result = num1 + num2
        elif operation == Operation.SUBTRACT:
            result = num1 - num2
        elif operation == Operation.MULTIPLY:
            result = num1 * num2
        elif operation == Operation.DIVIDE:
            # Reject a zero divisor before dividing
            if num2 == 0:
                raise DivisionByZero()
            result = num1 / num2
        elif operation == Operation.POWER:
            # math.pow raises instead of returning a complex number or inf
            result = math.pow(num1, num2)
        elif operation == Operation.SQRT:
            if num1 < 0:
                raise NegativeOperand()
            result = math.sqrt(num1)
        elif operation == Operation.MODULO:
            if num2 == 0:
                raise ModuloByZero()
            # fmod keeps the sign of the dividend, unlike Python's %
            result = math.fmod(num1, num2)
        else:
            raise InvalidInput(f"Unknown operation: {operation}")
    except (OverflowError, ValueError) as e:
        # Our own errors pass through; math domain and overflow errors become NonFiniteResult
        if isinstance(e, CalculationError):
            raise
        raise NonFiniteResult() from e

    # Sums and products overflow to inf without raising
    if not math.isfinite(result):
        raise NonFiniteResult()
    return result


def calculate(operation: Operation, raw_num1: Optional[str], raw_num2: Optional[str] = None) -> Dict[str, float]:
    """
    Parses the raw operands for the operation and evaluates it.
    Returns the parsed operands alongside the result, ready to be recorded.
    Unary operations ignore raw_num2 and record num2 as 0.
    """
    message = INVALID_INPUT_MESSAGES[operation]
    num1 = parse_operand(raw_num1, message)
    num2 = 0.0 if operation.is_unary else parse_operand(raw_num2, message)

    # Return the operands as parsed so the record matches what was computed
    return {
        "num1": num1,
        "num2": num2,
        "result": evaluate(operation, num1, num2),
    }
