import random
import re
from typing import NamedTuple, Optional, Tuple

from circuit_challenge.engine.difficulty import DifficultyProfile, Operator


class Expression(NamedTuple):
    display: str
    answer: int
    operator: Operator
    operands: Tuple[int, int]


def apply_operator(operator: Operator, a: int, b: int) -> int:
    if operator is Operator.ADD:
        return a + b
    if operator is Operator.SUBTRACT:
        return a - b
    if operator is Operator.MULTIPLY:
        return a * b
    return a // b


def make_expression(profile: DifficultyProfile, rng: random.Random) -> Expression:
    """ Samples an operator by weight and operands with an integer result"""
    operator = profile.pick_operator(rng)
    a, b = profile.pick_operands(operator, rng)
    if operator is Operator.MULTIPLY and rng.random() < 0.5:
        a, b = b, a
    return Expression(
        display=f"{a} {operator.value} {b}",
        answer=apply_operator(operator, a, b),
        operator=operator,
        operands=(a, b),
    )


# ascii fallbacks so hand typed text parses too
_SYMBOLS = {
    "+": Operator.ADD,
    "−": Operator.SUBTRACT,
    "-": Operator.SUBTRACT,
    "×": Operator.MULTIPLY,
    "*": Operator.MULTIPLY,
    "x": Operator.MULTIPLY,
    "÷": Operator.DIVIDE,
    "/": Operator.DIVIDE,
}

_BINARY = re.compile(r"^\s*(-?\d+)\s*([+\-−×*x÷/])\s*(-?\d+)\s*$")


def evaluate_expression(text: str) -> Optional[int]:
    """
    Value of a "a op b" display string, or None if it does not parse or the
    division is not exact.
    """
    match = _BINARY.match(text or "")
    if not match:
        return None
    a, symbol, b = int(match.group(1)), match.group(2), int(match.group(3))
    operator = _SYMBOLS[symbol]
    if operator is Operator.DIVIDE and (b == 0 or a % b):
        return None
    return apply_operator(operator, a, b)
