"""Arithmetic challenge generation and verification.

A challenge is two operands in ``[1, 10]`` joined by one operator. Only the
expected answer is stored server-side; the question is shown to the client
and never trusted when echoed back.

Example::

    from directgate.challenge import generate_challenge, verify_answer

    challenge = generate_challenge()
    session["captcha_answer"] = challenge.expected_answer
    # ... later, on submission
    if verify_answer(form["captcha_answer"], session.get("captcha_answer")):
        ...
"""

from __future__ import annotations

import random
import re
import secrets
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Iterable

from ._enums import Operator, _coerce_operator

OPERAND_MIN = 1
OPERAND_MAX = 10

DEFAULT_OPERATORS: tuple[Operator, ...] = (Operator.ADD, Operator.SUBTRACT)

# Optional surrounding whitespace, sign, digits with optional fraction, and an
# optional exponent. Hex, NaN and Infinity are not numeric.
_NUMERIC_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")

_system_random = secrets.SystemRandom()


@dataclass(frozen=True, slots=True)
class Challenge:
    """A single arithmetic problem and its precomputed answer."""

    operand1: int
    operand2: int
    operator: Operator
    expected_answer: int

    def __post_init__(self):
        if not isinstance(self.operator, Operator):
            raise TypeError("Challenge.operator must be an Operator enum")
        for name in ("operand1", "operand2"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int):
                raise TypeError(f"Challenge.{name} must be an int")
            if not (OPERAND_MIN <= v <= OPERAND_MAX):
                raise ValueError(
                    f"Challenge.{name} must be between {OPERAND_MIN} and {OPERAND_MAX}, got {v}"
                )

    @property
    def question(self) -> str:
        """Human-readable problem, e.g. ``"3 + 5"``."""
        return f"{self.operand1} {self.operator.symbol} {self.operand2}"


def compute_answer(operand1: int, operand2: int, operator: str | Operator) -> int:
    op = _coerce_operator(operator)
    if op is Operator.ADD:
        return operand1 + operand2
    if op is Operator.SUBTRACT:
        return operand1 - operand2
    return operand1 * operand2


def generate_challenge(
    operators: Iterable[str | Operator] = DEFAULT_OPERATORS,
    *,
    rng: random.Random | None = None,
) -> Challenge:
    """Create a fresh challenge.

    Operands are drawn uniformly from ``[1, 10]`` and the operator uniformly
    from ``operators``. Pass ``rng`` to make generation deterministic in
    tests; by default a ``secrets.SystemRandom`` instance is used.

    The caller is responsible for persisting ``expected_answer``.
    """
    ops = tuple(_coerce_operator(o) for o in operators)
    if not ops:
        raise ValueError("At least one challenge operator is required.")
    r = rng or _system_random
    a = r.randint(OPERAND_MIN, OPERAND_MAX)
    b = r.randint(OPERAND_MIN, OPERAND_MAX)
    op = r.choice(ops)
    return Challenge(
        operand1=a, operand2=b, operator=op, expected_answer=compute_answer(a, b, op)
    )


def is_numeric(value: Any) -> bool:
    """True for ints, finite floats and numeric strings such as ``" -5.9 "``."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value == value and value not in (float("inf"), float("-inf"))
    if isinstance(value, str):
        return _NUMERIC_RE.match(value) is not None
    return False


def _truncated(value: Any) -> Decimal | None:
    if not is_numeric(value):
        return None
    if isinstance(value, int):
        return Decimal(value)
    try:
        d = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except InvalidOperation:
        return None
    return d.to_integral_value(rounding=ROUND_DOWN)


def verify_answer(candidate: Any, expected: Any) -> bool:
    """Check a submitted answer against the stored one.

    Returns ``True`` only when ``expected`` is present, ``candidate`` is
    numeric and both truncate to the same integer (so ``"5.9"`` matches
    ``5``). Never raises.
    """
    if expected is None:
        return False
    want = _truncated(expected)
    got = _truncated(candidate)
    if want is None or got is None:
        return False
    return got == want
