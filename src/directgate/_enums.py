from __future__ import annotations

from enum import Enum


class GateState(str, Enum):
    """Terminal state reached by the gate for a single request.

    - ``PASSED``: the request already holds a pass cookie, or carries a
      referer and is not a challenge submission.
    - ``TRUSTED_BY_ORIGIN``: direct access from an allow-listed origin.
    - ``CHALLENGE_ISSUED``: a fresh challenge page was rendered.
    - ``CHALLENGE_FAILED``: a submitted answer was wrong and a new
      challenge was rendered with an error.
    - ``CHALLENGE_PASSED``: a submitted answer was correct and a pass cookie
      is being set.
    """

    PASSED = "PASSED"
    TRUSTED_BY_ORIGIN = "TRUSTED_BY_ORIGIN"
    CHALLENGE_ISSUED = "CHALLENGE_ISSUED"
    CHALLENGE_FAILED = "CHALLENGE_FAILED"
    CHALLENGE_PASSED = "CHALLENGE_PASSED"


class Action(str, Enum):
    """What the HTTP layer must do with the request."""

    PROCEED = "PROCEED"
    """Continue to the next middleware / route handler."""

    HALT = "HALT"
    """Stop the pipeline and send the decision's body, status and headers."""


class Operator(str, Enum):
    """Arithmetic operators supported by challenges."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"

    @property
    def symbol(self) -> str:
        """Symbol shown to humans in the challenge question."""
        if self is Operator.MULTIPLY:
            return "×"
        return self.value


_OPERATOR_ALIASES = {
    "+": Operator.ADD,
    "plus": Operator.ADD,
    "add": Operator.ADD,
    "-": Operator.SUBTRACT,
    "−": Operator.SUBTRACT,
    "minus": Operator.SUBTRACT,
    "subtract": Operator.SUBTRACT,
    "*": Operator.MULTIPLY,
    "×": Operator.MULTIPLY,
    "x": Operator.MULTIPLY,
    "times": Operator.MULTIPLY,
    "multiply": Operator.MULTIPLY,
}


def _coerce_operator(op: str | Operator) -> Operator:
    if isinstance(op, Operator):
        return op
    o = _OPERATOR_ALIASES.get(str(op).strip().lower())
    if o is None:
        raise ValueError(
            f"Unknown challenge operator: {op!r}. Expected one of '+', '-', '*'."
        )
    return o
