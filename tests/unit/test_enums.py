"""Unit tests for enum helpers."""

from __future__ import annotations

import pytest

from directgate import Action, GateState, Operator
from directgate._enums import _coerce_operator


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("+", Operator.ADD),
        ("plus", Operator.ADD),
        ("-", Operator.SUBTRACT),
        ("−", Operator.SUBTRACT),
        ("*", Operator.MULTIPLY),
        ("×", Operator.MULTIPLY),
        (" Times ", Operator.MULTIPLY),
        (Operator.ADD, Operator.ADD),
    ],
)
def test_coerce_operator(raw, expected):
    assert _coerce_operator(raw) is expected


def test_coerce_operator_unknown():
    with pytest.raises(ValueError):
        _coerce_operator("/")


def test_operator_symbols():
    assert Operator.ADD.symbol == "+"
    assert Operator.SUBTRACT.symbol == "-"
    assert Operator.MULTIPLY.symbol == "×"


def test_enums_are_strings():
    assert GateState.PASSED == "PASSED"
    assert Action.HALT == "HALT"
