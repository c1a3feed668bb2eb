"""Declarative record filters such as ``s == 1 && e <= 6``."""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .formatter import KNOWN_BINDINGS, FormatError

_CONDITION = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(==|!=|<=|>=|<|>|~)\s*(.+?)\s*$")
_SPLIT = re.compile(r"\s*(?:&&|\band\b)\s*")


def _contains(left: Any, right: Any) -> bool:
    return str(right).lower() in str(left).lower()


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "~": _contains,
}


@dataclass(frozen=True, slots=True)
class Condition:
    """A single ``binding op value`` comparison."""

    binding: str
    op: str
    value: Any

    def evaluate(self, bindings: Mapping[str, Any]) -> bool:
        actual = bindings.get(self.binding)
        if actual is None:
            return self.op == "!=" and self.value is not None
        expected = self.value
        if isinstance(actual, (int, float)) and isinstance(expected, str):
            try:
                expected = type(actual)(expected)
            except ValueError:
                return False
        elif isinstance(actual, str) and not isinstance(expected, str):
            expected = str(expected)
        if self.op not in {"==", "!=", "~"} and isinstance(actual, str):
            actual, expected = actual.lower(), str(expected).lower()
        try:
            return bool(_OPERATORS[self.op](actual, expected))
        except TypeError:
            return False


class RecordFilter:
    """Conjunction of conditions evaluated against template bindings."""

    def __init__(self, expression: str | None) -> None:
        self.expression = (expression or "").strip()
        self.conditions = self._parse(self.expression)

    def __call__(self, bindings: Mapping[str, Any]) -> bool:
        return all(condition.evaluate(bindings) for condition in self.conditions)

    def __bool__(self) -> bool:
        return bool(self.conditions)

    @staticmethod
    def _parse(expression: str) -> list[Condition]:
        if not expression:
            return []
        conditions: list[Condition] = []
        for part in _SPLIT.split(expression):
            match = _CONDITION.match(part)
            if match is None:
                raise FormatError(f"Cannot parse filter condition '{part}'.")
            binding, op, raw_value = match.groups()
            if binding not in KNOWN_BINDINGS:
                raise FormatError(f"Unknown binding '{binding}' in filter.")
            conditions.append(Condition(binding, op, _literal(raw_value)))
        return conditions


def _literal(raw: str) -> Any:
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in {"'", '"'}:
        return raw[1:-1]
    if raw.lower() in {"none", "null"}:
        return None
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


__all__ = ["RecordFilter", "Condition"]
