"""Parsing and evaluation of ``field<op>value`` filter expressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from sheetlink.errors import FilterParseError
from sheetlink.query.paths import MISSING, lookup_path
from sheetlink.values import coerce_value

OPERATORS = ("=", ">", ">=", "<", "<=")

_OPERATOR_CHARS = "<=>"


@dataclass(frozen=True)
class FilterPredicate:
    """One parsed filter: ``field_name`` ``operator`` ``value``."""

    field_name: str
    operator: str
    value: Any

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate against *row*; a field missing from the row never matches."""
        lhs = lookup_path(row, self.field_name)
        if lhs is MISSING:
            return False
        return compare(lhs, self.operator, self.value)


def parse_filter(expression: str) -> FilterPredicate:
    """Parse a single ``field<op>value`` expression.

    The operator spans from the leftmost to the rightmost of the characters
    ``<``, ``=`` and ``>``; the text after it is coerced like a sheet cell.

    Raises:
        FilterParseError: If no operator is present, the operator is not
            one of ``=, >, >=, <, <=``, or the field name is empty.
    """
    positions = [i for i, ch in enumerate(expression) if ch in _OPERATOR_CHARS]
    if not positions:
        raise FilterParseError(expression)

    start, end = positions[0], positions[-1] + 1
    field_name = expression[:start]
    operator = expression[start:end]
    if operator not in OPERATORS:
        raise FilterParseError(expression, f"unsupported operator {operator!r}")
    if not field_name:
        raise FilterParseError(expression, "missing field name")

    return FilterPredicate(
        field_name=field_name,
        operator=operator,
        value=coerce_value(expression[end:]),
    )


def parse_filters(expressions: list[str]) -> list[FilterPredicate]:
    """Parse every expression in order.  See :func:`parse_filter`."""
    return [parse_filter(expr) for expr in expressions]


def evaluate_filters(row: Mapping[str, Any], predicates: list[FilterPredicate]) -> bool:
    """True iff every predicate holds for *row* (vacuously true when empty)."""
    return all(p.matches(row) for p in predicates)


def _kind(value: Any) -> str | None:
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


def compare(lhs: Any, operator: str, rhs: Any) -> bool:
    """Compare two values with a string operator.

    ``=`` is type-strict equality (``1.0`` never equals ``True``).  Ordering
    operators only compare numbers with numbers, strings with strings and
    booleans with booleans; any other pairing, or an unknown operator, is
    a no-match rather than an error.
    """
    if operator == "=":
        if lhs is None or rhs is None:
            return lhs is None and rhs is None
        return _kind(lhs) is not None and _kind(lhs) == _kind(rhs) and lhs == rhs

    kind = _kind(lhs)
    if kind is None or kind != _kind(rhs):
        return False
    if operator == ">":
        return lhs > rhs
    if operator == ">=":
        return lhs >= rhs
    if operator == "<":
        return lhs < rhs
    if operator == "<=":
        return lhs <= rhs
    return False
