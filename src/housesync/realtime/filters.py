"""Channel filter expressions — PostgREST style `column=op.value`.

Examples:
    assigned_to=eq.42
    total_points=gte.100
    status=in.(pending,approved)
"""

from dataclasses import dataclass
from typing import Any, Optional

_OPERATORS = {"eq", "neq", "lt", "lte", "gt", "gte", "in"}


@dataclass(frozen=True)
class RowFilter:
    column: str
    op: str
    value: Any

    def matches(self, record: Optional[dict]) -> bool:
        if not isinstance(record, dict) or self.column not in record:
            return False
        actual = record[self.column]

        if self.op == "eq":
            return _text(actual) == self.value
        if self.op == "neq":
            return _text(actual) != self.value
        if self.op == "in":
            return _text(actual) in self.value

        try:
            left, right = float(actual), float(self.value)
        except (TypeError, ValueError):
            return False
        if self.op == "lt":
            return left < right
        if self.op == "lte":
            return left <= right
        if self.op == "gt":
            return left > right
        return left >= right


def _text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_filter(expression: str) -> RowFilter:
    """Parse `column=op.value`. Raises ValueError on malformed input."""
    column, sep, rest = expression.partition("=")
    op, dot, value = rest.partition(".")
    column = column.strip()
    if not sep or not dot or not column:
        raise ValueError(f"Malformed filter: {expression!r}")
    if op not in _OPERATORS:
        raise ValueError(f"Unsupported filter operator {op!r} in {expression!r}")

    if op == "in":
        if not (value.startswith("(") and value.endswith(")")):
            raise ValueError(f"'in' filter needs a parenthesised list: {expression!r}")
        items = frozenset(v.strip() for v in value[1:-1].split(",") if v.strip())
        return RowFilter(column, op, items)

    return RowFilter(column, op, value)
