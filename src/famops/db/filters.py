"""
Famops - Where-filter clauses.

Store queries take a `where` dict in the shape the dashboard uses:

    {"routine_id": "r1", "date": "2025-01-06"}          # equality
    {"date": {"in": ["2025-01-06", "2025-01-07"]}}      # operator dict
    {"id": {"startswith": "tasklog_"}}                  # prefix match

`to_filters` turns that into FilterClause objects which each backend applies
its own way (PostgREST builder calls, or in-process matching).
"""

import re
from typing import Any, Literal

from pydantic import BaseModel

FilterOp = Literal["=", "!=", ">", "<", ">=", "<=", "in", "like", "ilike", "is_null"]


class FilterClause(BaseModel):
    """A single filter condition for queries."""

    field: str
    op: FilterOp
    value: Any = None


# Operator dict keys accepted in `where` values
_OPERATOR_KEYS: dict[str, FilterOp] = {
    "eq": "=",
    "neq": "!=",
    "gt": ">",
    "lt": "<",
    "gte": ">=",
    "lte": "<=",
    "in": "in",
    "like": "like",
    "ilike": "ilike",
    "is_null": "is_null",
}


def to_filters(where: dict[str, Any] | None) -> list[FilterClause]:
    """
    Convert a `where` dict into AND-combined filter clauses.

    Raises:
        ValueError: If an operator dict uses an unknown key
    """
    clauses: list[FilterClause] = []
    for field, value in (where or {}).items():
        if not isinstance(value, dict):
            clauses.append(FilterClause(field=field, op="=", value=value))
            continue
        for key, operand in value.items():
            if key == "startswith":
                clauses.append(FilterClause(field=field, op="like", value=f"{operand}%"))
            elif key in _OPERATOR_KEYS:
                clauses.append(FilterClause(field=field, op=_OPERATOR_KEYS[key], value=operand))
            else:
                raise ValueError(f"Unknown filter operator '{key}' on field '{field}'")
    return clauses


def apply_filter(query: Any, f: FilterClause) -> Any:
    """Apply a single filter clause to a Supabase query builder."""
    match f.op:
        case "=":
            return query.eq(f.field, f.value)
        case "!=":
            return query.neq(f.field, f.value)
        case ">":
            return query.gt(f.field, f.value)
        case "<":
            return query.lt(f.field, f.value)
        case ">=":
            return query.gte(f.field, f.value)
        case "<=":
            return query.lte(f.field, f.value)
        case "in":
            return query.in_(f.field, list(f.value))
        case "like":
            return query.like(f.field, f.value)
        case "ilike":
            return query.ilike(f.field, f.value)
        case "is_null":
            return query.is_(f.field, "null")
    return query


# =============================================================================
# In-process matching (memory backend)
# =============================================================================


def _same(a: Any, b: Any) -> bool:
    # Stored values are often strings ("1", "3") while callers pass ints
    if a is None or b is None:
        return a is b
    return a == b or str(a) == str(b)


def _like_pattern(pattern: str, *, ignore_case: bool) -> re.Pattern:
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.compile(regex, re.IGNORECASE if ignore_case else 0)


def matches(record: dict[str, Any], f: FilterClause) -> bool:
    """Check one record against one clause."""
    value = record.get(f.field)
    match f.op:
        case "=":
            return _same(value, f.value)
        case "!=":
            return not _same(value, f.value)
        case "in":
            return any(_same(value, candidate) for candidate in f.value)
        case "is_null":
            return value is None
        case "like" | "ilike":
            if value is None:
                return False
            pattern = _like_pattern(str(f.value), ignore_case=f.op == "ilike")
            return bool(pattern.match(str(value)))
    if value is None:
        return False
    match f.op:
        case ">":
            return value > f.value
        case "<":
            return value < f.value
        case ">=":
            return value >= f.value
        case "<=":
            return value <= f.value
    return False


def matches_all(record: dict[str, Any], clauses: list[FilterClause]) -> bool:
    return all(matches(record, f) for f in clauses)
