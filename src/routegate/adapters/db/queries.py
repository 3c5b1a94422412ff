"""Helpers for building parameterized PATCH updates."""

from enum import Enum
from typing import Any


def db_value(value: Any) -> Any:
    """Convert a domain value into something asyncpg can bind."""
    if isinstance(value, Enum):
        return value.value
    return value


def set_clause(changes: dict[str, Any], allowed: frozenset[str]) -> tuple[str, list[Any]]:
    """Build `col = $n, ...` for the given column changes.

    Args:
        changes: Column name to new value; only these columns are written.
        allowed: Columns that may be updated.

    Returns:
        The SET clause and its parameters, numbered from $1.

    Raises:
        ValueError: If a column is not in `allowed`.
    """
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Columns not updatable: {sorted(unknown)}")

    updates = []
    params: list[Any] = []
    for param_idx, (column, value) in enumerate(changes.items(), start=1):
        updates.append(f"{column} = ${param_idx}")
        params.append(db_value(value))
    return ", ".join(updates), params
