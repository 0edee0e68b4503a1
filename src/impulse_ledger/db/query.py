"""Parameterized predicate builder for optional filters.

Clauses are always literal SQL fragments chosen by the calling code; only the
values travel as parameters. This keeps filter composition free of string
concatenation of caller-supplied data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Predicates:
    """An AND-joined list of ``WHERE`` clauses with their bound values."""

    clauses: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)

    def add(self, clause: str, *values: Any) -> Predicates:
        """Append ``clause``; its ``?`` count must match ``values``."""
        if clause.count("?") != len(values):
            raise ValueError(f"placeholder count mismatch in {clause!r}")
        self.clauses.append(clause)
        self.params.extend(values)
        return self

    def add_if(self, value: Any, clause: str) -> Predicates:
        """Append a single-value clause only when ``value`` is not None."""
        if value is not None:
            self.add(clause, value)
        return self

    def where_sql(self) -> str:
        """Return `` WHERE a AND b`` or an empty string."""
        if not self.clauses:
            return ""
        return " WHERE " + " AND ".join(self.clauses)

    def __bool__(self) -> bool:
        return bool(self.clauses)
