"""
Lorm Dialects — backend identifier and parameter-marker generation.

Every placeholder in every statement lorm emits comes from
``placeholder()``; statements that bind several values draw markers from a
``Params`` accumulator so numbering follows the bind position. Table and
column names always go through ``quote_identifier()``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Sequence, Union

from ..faults import SchemaFault

__all__ = ["Dialect", "resolve_dialect", "placeholder", "quote_identifier", "Params"]


class Dialect(str, Enum):
    """Supported SQL backends."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"

    @property
    def param_style(self) -> str:
        """``numeric`` ($1, $2, ...) or ``qmark`` (?)."""
        return "qmark" if self is Dialect.MYSQL else "numeric"


_ALIASES = {
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
    "mysql": Dialect.MYSQL,
}


def resolve_dialect(
    value: Union[Dialect, str, Sequence[Union[Dialect, str]], None],
    *,
    entity: str = "<unknown>",
) -> Dialect:
    """
    Normalize a backend identifier.

    Exactly one recognized dialect must be named; none, several, or an
    unknown name raises ``SchemaFault``.
    """
    if isinstance(value, Dialect):
        return value

    if isinstance(value, (list, tuple, set, frozenset)):
        if len(value) != 1:
            raise SchemaFault(
                entity,
                f"exactly one backend dialect must be selected, got {len(value)}",
            )
        return resolve_dialect(next(iter(value)), entity=entity)

    if not value:
        raise SchemaFault(entity, "no backend dialect selected")

    if not isinstance(value, str):
        raise SchemaFault(entity, f"invalid dialect identifier {value!r}")

    if "," in value:
        raise SchemaFault(entity, f"exactly one backend dialect must be selected, got {value!r}")

    try:
        return _ALIASES[value.strip().lower()]
    except KeyError:
        raise SchemaFault(
            entity,
            f"unrecognized dialect {value!r}; expected one of {sorted(set(d.value for d in Dialect))}",
        )


def placeholder(dialect: Dialect, position: int) -> str:
    """Marker for the bind argument at 1-based ``position``."""
    if position < 1:
        raise ValueError(f"placeholder position must be >= 1, got {position}")
    if dialect.param_style == "qmark":
        return "?"
    return f"${position}"


def quote_identifier(dialect: Dialect, name: str) -> str:
    """Quote a table or column name: backticks on MySQL, double quotes elsewhere."""
    if dialect is Dialect.MYSQL:
        return "`" + name.replace("`", "``") + "`"
    return '"' + name.replace('"', '""') + '"'


class Params:
    """
    Cumulative bind-argument list for one statement.

    ``add()`` appends a value and returns the marker for its position,
    so the SQL text and the argument order cannot drift apart.
    """

    __slots__ = ("dialect", "values")

    def __init__(self, dialect: Dialect, values: Optional[List[Any]] = None):
        self.dialect = dialect
        self.values: List[Any] = list(values or [])

    def add(self, value: Any) -> str:
        self.values.append(value)
        return placeholder(self.dialect, len(self.values))

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"<Params {self.dialect.value}: {len(self.values)} bound>"
