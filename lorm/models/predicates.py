"""
Lorm Predicates — comparison operators and ordering directions for the
select builder.
"""

from __future__ import annotations

from enum import Enum

__all__ = ["Where", "OrderBy"]


class Where(str, Enum):
    """Comparison operators accepted by ``where_<field>`` / ``having_<field>``."""

    EQ = "="
    NOT_EQ = "<>"
    GREATER_THAN = ">"
    GREATER_OR_EQUAL = ">="
    LESSER_THAN = "<"
    LESSER_OR_EQUAL = "<="
    LIKE = "LIKE"

    # Short aliases
    Eq = "="
    NotEq = "<>"
    GreaterThan = ">"
    GreaterOrEqual = ">="
    LesserThan = "<"
    LesserOrEqual = "<="
    Like = "LIKE"

    @property
    def sql(self) -> str:
        return self.value


class OrderBy(str, Enum):
    """ORDER BY direction."""

    ASC = "ASC"
    DESC = "DESC"

    Asc = "ASC"
    Desc = "DESC"

    @property
    def sql(self) -> str:
        return self.value
