"""
Lorm Aggregates — Count, Sum, Avg, Min, Max for HAVING predicates.

Usage:
    from lorm.models.aggregate import Count, Max

    await User.select().group_by_count().having_count(Where.EQ, Max, 1).build(db)
    await User.select().group_by_email().having_id(Where.GREATER_THAN, Count(distinct=True), 1).build(db)
"""

from __future__ import annotations

from typing import Optional, Type, Union

__all__ = ["Aggregate", "Count", "Sum", "Avg", "Max", "Min", "as_aggregate"]


class Aggregate:
    """
    Base class for aggregate wrappers.

    Subclasses define the SQL function name. ``raw_value`` marks functions
    whose result is a number regardless of the column type, so HAVING
    values compared against them are bound unconverted.
    """

    function: str = ""
    raw_value: bool = False

    def __init__(self, *, distinct: bool = False):
        self.distinct = distinct

    def as_sql(self, column: str) -> str:
        distinct_str = "DISTINCT " if self.distinct else ""
        return f"{self.function}({distinct_str}{column})"

    def __eq__(self, other: object) -> bool:
        return (
            type(self) is type(other)
            and self.distinct == other.distinct  # type: ignore[attr-defined]
        )

    def __hash__(self) -> int:
        return hash((type(self), self.distinct))

    def __repr__(self) -> str:
        if self.distinct:
            return f"{self.__class__.__name__}(distinct=True)"
        return f"{self.__class__.__name__}()"


class Count(Aggregate):
    """SQL COUNT() aggregate."""
    function = "COUNT"
    raw_value = True


class Sum(Aggregate):
    """SQL SUM() aggregate."""
    function = "SUM"
    raw_value = True


class Avg(Aggregate):
    """SQL AVG() aggregate."""
    function = "AVG"
    raw_value = True


class Max(Aggregate):
    """SQL MAX() aggregate."""
    function = "MAX"


class Min(Aggregate):
    """SQL MIN() aggregate."""
    function = "MIN"


def as_aggregate(value: Union[Aggregate, Type[Aggregate], None]) -> Optional[Aggregate]:
    """Accept an aggregate class, instance or ``None`` (bare column)."""
    if value is None:
        return None
    if isinstance(value, Aggregate):
        return value
    if isinstance(value, type) and issubclass(value, Aggregate) and value is not Aggregate:
        return value()
    raise TypeError(f"Expected an aggregate (Count, Sum, Avg, Min, Max) or None, got {value!r}")
