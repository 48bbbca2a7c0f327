"""
Lorm Select Builder — chainable SELECT over one entity's lookup fields.

    users = await (
        User.select()
        .where_count(Where.GREATER_OR_EQUAL, 2)
        .where_between_created_at(start, end)
        .order_by_email().desc()
        .limit(10)
        .build(db)
    )

Per-field methods (``where_<f>``, ``where_between_<f>``, ``group_by_<f>``,
``having_<f>``, ``order_by_<f>``) exist for every lookup field and are
resolved through the entity's lookup table. Clauses accumulate in call
order; the final statement always reads

    SELECT cols FROM t [WHERE ..] [GROUP BY ..] [HAVING ..] [ORDER BY ..] [LIMIT n] [OFFSET n]

A builder is single-use: ``build()`` consumes it and any later call raises
``QueryFault``. ``to_sql()`` renders without consuming.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, List, NamedTuple, Optional, Tuple, Type, Union, TYPE_CHECKING

from ..faults import QueryFault
from .aggregate import Aggregate, as_aggregate
from .dialects import Dialect, Params
from .predicates import OrderBy, Where

if TYPE_CHECKING:
    from ..db.executor import Executor
    from .entity import EntityModel, FieldSpec

logger = logging.getLogger("lorm.models.query")

__all__ = ["SelectBuilder"]


class _Predicate(NamedTuple):
    column: str
    op: str  # comparison operator, or "BETWEEN"
    values: Tuple[Any, ...]


class _Having(NamedTuple):
    column: str
    op: Where
    aggregate: Optional[Aggregate]
    value: Any


# SQLite and MySQL only accept OFFSET after a LIMIT
_OFFSET_NEEDS_LIMIT = {
    Dialect.SQLITE: "-1",
    Dialect.MYSQL: "18446744073709551615",
}

# Longest prefixes first: where_between_x must not be read as where_ + between_x
_DISPATCH = (
    ("where_between_", "where_between"),
    ("where_", "where"),
    ("group_by_", "group_by"),
    ("having_", "having"),
    ("order_by_", "order_by"),
)


def _as_operator(entity: str, op: Union[Where, str]) -> Where:
    """
    Accept a ``Where`` member, its SQL symbol (``"<>"``, ``"like"``) or its
    member name (``"NotEq"``, ``"GREATER_THAN"``).
    """
    if isinstance(op, Where):
        return op
    if isinstance(op, str) and op in Where.__members__:
        return Where[op]
    try:
        return Where(op.upper() if isinstance(op, str) else op)
    except ValueError:
        raise QueryFault(entity, "where", f"unknown comparison operator {op!r}") from None


def _as_direction(entity: str, direction: Union[OrderBy, str]) -> OrderBy:
    if isinstance(direction, OrderBy):
        return direction
    try:
        return OrderBy(direction.upper() if isinstance(direction, str) else direction)
    except ValueError:
        raise QueryFault(entity, "order_by", f"unknown order direction {direction!r}") from None


class SelectBuilder:
    """
    Accumulates predicates, grouping, ordering and paging for one SELECT.

    Not thread/task safe: one builder belongs to one call chain.
    """

    def __init__(self, model: EntityModel):
        self._model = model
        self._where: List[_Predicate] = []
        self._group_by: List[str] = []
        self._having: List[_Having] = []
        self._order_by: List[List[str]] = []  # [column, direction]
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._consumed = False

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else "open"
        return f"<SelectBuilder {self._model.name} ({state})>"

    # ── Per-field dispatch ───────────────────────────────────────────

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        model = self.__dict__.get("_model")
        if model is not None:
            for prefix, method in _DISPATCH:
                if name.startswith(prefix):
                    field_name = name[len(prefix):]
                    if model.lookup(field_name) is not None:
                        return partial(getattr(self, method), field_name)
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    # ── Internal helpers ─────────────────────────────────────────────

    def _check_open(self, operation: str) -> None:
        if self._consumed:
            raise QueryFault(self._model.name, operation, "builder already consumed by build()")

    def _spec(self, field_name: str, operation: str) -> FieldSpec:
        spec = self._model.lookup(field_name)
        if spec is None:
            raise QueryFault(
                self._model.name,
                operation,
                f"'{field_name}' is not a lookup field",
            )
        return spec

    def _encode(self, spec: FieldSpec, value: Any) -> Any:
        return spec.encode(value, self._model.dialect)

    @staticmethod
    def _page_value(entity: str, operation: str, n: Any) -> int:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise QueryFault(entity, operation, f"expected a non-negative integer, got {n!r}")
        return n

    # ── Clauses ──────────────────────────────────────────────────────

    def where(self, field_name: str, op: Union[Where, str], value: Any) -> SelectBuilder:
        """Append ``column <op> value``, AND-combined with earlier predicates."""
        self._check_open("where")
        spec = self._spec(field_name, "where")
        operator = _as_operator(self._model.name, op)
        column = self._model.quote(spec.column)
        self._where.append(_Predicate(column, operator.sql, (self._encode(spec, value),)))
        return self

    def where_between(self, field_name: str, low: Any, high: Any) -> SelectBuilder:
        """Append ``column BETWEEN low AND high`` (inclusive)."""
        self._check_open("where_between")
        spec = self._spec(field_name, "where_between")
        self._where.append(
            _Predicate(
                self._model.quote(spec.column),
                "BETWEEN",
                (self._encode(spec, low), self._encode(spec, high)),
            )
        )
        return self

    def group_by(self, field_name: str) -> SelectBuilder:
        self._check_open("group_by")
        self._group_by.append(self._model.quote(self._spec(field_name, "group_by").column))
        return self

    def having(
        self,
        field_name: str,
        op: Union[Where, str],
        aggregate: Union[Aggregate, Type[Aggregate], None],
        value: Any,
    ) -> SelectBuilder:
        """
        Append ``AGG(column) <op> value`` to HAVING (``aggregate=None``
        compares the bare column).
        """
        self._check_open("having")
        spec = self._spec(field_name, "having")
        operator = _as_operator(self._model.name, op)
        agg = as_aggregate(aggregate)
        if agg is None or not agg.raw_value:
            value = self._encode(spec, value)
        self._having.append(_Having(self._model.quote(spec.column), operator, agg, value))
        return self

    def order_by(self, field_name: str, direction: Union[OrderBy, str] = OrderBy.ASC) -> SelectBuilder:
        """Append an ORDER BY entry; earlier entries take precedence."""
        self._check_open("order_by")
        spec = self._spec(field_name, "order_by")
        self._order_by.append([self._model.quote(spec.column), _as_direction(self._model.name, direction).sql])
        return self

    def _redirect(self, direction: OrderBy) -> SelectBuilder:
        operation = direction.value.lower()
        self._check_open(operation)
        if not self._order_by:
            raise QueryFault(self._model.name, operation, "no ORDER BY entry to apply a direction to")
        self._order_by[-1][1] = direction.sql
        return self

    def asc(self) -> SelectBuilder:
        """Sort the most recent ORDER BY entry ascending."""
        return self._redirect(OrderBy.ASC)

    def desc(self) -> SelectBuilder:
        """Sort the most recent ORDER BY entry descending."""
        return self._redirect(OrderBy.DESC)

    def limit(self, n: int) -> SelectBuilder:
        self._check_open("limit")
        self._limit = self._page_value(self._model.name, "limit", n)
        return self

    def offset(self, n: int) -> SelectBuilder:
        self._check_open("offset")
        self._offset = self._page_value(self._model.name, "offset", n)
        return self

    # ── Assembly ─────────────────────────────────────────────────────

    def to_sql(self) -> Tuple[str, List[Any]]:
        """Render ``(sql, args)`` without executing or consuming the builder."""
        self._check_open("to_sql")
        model = self._model
        params = Params(model.dialect)
        parts = [f"SELECT {model.columns} FROM {model.quoted_table}"]

        if self._where:
            predicates = []
            for column, op, values in self._where:
                if op == "BETWEEN":
                    low, high = values
                    predicates.append(f"{column} BETWEEN {params.add(low)} AND {params.add(high)}")
                else:
                    predicates.append(f"{column} {op} {params.add(values[0])}")
            parts.append("WHERE " + " AND ".join(predicates))

        if self._group_by:
            parts.append("GROUP BY " + ",".join(self._group_by))

        if self._having:
            predicates = []
            for column, op, agg, value in self._having:
                target = agg.as_sql(column) if agg is not None else column
                predicates.append(f"{target} {op.sql} {params.add(value)}")
            parts.append("HAVING " + " AND ".join(predicates))

        if self._order_by:
            parts.append("ORDER BY " + ", ".join(f"{c} {d}" for c, d in self._order_by))

        if self._limit is not None:
            parts.append(f"LIMIT {self._limit}")
        elif self._offset is not None and model.dialect in _OFFSET_NEEDS_LIMIT:
            parts.append(f"LIMIT {_OFFSET_NEEDS_LIMIT[model.dialect]}")
        if self._offset is not None:
            parts.append(f"OFFSET {self._offset}")

        return " ".join(parts), params.values

    async def build(self, executor: Executor) -> List[Any]:
        """Execute the query and decode every row. Consumes the builder."""
        sql, args = self.to_sql()
        self._consumed = True
        logger.debug(f"Select on {self._model.table}: {len(args)} bound args")
        rows = await executor.fetch_all(sql, args)
        return self._model.decode_all(rows)
