"""
Lorm Commands — insert / update / delete / lookup statements and the
operations that run them.

SQL text is produced once per entity by ``compile_statements()``; the
operations below only pick a statement, bind values in the statement's
recorded order, and hand both to the executor.
"""

from __future__ import annotations

import copy
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..faults import MultipleRecordsFault, RecordNotFoundFault, SchemaFault
from .dialects import placeholder

if TYPE_CHECKING:
    from ..db.executor import Executor
    from .entity import EntityModel, FieldSpec, Statement, Statements

logger = logging.getLogger("lorm.models")

__all__ = [
    "compile_statements",
    "insert_statement",
    "update_statement",
    "delete_statement",
    "lookup_statement",
    "single_lookup_statement",
    "save",
    "delete",
    "by",
    "with_",
    "get_related",
]


# ── Statement generators ─────────────────────────────────────────────────────


def insert_statement(model: EntityModel) -> Statement:
    """
    ``INSERT INTO "t" ("c1","c2") VALUES ($1,$2) RETURNING <all columns>``

    Read-only fields (a store-assigned key included) are left out of the
    column list. With nothing writable the store fills every column.
    """
    from .entity import Statement

    cols = [model.quote(f.column) for f in model.writable]
    if not cols:
        return Statement(
            f"INSERT INTO {model.quoted_table} DEFAULT VALUES RETURNING {model.columns}",
            (),
        )
    markers = ",".join(placeholder(model.dialect, i) for i in range(1, len(cols) + 1))
    return Statement(
        f"INSERT INTO {model.quoted_table} ({','.join(cols)}) VALUES ({markers}) RETURNING {model.columns}",
        tuple(f.name for f in model.writable),
    )


def update_statement(model: EntityModel) -> Statement:
    """
    ``UPDATE "t" SET "c1" = $1,"c2" = $2 WHERE "pk" = $3 RETURNING <all columns>``

    SET markers are numbered 1..N, the primary-key marker N+1.
    """
    from .entity import Statement

    pk_column = model.quote(model.pk.column)
    assignments = [
        f"{model.quote(f.column)} = {placeholder(model.dialect, i)}"
        for i, f in enumerate(model.writable, 1)
    ]
    pk_marker = placeholder(model.dialect, len(assignments) + 1)
    if not assignments:
        # Nothing writable: re-read the row through a no-op assignment
        assignments = [f"{pk_column} = {pk_column}"]
    return Statement(
        f"UPDATE {model.quoted_table} SET {','.join(assignments)} "
        f"WHERE {pk_column} = {pk_marker} RETURNING {model.columns}",
        tuple(f.name for f in model.writable) + (model.pk.name,),
    )


def delete_statement(model: EntityModel) -> Statement:
    from .entity import Statement

    return Statement(
        f"DELETE FROM {model.quoted_table} WHERE {model.quote(model.pk.column)} = {placeholder(model.dialect, 1)}",
        (model.pk.name,),
    )


def lookup_statement(model: EntityModel, spec: FieldSpec) -> Statement:
    """Exact-match SELECT of every column on one lookup field."""
    from .entity import Statement

    return Statement(
        f"SELECT {model.columns} FROM {model.quoted_table} "
        f"WHERE {model.quote(spec.column)} = {placeholder(model.dialect, 1)}",
        (spec.name,),
    )


def single_lookup_statement(model: EntityModel, spec: FieldSpec) -> Statement:
    """Lookup capped at two rows so a duplicate key can be detected."""
    from .entity import Statement

    sql, binds = lookup_statement(model, spec)
    return Statement(f"{sql} LIMIT 2", binds)


def compile_statements(model: EntityModel) -> Statements:
    from .entity import Statements

    return Statements(
        insert=insert_statement(model),
        update=update_statement(model),
        delete=delete_statement(model),
        lookups=MappingProxyType({
            name: lookup_statement(model, spec) for name, spec in model.lookup_fields.items()
        }),
        singles=MappingProxyType({
            name: single_lookup_statement(model, spec) for name, spec in model.lookup_fields.items()
        }),
    )


# ── Operations ───────────────────────────────────────────────────────────────


def _stamp(work: Any, spec: FieldSpec, generated: Dict[int, Any]) -> None:
    """Apply ``spec``'s generation rule; one value per rule per save."""
    rule: Callable[[], Any] = spec.new  # type: ignore[assignment]
    key = id(rule)
    if key not in generated:
        generated[key] = rule()
    setattr(work, spec.name, generated[key])


async def save(executor: Executor, model: EntityModel, instance: Any) -> Any:
    """
    Insert ``instance`` if its primary key is unset, otherwise update it.

    The instance itself is never mutated; the row returned by the store is
    decoded and returned as the new canonical instance.
    """
    work = copy.copy(instance)
    generated: Dict[int, Any] = {}

    if model.updated_at is not None and not model.updated_at.readonly:
        _stamp(work, model.updated_at, generated)

    pk = model.pk
    if pk.is_unset(getattr(work, pk.name)):  # type: ignore[misc]
        if not pk.readonly:
            _stamp(work, pk, generated)
        if model.created_at is not None and not model.created_at.readonly:
            _stamp(work, model.created_at, generated)
        statement = model.statements.insert
        args = model.bind(statement, work)
    else:
        statement = model.statements.update
        args = model.bind(statement, work)
        # The key always comes from the caller's instance
        args[-1] = model.value_of(pk, instance)

    row = await executor.fetch_one(statement.sql, args)
    return model.decode(row)


async def delete(executor: Executor, model: EntityModel, instance: Any) -> None:
    """Delete the row keyed by ``instance``'s primary key. Zero rows is not an error."""
    statement = model.statements.delete
    await executor.execute(statement.sql, model.bind(statement, instance))


def _lookup_spec(model: EntityModel, field_name: str) -> FieldSpec:
    spec = model.lookup(field_name)
    if spec is None:
        raise AttributeError(f"'{model.name}' has no lookup field '{field_name}'")
    return spec


async def by(executor: Executor, model: EntityModel, field_name: str, value: Any) -> Any:
    """
    Fetch the single row whose ``field_name`` equals ``value``.

    Raises:
        RecordNotFoundFault: no row matches
        MultipleRecordsFault: more than one row matches
    """
    spec = _lookup_spec(model, field_name)
    statement = model.statements.singles[field_name]
    rows = await executor.fetch_all(statement.sql, [spec.encode(value, model.dialect)])
    if not rows:
        raise RecordNotFoundFault(
            f"by_{field_name}",
            metadata={"entity": model.name, "field": field_name},
        )
    if len(rows) > 1:
        raise MultipleRecordsFault(model.name, field_name)
    return model.decode(rows[0])


async def with_(executor: Executor, model: EntityModel, field_name: str, value: Any) -> List[Any]:
    """Fetch every row whose ``field_name`` equals ``value`` (unordered)."""
    spec = _lookup_spec(model, field_name)
    statement = model.statements.lookups[field_name]
    rows = await executor.fetch_all(statement.sql, [spec.encode(value, model.dialect)])
    return model.decode_all(rows)


def resolve_target(model: EntityModel, spec: FieldSpec) -> EntityModel:
    """Compiled model a foreign key points at."""
    from .entity import EntityModel
    from .registry import ModelRegistry

    target = spec.fk
    if isinstance(target, str):
        resolved = ModelRegistry.get(target)
        if resolved is None:
            raise SchemaFault(model.name, f"foreign key '{spec.name}' references unknown model '{target}'")
        target = resolved
    if isinstance(target, EntityModel):
        return target
    entity = getattr(target, "entity", None)
    if callable(entity):
        return entity()
    raise SchemaFault(model.name, f"foreign key '{spec.name}' target {target!r} is not a model")


async def get_related(
    executor: Executor,
    model: EntityModel,
    instance: Any,
    relation: str,
) -> Optional[Any]:
    """
    Follow the foreign key named ``relation`` (``user`` for ``user_id``)
    and return the referenced instance, or ``None`` when no row matches.
    """
    spec = model.foreign_keys.get(relation)
    if spec is None:
        raise AttributeError(f"'{model.name}' has no relation '{relation}'")
    target = resolve_target(model, spec)
    statement = target.statements.lookups[target.pk.name]
    value = getattr(instance, spec.name)
    row = await executor.fetch_optional(statement.sql, [target.pk.encode(value, target.dialect)])
    if row is None:
        return None
    return target.decode(row)
