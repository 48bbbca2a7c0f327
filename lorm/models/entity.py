"""
Lorm Entity Model — compiled, immutable schema for one record type.

``compile_entity()`` turns an ordered list of ``FieldSpec`` into an
``EntityModel``: column enumeration, primary key, lookup table, writable
subset, timestamp fields, foreign keys, resolved generation rules and the
fixed insert/update/delete/lookup statements. It runs once per record type;
everything downstream only reads the result.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field, replace
from functools import partial
from types import MappingProxyType, SimpleNamespace
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..faults import DecodeFault, SchemaFault
from .dialects import Dialect, quote_identifier, resolve_dialect
from .fields import Field
from .naming import column_name_for, is_identifier, relation_name_for, table_name_for

logger = logging.getLogger("lorm.models")

__all__ = ["FieldSpec", "Statement", "Statements", "EntityModel", "compile_entity", "resolve_rule"]


# ── Field metadata ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldSpec:
    """
    One column's metadata.

    ``new`` and ``is_unset`` may be given as callables or dotted import
    paths; after compilation both are always callables.
    """

    name: str
    column: str = ""
    kind: Field = field(default_factory=Field, compare=False)
    pk: bool = False
    by: bool = False
    readonly: bool = False
    transient: bool = False
    created_at: bool = False
    updated_at: bool = False
    fk: Any = None
    new: Union[str, Callable[[], Any], None] = field(default=None, compare=False)
    is_unset: Union[str, Callable[[Any], bool], None] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.column:
            object.__setattr__(self, "column", column_name_for(self.name))

    @classmethod
    def from_field(cls, name: str, decl: Field) -> FieldSpec:
        """Build the spec for a declared ``Field`` attribute."""
        return cls(
            name=name,
            column=column_name_for(name, decl.rename),
            kind=decl,
            pk=decl.pk,
            by=decl.by,
            readonly=decl.readonly,
            transient=decl.transient,
            created_at=decl.created_at,
            updated_at=decl.updated_at,
            fk=decl.fk,
            new=decl.new,
            is_unset=decl.is_unset,
        )

    @property
    def is_lookup(self) -> bool:
        return self.pk or self.by or self.created_at or self.updated_at

    def encode(self, value: Any, dialect: Dialect) -> Any:
        return self.kind.to_db(value, dialect)

    def decode(self, value: Any) -> Any:
        return self.kind.to_python(value)


class Statement(NamedTuple):
    """Fixed SQL text plus the field names bound, in placeholder order."""

    sql: str
    binds: Tuple[str, ...]


class Statements(NamedTuple):
    insert: Statement
    update: Statement
    delete: Statement
    lookups: Mapping[str, Statement]
    singles: Mapping[str, Statement]


# ── Compiled model ───────────────────────────────────────────────────────────


@dataclass(frozen=True, eq=False)
class EntityModel:
    """
    Compiled schema for one record type.

    Attributes:
        name: Record type name
        table: Table name
        dialect: Backend placeholder dialect
        fields: Non-transient fields in column order
        pk: The primary-key field
        lookup_fields: pk ∪ created_at ∪ updated_at ∪ ``by`` fields, keyed by name
        writable: Fields bound on insert and update (non-readonly)
        created_at / updated_at: Timestamp fields, if declared
        foreign_keys: FK fields keyed by relation (accessor) name
        columns: Comma-joined quoted column list used in SELECT / RETURNING
        factory: Builds an instance from decoded keyword values
        statements: Precompiled insert / update / delete / lookup statements
    """

    name: str
    table: str
    dialect: Dialect
    fields: Tuple[FieldSpec, ...]
    pk: FieldSpec
    lookup_fields: Mapping[str, FieldSpec]
    writable: Tuple[FieldSpec, ...]
    created_at: Optional[FieldSpec]
    updated_at: Optional[FieldSpec]
    foreign_keys: Mapping[str, FieldSpec]
    columns: str
    factory: Callable[..., Any] = field(default=SimpleNamespace, compare=False)
    statements: Optional[Statements] = field(default=None, compare=False, repr=False)

    @property
    def insertable(self) -> Tuple[FieldSpec, ...]:
        return self.writable

    @property
    def updatable(self) -> Tuple[FieldSpec, ...]:
        return self.writable

    @property
    def quoted_table(self) -> str:
        return quote_identifier(self.dialect, self.table)

    def quote(self, column: str) -> str:
        """``column`` quoted for this model's dialect."""
        return quote_identifier(self.dialect, column)

    def get_field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def lookup(self, name: str) -> Optional[FieldSpec]:
        """Lookup-eligible field by name, or ``None``."""
        return self.lookup_fields.get(name)

    def value_of(self, spec: FieldSpec, instance: Any) -> Any:
        """Encoded value of ``spec`` on ``instance``, ready to bind."""
        return spec.encode(getattr(instance, spec.name), self.dialect)

    def bind(self, statement: Statement, instance: Any) -> List[Any]:
        """Encoded bind arguments for ``statement`` taken from ``instance``."""
        specs = {f.name: f for f in self.fields}
        return [self.value_of(specs[name], instance) for name in statement.binds]

    def decode(self, row: Mapping[str, Any]) -> Any:
        """
        Decode one returned row (column name -> value) into an instance.

        Raises DecodeFault when a column is missing or a value cannot be
        converted.
        """
        values: Dict[str, Any] = {}
        for spec in self.fields:
            try:
                raw = row[spec.column]
            except (KeyError, IndexError) as exc:
                raise DecodeFault(self.name, f"column '{spec.column}' missing from row") from exc
            try:
                values[spec.name] = spec.decode(raw)
            except (TypeError, ValueError, AttributeError) as exc:
                raise DecodeFault(
                    self.name,
                    f"cannot decode column '{spec.column}' from {raw!r}: {exc}",
                ) from exc
        return self.factory(**values)

    def decode_all(self, rows: Sequence[Mapping[str, Any]]) -> List[Any]:
        return [self.decode(row) for row in rows]


# ── Compiler ─────────────────────────────────────────────────────────────────


def resolve_rule(entity: str, field_name: str, label: str, rule: Any) -> Callable:
    """
    Resolve a generation rule / unset predicate to a callable.

    Accepts a callable or an import path (``"uuid.uuid4"`` or
    ``"pkg.module:Class.method"``). Anything else is a SchemaFault.
    """
    if callable(rule):
        return rule
    if not isinstance(rule, str) or not rule.strip():
        raise SchemaFault(entity, f"field '{field_name}': {label} must be a callable or an import path, got {rule!r}")

    path = rule.strip()
    if ":" in path:
        module_path, attr_path = path.split(":", 1)
        candidates = [(module_path, attr_path.split("."))]
    else:
        parts = path.split(".")
        # Longest importable module prefix wins
        candidates = [(".".join(parts[:i]), parts[i:]) for i in range(len(parts) - 1, 0, -1)]

    for module_path, attrs in candidates:
        try:
            target: Any = importlib.import_module(module_path)
        except (ImportError, ValueError):
            continue
        try:
            for attr in attrs:
                target = getattr(target, attr)
        except AttributeError:
            continue
        if not callable(target):
            raise SchemaFault(entity, f"field '{field_name}': {label} '{path}' is not callable")
        return target

    raise SchemaFault(entity, f"field '{field_name}': cannot resolve {label} '{path}'")


def _equals(expected: Any, value: Any) -> bool:
    return value == expected


def compile_entity(
    name: str,
    specs: Sequence[FieldSpec],
    *,
    table: Optional[str] = None,
    dialect: Union[Dialect, str, Sequence[str], None] = None,
    factory: Callable[..., Any] = SimpleNamespace,
) -> EntityModel:
    """
    Validate field metadata and assemble an ``EntityModel``.

    Args:
        name: Record type name (table name is derived from it unless ``table``)
        specs: Fields in declaration order
        table: Explicit table name
        dialect: Backend identifier; ``None`` uses the configured default
        factory: Callable building an instance from decoded keyword values

    Raises:
        SchemaFault: missing or duplicate primary key, unrecognized dialect,
            unresolvable rule, invalid identifier, conflicting flags.
    """
    from ..config import get_config
    from .commands import compile_statements

    if dialect is None:
        dialect = get_config().dialect
    resolved_dialect = resolve_dialect(dialect, entity=name)

    table_name = table_name_for(name, table)
    if not is_identifier(table_name):
        raise SchemaFault(name, f"invalid table name '{table_name}'")

    seen_names: set = set()
    seen_columns: set = set()
    compiled: List[FieldSpec] = []

    for spec in specs:
        if spec.name in seen_names:
            raise SchemaFault(name, f"field '{spec.name}' declared twice")
        seen_names.add(spec.name)

        if spec.transient:
            if spec.pk or spec.by or spec.created_at or spec.updated_at or spec.fk is not None:
                raise SchemaFault(name, f"transient field '{spec.name}' cannot carry column roles")
            continue

        if not is_identifier(spec.column):
            raise SchemaFault(name, f"invalid column name '{spec.column}' for field '{spec.name}'")
        if spec.column in seen_columns:
            raise SchemaFault(name, f"column '{spec.column}' mapped by more than one field")
        seen_columns.add(spec.column)

        new_rule = (
            resolve_rule(name, spec.name, "generation rule", spec.new)
            if spec.new is not None
            else spec.kind.default_rule()
        )
        unset_rule = (
            resolve_rule(name, spec.name, "unset predicate", spec.is_unset)
            if spec.is_unset is not None
            else partial(_equals, spec.kind.empty_value())
        )
        compiled.append(replace(spec, new=new_rule, is_unset=unset_rule))

    pks = [f for f in compiled if f.pk]
    if not pks:
        raise SchemaFault(name, "no primary key field declared")
    if len(pks) > 1:
        raise SchemaFault(name, f"more than one primary key field: {[f.name for f in pks]}")

    created = [f for f in compiled if f.created_at]
    updated = [f for f in compiled if f.updated_at]
    if len(created) > 1:
        raise SchemaFault(name, f"more than one created_at field: {[f.name for f in created]}")
    if len(updated) > 1:
        raise SchemaFault(name, f"more than one updated_at field: {[f.name for f in updated]}")

    foreign_keys: Dict[str, FieldSpec] = {}
    for spec in compiled:
        if spec.fk is None:
            continue
        relation = relation_name_for(spec.name)
        if relation in foreign_keys:
            raise SchemaFault(name, f"foreign keys '{foreign_keys[relation].name}' and '{spec.name}' share accessor '{relation}'")
        foreign_keys[relation] = spec

    model = EntityModel(
        name=name,
        table=table_name,
        dialect=resolved_dialect,
        fields=tuple(compiled),
        pk=pks[0],
        lookup_fields=MappingProxyType({f.name: f for f in compiled if f.is_lookup}),
        writable=tuple(f for f in compiled if not f.readonly),
        created_at=created[0] if created else None,
        updated_at=updated[0] if updated else None,
        foreign_keys=MappingProxyType(foreign_keys),
        columns=",".join(quote_identifier(resolved_dialect, f.column) for f in compiled),
        factory=factory,
    )
    model = replace(model, statements=compile_statements(model))

    logger.info(
        f"Compiled entity {name} -> {table_name} "
        f"({len(compiled)} columns, pk={model.pk.column}, dialect={resolved_dialect.value})"
    )
    return model
