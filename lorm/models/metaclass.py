"""
Lorm Model Metaclass — field collection, Meta parsing, entity compilation,
registration and per-field accessor dispatch.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Tuple, TYPE_CHECKING

from ..faults import SchemaFault
from .entity import FieldSpec, compile_entity
from .fields import Field
from .options import Options

if TYPE_CHECKING:
    from .base import Model

__all__ = ["ModelMeta"]


def _field_accessor(model_cls: Any, operation: str, field_name: str) -> Callable:
    """``Model.by_email`` -> ``lambda executor, value: Model.by(executor, "email", value)``."""
    generic = getattr(model_cls, operation)

    async def accessor(executor, value):
        return await generic(executor, field_name, value)

    accessor.__name__ = f"{operation.rstrip('_')}_{field_name}"
    accessor.__qualname__ = f"{model_cls.__name__}.{accessor.__name__}"
    return accessor


class ModelMeta(type):
    """
    Metaclass for lorm models.

    Handles:
    - Field collection and ordering (parents first, then declaration order)
    - Meta class parsing -> Options
    - One-time compilation of the EntityModel (skipped for abstract models)
    - Registration in ModelRegistry
    - ``by_<field>`` / ``with_<field>`` resolution over the lookup table
    """

    def __new__(
        mcs,
        name: str,
        bases: Tuple[type, ...],
        namespace: Dict[str, Any],
        **kwargs,
    ) -> ModelMeta:
        # Don't process the base Model class itself
        parents = [b for b in bases if isinstance(b, ModelMeta)]
        if not parents:
            return super().__new__(mcs, name, bases, namespace)

        meta_class = namespace.pop("Meta", None)

        # Inherit fields from parents
        fields: Dict[str, Field] = {}
        for parent in bases:
            if hasattr(parent, "_fields"):
                fields.update(parent._fields)

        for key, value in list(namespace.items()):
            if isinstance(value, Field):
                fields[key] = value

        opts = Options(name, meta_class)

        cls = super().__new__(mcs, name, bases, namespace)

        for fname, field in fields.items():
            if not field.name:
                field.__set_name__(cls, fname)

        cls._fields = fields
        cls._meta = opts
        cls._entity = None

        if not opts.abstract:
            cls._entity = compile_entity(
                name,
                [FieldSpec.from_field(fname, field) for fname, field in fields.items()],
                table=opts.table,
                dialect=opts.dialect,
                factory=cls._from_values,
            )

            from .registry import ModelRegistry
            ModelRegistry.register(cls)

        return cls

    def __getattr__(cls, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        entity = cls.__dict__.get("_entity")
        if entity is not None:
            for prefix, operation in (("by_", "by"), ("with_", "with_")):
                if name.startswith(prefix):
                    field_name = name[len(prefix):]
                    if entity.lookup(field_name) is not None:
                        return _field_accessor(cls, operation, field_name)
        raise AttributeError(f"type object '{cls.__name__}' has no attribute '{name}'")

    def entity(cls):
        """The compiled EntityModel for this class."""
        entity = cls.__dict__.get("_entity")
        if entity is None:
            raise SchemaFault(cls.__name__, "abstract or base model has no compiled entity")
        return entity
