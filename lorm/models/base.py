"""
Lorm Model Base — declarative record types over a compiled EntityModel.

Usage:
    import uuid
    from lorm.models import Model, UUIDField, TextField, IntegerField, DateTimeField

    class User(Model):
        id = UUIDField(pk=True, new=uuid.uuid4)
        email = TextField(by=True)
        count = IntegerField(by=True)
        created_at = DateTimeField(created_at=True)
        updated_at = DateTimeField(updated_at=True)

        class Meta:
            table = "users"

API (the executor is always passed explicitly):
    user = await User(email="a@b.c").save(db)
    user = await User.by_email(db, "a@b.c")
    users = await User.with_count(db, 3)
    users = await User.select().where_count(Where.GREATER_THAN, 1).build(db)
    await user.delete(db)

    author = await post.get_user(db)   # post.user_id = UUIDField(fk="User")
"""

from __future__ import annotations

import datetime
import uuid
from typing import Any, ClassVar, Dict, List, Optional, TYPE_CHECKING

from . import commands
from .fields import Field
from .metaclass import ModelMeta
from .options import Options
from .query import SelectBuilder

if TYPE_CHECKING:
    from ..db.executor import Executor
    from .entity import EntityModel

__all__ = ["Model"]


class Model(metaclass=ModelMeta):
    """
    Lorm Model base class.

    Instances are plain in-memory records; every database operation goes
    through an explicit executor argument.
    """

    # Class-level attributes set by metaclass
    _fields: ClassVar[Dict[str, Field]] = {}
    _meta: ClassVar[Options]
    _entity: ClassVar[Optional[EntityModel]] = None

    def __init__(self, **kwargs: Any):
        """Create a model instance (in-memory, not persisted)."""
        unknown = set(kwargs) - set(self._fields)
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__}() got unexpected field(s): {', '.join(sorted(unknown))}"
            )
        for attr_name, field in self._fields.items():
            if attr_name in kwargs:
                setattr(self, attr_name, kwargs[attr_name])
            else:
                setattr(self, attr_name, field.get_default())

    @classmethod
    def _from_values(cls, **values: Any) -> Model:
        """Factory used when decoding rows: transient fields get their defaults."""
        return cls(**values)

    def __repr__(self) -> str:
        entity = type(self).__dict__.get("_entity")
        pk_attr = entity.pk.name if entity is not None else "?"
        return f"<{self.__class__.__name__} pk={getattr(self, pk_attr, '?')}>"

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return False
        entity = type(self).entity()
        return all(
            getattr(self, spec.name) == getattr(other, spec.name)
            for spec in entity.fields
        )

    def __hash__(self) -> int:
        entity = type(self).entity()
        return hash((self.__class__.__name__, getattr(self, entity.pk.name, None)))

    def __getattr__(self, name: str) -> Any:
        # get_<relation> accessors for foreign keys
        if name.startswith("get_"):
            entity = type(self).__dict__.get("_entity")
            relation = name[len("get_"):]
            if entity is not None and relation in entity.foreign_keys:
                async def accessor(executor: Executor) -> Optional[Model]:
                    return await self.get_related(executor, relation)

                accessor.__name__ = name
                return accessor
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

    # ── Commands ─────────────────────────────────────────────────────

    async def save(self, executor: Executor) -> Model:
        """
        Insert when the primary key is unset, update otherwise.

        Returns the row as stored; ``self`` is left untouched.
        """
        return await commands.save(executor, type(self).entity(), self)

    async def delete(self, executor: Executor) -> None:
        """Delete the row with this instance's primary key."""
        await commands.delete(executor, type(self).entity(), self)

    async def get_related(self, executor: Executor, relation: str) -> Optional[Model]:
        """Follow foreign key ``relation``; ``None`` when the target row is missing."""
        return await commands.get_related(executor, type(self).entity(), self, relation)

    # ── Lookups ──────────────────────────────────────────────────────

    @classmethod
    async def by(cls, executor: Executor, field_name: str, value: Any) -> Model:
        return await commands.by(executor, cls.entity(), field_name, value)

    @classmethod
    async def with_(cls, executor: Executor, field_name: str, value: Any) -> List[Model]:
        return await commands.with_(executor, cls.entity(), field_name, value)

    @classmethod
    def select(cls) -> SelectBuilder:
        """Start a dynamic SELECT over this model."""
        return SelectBuilder(cls.entity())

    # ── Serialization ────────────────────────────────────────────────

    def to_dict(self, *, exclude: Optional[List[str]] = None) -> Dict[str, Any]:
        """Serialize model instance to dict (column fields only)."""
        exclude = set(exclude or [])
        result: Dict[str, Any] = {}
        for spec in type(self).entity().fields:
            if spec.name in exclude:
                continue
            value = getattr(self, spec.name, None)
            if isinstance(value, datetime.datetime):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)
            result[spec.name] = value
        return result

