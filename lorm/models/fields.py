"""
Lorm Model Fields — column declarations with role flags.

Every field carries the metadata the schema compiler needs:

    class User(Model):
        id = UUIDField(pk=True)
        email = TextField(by=True)
        count = IntegerField(readonly=True, null=True)
        created_at = DateTimeField(created_at=True)
        updated_at = DateTimeField(updated_at=True)

Role flags:
    pk          – primary key (exactly one per model)
    by          – lookup field (by_/with_ accessors, where_/order_by_/... builder methods)
    readonly    – never written by lorm; the store fills it
    transient   – not a column at all
    created_at  – stamped on insert
    updated_at  – stamped on insert and update
    fk          – foreign key to another Model (class or registered name)
    rename      – column name override
    new         – generation rule (callable or dotted import path)
    is_unset    – "is unset" predicate for the primary key (callable or dotted path)
"""

from __future__ import annotations

import copy
import datetime
import uuid
from typing import Any, Callable, Optional, Type, Union, TYPE_CHECKING

from .dialects import Dialect

if TYPE_CHECKING:
    from .base import Model

__all__ = [
    "UNSET",
    "Field",
    "AutoField",
    "IntegerField",
    "FloatField",
    "TextField",
    "BooleanField",
    "UUIDField",
    "DateTimeField",
    "utc_now",
]


# ── Sentinel ─────────────────────────────────────────────────────────────────

class _Unset:
    """Sentinel for distinguishing 'not set' from None."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<UNSET>"

    def __bool__(self):
        return False

UNSET = _Unset()

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def utc_now() -> datetime.datetime:
    """Timezone-aware current UTC time."""
    return datetime.datetime.now(datetime.timezone.utc)


# ── Base Field ───────────────────────────────────────────────────────────────


class Field:
    """
    Base field declaration — every lorm field inherits from this.

    ``zero()`` is the type's zero value, ``default_rule()`` the type's default
    generation rule. ``to_db`` / ``to_python`` convert between Python
    values and the values bound to / returned by the driver.
    """

    _field_type: str = "FIELD"
    _python_type: type = object

    def __init__(
        self,
        *,
        pk: bool = False,
        by: bool = False,
        readonly: bool = False,
        transient: bool = False,
        created_at: bool = False,
        updated_at: bool = False,
        fk: Union[str, Type[Model], None] = None,
        rename: Optional[str] = None,
        new: Union[str, Callable[[], Any], None] = None,
        is_unset: Union[str, Callable[[Any], bool], None] = None,
        null: bool = False,
        default: Any = UNSET,
    ):
        self.pk = pk
        self.by = by
        self.readonly = readonly
        self.transient = transient
        self.created_at = created_at
        self.updated_at = updated_at
        self.fk = fk
        self.rename = rename
        self.new = new
        self.is_unset = is_unset
        self.null = null
        self.default = default

        # Set by __set_name__
        self.name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"

    def zero(self) -> Any:
        """Zero value of the semantic type."""
        return self._python_type()

    def default_rule(self) -> Callable[[], Any]:
        """Generation rule used when the declaration names none."""
        return self.zero

    def empty_value(self) -> Any:
        """
        Value the default "is unset" predicate compares against: a literal
        ``default``, else ``None`` for nullable fields, else the zero value.
        """
        if self.default is not UNSET and not callable(self.default):
            return self.default
        if self.null:
            return None
        return self.zero()

    def get_default(self) -> Any:
        """Initial attribute value for a freshly constructed instance."""
        if self.default is UNSET:
            return None if self.null else self.zero()
        if callable(self.default):
            return self.default()
        return copy.deepcopy(self.default)

    def to_python(self, value: Any) -> Any:
        """Convert database value to Python object."""
        return value

    def to_db(self, value: Any, dialect: Dialect = Dialect.SQLITE) -> Any:
        """Convert Python value to database-ready value."""
        return value


# ═══════════════════════════════════════════════════════════════════════════════
# NUMERIC FIELDS
# ═══════════════════════════════════════════════════════════════════════════════


class IntegerField(Field):
    """Integer column."""

    _field_type = "INTEGER"
    _python_type = int

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        return int(value)


class AutoField(IntegerField):
    """
    Store-assigned integer primary key.

    Read-only and nullable: a fresh instance carries ``None``, the row's
    key comes back from the INSERT ... RETURNING.
    """

    _field_type = "AUTO"

    def __init__(self, **kwargs):
        kwargs.setdefault("pk", True)
        kwargs.setdefault("readonly", True)
        kwargs.setdefault("null", True)
        kwargs.setdefault("default", None)
        super().__init__(**kwargs)


class FloatField(Field):
    """Double-precision column."""

    _field_type = "FLOAT"
    _python_type = float

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        return float(value)


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT / IDENTIFIER FIELDS
# ═══════════════════════════════════════════════════════════════════════════════


class TextField(Field):
    """Unbounded text column."""

    _field_type = "TEXT"
    _python_type = str

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        return str(value)


class BooleanField(Field):
    """Boolean column — stored as INTEGER 0/1 outside PostgreSQL."""

    _field_type = "BOOL"
    _python_type = bool

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        return bool(value)

    def to_db(self, value: Any, dialect: Dialect = Dialect.SQLITE) -> Any:
        if value is None:
            return None
        if dialect is Dialect.POSTGRES:
            return bool(value)
        return 1 if value else 0


class UUIDField(Field):
    """
    UUID column. Generation rule: ``uuid.uuid4``; zero value: the nil UUID.

    Stored as text except on PostgreSQL, where the native type is bound.
    """

    _field_type = "UUID"
    _python_type = uuid.UUID

    def zero(self) -> uuid.UUID:
        return uuid.UUID(int=0)

    def default_rule(self) -> Callable[[], Any]:
        return uuid.uuid4

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    def to_db(self, value: Any, dialect: Dialect = Dialect.SQLITE) -> Any:
        if value is None:
            return None
        if dialect is Dialect.POSTGRES:
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value)


class DateTimeField(Field):
    """
    Timezone-aware datetime column. Generation rule: current UTC time;
    zero value: the Unix epoch.

    Bound as an ISO-8601 string except on PostgreSQL. Naive values read
    back from the store are taken to be UTC.
    """

    _field_type = "DATETIME"
    _python_type = datetime.datetime

    def zero(self) -> datetime.datetime:
        return EPOCH

    def default_rule(self) -> Callable[[], Any]:
        return utc_now

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.datetime.fromisoformat(value)
        if isinstance(value, datetime.datetime) and value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value

    def to_db(self, value: Any, dialect: Dialect = Dialect.SQLITE) -> Any:
        if value is None:
            return None
        if dialect is Dialect.POSTGRES:
            return value
        if isinstance(value, datetime.datetime):
            return value.isoformat()
        return str(value)
