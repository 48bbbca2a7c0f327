"""
Lorm Model System — schema compiler and SQL generation engine.

Usage:
    from lorm.models import Model, UUIDField, TextField, DateTimeField, Where

    class User(Model):
        id = UUIDField(pk=True)
        email = TextField(by=True)
        created_at = DateTimeField(created_at=True)
        updated_at = DateTimeField(updated_at=True)

Public API:
    - Model: Declarative base class (compiles an EntityModel per class)
    - Fields: AutoField, IntegerField, FloatField, TextField, BooleanField,
      UUIDField, DateTimeField
    - FieldSpec / EntityModel / compile_entity: the compiler itself
    - SelectBuilder, Where, OrderBy and the HAVING aggregates
    - Dialect / resolve_dialect / Params: placeholder scheme
"""

from .aggregate import Aggregate, Avg, Count, Max, Min, Sum
from .base import Model
from .commands import by, delete, get_related, save, with_
from .dialects import Dialect, Params, placeholder, resolve_dialect
from .entity import EntityModel, FieldSpec, Statement, compile_entity
from .fields import (
    UNSET,
    AutoField,
    BooleanField,
    DateTimeField,
    Field,
    FloatField,
    IntegerField,
    TextField,
    UUIDField,
    utc_now,
)
from .metaclass import ModelMeta
from .naming import column_name_for, pluralize, table_name_for, to_snake_case, to_table_case
from .options import Options
from .predicates import OrderBy, Where
from .query import SelectBuilder
from .registry import ModelRegistry

__all__ = [
    # Model
    "Model",
    "ModelMeta",
    "ModelRegistry",
    "Options",
    # Fields
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
    # Compiler
    "FieldSpec",
    "EntityModel",
    "Statement",
    "compile_entity",
    # Naming
    "to_snake_case",
    "to_table_case",
    "pluralize",
    "table_name_for",
    "column_name_for",
    # Dialects
    "Dialect",
    "Params",
    "placeholder",
    "resolve_dialect",
    # Operations
    "save",
    "delete",
    "by",
    "with_",
    "get_related",
    # Query
    "SelectBuilder",
    "Where",
    "OrderBy",
    "Aggregate",
    "Count",
    "Sum",
    "Avg",
    "Min",
    "Max",
]
