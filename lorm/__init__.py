"""
Lorm — schema-driven SQL generation for async Python.

Declare a record type once; lorm compiles it into an immutable entity model
and derives save (insert-or-update), delete, lookup, foreign-key and
dynamic select operations from it, emitting parameterized SQL for SQLite,
PostgreSQL and MySQL placeholder styles.
"""

from .config import LormConfig, configure, get_config
from .db import Executor, PostgresExecutor, SQLiteExecutor, connect
from .faults import (
    ConfigFault,
    DatabaseError,
    DatabaseFault,
    DecodeFault,
    Fault,
    MultipleRecordsFault,
    QueryError,
    QueryFault,
    RecordNotFoundFault,
    SchemaError,
    SchemaFault,
)
from .models import (
    AutoField,
    Avg,
    BooleanField,
    Count,
    DateTimeField,
    Dialect,
    EntityModel,
    FieldSpec,
    FloatField,
    IntegerField,
    Max,
    Min,
    Model,
    OrderBy,
    SelectBuilder,
    Sum,
    TextField,
    UUIDField,
    Where,
    compile_entity,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Config
    "LormConfig",
    "configure",
    "get_config",
    # Database
    "Executor",
    "SQLiteExecutor",
    "PostgresExecutor",
    "connect",
    # Faults
    "Fault",
    "ConfigFault",
    "SchemaFault",
    "SchemaError",
    "QueryFault",
    "QueryError",
    "DatabaseFault",
    "DatabaseError",
    "RecordNotFoundFault",
    "MultipleRecordsFault",
    "DecodeFault",
    # Models
    "Model",
    "AutoField",
    "IntegerField",
    "FloatField",
    "TextField",
    "BooleanField",
    "UUIDField",
    "DateTimeField",
    "FieldSpec",
    "EntityModel",
    "compile_entity",
    "Dialect",
    "SelectBuilder",
    "Where",
    "OrderBy",
    "Count",
    "Sum",
    "Avg",
    "Min",
    "Max",
]
