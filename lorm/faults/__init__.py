"""
Lorm Faults - typed fault signals for the schema compiler and its executors.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
- SchemaFault, QueryFault, DatabaseFault (+ RecordNotFoundFault,
  MultipleRecordsFault, DecodeFault), ConfigFault
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    SchemaFault,
    QueryFault,
    DatabaseFault,
    RecordNotFoundFault,
    MultipleRecordsFault,
    DecodeFault,
    SchemaError,
    QueryError,
    DatabaseError,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Domain faults
    "ConfigFault",
    "SchemaFault",
    "QueryFault",
    "DatabaseFault",
    "RecordNotFoundFault",
    "MultipleRecordsFault",
    "DecodeFault",
    "SchemaError",
    "QueryError",
    "DatabaseError",
]
