"""
Lorm Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- MODEL faults (schema compilation)
- QUERY faults (builder state)
- DATABASE faults (anything the executor surfaces)
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Configuration value is missing or invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Invalid configuration for '{key}': {reason}",
            domain=FaultDomain.CONFIG,
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# MODEL Faults
# ============================================================================

class SchemaFault(Fault):
    """Entity schema compilation failed. Never recovered: setup must abort."""

    def __init__(self, entity: str, reason: str, **kwargs):
        super().__init__(
            code="SCHEMA_FAULT",
            message=f"Schema error for entity '{entity}': {reason}",
            domain=FaultDomain.MODEL,
            severity=Severity.FATAL,
            metadata={"entity": entity, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# QUERY Faults
# ============================================================================

class QueryFault(Fault):
    """Select builder state cannot be assembled into SQL."""

    def __init__(self, entity: str, operation: str, reason: str, **kwargs):
        super().__init__(
            code="QUERY_FAULT",
            message=f"Query on '{entity}' ({operation}) failed: {reason}",
            domain=FaultDomain.QUERY,
            metadata={"entity": entity, "operation": operation, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# DATABASE Faults
# ============================================================================

class DatabaseFault(Fault):
    """Executor operation failed."""

    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        code: str = "DATABASE_FAULT",
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=f"Database {operation} failed: {reason}",
            domain=FaultDomain.DATABASE,
            metadata={"operation": operation, "reason": reason, **(metadata or {})},
        )
        self.operation = operation
        self.reason = reason


class RecordNotFoundFault(DatabaseFault):
    """A single-row fetch returned no rows."""

    def __init__(self, operation: str = "fetch_one", **kwargs):
        super().__init__(
            operation,
            "no rows returned",
            code="RECORD_NOT_FOUND",
            metadata=kwargs.get("metadata"),
        )


class MultipleRecordsFault(DatabaseFault):
    """A single-row lookup matched more than one row."""

    def __init__(self, entity: str, field: str, **kwargs):
        super().__init__(
            f"by_{field}",
            f"more than one '{entity}' row matches",
            code="MULTIPLE_RECORDS",
            metadata={"entity": entity, "field": field, **kwargs.get("metadata", {})},
        )


class DecodeFault(DatabaseFault):
    """A returned row could not be decoded into an entity instance."""

    def __init__(self, entity: str, reason: str, **kwargs):
        super().__init__(
            "decode",
            f"{entity}: {reason}",
            code="DECODE_FAULT",
            metadata={"entity": entity, **kwargs.get("metadata", {})},
        )


# Short aliases used across the engine
SchemaError = SchemaFault
QueryError = QueryFault
DatabaseError = DatabaseFault
