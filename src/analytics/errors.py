"""
Error types for the analytics engine

Hierarchy:
    AnalyticsError
    ├── DataAccessFault     raised by the data access gateway
    └── ComputationError    invalid arguments to a pure computation
"""
from typing import Any, Dict, Optional


class AnalyticsError(Exception):
    """Base exception for analytics errors"""

    def __init__(self, message: str, code: str = "ANALYTICS_ERROR", details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.details = details or {}
        self.message = message
        super().__init__(f"[{code}] {message}")


class DataAccessFault(AnalyticsError):
    """A read through the data access gateway failed (timeout, connection, query error)"""

    def __init__(self, message: str, code: str = "DATA_ACCESS_FAULT",
                 entity_type: Optional[str] = None, operation: Optional[str] = None, **kwargs):
        self.entity_type = entity_type
        self.operation = operation
        details = {"entity_type": entity_type, "operation": operation, **kwargs}
        super().__init__(message, code=code, details=details)


class QueryTimeoutError(DataAccessFault):
    """Reads did not complete within the allotted time"""

    def __init__(self, timeout: float, pending: Optional[list] = None):
        super().__init__(
            f"Queries did not complete within {timeout}s",
            code="QUERY_TIMEOUT", operation="fan_out", timeout=timeout, pending=pending or [],
        )


class ComputationError(AnalyticsError, ValueError):
    """Precondition violation in a pure computation"""

    def __init__(self, message: str, **details):
        super().__init__(message, code="COMPUTATION_ERROR", details=details)
