"""
Custom Exceptions for the Admission Filter service

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any


class AdmissionFilterError(Exception):
    """Base exception for all Admission Filter errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(AdmissionFilterError):
    """Raised when input validation fails."""
    pass


class DatabaseError(AdmissionFilterError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    pass


class ConfigurationError(AdmissionFilterError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)


class FilterError(AdmissionFilterError):
    """Raised when a virtual filter run cannot complete."""

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        details = dict(details or {})
        if session_id:
            details["session_id"] = session_id
        super().__init__(message, details, original_error)


class RunInProgressError(FilterError):
    """Raised when a filter run is already executing for the session."""

    def __init__(self, session_id: str):
        super().__init__(
            f"A filter run is already in progress for session {session_id}",
            session_id=session_id,
        )


class AllocationDivergedError(FilterError):
    """Raised when allocation exceeds its round bound without settling."""

    def __init__(
        self,
        rounds: int,
        max_rounds: int,
        session_id: Optional[str] = None,
    ):
        super().__init__(
            f"Allocation did not reach a fixed point within {max_rounds} rounds",
            session_id=session_id,
            details={"rounds": rounds, "max_rounds": max_rounds},
        )
        self.rounds = rounds
        self.max_rounds = max_rounds


class FilterCancelledError(FilterError):
    """Raised inside the engine when a run is cancelled between steps."""
    pass


class FilterTimeoutError(FilterError):
    """Raised when a filter run exceeds the configured timeout."""

    def __init__(self, session_id: str, timeout_seconds: float):
        super().__init__(
            f"Filter run for session {session_id} timed out after {timeout_seconds}s",
            session_id=session_id,
            details={"timeout_seconds": timeout_seconds},
        )
