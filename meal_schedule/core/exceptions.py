"""
Custom exception classes
Raised at the service and API boundaries; the schedule engine itself
reports inconsistencies as alerts, never as exceptions.
"""

from typing import Any, Dict, Optional


class BaseApplicationError(Exception):
    """Base application error"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class DatabaseError(BaseApplicationError):
    """Database failure"""
    pass


class BusinessLogicError(BaseApplicationError):
    """Business logic error"""
    pass


class SessionNotFoundError(BusinessLogicError):
    """Draft session does not exist or has expired"""
    pass


class ConcurrencyError(BaseApplicationError):
    """Stored schedule version differs from the expected one"""

    def __init__(self, message: str, current_version: Optional[int] = None):
        super().__init__(
            message,
            error_code="VERSION_CONFLICT",
            details={"current_version": current_version}
        )
        self.current_version = current_version


class AuditBlockedError(BusinessLogicError):
    """Save refused because the draft has error-severity alerts"""

    def __init__(self, message: str, alerts: list = None):
        super().__init__(
            message,
            error_code="AUDIT_BLOCKED",
            details={"alerts": alerts or []}
        )
