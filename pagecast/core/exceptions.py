# pagecast/core/exceptions.py
"""
Pagecast Exceptions - standardized error handling for the session registry.

Client-caused errors (ValidationError, SessionNotFoundError) are expected and
mapped to 4xx responses by the HTTP layer. RegistryLockError signals a wedged
or corrupted registry and is mapped to a 5xx response.
"""

from typing import Optional, Dict, Any


class PagecastError(Exception):
    """Base exception for all Pagecast errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(PagecastError):
    """Invalid identifier or payload supplied by the caller"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        reason: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error description
            field: Field that failed validation (session_id, user_id, content)
            reason: Short machine-readable reason (empty, too_long, too_large)
            value: Invalid value, truncated in details
            details: Additional validation context
        """
        super().__init__(message, details)
        self.field = field
        self.reason = reason
        self.value = value

        if field:
            self.details['field'] = field
        if reason:
            self.details['reason'] = reason
        if value is not None:
            self.details['value'] = str(value)[:100]


class PayloadTooLargeError(ValidationError):
    """Request body or page content exceeds the configured byte limit"""

    def __init__(
        self,
        message: str,
        field: str = "content",
        size: Optional[int] = None,
        limit: Optional[int] = None
    ):
        super().__init__(message, field=field, reason="too_large")
        self.size = size
        self.limit = limit

        if size is not None:
            self.details['size'] = size
        if limit is not None:
            self.details['limit'] = limit


class SessionNotFoundError(PagecastError):
    """No session exists for the given identifier"""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id

        if session_id:
            self.details['session_id'] = session_id


class RegistryLockError(PagecastError):
    """The registry lock could not be acquired; internal state is unusable"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        super().__init__(message)
        self.operation = operation
        self.timeout = timeout

        if operation:
            self.details['operation'] = operation
        if timeout is not None:
            self.details['timeout'] = timeout


class ConfigurationError(PagecastError):
    """Errors in system configuration and initialization"""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.component = component

        if component:
            self.details['component'] = component


# Convenience functions for creating common errors

def validation_error(
    message: str,
    field: str,
    reason: str,
    value: Any = None,
    details: Optional[Dict[str, Any]] = None
) -> ValidationError:
    """Create a validation error with field context."""
    return ValidationError(message, field=field, reason=reason, value=value, details=details)


def session_not_found(session_id: str) -> SessionNotFoundError:
    """Create a not-found error for a session identifier."""
    return SessionNotFoundError(f"Session '{session_id}' does not exist", session_id=session_id)


def config_error(message: str, component: str) -> ConfigurationError:
    """Create a configuration error with component context."""
    return ConfigurationError(message, component=component)
