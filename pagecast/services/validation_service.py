# pagecast/services/validation_service.py
"""
Input Validation Service for Pagecast.

Centralizes identifier and payload checks so the registry and the HTTP layer
apply the same rules. The policy is configurable: the bounds can be changed
and validation can be switched off entirely, in which case any string is
accepted as an identifier and payloads are unbounded.
"""

from typing import Optional, Dict, Any
from dataclasses import dataclass
import logging

from pagecast.core.exceptions import ValidationError, PayloadTooLargeError, validation_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationPolicy:
    """Bounds applied to identifiers and payloads"""
    enabled: bool = True
    max_id_length: int = 100
    max_payload_bytes: int = 1_000_000

    @classmethod
    def from_settings(cls, settings) -> "ValidationPolicy":
        return cls(
            enabled=settings.VALIDATE_INPUT,
            max_id_length=settings.MAX_ID_LENGTH,
            max_payload_bytes=settings.MAX_PAYLOAD_BYTES,
        )


@dataclass
class ValidationResult:
    """Result of input validation"""
    valid: bool
    error_type: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    value: Optional[Any] = None

    def raise_for_error(self, field: str) -> None:
        """Convert a failed result into the matching exception"""
        if self.valid:
            return
        if self.error_type == "too_large":
            raise PayloadTooLargeError(
                self.message,
                field=field,
                size=self.details.get("actual_size"),
                limit=self.details.get("max_size"),
            )
        raise validation_error(
            self.message,
            field,
            self.error_type,
            value=self.value,
            details=dict(self.details or {}),
        )


class ValidationService:
    """Validates session identifiers, user identifiers and payload sizes"""

    def __init__(self, policy: Optional[ValidationPolicy] = None):
        self.policy = policy or ValidationPolicy()

    def check_identifier(self, value: str, label: str = "Session ID") -> ValidationResult:
        """
        Check that an identifier is non-empty and not longer than the limit.

        Length is counted in characters, so a non-ASCII identifier may take
        more than max_id_length bytes.
        """
        if not self.policy.enabled:
            return ValidationResult(valid=True)

        if not value:
            return ValidationResult(
                valid=False,
                error_type="empty",
                message=f"{label} must not be empty",
                details={"max_length": self.policy.max_id_length, "actual_length": 0},
                value=value
            )

        if len(value) > self.policy.max_id_length:
            return ValidationResult(
                valid=False,
                error_type="too_long",
                message=f"{label} is too long (maximum {self.policy.max_id_length} characters)",
                details={"max_length": self.policy.max_id_length, "actual_length": len(value)},
                value=value
            )

        return ValidationResult(valid=True)

    def check_payload_size(self, size: int) -> ValidationResult:
        """Check a payload size in bytes against the limit"""
        if not self.policy.enabled or size <= self.policy.max_payload_bytes:
            return ValidationResult(valid=True)

        return ValidationResult(
            valid=False,
            error_type="too_large",
            message=f"Payload too large ({size} bytes, maximum {self.policy.max_payload_bytes})",
            details={"max_size": self.policy.max_payload_bytes, "actual_size": size}
        )

    def validate_session_id(self, session_id: str) -> str:
        self.check_identifier(session_id, "Session ID").raise_for_error("session_id")
        return session_id

    def validate_user_id(self, user_id: str) -> str:
        self.check_identifier(user_id, "User ID").raise_for_error("user_id")
        return user_id

    def validate_content(self, content: str, field: str = "content") -> str:
        """Check the UTF-8 encoded size of text content"""
        size = len(content.encode("utf-8"))
        self.check_payload_size(size).raise_for_error(field)
        return content

    def validate_body(self, body: bytes) -> str:
        """
        Check the raw size of a request body and decode it as UTF-8.

        Raises:
            PayloadTooLargeError: body exceeds the byte limit
            ValidationError: body is not valid UTF-8
        """
        self.check_payload_size(len(body)).raise_for_error("body")
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.debug(f"Rejected non UTF-8 body: {e}")
            raise ValidationError(
                "Request body must be valid UTF-8 text",
                field="body",
                reason="invalid_encoding",
            ) from e
