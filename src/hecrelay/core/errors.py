"""
Error hierarchy for hecrelay.

Every failure raised by the relay derives from `HecRelayError`, which carries
an `ErrorContext` describing category, severity and any structured metadata.
The underlying library error (binascii, gzip, orjson, httpx) is always kept
as `__cause__` so the runtime still sees the underlying failure.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse classification used by diagnostics and metrics."""

    DECODE = "decode"
    DELIVERY = "delivery"
    CONFIGURATION = "configuration"
    SERIALIZATION = "serialization"
    VALIDATION = "validation"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context attached to every relay error."""

    category: ErrorCategory = ErrorCategory.SYSTEM
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    component_name: str | None = None
    error_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value,
            "severity": self.severity.value,
            "component_name": self.component_name,
            "metadata": dict(self.metadata),
        }


def create_error_context(
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    *,
    component_name: str | None = None,
    **metadata: Any,
) -> ErrorContext:
    return ErrorContext(
        category=category,
        severity=severity,
        component_name=component_name,
        metadata=metadata,
    )


class HecRelayError(Exception):
    """Base error for the relay pipeline."""

    default_category = ErrorCategory.SYSTEM
    default_severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        error_context: ErrorContext | None = None,
        cause: BaseException | None = None,
        component_name: str | None = None,
        **metadata: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_context is None:
            error_context = create_error_context(
                category or self.default_category,
                severity or self.default_severity,
                component_name=component_name,
                **metadata,
            )
        self.context = error_context
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for diagnostics output."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context.to_dict(),
        }
        if self.__cause__ is not None:
            data["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return data


class DecodeError(HecRelayError):
    """Malformed base64, gzip stream or JSON in a record payload."""

    default_category = ErrorCategory.DECODE
    default_severity = ErrorSeverity.HIGH

    def __init__(
        self,
        message: str,
        *,
        record_index: int | None = None,
        **kwargs: Any,
    ) -> None:
        if record_index is not None:
            kwargs.setdefault("record_index", record_index)
        kwargs.setdefault("component_name", "decoder")
        super().__init__(message, **kwargs)
        self.record_index = record_index


class DeliveryError(HecRelayError):
    """The ingestion request failed (transport error or non-2xx status)."""

    default_category = ErrorCategory.DELIVERY
    default_severity = ErrorSeverity.HIGH

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("component_name", "hec-forwarder")
        super().__init__(
            message,
            endpoint=endpoint,
            status_code=status_code,
            **kwargs,
        )
        self.endpoint = endpoint
        self.status_code = status_code
        self.response_body = response_body


class ConfigurationError(HecRelayError):
    """Endpoint URL or token missing at send time."""

    default_category = ErrorCategory.CONFIGURATION
    default_severity = ErrorSeverity.CRITICAL


__all__ = [
    "ConfigurationError",
    "DecodeError",
    "DeliveryError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "HecRelayError",
    "create_error_context",
]
