"""
Testing utilities for hecrelay.

Factories are always available. Pytest fixtures live in
`hecrelay.testing.fixtures` and need the testing extra:
`pip install hecrelay[testing]`.
"""

from .factories import (
    make_kinesis_event,
    make_kinesis_record,
    make_log_envelope,
    make_log_events,
)
from .validators import (
    HecShapeError,
    ValidationResult,
    split_hec_body,
    validate_hec_event,
)

__all__ = [
    "HecShapeError",
    "ValidationResult",
    "make_kinesis_event",
    "make_kinesis_record",
    "make_log_envelope",
    "make_log_events",
    "split_hec_body",
    "validate_hec_event",
]
