"""
Public entrypoints for hecrelay.

Relays CloudWatch Logs records delivered through a Kinesis Data Stream to a
Splunk HTTP Event Collector. `lambda_handler` is the Lambda entry point;
`process_batch` is its async core for callers that manage their own loop.
"""

from __future__ import annotations

from ._version import __version__
from .core.decoder import BatchDecoder, decode_payload, extract_log_events
from .core.errors import (
    ConfigurationError,
    DecodeError,
    DeliveryError,
    HecRelayError,
)
from .core.events import ForwardingEvent, LogEnvelope
from .core.settings import Settings, get_settings
from .handler import InvocationResult, lambda_handler, process_batch
from .sinks.hec import FlushResult, HecForwarder, HecForwarderConfig

VERSION = __version__

__all__ = [
    "BatchDecoder",
    "ConfigurationError",
    "DecodeError",
    "DeliveryError",
    "FlushResult",
    "ForwardingEvent",
    "HecForwarder",
    "HecForwarderConfig",
    "HecRelayError",
    "InvocationResult",
    "LogEnvelope",
    "Settings",
    "VERSION",
    "__version__",
    "decode_payload",
    "extract_log_events",
    "get_settings",
    "lambda_handler",
    "process_batch",
]
