"""
Async metrics collection for the relay.

Implements a small set of Prometheus-compatible counters and a histogram
covering the decode and delivery steps.

Design goals:
- Zero global state; each collector owns an isolated registry
- Safe no-op exporters when metrics are disabled by settings
- In-memory counters are always tracked so tests can assert on them
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class RelayMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    records_decoded: int = 0
    events_forwarded: int = 0
    decode_failures: int = 0
    delivery_failures: int = 0
    flush_requests: int = 0


class MetricsCollector:
    """Process- or invocation-scoped async metrics collector."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = RelayMetrics()

        self._c_records: Any | None = None
        self._c_events: Any | None = None
        self._c_failures: Any | None = None
        self._h_flush_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            self._registry = CollectorRegistry()
            self._c_records = Counter(
                "hecrelay_records_decoded_total",
                "Total number of Kinesis records decoded",
                registry=self._registry,
            )
            self._c_events = Counter(
                "hecrelay_events_forwarded_total",
                "Total number of log events delivered to the HEC endpoint",
                registry=self._registry,
            )
            self._c_failures = Counter(
                "hecrelay_failures_total",
                "Total number of decode and delivery failures",
                ["stage"],
                registry=self._registry,
            )
            self._h_flush_latency = Histogram(
                "hecrelay_flush_seconds",
                "Latency of a single HEC request",
                buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_records_decoded(self, count: int) -> None:
        async with self._lock:
            self._state.records_decoded += count
        if self._c_records is not None and count:
            self._c_records.inc(count)

    async def record_decode_failure(self) -> None:
        async with self._lock:
            self._state.decode_failures += 1
        if self._c_failures is not None:
            self._c_failures.labels(stage="decode").inc()

    async def record_flush(
        self, events: int, *, duration_seconds: float | None = None
    ) -> None:
        async with self._lock:
            self._state.events_forwarded += events
            self._state.flush_requests += 1
        if not self._enabled:
            return
        if self._c_events is not None and events:
            self._c_events.inc(events)
        if duration_seconds is not None and self._h_flush_latency is not None:
            self._h_flush_latency.observe(duration_seconds)

    async def record_delivery_failure(self) -> None:
        async with self._lock:
            self._state.delivery_failures += 1
        if self._c_failures is not None:
            self._c_failures.labels(stage="delivery").inc()

    async def snapshot(self) -> RelayMetrics:
        async with self._lock:
            return RelayMetrics(
                records_decoded=self._state.records_decoded,
                events_forwarded=self._state.events_forwarded,
                decode_failures=self._state.decode_failures,
                delivery_failures=self._state.delivery_failures,
                flush_requests=self._state.flush_requests,
            )
