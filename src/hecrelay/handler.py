"""
Lambda entry point: Kinesis batch in, one HEC request out.

Settings are loaded once per process; the decoder, the forwarder and its
buffer are created fresh for every invocation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from .core import diagnostics
from .core.decoder import BatchDecoder
from .core.errors import DecodeError, HecRelayError
from .core.events import IncomingBatch
from .core.settings import Settings, get_settings
from .metrics.metrics import MetricsCollector
from .sinks.hec import HecForwarder, HecForwarderConfig


@dataclass
class InvocationResult:
    records: int
    records_decoded: int
    events_forwarded: int
    response_body: str = ""

    @property
    def summary(self) -> str:
        return f"Successfully processed {self.records} records."


async def process_batch(
    event: IncomingBatch | Mapping[str, Any],
    context: Any | None = None,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
    metrics: MetricsCollector | None = None,
) -> InvocationResult:
    """Decode every selected record and forward its log events.

    A decode failure is logged and re-raised before anything is sent. A
    delivery failure is logged and propagated; nothing is retried.
    """
    settings = settings or get_settings()
    if settings.core.log_received_event:
        diagnostics.debug("handler", "received event", event=event)

    decoder = BatchDecoder(strategy=settings.decoder.strategy)
    try:
        decoded = decoder.decode(event)
    except DecodeError as exc:
        diagnostics.error("decoder", "error decoding record", error=exc.to_dict())
        if metrics is not None:
            await metrics.record_decode_failure()
        raise
    if metrics is not None:
        await metrics.record_records_decoded(decoded.records_decoded)

    forwarder = HecForwarder(
        HecForwarderConfig.from_settings(settings.hec),
        client=client,
        metrics=metrics,
    )
    attach = context if settings.hec.include_lambda_context else None
    for item in decoded.events:
        forwarder.accumulate(item, context=attach)

    try:
        flushed = await forwarder.flush()
    except HecRelayError as exc:
        diagnostics.error(
            "hec-forwarder", "error sending events", error=exc.to_dict()
        )
        raise

    if flushed.requests:
        diagnostics.info(
            "hec-forwarder",
            "response from Splunk",
            status_code=flushed.status_code,
            body=flushed.response_body,
        )
    diagnostics.info(
        "handler",
        f"Successfully processed {flushed.events} log event(s).",
        records=decoded.records_total,
        records_decoded=decoded.records_decoded,
    )
    return InvocationResult(
        records=decoded.records_total,
        records_decoded=decoded.records_decoded,
        events_forwarded=flushed.events,
        response_body=flushed.response_body,
    )


def lambda_handler(event: Mapping[str, Any], context: Any) -> str:
    """Synchronous Lambda handler returning a summary string."""
    settings = get_settings()
    diagnostics.configure(settings.core.log_level)
    metrics = MetricsCollector(enabled=settings.core.enable_metrics)
    result = asyncio.run(
        process_batch(event, context, settings=settings, metrics=metrics)
    )
    return result.summary
