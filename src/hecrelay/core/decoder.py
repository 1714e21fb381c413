"""
Batch decoder: Kinesis record payloads to CloudWatch Logs events.

Each record's ``kinesis.data`` is base64 text wrapping a gzip blob whose
content is a JSON `LogEnvelope`. Only ``DATA_MESSAGE`` envelopes carry log
events; anything else decodes to zero events without error.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import zlib
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

import orjson
from pydantic import ValidationError

from . import diagnostics
from .errors import DecodeError
from .events import IncomingBatch, IncomingRecord, LogEnvelope, LogEvent

DecodeStrategy = Literal["all", "last"]


def decode_payload(
    data: str | bytes, *, record_index: int | None = None
) -> LogEnvelope:
    """Decode one base64+gzip+JSON payload into a `LogEnvelope`.

    Line breaks in the base64 text are ignored. Raises `DecodeError` for
    malformed base64, gzip, UTF-8 or JSON.
    """
    if isinstance(data, str):
        data = "".join(data.split())
    else:
        data = b"".join(data.split())
    try:
        compressed = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(
            "invalid base64 payload", record_index=record_index, cause=e
        ) from e
    try:
        raw = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(
            "error unzipping CloudWatch Logs record",
            record_index=record_index,
            cause=e,
        ) from e
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise DecodeError(
            "invalid JSON in record payload", record_index=record_index, cause=e
        ) from e
    if not isinstance(parsed, dict):
        raise DecodeError(
            f"record payload must be a JSON object, got {type(parsed).__name__}",
            record_index=record_index,
        )
    try:
        return LogEnvelope.model_validate(parsed)
    except ValidationError as e:
        raise DecodeError(
            "record payload does not match the log envelope shape",
            record_index=record_index,
            cause=e,
        ) from e


def encode_payload(envelope: LogEnvelope | Mapping[str, Any]) -> str:
    """Inverse of `decode_payload`: JSON, gzip, then base64."""
    if isinstance(envelope, LogEnvelope):
        body = envelope.model_dump(by_alias=True, exclude_none=True)
    else:
        body = dict(envelope)
    return base64.b64encode(gzip.compress(orjson.dumps(body))).decode("ascii")


def extract_log_events(envelope: LogEnvelope) -> list[LogEvent]:
    if not envelope.is_data_message or not envelope.log_events:
        return []
    return list(envelope.log_events)


@dataclass
class DecodedBatch:
    """Result of decoding one invocation's records."""

    records_total: int
    records_decoded: int
    events: list[LogEvent] = field(default_factory=list)


class BatchDecoder:
    """Decode the records of an invocation event.

    With ``strategy="all"`` every record is decoded in order. With
    ``strategy="last"`` only the final record is decoded, which is how the
    first deployments of this relay behaved.
    """

    def __init__(self, *, strategy: DecodeStrategy = "all") -> None:
        if strategy not in ("all", "last"):
            raise ValueError(f"unknown decode strategy: {strategy!r}")
        self._strategy = strategy

    @property
    def strategy(self) -> DecodeStrategy:
        return self._strategy

    def parse_batch(self, event: IncomingBatch | Mapping[str, Any]) -> IncomingBatch:
        if isinstance(event, IncomingBatch):
            return event
        try:
            return IncomingBatch.model_validate(event)
        except ValidationError as e:
            raise DecodeError("invocation event is not a Kinesis batch", cause=e) from e

    def select_records(
        self, batch: IncomingBatch
    ) -> list[tuple[int, IncomingRecord]]:
        indexed = list(enumerate(batch.records))
        if self._strategy == "last":
            return indexed[-1:]
        return indexed

    def decode(self, event: IncomingBatch | Mapping[str, Any]) -> DecodedBatch:
        """Decode the selected records; any failure aborts the whole batch."""
        batch = self.parse_batch(event)
        selected = self.select_records(batch)
        result = DecodedBatch(records_total=len(batch.records), records_decoded=0)
        for index, record in selected:
            envelope = decode_payload(record.kinesis.data, record_index=index)
            events = extract_log_events(envelope)
            if not events:
                diagnostics.debug(
                    "decoder",
                    "record carries no log events",
                    record_index=index,
                    message_type=envelope.message_type,
                )
            result.events.extend(events)
            result.records_decoded += 1
        return result
