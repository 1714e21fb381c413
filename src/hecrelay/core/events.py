"""
Data models for the relay pipeline.

Incoming side: the Kinesis invocation event (`IncomingBatch`) and the
CloudWatch Logs subscription envelope carried in each record
(`LogEnvelope`). Outgoing side: `ForwardingEvent`, the HEC event shape.
Individual log events stay plain dicts so that every field reaches the
endpoint untouched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

DATA_MESSAGE = "DATA_MESSAGE"

LogEvent = dict[str, Any]


class KinesisData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data: str
    partition_key: str | None = Field(default=None, alias="partitionKey")
    sequence_number: str | None = Field(default=None, alias="sequenceNumber")
    approximate_arrival_timestamp: float | None = Field(
        default=None, alias="approximateArrivalTimestamp"
    )


class IncomingRecord(BaseModel):
    """One Kinesis record as delivered by the Lambda event source mapping."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kinesis: KinesisData
    event_id: str | None = Field(default=None, alias="eventID")
    event_source: str | None = Field(default=None, alias="eventSource")
    event_source_arn: str | None = Field(default=None, alias="eventSourceARN")


class IncomingBatch(BaseModel):
    """The invocation event: an ordered sequence of records."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    records: list[IncomingRecord] = Field(alias="Records")


class LogEnvelope(BaseModel):
    """Decoded CloudWatch Logs subscription payload.

    Only the ``logEvents`` of a ``DATA_MESSAGE`` are checked for shape; they
    are dropped from any other message type. The remaining fields are carried
    as received so that odd metadata never fails a record.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    message_type: Any = Field(default=None, alias="messageType")
    owner: Any = None
    log_group: Any = Field(default=None, alias="logGroup")
    log_stream: Any = Field(default=None, alias="logStream")
    subscription_filters: Any = Field(default=None, alias="subscriptionFilters")
    log_events: list[LogEvent] | None = Field(default=None, alias="logEvents")

    @field_validator("log_events", mode="before")
    @classmethod
    def _skip_non_data_events(cls, value: Any, info: ValidationInfo) -> Any:
        # only DATA_MESSAGE events are ever forwarded
        if info.data.get("message_type") != DATA_MESSAGE:
            return None
        return value

    @property
    def is_data_message(self) -> bool:
        return self.message_type == DATA_MESSAGE


class ForwardingEvent(BaseModel):
    """HEC event wire shape.

    Only ``event`` is required; omitted attributes fall back to the token's
    configuration on the endpoint side.
    """

    model_config = ConfigDict(extra="forbid")

    time: float | None = None
    host: str | None = None
    source: str | None = None
    sourcetype: str | None = None
    index: str | None = None
    fields: dict[str, Any] | None = None
    event: Any

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_none=True, exclude={"event"})
        # event is always present, even when it is JSON null
        payload["event"] = self.event
        return payload


# Mark Pydantic validators as used for vulture
_VULTURE_USED: tuple[object, ...] = (LogEnvelope._skip_non_data_events,)
