"""
Splunk HTTP Event Collector forwarder.

Events are accumulated into an in-memory buffer of serialized HEC events and
delivered by `HecForwarder.flush`, which POSTs the concatenated objects in a
single request. There is no retry: a transport error or non-2xx response is
raised as `DeliveryError` and the buffered events are dropped.
"""

from __future__ import annotations

import time as _time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Mapping

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core import diagnostics
from ..core.errors import (
    ConfigurationError,
    DeliveryError,
    ErrorCategory,
    HecRelayError,
)
from ..core.events import ForwardingEvent
from ..core.serialization import (
    SerializedView,
    concat_serialized,
    serialize_mapping_to_json_bytes,
)
from ..core.settings import HecSettings
from ..metrics.metrics import MetricsCollector

__all__ = ["FlushResult", "HecForwarder", "HecForwarderConfig"]

_BODY_SNIPPET = 1024


class HecForwarderConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)  # fmt: skip

    url: str | None = None
    token: str | None = None
    auth_scheme: str = "Splunk"
    host: str | None = None
    source: str | None = None
    sourcetype: str | None = None
    index: str | None = None
    timeout_seconds: float | None = Field(default=None, gt=0.0)
    verify_tls: bool = True
    max_batch_events: int | None = Field(default=None, ge=1)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if value is None:
            return {}
        return dict(value)

    @classmethod
    def from_settings(cls, settings: HecSettings) -> "HecForwarderConfig":
        return cls(
            url=settings.url,
            token=settings.token,
            auth_scheme=settings.auth_scheme,
            host=settings.host,
            source=settings.source,
            sourcetype=settings.sourcetype,
            index=settings.index,
            timeout_seconds=settings.timeout_seconds,
            verify_tls=settings.verify_tls,
            max_batch_events=settings.max_batch_events,
        )


@dataclass
class FlushResult:
    """Outcome of a successful flush."""

    events: int
    requests: int
    status_code: int | None = None
    responses: list[str] = field(default_factory=list)

    @property
    def response_body(self) -> str:
        return "\n".join(self.responses)


class HecForwarder:
    """Buffers HEC events and delivers them in one request per flush."""

    name = "splunk-hec"

    def __init__(
        self,
        config: HecForwarderConfig | dict | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        if isinstance(config, HecForwarderConfig):
            if kwargs:
                config = config.model_copy(update=kwargs)
            cfg = config
        else:
            cfg = HecForwarderConfig(**{**(config or {}), **kwargs})
        self._config = cfg
        self._client = client
        self._metrics = metrics
        self._buffer: list[SerializedView] = []

    @property
    def config(self) -> HecForwarderConfig:
        return self._config

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def accumulate(
        self,
        value: Any,
        *,
        context: Any | None = None,
        time: float | None = None,
    ) -> None:
        """Buffer ``value`` as the ``event`` of a new HEC event.

        ``time`` (epoch seconds) defaults to now. A Lambda ``context`` sets
        the source to ``lambda:<function name>`` and adds ``awsRequestId``
        to mapping events.
        """
        event_time = _time.time() if time is None else time
        source = self._config.source
        if context is not None:
            function_name = getattr(context, "function_name", None)
            if function_name:
                source = f"lambda:{function_name}"
            request_id = getattr(context, "aws_request_id", None)
            if request_id is not None and isinstance(value, Mapping):
                value = {**value, "awsRequestId": request_id}
        self._append(
            ForwardingEvent(
                time=event_time,
                host=self._config.host,
                source=source,
                sourcetype=self._config.sourcetype,
                index=self._config.index,
                event=value,
            )
        )

    def accumulate_with_time(
        self,
        timestamp_ms: int | float,
        value: Any,
        *,
        context: Any | None = None,
    ) -> None:
        """Buffer ``value`` stamped with an epoch-millis timestamp."""
        self.accumulate(value, context=context, time=timestamp_ms / 1000)

    def accumulate_event(self, event: ForwardingEvent | Mapping[str, Any]) -> None:
        """Buffer an explicitly shaped HEC event.

        Attributes left unset are filled from the configured defaults. A
        mapping that is not a valid HEC event raises `HecRelayError`.
        """
        if not isinstance(event, ForwardingEvent):
            try:
                event = ForwardingEvent.model_validate(dict(event))
            except ValidationError as e:
                raise HecRelayError(
                    "event does not match the HEC event shape",
                    category=ErrorCategory.VALIDATION,
                    component_name="hec-forwarder",
                    cause=e,
                ) from e
        defaults = {
            name: getattr(self._config, name)
            for name in ("host", "source", "sourcetype", "index")
            if getattr(event, name) is None and getattr(self._config, name)
        }
        if defaults:
            event = event.model_copy(update=defaults)
        self._append(event)

    def preview_body(self) -> bytes:
        """Return the request body the next flush would send, without sending."""
        return concat_serialized(self._buffer)

    def _append(self, event: ForwardingEvent) -> None:
        self._buffer.append(serialize_mapping_to_json_bytes(event.to_payload()))

    def _endpoint(self) -> tuple[str, dict[str, str]]:
        if not self._config.url:
            raise ConfigurationError("HEC endpoint URL is not configured")
        if not self._config.token:
            raise ConfigurationError("HEC token is not configured")
        headers = dict(self._config.headers)
        headers["Authorization"] = f"{self._config.auth_scheme} {self._config.token}"
        headers.setdefault("Content-Type", "application/json")
        return self._config.url, headers

    def _chunks(self, entries: list[SerializedView]) -> list[list[SerializedView]]:
        size = self._config.max_batch_events
        if size is None:
            return [entries]
        return [entries[i : i + size] for i in range(0, len(entries), size)]

    @asynccontextmanager
    async def _acquire_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        kwargs: dict[str, Any] = {"verify": self._config.verify_tls}
        if self._config.timeout_seconds is not None:
            kwargs["timeout"] = self._config.timeout_seconds
        async with httpx.AsyncClient(**kwargs) as client:
            yield client

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        body: bytes,
        headers: dict[str, str],
    ) -> httpx.Response:
        try:
            resp = await client.post(url, content=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryError(
                f"request to HEC endpoint failed: {exc}",
                endpoint=url,
                cause=exc,
            ) from exc
        if not resp.is_success:
            snippet = resp.text[:_BODY_SNIPPET]
            raise DeliveryError(
                f"HEC endpoint returned HTTP {resp.status_code}",
                endpoint=url,
                status_code=resp.status_code,
                response_body=snippet,
            )
        return resp

    async def flush(self) -> FlushResult:
        """Deliver every buffered event and empty the buffer.

        An empty buffer returns immediately without a network call.
        """
        entries, self._buffer = self._buffer, []
        if not entries:
            return FlushResult(events=0, requests=0)
        url, headers = self._endpoint()
        result = FlushResult(events=0, requests=0)
        async with self._acquire_client() as client:
            for chunk in self._chunks(entries):
                body = concat_serialized(chunk)
                diagnostics.debug(
                    "hec-forwarder",
                    "sending batch",
                    endpoint=url,
                    events=len(chunk),
                    bytes=len(body),
                )
                started = _time.perf_counter()
                try:
                    resp = await self._post(client, url, body, headers)
                except DeliveryError:
                    if self._metrics is not None:
                        await self._metrics.record_delivery_failure()
                    raise
                if self._metrics is not None:
                    await self._metrics.record_flush(
                        len(chunk),
                        duration_seconds=_time.perf_counter() - started,
                    )
                result.events += len(chunk)
                result.requests += 1
                result.status_code = resp.status_code
                result.responses.append(resp.text)
        return result


# Mark Pydantic validators as used for vulture
_VULTURE_USED: tuple[object, ...] = (HecForwarderConfig._coerce_headers,)
