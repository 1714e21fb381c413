"""Pytest fixtures for relay tests. Requires the ``testing`` extra."""

from __future__ import annotations

import os
from typing import Any, Iterator

import httpx
import pytest

from ..core import diagnostics
from ..core.settings import LEGACY_TOKEN_ENV, LEGACY_URL_ENV, Settings, get_settings

HEC_SUCCESS_BODY = {"text": "Success", "code": 0}


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records requests and replays scripted outcomes.

    Outcomes are ``httpx.Response`` objects or exceptions to raise; the last
    outcome repeats once the script runs out.
    """

    def __init__(self, outcomes: list[Any] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self._outcomes = list(outcomes or [httpx.Response(200, json=HEC_SUCCESS_BODY)])
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self._outcomes) > 1:
            outcome = self._outcomes.pop(0)
        else:
            outcome = self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        # fresh copy so a repeated outcome is never shared between requests
        return httpx.Response(
            outcome.status_code,
            headers=outcome.headers,
            content=outcome.content,
        )


@pytest.fixture
def hec_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def relay_settings() -> Settings:
    return Settings(
        hec={
            "url": "https://splunk.example.com:8088/services/collector",
            "token": "00000000-0000-0000-0000-000000000000",
        }
    )


@pytest.fixture
def captured_diagnostics() -> Iterator[list[dict[str, Any]]]:
    diagnostics._reset_for_tests()
    diagnostics.configure("DEBUG")
    captured: list[dict[str, Any]] = []
    diagnostics.set_writer_for_tests(captured.append)
    yield captured
    diagnostics._reset_for_tests()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Strip relay configuration from the environment and the settings cache."""
    for key in list(os.environ):
        if key.upper().startswith("HECRELAY_") or key in (
            LEGACY_URL_ENV,
            LEGACY_TOKEN_ENV,
        ):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()
