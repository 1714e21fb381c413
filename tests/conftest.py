from __future__ import annotations

from typing import Iterator

import pytest

from hecrelay.core import diagnostics
from hecrelay.core.settings import get_settings


@pytest.fixture(autouse=True)
def _isolate_process_state() -> Iterator[None]:
    """Diagnostics and the settings cache are process-wide; reset per test."""
    yield
    diagnostics._reset_for_tests()
    get_settings.cache_clear()
