"""pytest configuration for wolbot tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from wolbot.control import DeviceController, ProbeResult
from wolbot.registry import DeviceRegistry


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture()
def registry(tmp_path):
    return DeviceRegistry(tmp_path / "data.json")


@pytest.fixture()
def controller():
    """DeviceController stand-in: wake succeeds, probe reports 1.5 ms."""
    ctl = MagicMock(spec=DeviceController)
    ctl.wake.return_value = True
    ctl.probe = AsyncMock(return_value=ProbeResult(alive=True, latency_ms=1.5))
    return ctl
