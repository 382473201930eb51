"""Pytest fixtures for Hue Dimmer Switch tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Add repo root to path so custom_components can be found
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))

import asyncio
from collections.abc import Generator
import copy
import importlib.util
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# Load pytest_homeassistant_custom_component plugin if available
# This must be at module level for pytest to pick it up
if importlib.util.find_spec("pytest_homeassistant_custom_component"):
    pytest_plugins = ["pytest_homeassistant_custom_component"]

# Test constants - these are placeholders, not real credentials
TEST_HOST = "http://192.168.1.2"
TEST_API_KEY = "testapikey0123456789"
TEST_BRIDGE_ID = "001788fffe6a1b2c"
TEST_ENTRY_ID = "test_entry_id"

DIMMER_1 = "00:17:88:01:10:3d:8a:01-02-fc00"
DIMMER_2 = "00:17:88:01:10:3d:8a:02-02-fc00"

# Check if pytest-homeassistant-custom-component is available
HAS_HA_TEST_FRAMEWORK = importlib.util.find_spec("pytest_homeassistant_custom_component") is not None

# Skip marker for tests requiring the HA test framework
requires_ha_test_framework = pytest.mark.skipif(
    not HAS_HA_TEST_FRAMEWORK,
    reason="Test requires pytest-homeassistant-custom-component",
)


# =============================================================================
# Mock bridge data
# =============================================================================

MOCK_SENSORS: dict[str, dict[str, Any]] = {
    "1": {
        "name": "Daylight",
        "type": "Daylight",
        "modelid": "PHDL00",
        "state": {"daylight": True, "lastupdated": "2024-03-01T06:12:00"},
        "config": {"on": True, "configured": True},
    },
    "5": {
        "name": "Kitchen dimmer",
        "type": "ZLLSwitch",
        "modelid": "RWL021",
        "uniqueid": DIMMER_1,
        "state": {"buttonevent": 1002, "lastupdated": "2024-03-01T18:20:31"},
        "config": {"on": True, "battery": 100, "reachable": True},
    },
    "6": {
        "name": "Bedroom dimmer",
        "type": "ZLLSwitch",
        "modelid": "RWL020",
        "uniqueid": DIMMER_2,
        "state": {"buttonevent": 4002, "lastupdated": "2024-03-01T22:45:10"},
        "config": {"on": True, "battery": 85, "reachable": True},
    },
    "9": {
        "name": "Hallway motion",
        "type": "ZLLPresence",
        "modelid": "SML001",
        "uniqueid": "00:17:88:01:02:03:04:05-02-0406",
        "state": {"presence": False, "lastupdated": "2024-03-01T21:00:00"},
        "config": {"on": True, "battery": 90, "reachable": True},
    },
}

MOCK_DIMMERS = [
    {"id": DIMMER_1, "sensor_id": "5", "name": "Kitchen dimmer", "model_id": "RWL021"},
    {"id": DIMMER_2, "sensor_id": "6", "name": "Bedroom dimmer", "model_id": "RWL020"},
]


def make_sensor(button_event: int | None, last_updated: str, reachable: bool = True, unique_id: str = DIMMER_1):
    """Build a dimmer sensor payload."""
    return {
        "name": "Kitchen dimmer",
        "type": "ZLLSwitch",
        "modelid": "RWL021",
        "uniqueid": unique_id,
        "state": {"buttonevent": button_event, "lastupdated": last_updated},
        "config": {"on": True, "battery": 100, "reachable": reachable},
    }


def _create_mock_api(sensors: dict[str, dict[str, Any]] | None = None) -> MagicMock:
    """Create a mock HueBridgeApi backed by a mutable sensor table."""
    sensors = copy.deepcopy(MOCK_SENSORS) if sensors is None else sensors

    async def _get_sensor(sensor_id: str) -> dict[str, Any]:
        from custom_components.hue_dimmer.api import HueResourceNotFoundError

        if sensor_id not in sensors:
            raise HueResourceNotFoundError(f"resource, /sensors/{sensor_id}, not available")
        return copy.deepcopy(sensors[sensor_id])

    mock_api = MagicMock()
    mock_api.host = TEST_HOST
    mock_api.sensors = sensors
    mock_api.async_get_sensors = AsyncMock(side_effect=lambda: copy.deepcopy(sensors))
    mock_api.async_get_sensor = AsyncMock(side_effect=_get_sensor)
    mock_api.async_list_dimmer_switches = AsyncMock(return_value=copy.deepcopy(MOCK_DIMMERS))
    mock_api.async_get_config = AsyncMock(return_value={"bridgeid": TEST_BRIDGE_ID.upper(), "name": "Philips hue"})
    mock_api.async_create_user = AsyncMock(return_value=TEST_API_KEY)
    mock_api.close = AsyncMock()
    return mock_api


@pytest.fixture
def mock_api() -> MagicMock:
    """Return a mock bridge API."""
    return _create_mock_api()


class RecordingSink:
    """Event sink that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []

    def emit_button_pressed(self, device_id: str, label: str) -> None:
        self.calls.append(("pressed", device_id, label))

    def mark_unavailable(self, device_id: str, reason: str) -> None:
        self.calls.append(("unavailable", device_id, reason))

    def mark_available(self, device_id: str) -> None:
        self.calls.append(("available", device_id))

    @property
    def presses(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == "pressed"]


@pytest.fixture
def sink() -> RecordingSink:
    """Return a recording event sink."""
    return RecordingSink()


class FakeBridgeClient:
    """Bridge client whose fetches are answered by the test."""

    def __init__(self) -> None:
        self.fetches: list[tuple[str, str]] = []
        self.responses: list[Any] = []
        self.pending: list[asyncio.Future[Any]] = []
        self.waiters: list[tuple[str, asyncio.Future[None]]] = []
        self.hold = False

    async def async_fetch_state(self, bridge_id: str, device_id: str):
        self.fetches.append((bridge_id, device_id))
        if self.hold:
            future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
            self.pending.append(future)
            result = await future
        else:
            result = self.responses.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def bridge_available(self, bridge_id: str) -> asyncio.Future[None]:
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.waiters.append((bridge_id, waiter))
        return waiter


@pytest.fixture
def client() -> FakeBridgeClient:
    """Return a scriptable bridge client."""
    return FakeBridgeClient()


@pytest.fixture
def timers() -> MagicMock:
    """Return a timer scheduler that records calls instead of scheduling."""
    return MagicMock()


@pytest.fixture
def tasks() -> list[asyncio.Task[None]]:
    """Collect tasks created by the code under test."""
    return []


@pytest.fixture
def create_task(tasks):
    """Return a task factory that records the tasks it creates."""

    def _create_task(coro):
        task = asyncio.get_running_loop().create_task(coro)
        tasks.append(task)
        return task

    return _create_task


async def drain(tasks: list[asyncio.Task[None]]) -> None:
    """Wait until every recorded task is done, including ones they start."""
    while True:
        pending = [task for task in tasks if not task.done()]
        if not pending:
            # Let done-callbacks scheduled with call_soon run
            await asyncio.sleep(0)
            if all(task.done() for task in tasks):
                return
            continue
        await asyncio.gather(*pending, return_exceptions=True)


# Import pytest-homeassistant-custom-component fixtures if available
if HAS_HA_TEST_FRAMEWORK:
    from pytest_homeassistant_custom_component.common import MockConfigEntry

    @pytest.fixture
    async def custom_integration(hass, enable_custom_integrations) -> None:
        """Make our custom_components directory visible to the HA loader."""
        import homeassistant.loader as loader

        custom_components_path = REPO_ROOT / "custom_components"

        # Clear cached integrations to force rediscovery
        if hasattr(loader, "DATA_CUSTOM_COMPONENTS") and loader.DATA_CUSTOM_COMPONENTS in hass.data:
            del hass.data[loader.DATA_CUSTOM_COMPONENTS]

        if "custom_components" in sys.modules:
            existing_module = sys.modules["custom_components"]
            if hasattr(existing_module, "__path__") and str(custom_components_path) not in existing_module.__path__:
                existing_module.__path__.insert(0, str(custom_components_path))
        else:
            import types

            custom_components_module = types.ModuleType("custom_components")
            custom_components_module.__path__ = [str(custom_components_path)]
            sys.modules["custom_components"] = custom_components_module

    @pytest.fixture
    def mock_config_entry() -> MockConfigEntry:
        """Create a MockConfigEntry for integration tests."""
        return MockConfigEntry(
            domain="hue_dimmer",
            title="Philips hue",
            unique_id=TEST_BRIDGE_ID,
            data={
                "host": TEST_HOST,
                "api_key": TEST_API_KEY,
                "bridge_id": TEST_BRIDGE_ID,
            },
            options={"scan_interval": 5},
            entry_id=TEST_ENTRY_ID,
        )

    @pytest.fixture
    def mock_api_class(hass, custom_integration, mock_api) -> Generator[MagicMock]:
        """Patch HueBridgeApi where the integration and config flow import it."""
        with (
            patch("custom_components.hue_dimmer.HueBridgeApi", return_value=mock_api),
            patch("custom_components.hue_dimmer.config_flow.HueBridgeApi", return_value=mock_api),
        ):
            yield mock_api
