"""Bridge client used by the tracking core.

Routes state fetches to the right Hue bridge, translates API errors into the
core's unreachable errors, and provides the one-shot "bridge available"
signal that parked devices wait on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
import contextlib
from functools import partial
import logging
import random
from typing import Any

from .api import HueApiError, HueAuthError, HueBridgeApi, HueConnectionError, HueResourceNotFoundError
from .const import DEFAULT_PROBE_DELAY, PROBE_JITTER, PROBE_MAX_DELAY
from .tracking.models import BridgeUnavailableError, DeviceState, DeviceUnavailableError

_LOGGER = logging.getLogger(__name__)


def _calculate_probe_delay(base_delay: float, max_delay: float) -> float:
    """Calculate probe delay with jitter.

    Args:
        base_delay: The base delay in seconds.
        max_delay: The maximum delay in seconds.

    Returns:
        The delay with random jitter applied (±25% of base).
    """
    jitter = base_delay * PROBE_JITTER * (2 * random.random() - 1)
    delay = base_delay + jitter
    return max(1.0, min(delay, max_delay))


class HueBridgeHub:
    """Bridge client over one or more Hue bridges, keyed by bridge ID."""

    def __init__(self, create_task: Callable[[Coroutine[Any, Any, None]], asyncio.Task[None]]) -> None:
        """Initialize the hub.

        Args:
            create_task: Function that runs the availability probe as a task.
        """
        self._create_task = create_task
        self._apis: dict[str, HueBridgeApi] = {}
        self._sensor_ids: dict[str, dict[str, str]] = {}  # bridge ID -> uniqueid -> sensor ID
        self._waiters: dict[str, list[asyncio.Future[None]]] = {}
        self._probe_tasks: dict[str, asyncio.Task[None]] = {}

    def add_bridge(self, bridge_id: str, api: HueBridgeApi) -> None:
        """Make a bridge known; devices waiting on it are resumed."""
        self._apis[bridge_id] = api
        self._sensor_ids.pop(bridge_id, None)
        _LOGGER.debug("Bridge %s added (%s)", bridge_id, api.host)
        self._resolve_waiters(bridge_id)

    def is_waiting(self, bridge_id: str) -> bool:
        """Return True if devices are waiting for the bridge."""
        return any(not waiter.done() for waiter in self._waiters.get(bridge_id, []))

    async def async_remove_bridge(self, bridge_id: str) -> None:
        """Forget a bridge, cancelling its probe and pending waiters."""
        self._apis.pop(bridge_id, None)
        self._sensor_ids.pop(bridge_id, None)
        for waiter in self._waiters.pop(bridge_id, []):
            waiter.cancel()
        task = self._probe_tasks.pop(bridge_id, None)
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def async_shutdown(self) -> None:
        """Forget every bridge."""
        for bridge_id in list(self._apis) + list(self._waiters):
            await self.async_remove_bridge(bridge_id)

    async def async_fetch_state(self, bridge_id: str, device_id: str) -> DeviceState:
        """Return the current button state of a dimmer.

        Raises:
            BridgeUnavailableError: If the bridge is unknown or unreachable.
            DeviceUnavailableError: If the dimmer is missing or unreachable.
        """
        api = self._apis.get(bridge_id)
        if api is None:
            raise BridgeUnavailableError(f"Bridge {bridge_id} is not available")

        try:
            sensor = await self._async_get_sensor(bridge_id, api, device_id)
        except (HueConnectionError, HueAuthError) as err:
            raise BridgeUnavailableError(f"Bridge {bridge_id} is not reachable: {err}") from err
        except HueResourceNotFoundError as err:
            raise DeviceUnavailableError(f"{device_id} not found on bridge {bridge_id}") from err

        # The bridge answered, so anything waiting on it may resume
        self._resolve_waiters(bridge_id)

        config = sensor.get("config") or {}
        if config.get("reachable") is False:
            raise DeviceUnavailableError(f"{device_id} is not reachable by bridge {bridge_id}")
        return DeviceState.from_sensor(sensor)

    async def _async_get_sensor(self, bridge_id: str, api: HueBridgeApi, device_id: str) -> dict[str, Any]:
        """Fetch a sensor by uniqueid, refreshing the ID cache on a miss."""
        sensor_ids = self._sensor_ids.get(bridge_id)
        sensor_id = sensor_ids.get(device_id) if sensor_ids else None
        if sensor_id is None:
            sensor_ids = await self._async_refresh_sensor_ids(bridge_id, api)
            sensor_id = sensor_ids.get(device_id)
            if sensor_id is None:
                raise HueResourceNotFoundError(f"No sensor with uniqueid {device_id}")

        try:
            sensor = await api.async_get_sensor(sensor_id)
        except HueResourceNotFoundError:
            sensor_ids.pop(device_id, None)
            raise

        if sensor.get("uniqueid", device_id) != device_id:
            # Sensor IDs get reused after a dimmer is deleted and another paired
            sensor_ids.pop(device_id, None)
            raise HueResourceNotFoundError(f"Sensor {sensor_id} is no longer {device_id}")
        return sensor

    async def _async_refresh_sensor_ids(self, bridge_id: str, api: HueBridgeApi) -> dict[str, str]:
        sensors = await api.async_get_sensors()
        sensor_ids = {
            sensor["uniqueid"]: sensor_id for sensor_id, sensor in sensors.items() if sensor.get("uniqueid")
        }
        self._sensor_ids[bridge_id] = sensor_ids
        return sensor_ids

    def bridge_available(self, bridge_id: str) -> asyncio.Future[None]:
        """Return a one-shot future resolved when the bridge is reachable again.

        Every caller gets its own future, so cancelling one subscription does
        not affect the others.
        """
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        waiter.add_done_callback(partial(self._discard_waiter, bridge_id))
        self._waiters.setdefault(bridge_id, []).append(waiter)
        self._ensure_probe(bridge_id)
        return waiter

    def _discard_waiter(self, bridge_id: str, waiter: asyncio.Future[None]) -> None:
        """Drop a finished waiter, typically one cancelled by unregister."""
        waiters = self._waiters.get(bridge_id)
        if not waiters or waiter not in waiters:
            return
        waiters.remove(waiter)
        if not waiters:
            del self._waiters[bridge_id]

    def _resolve_waiters(self, bridge_id: str) -> None:
        waiters = self._waiters.pop(bridge_id, [])
        resolved = 0
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
                resolved += 1
        if resolved:
            _LOGGER.debug("Bridge %s available, resuming %d waiting devices", bridge_id, resolved)

    def _ensure_probe(self, bridge_id: str) -> None:
        """Start the availability probe of a known bridge if not running."""
        if bridge_id not in self._apis:
            # Resolved by add_bridge once the bridge shows up
            return
        task = self._probe_tasks.get(bridge_id)
        if task is not None and not task.done():
            return
        self._probe_tasks[bridge_id] = self._create_task(self._async_probe(bridge_id))

    async def _async_probe(self, bridge_id: str) -> None:
        """Poll a bridge with backoff while devices wait for it."""
        probe_delay: float = DEFAULT_PROBE_DELAY
        while self.is_waiting(bridge_id):
            await asyncio.sleep(_calculate_probe_delay(probe_delay, PROBE_MAX_DELAY))
            api = self._apis.get(bridge_id)
            if api is None or not self.is_waiting(bridge_id):
                break
            try:
                await self._async_refresh_sensor_ids(bridge_id, api)
            except HueApiError as err:
                _LOGGER.debug("Bridge %s still unavailable: %s", bridge_id, err)
                probe_delay = min(probe_delay * 2, PROBE_MAX_DELAY)
                continue
            _LOGGER.info("Bridge %s is reachable again", bridge_id)
            self._resolve_waiters(bridge_id)
        self._probe_tasks.pop(bridge_id, None)
