"""In-memory table of tracked dimmer switches."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
from types import MappingProxyType

from ..const import BUTTON_EVENT_MAP, DEFAULT_SCAN_INTERVAL
from .models import BridgeClient, EventSink, TrackedDevice
from .scheduler import SyncScheduler, TaskFactory, TimerScheduler

_LOGGER = logging.getLogger(__name__)


class DeviceRegistry:
    """Owns the tracked devices and the lifecycle of their sync cycles."""

    def __init__(
        self,
        client: BridgeClient,
        sink: EventSink,
        schedule_timer: TimerScheduler,
        create_task: TaskFactory,
        poll_interval: float = DEFAULT_SCAN_INTERVAL,
        button_map: Mapping[int, str] = BUTTON_EVENT_MAP,
    ) -> None:
        """Initialize the registry and its scheduler."""
        self._devices: dict[str, TrackedDevice] = {}
        self._scheduler = SyncScheduler(
            client,
            sink,
            schedule_timer,
            create_task,
            self.is_current,
            poll_interval=poll_interval,
            button_map=button_map,
        )

    @property
    def devices(self) -> Mapping[str, TrackedDevice]:
        """Read-only view of the tracked devices."""
        return MappingProxyType(self._devices)

    @property
    def scheduler(self) -> SyncScheduler:
        """Return the sync scheduler."""
        return self._scheduler

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def register(
        self,
        device_id: str,
        bridge_id: str,
        *,
        name: str | None = None,
        model_id: str | None = None,
    ) -> TrackedDevice:
        """Track a device and start its sync cycle.

        Registering an already tracked device replaces the entry and resets
        its press history.
        """
        existing = self._devices.get(device_id)
        if existing is not None:
            _LOGGER.debug("Re-registering %s, press history reset", device_id)
            self._scheduler.stop(existing)

        device = TrackedDevice(device_id=device_id, bridge_id=bridge_id, name=name, model_id=model_id)
        self._devices[device_id] = device
        _LOGGER.debug("Tracking %s on bridge %s", device_id, bridge_id)
        self._scheduler.start(device)
        return device

    def unregister(self, device_id: str) -> None:
        """Stop tracking a device. Unknown ids are ignored."""
        device = self._devices.pop(device_id, None)
        if device is None:
            _LOGGER.debug("Unregister of untracked device %s ignored", device_id)
            return
        self._scheduler.stop(device)
        _LOGGER.debug("Stopped tracking %s", device_id)

    def get(self, device_id: str) -> TrackedDevice | None:
        """Return the tracked device, or None if it is not tracked."""
        return self._devices.get(device_id)

    def is_current(self, device: TrackedDevice) -> bool:
        """Return True if the entry is still the registered one for its id."""
        return self._devices.get(device.device_id) is device

    async def async_shutdown(self) -> None:
        """Stop every sync cycle and wait for in-flight checks to finish."""
        devices = list(self._devices.values())
        self._devices.clear()
        tasks = [task for device in devices if (task := self._scheduler.cancel(device)) is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        _LOGGER.debug("Stopped tracking %d devices", len(devices))
