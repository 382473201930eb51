"""Per-device sync cycle for polled dimmer switches."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Mapping
from functools import partial
import logging
from typing import TYPE_CHECKING, Any, Protocol

from ..const import BUTTON_EVENT_MAP, DEFAULT_SCAN_INTERVAL
from .change_detector import decide
from .models import BridgeClient, DecisionKind, DeviceUnreachableError, EventSink, SyncState, TrackedDevice

if TYPE_CHECKING:
    from asyncio import TimerHandle

_LOGGER = logging.getLogger(__name__)


class TimerScheduler(Protocol):
    """Protocol for scheduling a delayed callback (wraps loop.call_later)."""

    def __call__(self, delay: float, callback: Any, *args: Any) -> TimerHandle: ...


class TaskFactory(Protocol):
    """Protocol for running a check coroutine as a task."""

    def __call__(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]: ...


class SyncScheduler:
    """Runs the fetch, compare, reschedule cycle of every tracked device.

    Each device is always in exactly one of these situations:
    - IDLE: nothing pending (only after stop)
    - CHECKING: a fetch task is in flight (``pending_task``)
    - WAITING: the poll timer is armed (``pending_timer`` is a TimerHandle)
    - WAITING_FOR_BRIDGE: subscribed to the bridge availability signal
      (``pending_timer`` is a one-shot future)

    A new check is only ever started from the timer callback or the
    availability callback, both armed at the end of the previous check, so
    checks for one device never overlap.
    """

    def __init__(
        self,
        client: BridgeClient,
        sink: EventSink,
        schedule_timer: TimerScheduler,
        create_task: TaskFactory,
        is_current: Callable[[TrackedDevice], bool],
        poll_interval: float = DEFAULT_SCAN_INTERVAL,
        button_map: Mapping[int, str] = BUTTON_EVENT_MAP,
    ) -> None:
        """Initialize the scheduler.

        Args:
            client: Bridge client used to fetch device state.
            sink: Receiver of press events and availability changes.
            schedule_timer: Function to schedule a delayed callback (e.g. loop.call_later).
            create_task: Function that runs a coroutine as a task.
            is_current: Returns False once a device entry was removed or replaced;
                results of checks for such entries are discarded.
            poll_interval: Seconds between two checks of a reachable device.
            button_map: Raw button event code to label table.
        """
        self._client = client
        self._sink = sink
        self._schedule_timer = schedule_timer
        self._create_task = create_task
        self._is_current = is_current
        self._poll_interval = poll_interval
        self._button_map = button_map

    @property
    def poll_interval(self) -> float:
        """Seconds between two checks of a reachable device."""
        return self._poll_interval

    def start(self, device: TrackedDevice) -> None:
        """Start a check for the device right away."""
        self._cancel_pending(device)
        device.sync_state = SyncState.CHECKING
        device.pending_task = self._create_task(self._async_check(device))

    def stop(self, device: TrackedDevice) -> None:
        """Cancel the armed timer or availability subscription.

        An in-flight check is left to finish; its result is discarded once the
        device is no longer current.
        """
        self._cancel_pending(device)
        device.sync_state = SyncState.IDLE

    def cancel(self, device: TrackedDevice) -> asyncio.Task[None] | None:
        """Stop the device and cancel its in-flight check, if any.

        Returns the cancelled task so the caller can await it.
        """
        self.stop(device)
        task = device.pending_task
        device.pending_task = None
        if task is None or task.done():
            return None
        task.cancel()
        return task

    @staticmethod
    def _cancel_pending(device: TrackedDevice) -> None:
        if device.pending_timer is not None:
            device.pending_timer.cancel()
            device.pending_timer = None

    async def _async_check(self, device: TrackedDevice) -> None:
        """Fetch the device state once and act on the result."""
        _LOGGER.debug("Syncing %s on bridge %s", device.device_id, device.bridge_id)
        try:
            state = await self._client.async_fetch_state(device.bridge_id, device.device_id)
        except DeviceUnreachableError as err:
            if not self._is_current(device):
                _LOGGER.debug("Discarding failed sync of removed device %s", device.device_id)
                return
            device.pending_task = None
            self._wait_for_bridge(device, err)
            return
        except Exception:
            if not self._is_current(device):
                return
            device.pending_task = None
            _LOGGER.exception("Unexpected error syncing %s", device.device_id)
            self._arm_timer(device)
            return

        if not self._is_current(device):
            _LOGGER.debug("Discarding sync result of removed device %s", device.device_id)
            return
        device.pending_task = None

        try:
            if not device.available:
                device.available = True
                _LOGGER.info("%s is reachable again", device.device_id)
                self._sink.mark_available(device.device_id)

            decision = decide(device.last_button_event, device.last_updated_at, state, self._button_map)
            if decision.kind is DecisionKind.NO_CHANGE:
                _LOGGER.debug("No new press on %s", device.device_id)
            else:
                device.record(decision.button_event, decision.last_updated)
                if decision.kind is DecisionKind.FIRST_OBSERVATION:
                    _LOGGER.debug(
                        "First reading of %s: buttonevent=%s lastupdated=%s",
                        device.device_id,
                        decision.button_event,
                        decision.last_updated,
                    )
                else:
                    _LOGGER.debug("Button %s pressed on %s", decision.label, device.device_id)
                    self._sink.emit_button_pressed(device.device_id, decision.label)
        except Exception:
            _LOGGER.exception("Failed to process reading of %s", device.device_id)

        self._arm_timer(device)

    def _arm_timer(self, device: TrackedDevice) -> None:
        device.sync_state = SyncState.WAITING
        device.pending_timer = self._schedule_timer(self._poll_interval, self._handle_timer, device)

    def _handle_timer(self, device: TrackedDevice) -> None:
        """Timer callback: start the next check."""
        if not self._is_current(device) or device.pending_timer is None:
            return
        device.pending_timer = None
        self.start(device)

    def _wait_for_bridge(self, device: TrackedDevice, err: DeviceUnreachableError) -> None:
        """Report the device unreachable and park it until its bridge returns."""
        if device.available:
            device.available = False
            _LOGGER.info(
                "%s is unreachable (%s), waiting for bridge %s",
                device.device_id,
                err.reason,
                device.bridge_id,
            )
            try:
                self._sink.mark_unavailable(device.device_id, err.reason)
            except Exception:
                _LOGGER.exception("Failed to report %s unavailable", device.device_id)
        else:
            _LOGGER.debug("%s still unreachable: %s", device.device_id, err)

        waiter = self._client.bridge_available(device.bridge_id)
        device.sync_state = SyncState.WAITING_FOR_BRIDGE
        device.pending_timer = waiter
        waiter.add_done_callback(partial(self._handle_bridge_available, device))

    def _handle_bridge_available(self, device: TrackedDevice, waiter: asyncio.Future[None]) -> None:
        """Availability callback: retry the device whose bridge came back."""
        if waiter.cancelled() or device.pending_timer is not waiter or not self._is_current(device):
            return
        device.pending_timer = None
        _LOGGER.debug("Bridge %s available, resuming %s", device.bridge_id, device.device_id)
        self.start(device)
