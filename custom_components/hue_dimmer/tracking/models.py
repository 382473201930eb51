"""Types shared by the dimmer tracking core.

Nothing in this package depends on the Home Assistant framework: the bridge
client and the event sink are passed in as collaborators matching the
protocols below.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ..const import REASON_BRIDGE_UNAVAILABLE, REASON_DEVICE_UNAVAILABLE


class DeviceUnreachableError(Exception):
    """Base exception for a device whose state could not be fetched."""

    reason = REASON_DEVICE_UNAVAILABLE


class BridgeUnavailableError(DeviceUnreachableError):
    """The owning bridge is unknown or cannot be reached."""

    reason = REASON_BRIDGE_UNAVAILABLE


class DeviceUnavailableError(DeviceUnreachableError):
    """The bridge answered but the device is missing or unreachable."""

    reason = REASON_DEVICE_UNAVAILABLE


class SyncState(Enum):
    """Sync cycle state of one tracked device."""

    IDLE = "idle"
    CHECKING = "checking"
    WAITING = "waiting"
    WAITING_FOR_BRIDGE = "waiting_for_bridge"


class DecisionKind(Enum):
    """Outcome of comparing a fresh reading with the stored one."""

    NO_CHANGE = "no_change"
    FIRST_OBSERVATION = "first_observation"
    NEW_PRESS = "new_press"


@dataclass(frozen=True)
class DeviceState:
    """Raw button state as reported by the bridge."""

    button_event: str
    last_updated: str

    @classmethod
    def from_sensor(cls, sensor: dict[str, Any]) -> DeviceState:
        """Build a state from a Hue sensor payload.

        A dimmer that was never pressed reports ``buttonevent: null``; that is
        normalized to an empty code so the first real press reads as a change.
        """
        state = sensor.get("state") or {}
        button_event = state.get("buttonevent")
        return cls(
            button_event="" if button_event is None else str(button_event),
            last_updated=str(state.get("lastupdated")),
        )


@dataclass(frozen=True)
class Decision:
    """Result of the change detector for one reading."""

    kind: DecisionKind
    button_event: str
    last_updated: str
    label: str | None = None


@dataclass(eq=False)
class TrackedDevice:
    """A dimmer switch being polled, plus its last-known sync state."""

    device_id: str
    bridge_id: str
    name: str | None = None
    model_id: str | None = None
    last_button_event: str | None = None
    last_updated_at: str | None = None
    sync_state: SyncState = SyncState.IDLE
    available: bool = True
    pending_timer: asyncio.TimerHandle | asyncio.Future[None] | None = field(default=None, repr=False)
    pending_task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def has_observation(self) -> bool:
        """Return True once a reading has been recorded."""
        return self.last_updated_at is not None

    def record(self, button_event: str, last_updated: str) -> None:
        """Store a reading; button and timestamp always change together."""
        self.last_button_event = button_event
        self.last_updated_at = last_updated

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly snapshot for diagnostics."""
        return {
            "device_id": self.device_id,
            "bridge_id": self.bridge_id,
            "name": self.name,
            "model_id": self.model_id,
            "last_button_event": self.last_button_event,
            "last_updated_at": self.last_updated_at,
            "sync_state": self.sync_state.value,
            "available": self.available,
            "has_pending_timer": self.pending_timer is not None,
        }


class BridgeClient(Protocol):
    """Source of device state for the sync cycle."""

    async def async_fetch_state(self, bridge_id: str, device_id: str) -> DeviceState:
        """Return the current state or raise a DeviceUnreachableError subclass."""
        ...

    def bridge_available(self, bridge_id: str) -> asyncio.Future[None]:
        """Return a one-shot future resolved when the bridge is reachable again."""
        ...


class EventSink(Protocol):
    """Receiver of press events and availability changes."""

    def emit_button_pressed(self, device_id: str, label: str) -> None: ...

    def mark_unavailable(self, device_id: str, reason: str) -> None: ...

    def mark_available(self, device_id: str) -> None: ...
