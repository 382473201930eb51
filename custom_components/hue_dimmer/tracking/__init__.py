"""Button press tracking for polled Hue dimmer switches."""

from __future__ import annotations

from .change_detector import decide, resolve_label
from .models import (
    BridgeClient,
    BridgeUnavailableError,
    Decision,
    DecisionKind,
    DeviceState,
    DeviceUnavailableError,
    DeviceUnreachableError,
    EventSink,
    SyncState,
    TrackedDevice,
)
from .registry import DeviceRegistry
from .scheduler import SyncScheduler

__all__ = [
    "BridgeClient",
    "BridgeUnavailableError",
    "Decision",
    "DecisionKind",
    "DeviceRegistry",
    "DeviceState",
    "DeviceUnavailableError",
    "DeviceUnreachableError",
    "EventSink",
    "SyncScheduler",
    "SyncState",
    "TrackedDevice",
    "decide",
    "resolve_label",
]
