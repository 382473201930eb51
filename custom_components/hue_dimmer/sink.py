"""Event sink forwarding dimmer presses to Home Assistant."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback

from .const import EVENT_BUTTON_PRESSED

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimmerUpdate:
    """Notification delivered to the listeners of one dimmer."""

    available: bool
    label: str | None = None
    reason: str | None = None


DimmerListener = Callable[[DimmerUpdate], None]


class HueDimmerEventSink:
    """Fires bus events for presses and notifies the dimmer's entities."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the sink."""
        self.hass = hass
        self._listeners: dict[str, list[DimmerListener]] = {}
        self._names: dict[str, str] = {}

    def set_device_name(self, device_id: str, name: str) -> None:
        """Set the name reported in bus events for a dimmer."""
        self._names[device_id] = name

    @callback
    def async_add_listener(self, device_id: str, listener: DimmerListener) -> CALLBACK_TYPE:
        """Listen for updates of one dimmer. Returns a function to remove the listener."""
        self._listeners.setdefault(device_id, []).append(listener)

        @callback
        def remove_listener() -> None:
            listeners = self._listeners.get(device_id)
            if listeners and listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(device_id, None)

        return remove_listener

    def _notify(self, device_id: str, update: DimmerUpdate) -> None:
        for listener in list(self._listeners.get(device_id, [])):
            listener(update)

    @callback
    def emit_button_pressed(self, device_id: str, label: str) -> None:
        """Fire the press event on the bus and notify listeners."""
        self.hass.bus.async_fire(
            EVENT_BUTTON_PRESSED,
            {
                "device_id": device_id,
                "button": label,
                "name": self._names.get(device_id, device_id),
            },
        )
        _LOGGER.debug("Fired %s for %s: %s", EVENT_BUTTON_PRESSED, device_id, label)
        self._notify(device_id, DimmerUpdate(available=True, label=label))

    @callback
    def mark_unavailable(self, device_id: str, reason: str) -> None:
        """Report a dimmer as unreachable."""
        _LOGGER.debug("Marking %s unavailable: %s", device_id, reason)
        self._notify(device_id, DimmerUpdate(available=False, reason=reason))

    @callback
    def mark_available(self, device_id: str) -> None:
        """Report a dimmer as reachable again."""
        _LOGGER.debug("Marking %s available", device_id)
        self._notify(device_id, DimmerUpdate(available=True))
