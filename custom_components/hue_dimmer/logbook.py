"""Logbook support for Hue Dimmer Switch integration."""

from __future__ import annotations

from collections.abc import Callable

from homeassistant.components.logbook import LOGBOOK_ENTRY_MESSAGE, LOGBOOK_ENTRY_NAME
from homeassistant.core import Event, HomeAssistant, callback

from .const import (
    BUTTON_DECREASE_BRIGHTNESS,
    BUTTON_INCREASE_BRIGHTNESS,
    BUTTON_OFF,
    BUTTON_ON,
    DOMAIN,
    EVENT_BUTTON_PRESSED,
)

BUTTON_TO_MESSAGE = {
    BUTTON_ON: "pressed the On button",
    BUTTON_OFF: "pressed the Off button",
    BUTTON_INCREASE_BRIGHTNESS: "pressed the Brighten button",
    BUTTON_DECREASE_BRIGHTNESS: "pressed the Dim button",
}


@callback
def async_describe_events(
    hass: HomeAssistant,
    async_describe_event: Callable[[str, str, Callable[[Event], dict[str, str]]], None],
) -> None:
    """Describe logbook events."""

    @callback
    def async_describe_button_event(event: Event) -> dict[str, str]:
        """Describe a dimmer press in the logbook."""
        data = event.data
        device_name = data.get("name", "Unknown dimmer")
        button = data.get("button", "unknown")

        message = BUTTON_TO_MESSAGE.get(button, f"pressed an unknown button ({button})")

        return {
            LOGBOOK_ENTRY_NAME: device_name,
            LOGBOOK_ENTRY_MESSAGE: message,
        }

    async_describe_event(DOMAIN, EVENT_BUTTON_PRESSED, async_describe_button_event)
