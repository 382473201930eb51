"""Device triggers for Hue Dimmer Switch integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.device_automation import DEVICE_TRIGGER_BASE_SCHEMA
from homeassistant.components.homeassistant.triggers import event as event_trigger
from homeassistant.const import CONF_DEVICE_ID, CONF_DOMAIN, CONF_PLATFORM, CONF_TYPE
from homeassistant.core import CALLBACK_TYPE, HomeAssistant
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.trigger import TriggerActionType, TriggerInfo
from homeassistant.helpers.typing import ConfigType
import voluptuous as vol

from .const import BUTTON_LABELS, DOMAIN, EVENT_BUTTON_PRESSED

# One trigger type per button; the type is the emitted button label
TRIGGER_TYPES = set(BUTTON_LABELS)

TRIGGER_SCHEMA = DEVICE_TRIGGER_BASE_SCHEMA.extend(
    {
        vol.Required(CONF_TYPE): vol.In(TRIGGER_TYPES),
    }
)


def _get_dimmer_id(hass: HomeAssistant, device: dr.DeviceEntry) -> str | None:
    """Return the uniqueid of a tracked dimmer behind a device entry."""
    for identifier in device.identifiers:
        if identifier[0] != DOMAIN:
            continue
        for entry_id in device.config_entries:
            entry_data = hass.data.get(DOMAIN, {}).get(entry_id)
            if entry_data and identifier[1] in entry_data["registry"]:
                return identifier[1]
    return None


async def async_get_triggers(hass: HomeAssistant, device_id: str) -> list[dict[str, Any]]:
    """Return a list of triggers for a device."""
    device_registry = dr.async_get(hass)
    device = device_registry.async_get(device_id)

    if device is None or _get_dimmer_id(hass, device) is None:
        return []

    return [
        {
            CONF_PLATFORM: "device",
            CONF_DOMAIN: DOMAIN,
            CONF_DEVICE_ID: device_id,
            CONF_TYPE: button,
        }
        for button in BUTTON_LABELS
    ]


async def async_attach_trigger(
    hass: HomeAssistant,
    config: ConfigType,
    action: TriggerActionType,
    trigger_info: TriggerInfo,
) -> CALLBACK_TYPE:
    """Attach a trigger."""
    device_registry = dr.async_get(hass)
    device = device_registry.async_get(config[CONF_DEVICE_ID])

    if device is None:
        return lambda: None

    # The bus event carries the dimmer's uniqueid, taken from the device identifiers
    dimmer_id = None
    for identifier in device.identifiers:
        if identifier[0] == DOMAIN:
            dimmer_id = identifier[1]
            break

    if dimmer_id is None or config[CONF_TYPE] not in TRIGGER_TYPES:
        return lambda: None

    event_config = event_trigger.TRIGGER_SCHEMA(
        {
            event_trigger.CONF_PLATFORM: "event",
            event_trigger.CONF_EVENT_TYPE: EVENT_BUTTON_PRESSED,
            event_trigger.CONF_EVENT_DATA: {
                "device_id": dimmer_id,
                "button": config[CONF_TYPE],
            },
        }
    )

    return await event_trigger.async_attach_trigger(hass, event_config, action, trigger_info, platform_type="device")


async def async_get_trigger_capabilities(hass: HomeAssistant, config: ConfigType) -> dict[str, vol.Schema]:
    """Return trigger capabilities."""
    return {}
