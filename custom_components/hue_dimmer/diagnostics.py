"""Diagnostics support for Hue Dimmer Switch integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_API_KEY, CONF_HOST, DOMAIN

TO_REDACT = {CONF_API_KEY, CONF_HOST}


async def async_get_config_entry_diagnostics(hass: HomeAssistant, entry: ConfigEntry) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id, {})
    registry = entry_data.get("registry")
    if not registry:
        return {"error": "Integration not fully loaded"}

    hub = entry_data["hub"]
    tracked = []
    for device_id in sorted(registry.devices):
        device = registry.get(device_id)
        if device is not None:
            tracked.append(device.as_dict())

    return {
        "entry": {
            "entry_id": entry.entry_id,
            "version": entry.version,
            "domain": entry.domain,
            "title": entry.title,
            "data": async_redact_data(dict(entry.data), TO_REDACT),
            "options": dict(entry.options),
        },
        "tracking": {
            "poll_interval": registry.scheduler.poll_interval,
            "device_count": len(registry),
            "bridge_waiting": {
                bridge_id: hub.is_waiting(bridge_id) for bridge_id in {device["bridge_id"] for device in tracked}
            },
        },
        "devices": tracked,
    }
