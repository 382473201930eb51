"""The Hue Dimmer Switch integration."""

from __future__ import annotations

from collections.abc import Coroutine
from datetime import datetime, timedelta
import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryAuthFailed, ConfigEntryNotReady
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.event import async_track_time_interval

from .api import HueApiError, HueAuthError, HueBridgeApi
from .bridge import HueBridgeHub
from .const import (
    CONF_API_KEY,
    CONF_BRIDGE_ID,
    CONF_DEBUG_API,
    CONF_DEBUG_TRACKING,
    CONF_HOST,
    CONF_REMOVED_DIMMERS,
    CONF_SCAN_INTERVAL,
    DEFAULT_DEBUG_API,
    DEFAULT_DEBUG_TRACKING,
    DEFAULT_SCAN_INTERVAL,
    DISCOVERY_INTERVAL,
    DOMAIN,
    SIGNAL_NEW_DIMMERS,
)
from .sink import HueDimmerEventSink
from .tracking import DeviceRegistry

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.EVENT]


def _apply_debug_logging(entry: ConfigEntry) -> None:
    """Apply debug logging settings from config entry options.

    Changes take effect immediately without requiring a restart.
    """
    debug_api = entry.options.get(CONF_DEBUG_API, DEFAULT_DEBUG_API)
    debug_tracking = entry.options.get(CONF_DEBUG_TRACKING, DEFAULT_DEBUG_TRACKING)

    # Bridge HTTP traffic (custom_components.hue_dimmer.api)
    logging.getLogger(f"{__name__}.api").setLevel(logging.DEBUG if debug_api else logging.INFO)

    # Sync cycles and press detection (custom_components.hue_dimmer.tracking)
    logging.getLogger(f"{__name__}.tracking").setLevel(logging.DEBUG if debug_tracking else logging.INFO)

    _LOGGER.info(
        "Debug logging: API=%s, Tracking=%s",
        "DEBUG" if debug_api else "INFO",
        "DEBUG" if debug_tracking else "INFO",
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a Hue bridge's dimmer switches from a config entry."""
    hass.data.setdefault(DOMAIN, {})
    bridge_id: str = entry.data[CONF_BRIDGE_ID]

    api = HueBridgeApi(
        host=entry.data[CONF_HOST],
        api_key=entry.data[CONF_API_KEY],
        session=async_get_clientsession(hass),
    )

    # List the supported dimmers; this also verifies the bridge and API key
    try:
        dimmers = await api.async_list_dimmer_switches()
    except HueAuthError as err:
        raise ConfigEntryAuthFailed(f"API key rejected by bridge {bridge_id}") from err
    except HueApiError as err:
        raise ConfigEntryNotReady(f"Failed to connect to Hue bridge {bridge_id}: {err}") from err

    removed = set(entry.data.get(CONF_REMOVED_DIMMERS, []))
    dimmers = [dimmer for dimmer in dimmers if dimmer["id"] not in removed]

    def _create_check_task(coro: Coroutine[Any, Any, None]) -> Any:
        return entry.async_create_task(hass, coro, f"{DOMAIN}_sync_{bridge_id}", eager_start=False)

    def _create_probe_task(coro: Coroutine[Any, Any, None]) -> Any:
        # Runs until the bridge answers, so it must not block startup
        return entry.async_create_background_task(hass, coro, f"{DOMAIN}_probe_{bridge_id}", eager_start=False)

    hub = HueBridgeHub(create_task=_create_probe_task)
    hub.add_bridge(bridge_id, api)
    sink = HueDimmerEventSink(hass)
    registry = DeviceRegistry(
        hub,
        sink,
        schedule_timer=hass.loop.call_later,
        create_task=_create_check_task,
        poll_interval=entry.options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
    )

    hass.data[DOMAIN][entry.entry_id] = {
        "api": api,
        "hub": hub,
        "sink": sink,
        "registry": registry,
        "dimmers": dimmers,
    }

    _apply_debug_logging(entry)

    # Bridge device that the dimmers reference via via_device
    device_registry = dr.async_get(hass)
    device_registry.async_get_or_create(
        config_entry_id=entry.entry_id,
        identifiers={(DOMAIN, bridge_id)},
        name=entry.title,
        manufacturer="Signify",
        model="Hue Bridge",
        configuration_url=entry.data[CONF_HOST],
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Entities are listening now; start a sync cycle per dimmer
    for dimmer in dimmers:
        sink.set_device_name(dimmer["id"], dimmer["name"])
        registry.register(dimmer["id"], bridge_id, name=dimmer["name"], model_id=dimmer["model_id"])
    _LOGGER.info("Tracking %d dimmer switches on bridge %s", len(dimmers), bridge_id)

    async def _async_discover(_now: datetime) -> None:
        await _async_add_new_dimmers(hass, entry)

    entry.async_on_unload(
        async_track_time_interval(
            hass, _async_discover, timedelta(seconds=DISCOVERY_INTERVAL), name=f"{DOMAIN}_discovery_{bridge_id}"
        )
    )
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    return True


async def _async_add_new_dimmers(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Re-list the bridge and start tracking dimmers paired since setup."""
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if entry_data is None:
        return

    try:
        listed = await entry_data["api"].async_list_dimmer_switches()
    except HueApiError as err:
        _LOGGER.debug("Dimmer discovery on bridge %s failed: %s", entry.data[CONF_BRIDGE_ID], err)
        return

    removed = set(entry.data.get(CONF_REMOVED_DIMMERS, []))
    known = {dimmer["id"] for dimmer in entry_data["dimmers"]}
    new_dimmers = [dimmer for dimmer in listed if dimmer["id"] not in known and dimmer["id"] not in removed]
    if not new_dimmers:
        return

    sink: HueDimmerEventSink = entry_data["sink"]
    registry: DeviceRegistry = entry_data["registry"]
    entry_data["dimmers"].extend(new_dimmers)
    async_dispatcher_send(hass, f"{SIGNAL_NEW_DIMMERS}_{entry.entry_id}", new_dimmers)
    for dimmer in new_dimmers:
        sink.set_device_name(dimmer["id"], dimmer["name"])
        registry.register(
            dimmer["id"], entry.data[CONF_BRIDGE_ID], name=dimmer["name"], model_id=dimmer["model_id"]
        )
    _LOGGER.info("Tracking %d newly paired dimmer switches", len(new_dimmers))


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle entry updates.

    Debug logging is applied instantly. Only a new poll interval needs a full
    reload, which restarts every sync cycle.
    """
    _apply_debug_logging(entry)
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    scan_interval = entry.options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)
    if entry_data and entry_data["registry"].scheduler.poll_interval == scan_interval:
        return
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    # Stop tracking first so no press fires into unloading entities
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if entry_data:
        await entry_data["registry"].async_shutdown()
        await entry_data["hub"].async_shutdown()

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok and entry_data:
        hass.data[DOMAIN].pop(entry.entry_id)
        await entry_data["api"].close()

    return unload_ok


async def async_remove_config_entry_device(
    hass: HomeAssistant,
    entry: ConfigEntry,
    device_entry: dr.DeviceEntry,
) -> bool:
    """Stop tracking a dimmer the user deleted, for good.

    The uniqueid is remembered in the entry data so neither a reload nor
    discovery brings the dimmer back. The bridge device cannot be removed.
    """
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    dimmer_ids = [identifier[1] for identifier in device_entry.identifiers if identifier[0] == DOMAIN]
    if entry.data[CONF_BRIDGE_ID] in dimmer_ids:
        return False

    removed: list[str] = list(entry.data.get(CONF_REMOVED_DIMMERS, []))
    for dimmer_id in dimmer_ids:
        if dimmer_id not in removed:
            removed.append(dimmer_id)
        if entry_data:
            entry_data["registry"].unregister(dimmer_id)
            entry_data["dimmers"] = [dimmer for dimmer in entry_data["dimmers"] if dimmer["id"] != dimmer_id]
        _LOGGER.info("Stopped tracking removed dimmer %s", dimmer_id)

    hass.config_entries.async_update_entry(entry, data={**entry.data, CONF_REMOVED_DIMMERS: removed})
    return True
