"""Event platform for Hue Dimmer Switch integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.event import EventDeviceClass, EventEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import BUTTON_LABELS, BUTTON_UNKNOWN, CONF_BRIDGE_ID, DOMAIN, SIGNAL_NEW_DIMMERS
from .sink import DimmerUpdate, HueDimmerEventSink


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Hue dimmer event entities from a config entry."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    sink: HueDimmerEventSink = entry_data["sink"]

    entities = [HueDimmerButtonEvent(sink, dimmer, entry) for dimmer in entry_data["dimmers"]]
    if entities:
        async_add_entities(entities)

    @callback
    def _async_add_new_dimmers(dimmers: list[dict[str, Any]]) -> None:
        async_add_entities([HueDimmerButtonEvent(sink, dimmer, entry) for dimmer in dimmers])

    entry.async_on_unload(
        async_dispatcher_connect(hass, f"{SIGNAL_NEW_DIMMERS}_{entry.entry_id}", _async_add_new_dimmers)
    )


class HueDimmerButtonEvent(EventEntity):
    """Event entity for Hue Dimmer Switch button presses."""

    _attr_device_class = EventDeviceClass.BUTTON
    _attr_event_types = [*BUTTON_LABELS, BUTTON_UNKNOWN]
    _attr_translation_key = "button"
    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self,
        sink: HueDimmerEventSink,
        dimmer: dict[str, Any],
        entry: ConfigEntry,
    ) -> None:
        """Initialize the event entity."""
        self._sink = sink
        self._device_id: str = dimmer["id"]
        self._device_name: str = dimmer["name"]
        self._model_id: str | None = dimmer.get("model_id")
        self._entry = entry
        self._attr_unique_id = f"hue_dimmer_button_{self._device_id}"
        self._last_unavailable_reason: str | None = None

    @property
    def event_types(self) -> list[str]:
        """Return supported event types."""
        return [*BUTTON_LABELS, BUTTON_UNKNOWN]

    @property
    def unique_id(self) -> str:
        """Return unique ID."""
        return self._attr_unique_id

    @property
    def device_info(self) -> DeviceInfo:
        """Return device info."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._device_id)},
            name=self._device_name,
            manufacturer="Signify",
            model=self._model_id or "Dimmer switch",
            via_device=(DOMAIN, self._entry.data[CONF_BRIDGE_ID]),
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the uniqueid and, when unreachable, why."""
        attrs: dict[str, Any] = {"hue_uniqueid": self._device_id}
        if self._last_unavailable_reason:
            attrs["unavailable_reason"] = self._last_unavailable_reason
        return attrs

    async def async_added_to_hass(self) -> None:
        """Subscribe to updates of this dimmer."""
        await super().async_added_to_hass()
        self.async_on_remove(self._sink.async_add_listener(self._device_id, self._handle_dimmer_update))

    @callback
    def _handle_dimmer_update(self, update: DimmerUpdate) -> None:
        """Handle a press or availability change from the tracker."""
        self._attr_available = update.available
        self._last_unavailable_reason = None if update.available else update.reason
        if update.label is not None:
            self._trigger_event(update.label)
        self.async_write_ha_state()
