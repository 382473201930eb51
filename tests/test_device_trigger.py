"""Tests for Hue Dimmer Switch device triggers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import voluptuous as vol

from custom_components.hue_dimmer.const import BUTTON_LABELS
from custom_components.hue_dimmer.device_trigger import TRIGGER_SCHEMA, TRIGGER_TYPES

from tests.conftest import DIMMER_1, TEST_BRIDGE_ID, requires_ha_test_framework


class TestDeviceTriggerConstants:
    """Test device trigger constants."""

    def test_one_trigger_per_button(self):
        """Test every button label is a trigger type."""
        assert TRIGGER_TYPES == set(BUTTON_LABELS)

    def test_schema_rejects_unknown_type(self):
        """Test the unknown label cannot be used as a trigger."""
        with pytest.raises(vol.Invalid):
            TRIGGER_SCHEMA(
                {
                    "platform": "device",
                    "domain": "hue_dimmer",
                    "device_id": "abc",
                    "type": "unknown",
                }
            )


@requires_ha_test_framework
class TestDeviceTriggerIntegration:
    """Integration tests for device triggers."""

    @pytest.mark.asyncio
    async def test_get_triggers_no_device(self, hass):
        """Test getting triggers for non-existent device."""
        from custom_components.hue_dimmer.device_trigger import async_get_triggers

        assert await async_get_triggers(hass, "non_existent_device_id") == []

    @pytest.mark.asyncio
    async def test_get_triggers_for_dimmer(self, hass, mock_config_entry, mock_api_class):
        """Test a tracked dimmer offers one trigger per button and the bridge none."""
        from homeassistant.helpers import device_registry as dr

        from custom_components.hue_dimmer.device_trigger import async_get_triggers

        mock_config_entry.add_to_hass(hass)
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

        device_registry = dr.async_get(hass)
        dimmer = device_registry.async_get_device(identifiers={("hue_dimmer", DIMMER_1)})
        bridge = device_registry.async_get_device(identifiers={("hue_dimmer", TEST_BRIDGE_ID)})

        triggers = await async_get_triggers(hass, dimmer.id)
        assert sorted(trigger["type"] for trigger in triggers) == sorted(BUTTON_LABELS)
        assert all(trigger["device_id"] == dimmer.id for trigger in triggers)
        assert await async_get_triggers(hass, bridge.id) == []

        assert await hass.config_entries.async_unload(mock_config_entry.entry_id)

    @pytest.mark.asyncio
    async def test_get_trigger_capabilities(self, hass):
        """Test getting trigger capabilities returns empty dict."""
        from custom_components.hue_dimmer.device_trigger import async_get_trigger_capabilities

        assert await async_get_trigger_capabilities(hass, {}) == {}

    @pytest.mark.asyncio
    async def test_attach_trigger_no_device(self, hass):
        """Test attaching trigger for non-existent device returns no-op."""
        from homeassistant.const import CONF_DEVICE_ID

        from custom_components.hue_dimmer.device_trigger import async_attach_trigger

        config = {CONF_DEVICE_ID: "non_existent_device_id", "type": "on"}
        unsubscribe = await async_attach_trigger(hass, config, AsyncMock(), {"trigger_id": "test"})

        assert callable(unsubscribe)
        unsubscribe()

    @pytest.mark.asyncio
    async def test_attached_trigger_matches_button(self, hass, mock_config_entry, mock_api_class):
        """Test an attached trigger fires only for its dimmer and button."""
        from homeassistant.helpers import device_registry as dr

        from custom_components.hue_dimmer.device_trigger import async_attach_trigger

        mock_config_entry.add_to_hass(hass)
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

        dimmer = dr.async_get(hass).async_get_device(identifiers={("hue_dimmer", DIMMER_1)})
        action = MagicMock()
        trigger_info = {
            "domain": "automation",
            "name": "test",
            "home_assistant_start": False,
            "variables": {},
            "trigger_data": {"id": "0", "idx": "0", "alias": None},
        }
        config = {"platform": "device", "domain": "hue_dimmer", "device_id": dimmer.id, "type": "off"}

        unsubscribe = await async_attach_trigger(hass, config, action, trigger_info)

        hass.bus.async_fire("hue_dimmer_button_pressed", {"device_id": DIMMER_1, "button": "on"})
        hass.bus.async_fire("hue_dimmer_button_pressed", {"device_id": "other", "button": "off"})
        hass.bus.async_fire("hue_dimmer_button_pressed", {"device_id": DIMMER_1, "button": "off", "name": "x"})
        await hass.async_block_till_done()

        assert action.call_count == 1
        unsubscribe()
        assert await hass.config_entries.async_unload(mock_config_entry.entry_id)
