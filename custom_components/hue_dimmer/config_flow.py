"""Config flow for Hue Dimmer Switch integration."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import re
from typing import Any
from urllib.parse import urlparse

from homeassistant import config_entries
from homeassistant.config_entries import ConfigFlowResult
from homeassistant.core import callback
from homeassistant.data_entry_flow import AbortFlow
from homeassistant.helpers.aiohttp_client import async_get_clientsession
import voluptuous as vol

from .api import HueApiError, HueAuthError, HueBridgeApi, HueConnectionError, HueLinkButtonNotPressedError
from .const import (
    CONF_API_KEY,
    CONF_BRIDGE_ID,
    CONF_DEBUG_API,
    CONF_DEBUG_TRACKING,
    CONF_HOST,
    CONF_SCAN_INTERVAL,
    DEFAULT_DEBUG_API,
    DEFAULT_DEBUG_TRACKING,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    MAX_POLL_INTERVAL,
    MIN_POLL_INTERVAL,
)

MAX_HOST_LENGTH = 253  # Max DNS hostname length

_LOGGER = logging.getLogger(__name__)


class InvalidHostError(ValueError):
    """Exception raised when host URL is invalid."""


def normalize_host(host: str) -> str:
    """Normalize host input to a proper URL.

    Handles various input formats:
    - "192.168.1.2" -> "http://192.168.1.2"
    - "192.168.1.2:8080" -> "http://192.168.1.2:8080"
    - "http://192.168.1.2/" -> "http://192.168.1.2"
    - "http://192.168.1.2/api" -> "http://192.168.1.2"

    Raises:
        InvalidHostError: If the host URL is invalid (empty, no valid netloc, or invalid port)
    """
    host = host.strip()

    if not host:
        raise InvalidHostError("Host cannot be empty")

    if len(host) > MAX_HOST_LENGTH + 10:  # Allow extra for scheme prefix
        raise InvalidHostError("Host URL is too long")

    if not host.startswith(("http://", "https://")):
        host = f"http://{host}"

    parsed = urlparse(host)

    if not parsed.netloc:
        raise InvalidHostError("Invalid host URL: No valid host found")

    hostname = parsed.hostname or ""

    if len(hostname) > MAX_HOST_LENGTH:
        raise InvalidHostError("Hostname is too long")

    if hostname and not re.match(r"^[a-zA-Z0-9]([a-zA-Z0-9\-\.]*[a-zA-Z0-9])?$|^\d{1,3}(\.\d{1,3}){3}$", hostname):
        raise InvalidHostError("Invalid hostname format")

    try:
        port = parsed.port
    except ValueError as err:
        raise InvalidHostError(f"Invalid port number: {err}") from err
    if port is not None and port < 1:
        raise InvalidHostError(f"Invalid port number: {port}")

    return f"{parsed.scheme}://{parsed.netloc}"


STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): str,
    }
)


class HueDimmerConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Hue Dimmer Switch."""

    VERSION = 1
    MINOR_VERSION = 0

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._host: str | None = None

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> HueDimmerOptionsFlow:
        """Get the options flow for this handler."""
        return HueDimmerOptionsFlow()

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Handle the initial step - bridge address."""
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                self._host = normalize_host(user_input[CONF_HOST])
            except InvalidHostError:
                errors["base"] = "invalid_host"
            else:
                return await self.async_step_link()

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )

    async def async_step_reauth(self, entry_data: Mapping[str, Any]) -> ConfigFlowResult:
        """Handle a rejected API key by linking the bridge again."""
        self._host = entry_data[CONF_HOST]
        return await self.async_step_link()

    async def async_step_link(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Create an API user once the bridge link button was pressed."""
        errors: dict[str, str] = {}

        if user_input is not None and self._host is not None:
            api = HueBridgeApi(host=self._host, session=async_get_clientsession(self.hass))
            try:
                api_key = await api.async_create_user()
                bridge_config = await api.async_get_config()
                bridge_id = str(bridge_config["bridgeid"]).lower()

                await self.async_set_unique_id(bridge_id)
                if self.source == config_entries.SOURCE_REAUTH:
                    self._abort_if_unique_id_mismatch()
                    return self.async_update_reload_and_abort(
                        self._get_reauth_entry(),
                        data_updates={CONF_API_KEY: api_key},
                    )
                self._abort_if_unique_id_configured(updates={CONF_HOST: self._host})

                return self.async_create_entry(
                    title=bridge_config.get("name") or f"Hue Bridge ({self._host})",
                    data={
                        CONF_HOST: self._host,
                        CONF_API_KEY: api_key,
                        CONF_BRIDGE_ID: bridge_id,
                    },
                )
            except HueLinkButtonNotPressedError:
                errors["base"] = "link_button_not_pressed"
            except HueAuthError:
                errors["base"] = "invalid_auth"
            except HueConnectionError:
                errors["base"] = "cannot_connect"
            except (HueApiError, KeyError):
                errors["base"] = "cannot_connect"
            except AbortFlow:
                raise  # Re-raise flow control exceptions
            except Exception as ex:  # pylint: disable=broad-except
                _LOGGER.exception("Unexpected exception: %s", ex)
                errors["base"] = "unknown"

        return self.async_show_form(
            step_id="link",
            errors=errors,
            description_placeholders={"host": self._host or ""},
        )


class HueDimmerOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow for Hue Dimmer Switch."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Manage the options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_SCAN_INTERVAL, default=options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)
                    ): vol.All(vol.Coerce(int), vol.Range(min=MIN_POLL_INTERVAL, max=MAX_POLL_INTERVAL)),
                    vol.Required(CONF_DEBUG_API, default=options.get(CONF_DEBUG_API, DEFAULT_DEBUG_API)): bool,
                    vol.Required(
                        CONF_DEBUG_TRACKING, default=options.get(CONF_DEBUG_TRACKING, DEFAULT_DEBUG_TRACKING)
                    ): bool,
                }
            ),
        )
