"""Hue bridge REST API client (v1 API, sensors only)."""

from __future__ import annotations

import logging
import re
from typing import Any

import aiohttp
from homeassistant.exceptions import HomeAssistantError

from .const import (
    DEFAULT_DEVICE_TYPE,
    DEFAULT_REQUEST_TIMEOUT,
    HUE_ERROR_LINK_BUTTON,
    HUE_ERROR_RESOURCE_NOT_AVAILABLE,
    HUE_ERROR_UNAUTHORIZED,
    SUPPORTED_MODELS,
)

_LOGGER = logging.getLogger(__name__)

# Validation pattern for sensor IDs (numeric on the v1 API)
SENSOR_ID_PATTERN = re.compile(r"^[0-9]+$")

# Number of characters of the API key kept in log output
API_KEY_LOG_CHARS = 4


def _redact_key(api_key: str) -> str:
    """Redact the API key for safe logging."""
    if len(api_key) <= API_KEY_LOG_CHARS:
        return "**REDACTED**"
    return f"{api_key[:API_KEY_LOG_CHARS]}**REDACTED**"


def _validate_sensor_id(sensor_id: str) -> None:
    """Validate sensor ID format to prevent path traversal.

    Raises:
        ValueError: If the sensor ID is not numeric
    """
    if not sensor_id or not SENSOR_ID_PATTERN.match(sensor_id):
        raise ValueError(f"Invalid sensor ID format: {sensor_id!r}")


class HueApiError(HomeAssistantError):
    """Exception for Hue bridge API errors."""


class HueAuthError(HueApiError):
    """Exception for an unknown or revoked API key."""


class HueConnectionError(HueApiError):
    """Exception for connection errors."""


class HueLinkButtonNotPressedError(HueApiError):
    """Exception raised when creating a user without pressing the link button."""


class HueResourceNotFoundError(HueApiError):
    """Exception raised when a sensor does not exist on the bridge."""


def _raise_for_hue_error(result: Any) -> None:
    """Raise for Hue error payloads.

    The bridge reports errors with HTTP 200 and a body like
    ``[{"error": {"type": 1, "address": "/", "description": "unauthorized user"}}]``.
    """
    if not isinstance(result, list):
        return
    for item in result:
        if not isinstance(item, dict) or "error" not in item:
            continue
        error = item["error"]
        error_type = error.get("type")
        description = error.get("description", "unknown error")
        if error_type == HUE_ERROR_UNAUTHORIZED:
            raise HueAuthError(f"Unauthorized: {description}")
        if error_type == HUE_ERROR_LINK_BUTTON:
            raise HueLinkButtonNotPressedError(description)
        if error_type == HUE_ERROR_RESOURCE_NOT_AVAILABLE:
            raise HueResourceNotFoundError(description)
        raise HueApiError(f"Bridge error {error_type}: {description}")


class HueBridgeApi:
    """Hue bridge API client."""

    def __init__(
        self,
        host: str,
        session: aiohttp.ClientSession,
        api_key: str | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            host: The bridge URL (e.g., http://192.168.1.2)
            session: The shared aiohttp session
            api_key: The whitelisted API username; None until linked
        """
        self._host = host.rstrip("/")
        self._api_key = api_key
        self._session = session

    @property
    def host(self) -> str:
        """Return the bridge URL."""
        return self._host

    async def close(self) -> None:
        """Forget the API key; the shared session stays open."""
        self._api_key = None

    async def _request(self, method: str, path: str, data: Any | None = None) -> Any:
        """Make a request against ``/api<path>`` and return the decoded JSON."""
        url = f"{self._host}/api{path}"

        try:
            timeout = aiohttp.ClientTimeout(total=DEFAULT_REQUEST_TIMEOUT)
            async with self._session.request(method, url, json=data, timeout=timeout) as response:
                reason = response.reason or "Unknown"
                if response.status == 404:
                    raise HueResourceNotFoundError(f"Resource not found ({reason})")
                if response.status in (500, 502, 503, 504):
                    raise HueConnectionError(
                        f"Server error ({response.status} {reason}) - bridge may be temporarily unavailable"
                    )
                if response.status != 200:
                    raise HueApiError(f"API request failed: {response.status} {reason}")

                try:
                    # Older bridge firmware answers with text/html content types
                    result = await response.json(content_type=None)
                except ValueError as err:
                    raise HueApiError(f"Invalid JSON response: {err}") from err

        except aiohttp.ClientError as err:
            raise HueConnectionError(f"Connection error: {err}") from err
        except TimeoutError as err:
            raise HueConnectionError(f"Request to {self._host} timed out") from err

        _raise_for_hue_error(result)
        return result

    def _user_path(self, path: str) -> str:
        if not self._api_key:
            raise HueAuthError("No API key configured")
        return f"/{self._api_key}{path}"

    async def async_create_user(self, device_type: str = DEFAULT_DEVICE_TYPE) -> str:
        """Create an API user; the bridge link button must have been pressed.

        Returns:
            The new API key, which is also used for subsequent requests.

        Raises:
            HueLinkButtonNotPressedError: If the link button was not pressed.
        """
        result = await self._request("POST", "", {"devicetype": device_type})
        try:
            api_key = result[0]["success"]["username"]
        except (IndexError, KeyError, TypeError) as err:
            raise HueApiError(f"Unexpected create user response: {result!r}") from err
        self._api_key = api_key
        _LOGGER.debug("Created API user %s", _redact_key(api_key))
        return api_key

    async def async_get_config(self) -> dict[str, Any]:
        """Get the bridge configuration (bridgeid, name, modelid, ...)."""
        result = await self._request("GET", self._user_path("/config"))
        if not isinstance(result, dict):
            raise HueApiError("Unexpected config response")
        return result

    async def async_get_sensors(self) -> dict[str, dict[str, Any]]:
        """Get all sensors keyed by sensor ID."""
        result = await self._request("GET", self._user_path("/sensors"))
        if not isinstance(result, dict):
            raise HueApiError("Unexpected sensors response")
        return result

    async def async_get_sensor(self, sensor_id: str) -> dict[str, Any]:
        """Get a single sensor."""
        _validate_sensor_id(sensor_id)
        result = await self._request("GET", self._user_path(f"/sensors/{sensor_id}"))
        if not isinstance(result, dict):
            raise HueApiError(f"Unexpected response for sensor {sensor_id}")
        return result

    async def async_list_dimmer_switches(self) -> list[dict[str, Any]]:
        """List the dimmer switches of supported models.

        Returns:
            One dict per dimmer with ``id`` (uniqueid), ``sensor_id``, ``name``
            and ``model_id``.
        """
        sensors = await self.async_get_sensors()
        result = []
        for sensor_id, sensor in sensors.items():
            if sensor.get("modelid") not in SUPPORTED_MODELS:
                continue
            unique_id = sensor.get("uniqueid")
            if not unique_id:
                continue
            result.append(
                {
                    "id": unique_id,
                    "sensor_id": sensor_id,
                    "name": sensor.get("name") or unique_id,
                    "model_id": sensor["modelid"],
                }
            )
        _LOGGER.debug("Found %d dimmer switches out of %d sensors", len(result), len(sensors))
        return result

