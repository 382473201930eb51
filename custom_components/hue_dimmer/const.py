"""Constants for the Hue Dimmer Switch integration."""

DOMAIN = "hue_dimmer"

# Configuration keys
CONF_HOST = "host"
CONF_API_KEY = "api_key"
CONF_BRIDGE_ID = "bridge_id"
CONF_SCAN_INTERVAL = "scan_interval"
CONF_REMOVED_DIMMERS = "removed_dimmers"  # uniqueids the user deleted; never tracked again

# Default values
DEFAULT_SCAN_INTERVAL = 5  # seconds between sync cycles of one dimmer
DISCOVERY_INTERVAL = 300  # seconds between re-listing the bridge for newly paired dimmers
DEFAULT_REQUEST_TIMEOUT = 10  # seconds (for bridge requests)
DEFAULT_DEVICE_TYPE = "home_assistant#hue_dimmer"  # devicetype sent when creating the API user

# Poll interval range (seconds)
MIN_POLL_INTERVAL = 1
MAX_POLL_INTERVAL = 300

# Supported dimmer switch models (Hue Dimmer Switch v1)
SUPPORTED_MODELS = ("RWL020", "RWL021")

# Raw Hue buttonevent codes -> semantic button labels
# Hue codes are <button><action>, where action 2 is "short release"
BUTTON_ON = "on"
BUTTON_OFF = "off"
BUTTON_INCREASE_BRIGHTNESS = "increase_brightness"
BUTTON_DECREASE_BRIGHTNESS = "decrease_brightness"
BUTTON_UNKNOWN = "unknown"

BUTTON_EVENT_MAP: dict[int, str] = {
    1002: BUTTON_ON,
    2002: BUTTON_INCREASE_BRIGHTNESS,
    3002: BUTTON_DECREASE_BRIGHTNESS,
    4002: BUTTON_OFF,
}

BUTTON_LABELS = (
    BUTTON_ON,
    BUTTON_INCREASE_BRIGHTNESS,
    BUTTON_DECREASE_BRIGHTNESS,
    BUTTON_OFF,
)

# Bus event fired for every distinct press
EVENT_BUTTON_PRESSED = f"{DOMAIN}_button_pressed"

# Dispatcher signal for dimmers paired after setup (suffixed with the entry ID)
SIGNAL_NEW_DIMMERS = f"{DOMAIN}_new_dimmers"

# Unreachable reasons reported to the event sink
REASON_BRIDGE_UNAVAILABLE = "bridge_unavailable"
REASON_DEVICE_UNAVAILABLE = "device_unavailable"

# Bridge availability probing (used while devices wait for a bridge to return)
DEFAULT_PROBE_DELAY = 5  # Initial probe delay in seconds
PROBE_MAX_DELAY = 300  # Maximum probe delay in seconds
PROBE_JITTER = 0.25  # Jitter factor for probe delays (0.0 to 1.0)

# Hue API error types (returned in a 200 response body)
HUE_ERROR_UNAUTHORIZED = 1
HUE_ERROR_RESOURCE_NOT_AVAILABLE = 3
HUE_ERROR_LINK_BUTTON = 101

# Debug logging options
CONF_DEBUG_API = "debug_api"
CONF_DEBUG_TRACKING = "debug_tracking"
DEFAULT_DEBUG_API = False
DEFAULT_DEBUG_TRACKING = False
