"""Internal constants shared across the library."""

BASE_URL = "http://192.168.4.1"
USER_AGENT = "motorsync/1"

# ------------------------------------------------------------------
# Device endpoints
# ------------------------------------------------------------------

STATE_ENDPOINT = "/api/state"
POWER_ENDPOINT = "/api/power"
DIRECTION_ENDPOINT = "/api/direction"
SPEED_ENDPOINT = "/api/speed"

# ------------------------------------------------------------------
# Scheduling (seconds)
# ------------------------------------------------------------------

POLL_INTERVAL = 3.0
BACKOFF_INITIAL = 1.0
BACKOFF_MAX = 30.0
DEBOUNCE_DELAY = 0.15
REQUEST_TIMEOUT = 2.5

# ------------------------------------------------------------------
# Speed domain (percent duty)
# ------------------------------------------------------------------

SPEED_MIN = 0
SPEED_MAX = 100
DEFAULT_SPEED = 100

# Error bodies are cut to this many characters in surfaced messages.
ERROR_BODY_LIMIT = 200


def clamp_speed(value: float) -> int:
    """Clamp *value* into the speed domain and round to an integer percentage."""
    return int(round(max(SPEED_MIN, min(SPEED_MAX, value))))
