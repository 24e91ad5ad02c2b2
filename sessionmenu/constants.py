"""Constants used across sessionmenu.

Policy values here are the defaults; the config file may override the tunable ones.
"""

# Gateway API socket
API_SOCKET_PATH = "/tmp/sessionmenu-gateway.sock"
API_REQUEST_TIMEOUT_S = 5.0

# Cache policy
REFRESH_INTERVAL_SECONDS = 12.0  # Minimum age before an unforced refresh fetches again
SNAPSHOT_ROW_LIMIT = 32
ACTIVE_WINDOW_SECONDS = 24 * 60 * 60

# Actions
COMPACT_MAX_LINES = 400
MAIN_SESSION_KEY = "main"
TRANSCRIPT_SUFFIX = ".jsonl"

# Display text
NO_CONNECTION_TEXT = "No connection to gateway"
SESSIONS_UNAVAILABLE_TEXT = "Sessions unavailable"
LOADING_TEXT = "Loading sessions…"
NO_ACTIVE_SESSIONS_TEXT = "No active sessions"

THINKING_LEVELS: tuple[str, ...] = ("off", "minimal", "low", "medium", "high")
VERBOSE_LEVELS: tuple[str, ...] = ("on", "off")
