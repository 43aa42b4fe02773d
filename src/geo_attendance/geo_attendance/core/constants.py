"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

# Cumulative OUT minutes per day.
HALF_DAY_OUT_MINUTES = 120
ABSENT_OUT_MINUTES = 240

# Discrete OUT events allowed before the session is closed.
MAX_OUT_COUNT = 2

HEARTBEAT_TIMEOUT_MINUTES = 10
SWEEP_INTERVAL_MINUTES = 5

DEFAULT_HISTORY_LIMIT = 30
