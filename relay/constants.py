"""
Application-level constants for hardcoded relay behavior.

These values are not configurable through environment variables. For
configurable values (paths, timeouts, log levels), see relay/settings.py.
"""

# ============================================================================
# Logging Limits
# ============================================================================

# Maximum size (bytes) of a single structured JSON log line
# Longer messages are truncated before serialization
MAX_LOG_LINE_BYTES = 250_000

# Number of payload characters included in per-message log lines
# when payload logging is enabled
LOG_PAYLOAD_PREVIEW_CHARS = 200


# ============================================================================
# Metrics
# ============================================================================

# Histogram buckets (seconds) for broadcast fan-out duration
BROADCAST_DURATION_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
)
