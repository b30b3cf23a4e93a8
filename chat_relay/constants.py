"""
Application-level constants for hardcoded relay behavior.

These values describe the wire protocol and safety limits and should not be
changed via environment variables. For configurable values see
chat_relay/settings.py.
"""

# ============================================================================
# Wire Protocol Constants
# ============================================================================

# Field carrying the recipient identifier of an inbound relay message
TO_USER_ID_FIELD = "toUserId"

# Field stamped by the server with the sending connection's user id
FROM_USER_ID_FIELD = "fromUserId"

# Path parameter holding the caller-supplied user identifier
USER_ID_PATH_PARAM = "user_id"


# ============================================================================
# WebSocket Protocol Constants
# ============================================================================

# Length of correlation ids attached to WebSocket connection logs
CORRELATION_ID_LENGTH = 8


# ============================================================================
# Logging Limits
# ============================================================================

# Maximum size (bytes) of one JSON log line shipped to Loki
LOKI_MAX_LOG_SIZE_BYTES = 256 * 1024
