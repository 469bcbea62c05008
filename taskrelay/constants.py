"""Constants used across taskrelay.

This module defines shared constants to ensure consistency.
"""

# Stream names (overridable via config / STREAM_REQUESTS / STREAM_RESULTS)
STREAM_REQUESTS = "discord:requests"
STREAM_RESULTS = "discord:results"

# Stream read settings (not user-configurable)
XREAD_BLOCK_MS = 5000
XREAD_COUNT = 10
ERROR_RETRY_S = 5.0
STREAM_BEGINNING = "0"

# Redis internal settings
REDIS_MAX_CONNECTIONS = 10
REDIS_SOCKET_TIMEOUT = 60  # Must exceed XREAD_BLOCK_MS

# Discord
LEDGER_PREFIX = "discord"
DISCORD_MAX_MESSAGE_CHARS = 2000
DISCORD_READY_TIMEOUT_S = 20.0
SUBMIT_FAILURE_REPLY = "Sorry, there was an error processing your request."
DELETE_INSTRUCTION = (
    "The message {message_id} was deleted by its author. Revert any changes that were made because of it."
)

# Gateway event names carried in request records
EVENT_MESSAGE_CREATE = "messageCreate"
EVENT_MESSAGE_DELETE = "messageDelete"

DEFAULT_LOG_LEVEL = "INFO"
