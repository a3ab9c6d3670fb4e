"""Shared error codes and user-facing messages."""

from __future__ import annotations

SPEECH_UNAVAILABLE = "SPEECH_UNAVAILABLE"
PERMISSION_DENIED = "PERMISSION_DENIED"
START_FAILED = "START_FAILED"
BRIDGE_ERROR = "BRIDGE_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"

ERROR_MESSAGES = {
    SPEECH_UNAVAILABLE: "Speech not available",
    PERMISSION_DENIED: "Microphone permission required",
    START_FAILED: "Could not start listening, please retry.",
    BRIDGE_ERROR: "Speech recognition failed.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
}


def message_for(code: str) -> str:
    return ERROR_MESSAGES.get(code, ERROR_MESSAGES[BRIDGE_ERROR])
