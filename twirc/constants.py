"""
Configuration constants for the twirc IRC client

This module contains the protocol defaults used throughout the library.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, logs a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, logs a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


LIBRARY_VERSION = "0.1.0"

# Identity defaults
DEFAULT_NAME = "twirc"
DEFAULT_LOGIN = "twirc"
DEFAULT_VERSION_REPLY = f"twirc {LIBRARY_VERSION} Python IRC client"
DEFAULT_FINGER_REPLY = "You ought to be arrested for fingering a bot!"
DEFAULT_CHANNEL_PREFIXES = "#&+!"
DEFAULT_PORT = 6667

# Flood control
MESSAGE_DELAY_SECONDS = _get_env_float(
    "MESSAGE_DELAY_SECONDS", 1.0
)  # Minimum delay between two queued sends
MAX_LINE_LENGTH = _get_env_int(
    "MAX_LINE_LENGTH", 512
)  # Outgoing lines are truncated to this many characters (CRLF included)

# Connection health
READ_TIMEOUT_SECONDS = _get_env_float(
    "READ_TIMEOUT_SECONDS", 300.0
)  # Inbound silence longer than this is a fatal disconnect (5 min)
WRITER_JOIN_TIMEOUT_SECONDS = _get_env_float(
    "WRITER_JOIN_TIMEOUT_SECONDS", 2.0
)  # Bound on waiting for the writer thread during dispose

# User bookkeeping
AFK_THRESHOLD_SECONDS = _get_env_int(
    "AFK_THRESHOLD_SECONDS", 900
)  # Idle users are AFK after 15 minutes
TAG_INT_SENTINEL = -1  # Unparsable numeric tag value

# DCC
DCC_BUFFER_SIZE = _get_env_int("DCC_BUFFER_SIZE", 1024)  # Bytes per DCC packet
DCC_DEFAULT_TIMEOUT_SECONDS = _get_env_float(
    "DCC_DEFAULT_TIMEOUT_SECONDS", 120.0
)  # Default accept/connect timeout
DCC_RESUME_TIMEOUT_SECONDS = _get_env_float(
    "DCC_RESUME_TIMEOUT_SECONDS", 30.0
)  # How long a receiver waits for DCC ACCEPT after asking to resume

# Twitch extension
TWITCH_WHISPER_CHANNEL = "#jtv"
KNOWN_BOT_ACCOUNTS = frozenset(
    {
        "wow_deku_onehand",
        "lavasbot",
        "facts_bot",
        "totally_not_facts_bot",
        "23forces",
        "twitchplaysleaderboard",
        "recordingbot",
        "twitchnotify",
        "io_ol7bot",
        "tppstatbot",
        "tppstatsbot",
        "pikalaxbot",
        "wowitsbot",
        "wallbot303",
        "frunky5",
        "wow_statsbot_onehand",
        "tppbankbot",
        "tppmodbot",
        "tppinfobot",
        "kmsbot",
        "trainertimmybot",
        "wow_battlebot_onehand",
        "groudonger",
    }
)  # Accounts that are never reported as AFK
