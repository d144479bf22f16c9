"""Channel/user directory package."""

from .models import Channel, User, irc_lower, is_bot  # noqa: F401
from .store import ChannelDirectory  # noqa: F401

__all__ = ["Channel", "User", "ChannelDirectory", "irc_lower", "is_bot"]
