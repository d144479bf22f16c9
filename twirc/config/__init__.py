"""Session configuration package."""

from .model import SessionConfig  # noqa: F401

__all__ = ["SessionConfig"]
