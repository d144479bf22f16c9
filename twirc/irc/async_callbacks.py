"""Opt-in bridge from the reader thread to an asyncio event loop."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from ..logs.logger import logger
from .callbacks import CALLBACK_NAMES, IRCCallbacks


class AsyncCallbacks:
    """Forward every callback to ``loop`` instead of running it in place.

    ``handler`` may implement any event as a coroutine or a plain function.
    Coroutines are scheduled with ``run_coroutine_threadsafe``; plain
    functions with ``call_soon_threadsafe``. Both keep the reader thread
    free and preserve per-event FIFO order on the loop.
    """

    def __init__(self, handler: Any, loop: asyncio.AbstractEventLoop) -> None:
        self.handler = handler
        self.loop = loop

    def __getattr__(self, name: str) -> Callable[..., None]:
        if name not in CALLBACK_NAMES:
            raise AttributeError(name)
        target = getattr(self.handler, name, None)
        if target is None:
            return getattr(IRCCallbacks(), name)

        def forward(*args: Any) -> None:
            self.schedule(name, target, *args)

        return forward

    def schedule(self, name: str, target: Callable[..., Any], *args: Any) -> None:
        if self.loop.is_closed():
            logger.log_event("dispatch", "loop_closed", level=logging.DEBUG, event=name)
            return
        if inspect.iscoroutinefunction(target):
            future = asyncio.run_coroutine_threadsafe(target(*args), self.loop)
            future.add_done_callback(lambda f: self._report(name, f))
        else:
            self.loop.call_soon_threadsafe(self._call_sync, name, target, args)

    @staticmethod
    def _call_sync(name: str, target: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            target(*args)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "dispatch",
                "callback_error",
                level=logging.ERROR,
                event=name,
                error=str(e),
                error_type=type(e).__name__,
            )

    @staticmethod
    def _report(name: str, future: Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.log_event(
                "dispatch",
                "callback_error",
                level=logging.ERROR,
                event=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
