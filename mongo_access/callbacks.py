"""
Callback-style access to a Store.

Each operation takes a trailing ``callback(err, data)`` and returns the
asyncio Task running it:

    callbacks = CallbackStore(store)
    callbacks.find_by_id("users", user_id, lambda err, user: print(err or user))

Must be called from code running on the store's event loop.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .store import Store

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException], Any], None]

OPERATIONS = frozenset(
    {
        "find",
        "find_all",
        "find_all_by_object",
        "find_one_by_object",
        "find_by_id",
        "insert_one",
        "add_entry",
        "update_document",
        "update_entry",
        "update",
        "pull",
        "remove",
        "remove_entry",
    }
)


def with_callback(operation: Awaitable[Any], callback: Optional[Callback] = None) -> "asyncio.Task":
    """Run ``operation`` as a task and report its outcome to ``callback``.

    Without a callback, failures are logged.
    """
    task = asyncio.ensure_future(operation)

    def _done(finished: "asyncio.Task") -> None:
        if finished.cancelled():
            error: Optional[BaseException] = asyncio.CancelledError()
        else:
            error = finished.exception()
        if callback is None:
            if error is not None:
                logger.error("Unhandled store error: %s", error)
            return
        if error is not None:
            callback(error, None)
        else:
            callback(None, finished.result())

    task.add_done_callback(_done)
    return task


class CallbackStore:
    """Wraps a Store so its operations report through callbacks."""

    def __init__(self, store: Store):
        self._store = store

    @property
    def store(self) -> Store:
        return self._store

    def __getattr__(self, name: str) -> Callable[..., "asyncio.Task"]:
        if name not in OPERATIONS:
            raise AttributeError(name)
        operation = getattr(self._store, name)

        def call(*args: Any, callback: Optional[Callback] = None) -> "asyncio.Task":
            if callback is None and args and callable(args[-1]):
                args, callback = args[:-1], args[-1]
            return with_callback(operation(*args), callback)

        call.__name__ = name
        return call

    def __repr__(self):
        return f"CallbackStore({self._store!r})"
