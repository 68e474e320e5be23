"""Cooperative cancellation for long tree traversals."""

from __future__ import annotations

import threading
from typing import Optional

from .errors import CancelledError


class CancelToken:
    """Thread-safe cancellation flag checked by traversals at each node."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        """Raise :class:`CancelledError` if cancellation was requested."""
        if self._event.is_set():
            raise CancelledError("operation cancelled")


def check_cancelled(cancel: Optional[CancelToken]) -> None:
    if cancel is not None:
        cancel.check()
