"""Error taxonomy shared by every engine and surface."""

from __future__ import annotations

from typing import List, Optional


class NavigatorError(Exception):
    """Base class for all symnav errors."""


class NotFoundError(NavigatorError):
    """Target symbol, interface or file is absent from the snapshot."""


class InvalidInputError(NavigatorError, ValueError):
    """Request rejected before any file I/O (bad name, pattern or bounds)."""


class WrongKindError(NavigatorError):
    """Target exists but has the wrong shape for the operation."""


class LoadFailure(NavigatorError):
    """The front-end could not produce a snapshot for a root."""


class CancelledError(NavigatorError):
    """Cooperative cancellation was observed mid-traversal."""


class PartialWriteFailure(NavigatorError):
    """An I/O error interrupted a multi-file write.

    Files listed in ``changed_files`` were already written and stay written.
    """

    def __init__(self, message: str, changed_files: Optional[List[str]] = None):
        super().__init__(message)
        self.changed_files: List[str] = list(changed_files or [])
