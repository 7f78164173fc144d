"""Exceptions raised by the desktop services."""


class DesktopError(RuntimeError):
    """Base class for desktop model errors."""


class ItemNotFoundError(DesktopError):
    """No file or folder with the given id is loaded."""

    def __init__(self, item_id: str):
        super().__init__(f"Unknown desktop item: {item_id}")
        self.item_id = item_id


class InvalidReparentError(DesktopError):
    """Target is not a folder, is the item itself, or is one of its descendants."""


class ConfirmationPendingError(DesktopError):
    """A delete or rename popup is already open."""


class NothingPendingError(DesktopError):
    """Confirm was called with no popup open."""


class BackendError(DesktopError):
    """The hosted backend rejected or failed a request."""


__all__ = [
    "DesktopError",
    "ItemNotFoundError",
    "InvalidReparentError",
    "ConfirmationPendingError",
    "NothingPendingError",
    "BackendError",
]
