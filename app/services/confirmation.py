"""
Delete/rename confirmation state machine.

    idle -> pending_delete -> idle   (confirmed: removed / cancelled: snapped beside trash)
    idle -> pending_rename -> idle   (submitted: renamed / cancelled: popup dismissed)

Only one popup can be open at a time; a second request is rejected.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from app.schemas.desktop import PendingConfirmation, Position
from app.services.errors import ConfirmationPendingError, NothingPendingError

logger = logging.getLogger(__name__)


class ConfirmationState(str, Enum):
    IDLE = "idle"
    PENDING_DELETE = "pending_delete"
    PENDING_RENAME = "pending_rename"


class ConfirmationFlow:
    """Tracks the single open confirmation popup of a desktop."""

    def __init__(self):
        self.state = ConfirmationState.IDLE
        self.item_id: Optional[str] = None
        self.drop_position: Optional[Position] = None

    @property
    def is_idle(self) -> bool:
        return self.state == ConfirmationState.IDLE

    def _open(self, state: ConfirmationState, item_id: str, drop_position: Optional[Position]):
        if not self.is_idle:
            raise ConfirmationPendingError(
                f"Cannot open {state.value} for {item_id}: {self.state.value} for {self.item_id} is open"
            )
        self.state = state
        self.item_id = item_id
        self.drop_position = drop_position
        logger.debug(f"Confirmation {state.value} opened for {item_id}")

    def request_delete(self, item_id: str, drop_position: Position):
        """Open the delete popup; the drop position is kept for the cancel snap."""
        self._open(ConfirmationState.PENDING_DELETE, item_id, drop_position)

    def request_rename(self, item_id: str):
        self._open(ConfirmationState.PENDING_RENAME, item_id, None)

    def close(self) -> Tuple[ConfirmationState, str, Optional[Position]]:
        """
        Close the open popup and return what it was for.

        Returns:
            Tuple of (state that was pending, item id, drop position)

        Raises:
            NothingPendingError: no popup is open
        """
        if self.is_idle:
            raise NothingPendingError("No confirmation is pending")
        closed = (self.state, self.item_id, self.drop_position)
        self.state = ConfirmationState.IDLE
        self.item_id = None
        self.drop_position = None
        return closed

    def describe(self) -> Optional[PendingConfirmation]:
        if self.is_idle:
            return None
        action = "delete" if self.state == ConfirmationState.PENDING_DELETE else "rename"
        return PendingConfirmation(action=action, item_id=self.item_id)
