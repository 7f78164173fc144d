"""
Desktop session management for the "My Posts" screen.

This service keeps one desktop per user (items, navigation stack, measured
layout, open confirmation popup), applies drag gestures through the drop
resolver and the item store, and generates desktop events for WebSocket
broadcast to the user's clients.
"""

import logging
import threading
import time
from typing import Dict, List, Optional, Tuple

from app.config import Settings, get_settings
from app.schemas.desktop import (
    ConfirmRequest,
    CreateFolderRequest,
    DesktopLayout,
    DesktopSnapshot,
    DragEnd,
    FolderItem,
    LayoutUpdate,
    Position,
)
from app.schemas.events import (
    ConfirmationRequested,
    ConfirmationResolved,
    DesktopLoaded,
    FolderCreated,
    FolderOpened,
    ItemMoved,
    ItemRemoved,
    ItemRenamed,
    ItemReparented,
    LayoutUpdated,
)
from app.schemas.outcomes import Reparent, Reposition, RequestDelete, RequestRename
from app.services.backend import DesktopBackend, build_backend
from app.services.clamper import PositionClamper
from app.services.confirmation import ConfirmationFlow, ConfirmationState
from app.services.errors import ConfirmationPendingError
from app.services.geometry import rect_to_container, to_container, zone_present
from app.services.navigation import FolderStack
from app.services.resolver import DropResolver, Outcome
from app.services.store import ItemStore

logger = logging.getLogger(__name__)

ROOT_NAME = "Desktop"

Message = Tuple[str, dict]


class DesktopSession:
    """
    State of one user's desktop.

    Positions in the store and rectangles in the layout are container-relative.
    Requests run in worker threads; hold `lock` while reading or changing state.
    """

    def __init__(self, user_id: str, store: ItemStore):
        self.user_id = user_id
        self.store = store
        self.stack = FolderStack()
        self.layout = DesktopLayout()
        self.confirmation = ConfirmationFlow()
        self.lock = threading.RLock()


class DesktopService:
    """
    Service for managing desktops and processing drag gestures.

    This service:
    - Tracks desktops by user_id
    - Converts screen coordinates to container coordinates
    - Resolves drag ends into delete/rename requests, folder moves or repositions
    - Runs the delete/rename confirmation flow
    - Re-clamps every item when the container is measured again
    """

    def __init__(self, backend: Optional[DesktopBackend] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.backend = backend or build_backend(self.settings)
        self.clamper = PositionClamper(
            icon_size=self.settings.icon_size,
            drop_padding=self.settings.drop_padding,
            max_attempts=self.settings.max_clamp_attempts,
        )
        self.resolver = DropResolver(
            self.clamper,
            file_threshold=self.settings.file_drop_threshold,
            folder_threshold=self.settings.folder_drop_threshold,
            snap_margin=self.settings.snap_margin,
        )
        self.sessions: Dict[str, DesktopSession] = {}
        self._sessions_lock = threading.Lock()

    def get_or_create_session(self, user_id: str) -> DesktopSession:
        with self._sessions_lock:
            if user_id not in self.sessions:
                self.sessions[user_id] = DesktopSession(user_id, ItemStore(self.backend, self.clamper))
            return self.sessions[user_id]

    def remove_session(self, user_id: str) -> bool:
        """Forget a desktop; the next request reloads it from scratch."""
        with self._sessions_lock:
            if self.sessions.pop(user_id, None) is None:
                return False
        logger.info(f"Desktop session for {user_id} evicted")
        return True

    # Views

    def breadcrumb(self, session: DesktopSession) -> List[str]:
        names = [ROOT_NAME]
        for folder_id in session.stack.path[1:]:
            folder = session.store.folders.get(folder_id)
            names.append(folder.name if folder else folder_id)
        return names

    def snapshot(self, user_id: str) -> DesktopSnapshot:
        session = self.get_or_create_session(user_id)
        with session.lock:
            return DesktopSnapshot(
                user_id=user_id,
                current_folder_id=session.stack.current,
                folder_stack=list(session.stack.path),
                breadcrumb=self.breadcrumb(session),
                items=session.store.visible(session.stack.current),
                pending=session.confirmation.describe(),
            )

    def folder_label(self, session: DesktopSession, folder_id: Optional[str]) -> str:
        if folder_id is None:
            return ROOT_NAME
        folder = session.store.folders.get(folder_id)
        return folder.name if folder and folder.name else "Folder"

    # Loading and layout

    def load(self, user_id: str) -> List[Message]:
        """
        Reload all items of a user from the backend.

        Positions drifted locally since the fetch was issued are discarded.
        """
        session = self.get_or_create_session(user_id)
        with session.lock:
            files, folders = session.store.load(user_id, session.layout)
            session.stack.prune(session.store.folders)

        loaded = DesktopLoaded(user_id=user_id, file_count=len(files), folder_count=len(folders))
        return [("desktop_loaded", loaded.model_dump())]

    def update_layout(self, user_id: str, update: LayoutUpdate) -> List[Message]:
        """
        Store a new container measurement and re-clamp every item.

        Zones arrive in screen coordinates and are converted using the
        container offset. Items whose position changes are persisted.
        """
        session = self.get_or_create_session(user_id)
        messages: List[Message] = []
        with session.lock:
            session.layout = DesktopLayout(
                container_width=update.container_width,
                container_height=update.container_height,
                reserved_bottom=update.reserved_bottom,
                offset=update.offset,
                trash=rect_to_container(update.trash, update.offset),
                portal=rect_to_container(update.portal, update.offset),
                back=rect_to_container(update.back, update.offset),
            )

            for item in session.store.items():
                position = self.clamper.clamp(item.position, session.layout)
                if position != item.position:
                    moved = session.store.reposition(item.id, position)
                    messages.append(self._moved_message(moved))

        logger.info(f"Layout updated for {user_id}: {len(messages)} items re-clamped")
        updated = LayoutUpdated(user_id=user_id, moved_count=len(messages))
        messages.append(("layout_updated", updated.model_dump()))
        return messages

    # Drag gestures

    def handle_drag_end(self, user_id: str, drag: DragEnd) -> Tuple[Outcome, List[Message]]:
        """
        Resolve a drag end and apply its outcome.

        Delete and rename only open a confirmation popup. If a popup is
        already open for another item the drop degrades to a plain
        reposition; dragging the item the popup is for cancels the popup.

        Args:
            user_id: Owner of the desktop
            drag: Release position in screen coordinates

        Returns:
            Tuple of (applied outcome, messages for WebSocket broadcast)

        Raises:
            ItemNotFoundError: the dragged item is not loaded
        """
        start_time = time.time()
        session = self.get_or_create_session(user_id)
        messages: List[Message] = []

        with session.lock:
            item = session.store.get(drag.item_id)
            drop = to_container(Position(x=drag.x, y=drag.y), session.layout.offset)

            if session.confirmation.item_id == item.id:
                messages.append(self._dismiss(session))

            outcome = self.resolver.resolve(
                item,
                drop,
                session.layout,
                session.store.folders_in(session.stack.current),
                parent_folder_id=session.stack.parent,
                at_root=session.stack.at_root,
                is_descendant=session.store.is_descendant,
            )

            if isinstance(outcome, (RequestDelete, RequestRename)):
                try:
                    if isinstance(outcome, RequestDelete):
                        session.confirmation.request_delete(item.id, drop)
                    else:
                        session.confirmation.request_rename(item.id)
                except ConfirmationPendingError as e:
                    logger.warning(f"Rejected second confirmation for {user_id}: {e}")
                    outcome = Reposition(item_id=item.id, position=self.clamper.clamp(drop, session.layout))

            if isinstance(outcome, RequestDelete):
                requested = ConfirmationRequested(item_id=item.id, action="delete")
                messages.append(("confirmation_requested", requested.model_dump()))

            elif isinstance(outcome, RequestRename):
                moved = session.store.reposition(item.id, outcome.snap_position)
                messages.append(self._moved_message(moved))
                requested = ConfirmationRequested(item_id=item.id, action="rename")
                messages.append(("confirmation_requested", requested.model_dump()))

            elif isinstance(outcome, Reparent):
                messages.append(self._reparent(session, item.id, outcome.target_folder_id))

            else:
                moved = session.store.reposition(item.id, outcome.position)
                messages.append(self._moved_message(moved))

        process_time = (time.time() - start_time) * 1000  # ms
        logger.info(f"Drag end {outcome.outcome} processed in {process_time:.2f}ms for {user_id}")

        return outcome, messages

    def confirm(self, user_id: str, request: ConfirmRequest) -> List[Message]:
        """
        Answer the open delete/rename popup.

        A cancelled delete snaps the item beside the trash instead of
        returning it to where the drag started. A rename submitted with a
        blank name counts as cancelled.

        Raises:
            NothingPendingError: no popup is open
            ItemNotFoundError: the item vanished (e.g. by a reload)
        """
        session = self.get_or_create_session(user_id)
        messages: List[Message] = []

        with session.lock:
            state, item_id, drop = session.confirmation.close()

            if state == ConfirmationState.PENDING_DELETE:
                action = "delete"
                accepted = request.accept
                if accepted:
                    removed = session.store.remove(item_id)
                    session.stack.prune(session.store.folders)
                    messages.append(("item_removed", ItemRemoved(item_ids=removed).model_dump()))
                else:
                    moved = session.store.reposition(item_id, self._snap_beside_trash(session, drop))
                    messages.append(self._moved_message(moved))
            else:
                action = "rename"
                name = (request.name or "").strip()
                # A dismissed popup leaves the item where the portal snap put it
                accepted = request.accept and bool(name)
                if accepted:
                    renamed = session.store.rename(item_id, name)
                    messages.append(("item_renamed", ItemRenamed(item_id=renamed.id, name=name).model_dump()))

        logger.info(f"Confirmation {action} for {item_id} {'accepted' if accepted else 'cancelled'}")
        resolved = ConfirmationResolved(item_id=item_id, action=action, accepted=accepted)
        messages.append(("confirmation_resolved", resolved.model_dump()))
        return messages

    def _dismiss(self, session: DesktopSession) -> Message:
        """Cancel the open popup without touching its item."""
        state, item_id, _ = session.confirmation.close()
        action = "delete" if state == ConfirmationState.PENDING_DELETE else "rename"
        logger.info(f"Confirmation {action} for {item_id} dismissed by a new drag")
        resolved = ConfirmationResolved(item_id=item_id, action=action, accepted=False)
        return "confirmation_resolved", resolved.model_dump()

    def _snap_beside_trash(self, session: DesktopSession, drop: Position) -> Position:
        if zone_present(session.layout.trash):
            return self.resolver.snap_to_zone(session.layout.trash, drop, session.layout)
        return self.clamper.clamp(drop, session.layout)

    def _reparent(self, session: DesktopSession, item_id: str, folder_id: Optional[str]) -> Message:
        item = session.store.reparent(item_id, folder_id)
        text = f"{item.display_name} moved into {self.folder_label(session, folder_id)}"
        logger.info(text)
        event = ItemReparented(item_id=item.id, kind=item.kind, parent_folder_id=folder_id, message=text)
        return "item_reparented", event.model_dump()

    def _moved_message(self, item) -> Message:
        return "item_moved", ItemMoved(item_id=item.id, kind=item.kind, position=item.position).model_dump()

    # Folders

    def create_folder(self, user_id: str, request: CreateFolderRequest) -> Tuple[FolderItem, List[Message]]:
        """Create a folder inside the current folder."""
        session = self.get_or_create_session(user_id)
        with session.lock:
            position = None
            if request.x is not None and request.y is not None:
                position = to_container(Position(x=request.x, y=request.y), session.layout.offset)

            folder = session.store.create_folder(
                user_id,
                request.name,
                parent_id=session.stack.current,
                position=position,
                layout=session.layout,
            )
        return folder, [("folder_created", FolderCreated(folder=folder).model_dump())]

    def open_folder(self, user_id: str, folder_id: str) -> List[Message]:
        """Push a folder onto the navigation stack."""
        session = self.get_or_create_session(user_id)
        with session.lock:
            session.store.get_folder(folder_id)
            session.stack.push(folder_id)
            return [self._opened_message(session)]

    def go_up(self, user_id: str) -> List[Message]:
        """Pop one level off the navigation stack; stays put at the root."""
        session = self.get_or_create_session(user_id)
        with session.lock:
            session.stack.pop()
            return [self._opened_message(session)]

    def _opened_message(self, session: DesktopSession) -> Message:
        opened = FolderOpened(folder_id=session.stack.current, breadcrumb=self.breadcrumb(session))
        return "folder_opened", opened.model_dump()


# Global desktop service instance
desktop_service = DesktopService()
