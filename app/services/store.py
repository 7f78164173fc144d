"""
Item store for a user's desktop.

Holds the loaded files and folders and mediates every position, parent,
name and lifetime change. Local state is the source of truth for rendering:
backend writes that fail are logged and never rolled back.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from app.schemas.desktop import DesktopLayout, FileItem, FolderItem, Position
from app.services.backend import DesktopBackend
from app.services.clamper import PositionClamper
from app.services.errors import BackendError, InvalidReparentError, ItemNotFoundError
from app.services.geometry import grid_slot

logger = logging.getLogger(__name__)

Item = Union[FileItem, FolderItem]


def parse_position(raw: Any) -> Optional[Position]:
    """
    Read a stored position, returning None if it is missing or malformed.

    Args:
        raw: Value of the row's position column

    Returns:
        Position if raw is a mapping with numeric x and y, None otherwise
    """
    if not isinstance(raw, dict):
        return None
    x, y = raw.get("x"), raw.get("y")
    if isinstance(x, bool) or isinstance(y, bool):
        return None
    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        return None
    return Position(x=float(x), y=float(y))


def optional_id(value: Any) -> Optional[str]:
    """Ids are opaque strings; integer primary keys are read as their text."""
    return str(value) if value is not None else None


def file_from_row(row: Dict[str, Any], index: int) -> FileItem:
    return FileItem(
        id=optional_id(row["id"]),
        parent_folder_id=optional_id(row.get("folder_id")),
        position=parse_position(row.get("position")) or grid_slot(index),
        caption=row.get("caption") or "",
        audio_url=row.get("audio_url"),
    )


def folder_from_row(row: Dict[str, Any], index: int) -> FolderItem:
    return FolderItem(
        id=optional_id(row["id"]),
        parent_folder_id=optional_id(row.get("parent_folder_id")),
        position=parse_position(row.get("position")) or grid_slot(index),
        name=row.get("name") or "",
    )


class ItemStore:
    """
    In-memory files and folders of one user, mirrored to the backend.

    Items keep the order they were loaded in, which is also the order the
    drop resolver tests folders in.
    """

    def __init__(self, backend: DesktopBackend, clamper: Optional[PositionClamper] = None):
        self.backend = backend
        self.clamper = clamper or PositionClamper()
        self.files: Dict[str, FileItem] = {}
        self.folders: Dict[str, FolderItem] = {}

    # Lookup

    def get(self, item_id: str) -> Item:
        if item_id in self.files:
            return self.files[item_id]
        if item_id in self.folders:
            return self.folders[item_id]
        raise ItemNotFoundError(item_id)

    def get_folder(self, folder_id: str) -> FolderItem:
        if folder_id not in self.folders:
            raise ItemNotFoundError(folder_id)
        return self.folders[folder_id]

    def items(self) -> List[Item]:
        return [*self.files.values(), *self.folders.values()]

    def visible(self, folder_id: Optional[str]) -> List[Item]:
        """Items directly inside folder_id (None is the desktop root)."""
        return [item for item in self.items() if item.parent_folder_id == folder_id]

    def folders_in(self, folder_id: Optional[str]) -> List[FolderItem]:
        return [f for f in self.folders.values() if f.parent_folder_id == folder_id]

    def ancestors(self, folder_id: Optional[str]) -> List[str]:
        """Folder ids from folder_id up to the root, folder_id first."""
        chain: List[str] = []
        current = folder_id
        while current is not None and current in self.folders and current not in chain:
            chain.append(current)
            current = self.folders[current].parent_folder_id
        return chain

    def is_descendant(self, candidate_id: str, ancestor_id: str) -> bool:
        """True if candidate_id sits somewhere inside folder ancestor_id."""
        return candidate_id != ancestor_id and ancestor_id in self.ancestors(candidate_id)

    def descendants(self, folder_id: str) -> List[Item]:
        return [
            item for item in self.items()
            if item.parent_folder_id is not None and folder_id in self.ancestors(item.parent_folder_id)
        ]

    def _replace(self, item: Item) -> Item:
        if item.kind == "folder":
            self.folders[item.id] = item
        else:
            self.files[item.id] = item
        return item

    # Loading

    def load(self, user_id: str, layout: Optional[DesktopLayout] = None) -> Tuple[List[FileItem], List[FolderItem]]:
        """
        Fetch all files and folders owned by user_id.

        Items without a usable stored position get a grid slot based on their
        index within their own list. Positions are clamped locally when a
        layout is given. On backend failure the previous lists are kept.

        Returns:
            Tuple of (files, folders)
        """
        try:
            rows = self.backend.fetch_items(user_id)
        except BackendError as e:
            logger.error(f"Failed to load desktop items for {user_id}: {e}")
            return list(self.files.values()), list(self.folders.values())

        files = [file_from_row(row, i) for i, row in enumerate(rows.get("files") or [])]
        folders = [folder_from_row(row, i) for i, row in enumerate(rows.get("folders") or [])]

        if layout is not None:
            files = [f.model_copy(update={"position": self.clamper.clamp(f.position, layout)}) for f in files]
            folders = [f.model_copy(update={"position": self.clamper.clamp(f.position, layout)}) for f in folders]

        self.files = {f.id: f for f in files}
        self.folders = {f.id: f for f in folders}
        logger.info(f"Loaded {len(files)} files and {len(folders)} folders for {user_id}")
        return files, folders

    # Mutations

    def reposition(self, item_id: str, position: Position) -> Item:
        """Overwrite an item's position and persist it."""
        item = self._replace(self.get(item_id).model_copy(update={"position": position}))
        try:
            self.backend.persist_position(item.id, item.kind, position.model_dump())
        except BackendError as e:
            logger.error(f"Failed to persist position of {item.kind} {item.id}: {e}")
        return item

    def reparent(self, item_id: str, folder_id: Optional[str]) -> Item:
        """
        Move an item into folder_id (None is the desktop root) and persist it.

        Raises:
            ItemNotFoundError: item_id is unknown
            InvalidReparentError: folder_id is unknown, the item itself, or
                inside the item
        """
        item = self.get(item_id)
        if folder_id is not None:
            if folder_id not in self.folders:
                raise InvalidReparentError(f"Target {folder_id} is not a folder")
            if folder_id == item.id:
                raise InvalidReparentError(f"Folder {item.id} cannot contain itself")
            if item.kind == "folder" and self.is_descendant(folder_id, item.id):
                raise InvalidReparentError(f"Folder {folder_id} is inside {item.id}")

        item = self._replace(item.model_copy(update={"parent_folder_id": folder_id}))
        try:
            self.backend.persist_parent(item.id, item.kind, folder_id)
        except BackendError as e:
            logger.error(f"Failed to persist parent of {item.kind} {item.id}: {e}")
        return item

    def remove(self, item_id: str) -> List[str]:
        """
        Delete an item locally and from the backend.

        Removing a folder removes everything inside it as well.

        Returns:
            Ids of all removed items, the requested item first
        """
        item = self.get(item_id)
        doomed = [item]
        if item.kind == "folder":
            doomed.extend(self.descendants(item.id))

        for victim in doomed:
            if victim.kind == "folder":
                self.folders.pop(victim.id, None)
            else:
                self.files.pop(victim.id, None)
            try:
                self.backend.delete_item(victim.id, victim.kind)
            except BackendError as e:
                logger.error(f"Failed to delete {victim.kind} {victim.id}: {e}")

        return [victim.id for victim in doomed]

    def rename(self, item_id: str, new_name: str) -> Item:
        """Change the caption of a file or the name of a folder."""
        item = self.get(item_id)
        field = "name" if item.kind == "folder" else "caption"
        item = self._replace(item.model_copy(update={field: new_name}))
        try:
            self.backend.rename_item(item.id, item.kind, new_name)
        except BackendError as e:
            logger.error(f"Failed to rename {item.kind} {item.id}: {e}")
        return item

    def create_folder(
        self,
        user_id: str,
        name: str,
        parent_id: Optional[str] = None,
        position: Optional[Position] = None,
        layout: Optional[DesktopLayout] = None,
    ) -> FolderItem:
        """
        Create a folder through the backend and add it to the store.

        Raises:
            InvalidReparentError: parent_id is not a known folder
            BackendError: the backend could not create the folder
        """
        if parent_id is not None and parent_id not in self.folders:
            raise InvalidReparentError(f"Parent {parent_id} is not a folder")

        if position is None:
            position = grid_slot(len(self.folders))
        if layout is not None:
            position = self.clamper.clamp(position, layout)

        row = self.backend.create_folder(user_id, name, parent_id, position.model_dump())
        folder = folder_from_row(row, len(self.folders))
        self.folders[folder.id] = folder
        logger.info(f"Created folder {folder.id} ({folder.name}) for {user_id}")
        return folder
