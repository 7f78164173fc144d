from typing import List, Literal, Optional
from pydantic import BaseModel

from app.schemas.desktop import FolderItem, Position


class DesktopLoaded(BaseModel):
    """Items fetched for a user"""
    type: Literal["desktop_loaded"] = "desktop_loaded"
    user_id: str
    file_count: int
    folder_count: int


class LayoutUpdated(BaseModel):
    """Container measured again; items re-clamped"""
    type: Literal["layout_updated"] = "layout_updated"
    user_id: str
    moved_count: int


class ItemMoved(BaseModel):
    """Item position committed"""
    type: Literal["item_moved"] = "item_moved"
    item_id: str
    kind: Literal["file", "folder"]
    position: Position


class ItemReparented(BaseModel):
    """Item moved into another folder, with the move log text"""
    type: Literal["item_reparented"] = "item_reparented"
    item_id: str
    kind: Literal["file", "folder"]
    parent_folder_id: Optional[str] = None
    message: str


class ItemRemoved(BaseModel):
    """Items deleted (a folder takes its contents with it)"""
    type: Literal["item_removed"] = "item_removed"
    item_ids: List[str]


class ItemRenamed(BaseModel):
    """Display name changed"""
    type: Literal["item_renamed"] = "item_renamed"
    item_id: str
    name: str


class ConfirmationRequested(BaseModel):
    """Popup opened for a delete or rename"""
    type: Literal["confirmation_requested"] = "confirmation_requested"
    item_id: str
    action: Literal["delete", "rename"]


class ConfirmationResolved(BaseModel):
    """Popup closed"""
    type: Literal["confirmation_resolved"] = "confirmation_resolved"
    item_id: str
    action: Literal["delete", "rename"]
    accepted: bool


class FolderCreated(BaseModel):
    """New folder added to the desktop"""
    type: Literal["folder_created"] = "folder_created"
    folder: FolderItem


class FolderOpened(BaseModel):
    """Current folder changed"""
    type: Literal["folder_opened"] = "folder_opened"
    folder_id: Optional[str] = None
    breadcrumb: List[str]


class EventResponse(BaseModel):
    """Generic acknowledgement"""
    status: str = "ok"
