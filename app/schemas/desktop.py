from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Position(BaseModel):
    """2D position in container-local pixels"""
    x: float
    y: float


class Rect(BaseModel):
    """Axis-aligned rectangle (zone or icon box)"""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


class FileItem(BaseModel):
    """A post shown as a file icon on the desktop"""
    kind: Literal["file"] = "file"
    id: str
    parent_folder_id: Optional[str] = None
    position: Position
    caption: str = ""
    audio_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.caption


class FolderItem(BaseModel):
    """A folder icon on the desktop"""
    kind: Literal["folder"] = "folder"
    id: str
    parent_folder_id: Optional[str] = None
    position: Position
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name


DesktopItem = Annotated[Union[FileItem, FolderItem], Field(discriminator="kind")]


class DesktopLayout(BaseModel):
    """
    Measured desktop container and the zones rendered on it.

    All rectangles are container-relative. A zone is None (or degenerate)
    until its icon has been laid out.
    """
    container_width: float = 0.0
    container_height: float = 0.0
    reserved_bottom: float = 0.0
    offset: Position = Position(x=0.0, y=0.0)
    trash: Optional[Rect] = None
    portal: Optional[Rect] = None
    back: Optional[Rect] = None

    @property
    def usable_height(self) -> float:
        return self.container_height - self.reserved_bottom

    @property
    def is_measured(self) -> bool:
        return self.container_width > 0 and self.usable_height > 0


class LayoutUpdate(BaseModel):
    """Layout report from the client; zones are in screen coordinates"""
    container_width: float = Field(ge=0)
    container_height: float = Field(ge=0)
    reserved_bottom: float = Field(default=0.0, ge=0)
    offset: Position = Position(x=0.0, y=0.0)
    trash: Optional[Rect] = None
    portal: Optional[Rect] = None
    back: Optional[Rect] = None


class DragEnd(BaseModel):
    """Drag release reported in screen coordinates"""
    item_id: str
    x: float
    y: float


class ConfirmRequest(BaseModel):
    """Answer to the open delete/rename popup"""
    accept: bool
    name: Optional[str] = None


class CreateFolderRequest(BaseModel):
    """New folder in the current folder; optional screen position"""
    name: str = Field(default="New Folder", min_length=1)
    x: Optional[float] = None
    y: Optional[float] = None


class PendingConfirmation(BaseModel):
    """Popup currently waiting for the user"""
    action: Literal["delete", "rename"]
    item_id: str


class DesktopSnapshot(BaseModel):
    """Visible state of a user's desktop"""
    user_id: str
    current_folder_id: Optional[str] = None
    folder_stack: List[Optional[str]]
    breadcrumb: List[str]
    items: List[DesktopItem]
    pending: Optional[PendingConfirmation] = None
