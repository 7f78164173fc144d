from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.schemas.desktop import Position


class RequestDelete(BaseModel):
    """Item dropped on the trash; waits for confirmation"""
    outcome: Literal["request_delete"] = "request_delete"
    item_id: str


class RequestRename(BaseModel):
    """Item dropped on the rename portal; snapped beside it"""
    outcome: Literal["request_rename"] = "request_rename"
    item_id: str
    snap_position: Position


class Reparent(BaseModel):
    """Item moved into a folder (None is the desktop root)"""
    outcome: Literal["reparent"] = "reparent"
    item_id: str
    target_folder_id: Optional[str] = None
    via_back: bool = False


class Reposition(BaseModel):
    """Plain move to an already clamped position"""
    outcome: Literal["reposition"] = "reposition"
    item_id: str
    position: Position


DropOutcome = Annotated[
    Union[RequestDelete, RequestRename, Reparent, Reposition],
    Field(discriminator="outcome"),
]
