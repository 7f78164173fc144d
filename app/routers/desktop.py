from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from app.schemas.desktop import (
    ConfirmRequest,
    CreateFolderRequest,
    DesktopSnapshot,
    DragEnd,
    FolderItem,
    LayoutUpdate,
)
from app.schemas.events import EventResponse
from app.schemas.outcomes import DropOutcome
from app.services.desktop import desktop_service
from app.services.errors import BackendError, DesktopError, ItemNotFoundError
from app.websocket import manager

router = APIRouter(prefix="/api/desktop", tags=["desktop"])


def to_http_error(error: DesktopError) -> HTTPException:
    """Map desktop errors to HTTP status codes"""
    if isinstance(error, ItemNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, BackendError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=409, detail=str(error))


@router.post("/{user_id}/load", response_model=DesktopSnapshot)
async def load_desktop(user_id: str):
    """
    Fetch the user's files and folders from the backend
    """
    messages = await run_in_threadpool(desktop_service.load, user_id)
    await manager.broadcast_all(user_id, messages)
    return await run_in_threadpool(desktop_service.snapshot, user_id)


@router.get("/{user_id}", response_model=DesktopSnapshot)
async def get_desktop(user_id: str):
    """
    Items visible in the current folder
    """
    return await run_in_threadpool(desktop_service.snapshot, user_id)


@router.put("/{user_id}/layout", response_model=EventResponse)
async def update_layout(user_id: str, update: LayoutUpdate):
    """
    Report container size and zone rectangles; re-clamps every item
    """
    messages = await run_in_threadpool(desktop_service.update_layout, user_id, update)
    await manager.broadcast_all(user_id, messages)
    return EventResponse(status="ok")


@router.post("/{user_id}/drag-end", response_model=DropOutcome)
async def drag_end(user_id: str, drag: DragEnd):
    """
    Resolve a drag release (screen coordinates) and apply the outcome
    """
    try:
        outcome, messages = await run_in_threadpool(desktop_service.handle_drag_end, user_id, drag)
    except DesktopError as e:
        raise to_http_error(e)

    await manager.broadcast_all(user_id, messages)
    return outcome


@router.post("/{user_id}/confirm", response_model=DesktopSnapshot)
async def confirm(user_id: str, request: ConfirmRequest):
    """
    Accept or cancel the open delete/rename popup
    """
    try:
        messages = await run_in_threadpool(desktop_service.confirm, user_id, request)
    except DesktopError as e:
        raise to_http_error(e)

    await manager.broadcast_all(user_id, messages)
    return await run_in_threadpool(desktop_service.snapshot, user_id)


@router.post("/{user_id}/folders", response_model=FolderItem)
async def create_folder(user_id: str, request: CreateFolderRequest):
    """
    Create a folder inside the current folder
    """
    try:
        folder, messages = await run_in_threadpool(desktop_service.create_folder, user_id, request)
    except DesktopError as e:
        raise to_http_error(e)

    await manager.broadcast_all(user_id, messages)
    return folder


@router.post("/{user_id}/open/{folder_id}", response_model=DesktopSnapshot)
async def open_folder(user_id: str, folder_id: str):
    """
    Navigate into a folder
    """
    try:
        messages = await run_in_threadpool(desktop_service.open_folder, user_id, folder_id)
    except DesktopError as e:
        raise to_http_error(e)

    await manager.broadcast_all(user_id, messages)
    return await run_in_threadpool(desktop_service.snapshot, user_id)


@router.post("/{user_id}/up", response_model=DesktopSnapshot)
async def go_up(user_id: str):
    """
    Navigate one folder up
    """
    messages = await run_in_threadpool(desktop_service.go_up, user_id)
    await manager.broadcast_all(user_id, messages)
    return await run_in_threadpool(desktop_service.snapshot, user_id)
