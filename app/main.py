"""Application entry point for the desktop API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from app.config import get_settings
from app.routers import desktop
from app.services.desktop import desktop_service
from app.websocket import manager

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    desktop_service.backend.close()
    logger.info("Backend connections closed")


app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=lifespan)

app.include_router(desktop.router)


def release_connection(user_id: str, websocket: WebSocket):
    """Drop a socket; the desktop is evicted with the user's last client"""
    manager.disconnect(user_id, websocket)
    if manager.connection_count(user_id) == 0:
        desktop_service.remove_session(user_id)


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.websocket("/ws/{user_id}")
async def websocket_endpoint(websocket: WebSocket, user_id: str):
    """Stream desktop events of one user"""
    await manager.connect(user_id, websocket)
    logger.info(f"WebSocket connected for {user_id}")
    try:
        while True:
            # Clients only listen; incoming text keeps the socket alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for {user_id}")
    finally:
        release_connection(user_id, websocket)
