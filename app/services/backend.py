"""
Storage collaborators for the desktop model.

The hosted backend keeps posts and folders in two tables:

- posts:   id, user_id, caption, audio_url, folder_id, position
- folders: id, user_id, name, parent_folder_id, position

Backends exchange plain row dicts; the item store turns them into items.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from app.services.errors import BackendError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

TABLES = {"file": "posts", "folder": "folders"}
PARENT_COLUMNS = {"file": "folder_id", "folder": "parent_folder_id"}
NAME_COLUMNS = {"file": "caption", "folder": "name"}


def table_for(kind: str) -> str:
    try:
        return TABLES[kind]
    except KeyError:
        raise ValueError(f"Unknown item kind: {kind}") from None


class DesktopBackend(ABC):
    """CRUD operations the desktop model needs from the hosted backend."""

    @abstractmethod
    def fetch_items(self, user_id: str) -> Dict[str, List[Row]]:
        """Return {"files": [...], "folders": [...]} rows owned by user_id."""

    @abstractmethod
    def persist_position(self, item_id: str, kind: str, position: Dict[str, float]) -> None:
        ...

    @abstractmethod
    def persist_parent(self, item_id: str, kind: str, parent_id: Optional[str]) -> None:
        ...

    @abstractmethod
    def delete_item(self, item_id: str, kind: str) -> None:
        ...

    @abstractmethod
    def rename_item(self, item_id: str, kind: str, new_name: str) -> None:
        ...

    @abstractmethod
    def create_folder(
        self,
        user_id: str,
        name: str,
        parent_id: Optional[str],
        position: Dict[str, float],
    ) -> Row:
        """Insert a folder and return the stored row."""

    def close(self) -> None:
        """Release connections held by the backend."""


class InMemoryBackend(DesktopBackend):
    """
    Backend holding rows in process memory.

    Used when no hosted backend is configured, and by the tests.
    """

    def __init__(self, posts: Optional[List[Row]] = None, folders: Optional[List[Row]] = None):
        self.tables: Dict[str, Dict[str, Row]] = {"posts": {}, "folders": {}}
        for row in posts or []:
            self.tables["posts"][row["id"]] = dict(row)
        for row in folders or []:
            self.tables["folders"][row["id"]] = dict(row)

    def _row(self, item_id: str, kind: str) -> Row:
        table = self.tables[table_for(kind)]
        if item_id not in table:
            raise BackendError(f"No {kind} row with id {item_id}")
        return table[item_id]

    def fetch_items(self, user_id: str) -> Dict[str, List[Row]]:
        return {
            "files": [dict(r) for r in self.tables["posts"].values() if r.get("user_id") == user_id],
            "folders": [dict(r) for r in self.tables["folders"].values() if r.get("user_id") == user_id],
        }

    def persist_position(self, item_id: str, kind: str, position: Dict[str, float]) -> None:
        self._row(item_id, kind)["position"] = dict(position)

    def persist_parent(self, item_id: str, kind: str, parent_id: Optional[str]) -> None:
        self._row(item_id, kind)[PARENT_COLUMNS[kind]] = parent_id

    def delete_item(self, item_id: str, kind: str) -> None:
        self._row(item_id, kind)
        del self.tables[table_for(kind)][item_id]

    def rename_item(self, item_id: str, kind: str, new_name: str) -> None:
        self._row(item_id, kind)[NAME_COLUMNS[kind]] = new_name

    def create_folder(
        self,
        user_id: str,
        name: str,
        parent_id: Optional[str],
        position: Dict[str, float],
    ) -> Row:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "name": name,
            "parent_folder_id": parent_id,
            "position": dict(position),
        }
        self.tables["folders"][row["id"]] = row
        return dict(row)


class RestBackend(DesktopBackend):
    """
    Backend speaking to a PostgREST-style table API.

    Rows are filtered with `column=eq.value` query parameters and the API key
    is sent both as `apikey` and as a bearer token.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, f"/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} /{table} failed: {exc}") from exc
        return response

    def _update(self, item_id: str, kind: str, values: Row) -> None:
        self._request("PATCH", table_for(kind), params={"id": f"eq.{item_id}"}, json=values)

    def fetch_items(self, user_id: str) -> Dict[str, List[Row]]:
        params = {"user_id": f"eq.{user_id}", "select": "*"}
        files = self._request("GET", "posts", params=params).json()
        folders = self._request("GET", "folders", params=params).json()
        return {"files": files, "folders": folders}

    def persist_position(self, item_id: str, kind: str, position: Dict[str, float]) -> None:
        self._update(item_id, kind, {"position": position})

    def persist_parent(self, item_id: str, kind: str, parent_id: Optional[str]) -> None:
        self._update(item_id, kind, {PARENT_COLUMNS[kind]: parent_id})

    def delete_item(self, item_id: str, kind: str) -> None:
        self._request("DELETE", table_for(kind), params={"id": f"eq.{item_id}"})

    def rename_item(self, item_id: str, kind: str, new_name: str) -> None:
        self._update(item_id, kind, {NAME_COLUMNS[kind]: new_name})

    def create_folder(
        self,
        user_id: str,
        name: str,
        parent_id: Optional[str],
        position: Dict[str, float],
    ) -> Row:
        response = self._request(
            "POST",
            "folders",
            json={
                "user_id": user_id,
                "name": name,
                "parent_folder_id": parent_id,
                "position": position,
            },
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise BackendError("Folder insert returned no row")
        return rows[0]


def build_backend(settings) -> DesktopBackend:
    """Pick the REST backend when a URL is configured, else in-memory storage."""
    if settings.backend_url:
        logger.info(f"Using REST backend at {settings.backend_url}")
        return RestBackend(
            settings.backend_url,
            api_key=settings.backend_key,
            timeout=settings.backend_timeout,
        )
    logger.info("No BACKEND_URL configured, using in-memory backend")
    return InMemoryBackend()
