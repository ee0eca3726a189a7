"""Object-store gateway backend spoken over JSON/HTTP.

Endpoints, relative to the profile's `base_url`:
  GET    /items?path=<path>    -> {"items": [{"id", "name", "type", "size", "modified"}]}
  GET    /objects?id=<id>      -> raw object bytes
  PUT    /objects?id=<id>      <- raw object bytes
  DELETE /objects?id=<id>

HTTP status codes and transport failures are mapped onto the commander
error taxonomy. The '..' entry is added client-side for non-root paths.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

import httpx

from core.errors import (
    BackendUnavailableError,
    CommanderError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ReadOnlyError,
    ValidationError,
)
from core.models import Content, Item, ItemType, PluginMetadata, SourceProfile
from core.paths import ROOT, normalize_path

_STATUS_ERRORS = {
    400: ValidationError,
    401: PermissionDeniedError,
    403: PermissionDeniedError,
    404: NotFoundError,
    405: ReadOnlyError,
    409: ConflictError,
    412: ConflictError,
    422: ValidationError,
}


def _parse_modified(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


class HttpStoreBackend:
    metadata = PluginMetadata(
        id="http",
        display_name="HTTP Object Gateway",
        description="Object store reachable through a JSON/HTTP gateway",
        config_fields=("base_url",),
    )

    def __init__(self, *, timeout: float = 20.0, verify: bool = False) -> None:
        self._timeout = float(timeout)
        self._verify = bool(verify)

    async def list_items(self, *, profile: SourceProfile, path: str) -> List[Item]:
        target = normalize_path(path)
        async with self._create_client(profile) as client:
            resp = await self._send(client, "GET", "/items", params={"path": target}, context=f"list {target}")

        try:
            raw_items = resp.json().get("items", [])
            items = [self._to_item(raw) for raw in raw_items if raw.get("name") != ".."]
        except (ValueError, AttributeError, KeyError) as e:
            raise BackendUnavailableError(f"Malformed listing for {target}: {e}") from e

        if target != ROOT:
            items.insert(0, Item.parent_link())
        return items

    async def read_item(self, *, profile: SourceProfile, item_id: str) -> Content:
        async with self._create_client(profile) as client:
            resp = await self._send(client, "GET", "/objects", params={"id": item_id}, context=f"read {item_id}")
        return resp.content

    async def write_item(self, *, profile: SourceProfile, item_id: str, content: Content) -> None:
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        async with self._create_client(profile) as client:
            await self._send(
                client,
                "PUT",
                "/objects",
                params={"id": item_id},
                content=data,
                context=f"write {item_id}",
            )

    async def delete_item(self, *, profile: SourceProfile, item_id: str) -> None:
        async with self._create_client(profile) as client:
            await self._send(client, "DELETE", "/objects", params={"id": item_id}, context=f"delete {item_id}")

    # --- HTTP helpers ---

    def _create_client(self, profile: SourceProfile) -> httpx.AsyncClient:
        base_url = (profile.config.get("base_url") or "").strip().rstrip("/")
        if not base_url:
            raise ValidationError(f"Profile {profile.id} has no base_url")
        return httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json", "User-Agent": "commander-mcp"},
            timeout=self._timeout,
            verify=self._verify,
        )

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
        context: str,
    ) -> httpx.Response:
        try:
            resp = await client.request(method, url, params=dict(params or {}), content=content)
        except httpx.HTTPError as e:
            raise BackendUnavailableError(f"Gateway request failed ({context}): {e}") from e

        self._raise_for_status(resp, context=context)
        return resp

    def _raise_for_status(self, resp: httpx.Response, *, context: str) -> None:
        if resp.is_success:
            return
        error_cls = _STATUS_ERRORS.get(resp.status_code)
        if error_cls is None:
            # 5xx and anything unexpected is treated as transient
            error_cls = BackendUnavailableError
        raise self._error(error_cls, resp, context)

    def _error(self, error_cls: type, resp: httpx.Response, context: str) -> CommanderError:
        return error_cls(f"Gateway returned {resp.status_code} ({context}): {resp.text[:200]}")

    def _to_item(self, raw: Mapping[str, Any]) -> Item:
        name = str(raw["name"])
        item_type = ItemType(str(raw.get("type", "file")).lower())
        return Item(
            id=normalize_path(str(raw.get("id") or name)),
            name=name,
            type=item_type,
            size_bytes=int(raw.get("size") or 0),
            modified_at=_parse_modified(raw.get("modified")),
            extension=raw.get("extension") or None,
        )
