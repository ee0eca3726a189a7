"""Core protocol and interface definitions.

Defines the StoragePlugin protocol every backend (memory, object store,
warehouse, local disk, HTTP gateway) implements, plus the optional
capabilities the operation engine and commander detect at runtime.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

from core.models import BatchResult, Content, Item, PluginMetadata, SourceProfile


class StoragePlugin(Protocol):
    """Contract for any storage backend."""

    metadata: PluginMetadata

    async def list_items(self, *, profile: SourceProfile, path: str) -> List[Item]:
        ...

    async def read_item(self, *, profile: SourceProfile, item_id: str) -> Content:
        ...

    async def write_item(self, *, profile: SourceProfile, item_id: str, content: Content) -> None:
        ...

    async def delete_item(self, *, profile: SourceProfile, item_id: str) -> None:
        ...


@runtime_checkable
class BulkTransferPlugin(Protocol):
    """Backends that copy/move many items within one profile natively."""

    async def copy_items(
        self,
        *,
        profile: SourceProfile,
        item_ids: Sequence[str],
        target_path: str,
    ) -> BatchResult:
        ...

    async def move_items(
        self,
        *,
        profile: SourceProfile,
        item_ids: Sequence[str],
        target_path: str,
    ) -> BatchResult:
        ...


@runtime_checkable
class DirectoryPlugin(Protocol):
    """Backends that can create an empty container."""

    async def make_directory(self, *, profile: SourceProfile, path: str, name: str) -> Item:
        ...
