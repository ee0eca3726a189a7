"""In-memory reference backend.

Keeps one tree per profile id, keyed by normalized absolute path. Supports
the whole contract plus bulk copy/move and directory creation, and two test
hooks: `seed()` to populate a tree and `protect()` to make an item refuse
mutation with PermissionDeniedError.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Set

from core.errors import (
    CommanderError,
    NotFoundError,
    PermissionDeniedError,
    ReadOnlyError,
    UnreadableError,
    ValidationError,
)
from core.models import BatchResult, Content, Item, ItemType, PluginMetadata, SourceProfile
from core.paths import ROOT, base_name, is_within, join_path, normalize_path, parent_path, split_posix

_LOG = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "y", "on"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _size_of(content: Content) -> int:
    return len(content.encode("utf-8")) if isinstance(content, str) else len(content)


def _extension(name: str) -> Optional[str]:
    stem, dot, ext = name.rpartition(".")
    return ext if dot and stem and ext else None


@dataclass
class _Node:
    type: ItemType
    content: Content = b""
    modified_at: datetime = field(default_factory=_now)


class MemoryBackend:
    metadata = PluginMetadata(
        id="memory",
        display_name="Memory FS",
        description="In-memory reference filesystem",
    )

    def __init__(self, *, latency: float = 0.0) -> None:
        # Optional artificial delay per call, simulating a remote backend.
        self._latency = float(latency)
        self._stores: Dict[str, Dict[str, _Node]] = {}
        self._protected: Dict[str, Set[str]] = {}

    # --- hooks for subclasses ---

    def _container_type(self, path: str) -> ItemType:
        return ItemType.DIRECTORY

    def _init_store(self, profile: SourceProfile, store: Dict[str, _Node]) -> None:
        pass

    def _check_leaf_location(self, item_id: str) -> None:
        pass

    # --- fixtures ---

    def seed(self, profile: SourceProfile, files: Mapping[str, Content]) -> None:
        """Create leaves (and any missing parent containers) synchronously."""
        store = self._store(profile)
        for raw, content in files.items():
            path = normalize_path(raw)
            self._ensure_parents(store, path)
            store[path] = _Node(type=ItemType.FILE, content=content)

    def seed_directory(self, profile: SourceProfile, raw: str) -> None:
        store = self._store(profile)
        path = normalize_path(raw)
        self._ensure_parents(store, path)
        store.setdefault(path, _Node(type=self._container_type(path)))

    def protect(self, profile: SourceProfile, item_id: str) -> None:
        self._protected.setdefault(profile.id, set()).add(normalize_path(item_id))

    # --- contract ---

    async def list_items(self, *, profile: SourceProfile, path: str) -> List[Item]:
        await self._pause()
        store = self._store(profile)
        target = normalize_path(path)

        node = store.get(target)
        if node is None or not node.type.is_container:
            raise NotFoundError(f"Not a directory: {target}")

        children = [self._to_item(p, store[p]) for p in self._children(store, target)]
        # Containers first, then leaves, each alphabetical
        children.sort(key=lambda i: (not i.is_container, i.name.lower()))

        if target != ROOT:
            children.insert(0, Item.parent_link())
        return children

    async def read_item(self, *, profile: SourceProfile, item_id: str) -> Content:
        await self._pause()
        node = self._get(profile, item_id)
        if node.type.is_container:
            raise UnreadableError(f"Cannot read a container: {item_id}")
        return node.content

    async def write_item(self, *, profile: SourceProfile, item_id: str, content: Content) -> None:
        await self._pause()
        store = self._store(profile)
        path = normalize_path(item_id)
        self._check_writable(profile, path)
        self._check_leaf_location(path)

        parent = store.get(parent_path(path))
        if path == ROOT or parent is None or not parent.type.is_container:
            raise NotFoundError(f"Parent container does not exist: {parent_path(path)}")

        existing = store.get(path)
        if existing is not None and existing.type.is_container:
            raise ReadOnlyError(f"Cannot overwrite a container: {path}")

        store[path] = _Node(type=ItemType.FILE, content=content)

    async def delete_item(self, *, profile: SourceProfile, item_id: str) -> None:
        await self._pause()
        store = self._store(profile)
        path = normalize_path(item_id)
        if path == ROOT:
            raise PermissionDeniedError("Cannot delete the root")
        self._get(profile, path)
        self._check_writable(profile, path)
        for p in self._subtree(store, path):
            del store[p]

    async def copy_items(
        self,
        *,
        profile: SourceProfile,
        item_ids: Sequence[str],
        target_path: str,
    ) -> BatchResult:
        await self._pause()
        return self._transfer(profile, item_ids, target_path, move=False)

    async def move_items(
        self,
        *,
        profile: SourceProfile,
        item_ids: Sequence[str],
        target_path: str,
    ) -> BatchResult:
        await self._pause()
        return self._transfer(profile, item_ids, target_path, move=True)

    async def make_directory(self, *, profile: SourceProfile, path: str, name: str) -> Item:
        await self._pause()
        store = self._store(profile)
        parent = normalize_path(path)
        new_path = join_path(parent, name)
        self._check_writable(profile, new_path)

        node = store.get(parent)
        if node is None or not node.type.is_container:
            raise NotFoundError(f"Not a directory: {parent}")
        if new_path in store:
            raise ValidationError(f"Already exists: {new_path}")

        store[new_path] = _Node(type=self._container_type(new_path))
        return self._to_item(new_path, store[new_path])

    # --- internals ---

    def _transfer(self, profile: SourceProfile, item_ids: Sequence[str], target_path: str, *, move: bool) -> BatchResult:
        store = self._store(profile)
        target = normalize_path(target_path)
        succeeded: List[str] = []
        failed: Dict[str, CommanderError] = {}

        for item_id in item_ids:
            try:
                self._transfer_one(profile, store, normalize_path(item_id), target, move=move)
            except CommanderError as e:
                failed[item_id] = e
            else:
                succeeded.append(item_id)

        return BatchResult(succeeded=tuple(succeeded), failed=failed)

    def _transfer_one(
        self,
        profile: SourceProfile,
        store: Dict[str, _Node],
        source: str,
        target: str,
        *,
        move: bool,
    ) -> None:
        if source not in store:
            raise NotFoundError(f"Not found: {source}")
        node = store.get(target)
        if node is None or not node.type.is_container:
            raise NotFoundError(f"Target is not a directory: {target}")
        if is_within(target, source):
            raise ValidationError(f"Cannot place {source} inside itself")

        dest = join_path(target, base_name(source))
        if dest == source:
            raise ValidationError(f"{source} is already in {target}")
        if not store[source].type.is_container:
            self._check_leaf_location(dest)
        self._check_writable(profile, dest)
        if move:
            for p in self._subtree(store, source):
                self._check_writable(profile, p)

        existing = store.get(dest)
        if existing is not None and existing.type.is_container != store[source].type.is_container:
            raise ReadOnlyError(f"Cannot replace {dest} with an item of another kind")

        subtree = self._subtree(store, source)
        for p in subtree:
            new_path = dest + p[len(source):]
            src_node = store[p]
            store[new_path] = _Node(
                type=self._container_type(new_path) if src_node.type.is_container else src_node.type,
                content=src_node.content,
                modified_at=_now(),
            )
        if move:
            for p in subtree:
                del store[p]
        _LOG.debug("%s %s -> %s", "moved" if move else "copied", source, dest)

    def _store(self, profile: SourceProfile) -> Dict[str, _Node]:
        store = self._stores.get(profile.id)
        if store is None:
            store = {ROOT: _Node(type=ItemType.DIRECTORY)}
            self._stores[profile.id] = store
            self._init_store(profile, store)
        return store

    def _get(self, profile: SourceProfile, item_id: str) -> _Node:
        path = normalize_path(item_id)
        node = self._store(profile).get(path)
        if node is None:
            raise NotFoundError(f"Not found: {path}")
        return node

    def _check_writable(self, profile: SourceProfile, path: str) -> None:
        if (profile.config.get("read_only") or "").strip().lower() in _TRUTHY:
            raise ReadOnlyError(f"Profile {profile.id} is read-only")
        if path in self._protected.get(profile.id, ()):
            raise PermissionDeniedError(f"Permission denied: {path}")

    def _ensure_parents(self, store: Dict[str, _Node], path: str) -> None:
        parts = split_posix(path)
        for depth in range(1, len(parts)):
            p = ROOT + "/".join(parts[:depth])
            store.setdefault(p, _Node(type=self._container_type(p)))

    def _children(self, store: Dict[str, _Node], path: str) -> List[str]:
        return [p for p in store if p != ROOT and parent_path(p) == path]

    def _subtree(self, store: Dict[str, _Node], path: str) -> List[str]:
        return [p for p in store if is_within(p, path)]

    def _to_item(self, path: str, node: _Node) -> Item:
        name = base_name(path)
        is_leaf = not node.type.is_container
        return Item(
            id=path,
            name=name,
            type=node.type,
            size_bytes=_size_of(node.content) if is_leaf else 0,
            modified_at=node.modified_at,
            extension=_extension(name) if is_leaf else None,
        )

    async def _pause(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)
