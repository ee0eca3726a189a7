from __future__ import annotations

import asyncio
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Sequence, TypeVar

from core.errors import (
    BackendUnavailableError,
    CommanderError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ReadOnlyError,
    UnreadableError,
    ValidationError,
)
from core.models import BatchResult, Content, Item, ItemType, PluginMetadata, SourceProfile
from core.paths import join_path, normalize_path, split_posix


"""Local filesystem backend.

Sandboxed to the directory named by the profile's `root` config, with
containment checks so no item id can reach outside it. Blocking IO runs in
a worker thread.
"""

T = TypeVar("T")


def _map_os_error(err: OSError, context: str) -> CommanderError:
    # Translate OS errors onto the commander taxonomy
    if isinstance(err, (FileNotFoundError, NotADirectoryError)):
        return NotFoundError(f"{context}: {err.strerror or err}")
    if isinstance(err, PermissionError):
        return PermissionDeniedError(f"{context}: {err.strerror or err}")
    if isinstance(err, IsADirectoryError):
        return UnreadableError(f"{context}: {err.strerror or err}")
    if isinstance(err, FileExistsError):
        return ConflictError(f"{context}: {err.strerror or err}")
    return BackendUnavailableError(f"{context}: {err}")


class LocalBackend:
    # Local filesystem implementation of StoragePlugin.

    metadata = PluginMetadata(
        id="local",
        display_name="Local FS",
        description="Local file system under a configured root",
        config_fields=("root",),
    )

    def _root(self, profile: SourceProfile) -> Path:
        raw = (profile.config.get("root") or "").strip()
        if not raw:
            raise ValidationError(f"Profile {profile.id} has no root")
        return Path(raw).expanduser().resolve()

    def _resolve_under_root(self, profile: SourceProfile, item_path: str) -> Path:
        root = self._root(profile)
        p = root.joinpath(*split_posix(normalize_path(item_path))).resolve()

        # resolve() follows symlinks, so links pointing outside the root are refused too
        try:
            p.relative_to(root)
        except ValueError as e:
            raise PermissionDeniedError("Access outside the profile root is not allowed") from e

        return p

    def _item_id(self, root: Path, p: Path) -> str:
        # Use POSIX-style ids to keep results stable across OSes
        return normalize_path(p.relative_to(root).as_posix())

    def _check_writable(self, profile: SourceProfile) -> None:
        if (profile.config.get("read_only") or "").strip().lower() in {"1", "true", "yes", "y", "on"}:
            raise ReadOnlyError(f"Profile {profile.id} is read-only")

    async def _run(self, fn: Callable[[], T], context: str) -> T:
        def _guarded() -> T:
            try:
                return fn()
            except OSError as e:
                raise _map_os_error(e, context) from e

        # Offload blocking filesystem IO to a thread to keep the event loop responsive
        return await asyncio.to_thread(_guarded)

    async def list_items(self, *, profile: SourceProfile, path: str) -> List[Item]:
        root = self._root(profile)
        base = self._resolve_under_root(profile, path)

        def _do() -> List[Item]:
            if not base.is_dir():
                raise NotFoundError(f"Not a directory: {path}")

            out: List[Item] = []
            for entry in base.iterdir():
                try:
                    st = entry.stat()
                except OSError:
                    # Dangling symlink: describe the link itself
                    st = entry.lstat()
                is_dir = entry.is_dir()
                out.append(
                    Item(
                        id=self._item_id(root, entry),
                        name=entry.name,
                        type=ItemType.DIRECTORY if is_dir else ItemType.FILE,
                        size_bytes=0 if is_dir else st.st_size,
                        modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                        extension=None if is_dir else (entry.suffix[1:] or None),
                    )
                )
            out.sort(key=lambda i: (not i.is_container, i.name.lower()))
            if base != root:
                out.insert(0, Item.parent_link())
            return out

        return await self._run(_do, f"list {path}")

    async def read_item(self, *, profile: SourceProfile, item_id: str) -> Content:
        p = self._resolve_under_root(profile, item_id)

        def _do() -> bytes:
            if not p.exists():
                raise NotFoundError(f"File not found: {item_id}")
            if p.is_dir():
                raise UnreadableError(f"Cannot read a directory: {item_id}")
            return p.read_bytes()

        return await self._run(_do, f"read {item_id}")

    async def write_item(self, *, profile: SourceProfile, item_id: str, content: Content) -> None:
        self._check_writable(profile)
        p = self._resolve_under_root(profile, item_id)
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)

        def _do() -> None:
            if not p.parent.is_dir():
                raise NotFoundError(f"Parent directory does not exist: {item_id}")
            if p.is_dir():
                raise ReadOnlyError(f"Cannot overwrite a directory: {item_id}")
            p.write_bytes(data)

        await self._run(_do, f"write {item_id}")

    async def delete_item(self, *, profile: SourceProfile, item_id: str) -> None:
        self._check_writable(profile)
        root = self._root(profile)
        p = self._resolve_under_root(profile, item_id)
        if p == root:
            raise PermissionDeniedError("Cannot delete the profile root")

        def _do() -> None:
            if p.is_dir() and not p.is_symlink():
                shutil.rmtree(p)
            else:
                p.unlink()

        await self._run(_do, f"delete {item_id}")

    async def copy_items(self, *, profile: SourceProfile, item_ids: Sequence[str], target_path: str) -> BatchResult:
        return await self._transfer(profile, item_ids, target_path, move=False)

    async def move_items(self, *, profile: SourceProfile, item_ids: Sequence[str], target_path: str) -> BatchResult:
        return await self._transfer(profile, item_ids, target_path, move=True)

    async def make_directory(self, *, profile: SourceProfile, path: str, name: str) -> Item:
        self._check_writable(profile)
        root = self._root(profile)
        p = self._resolve_under_root(profile, join_path(path, name))

        def _do() -> Item:
            p.mkdir()
            return Item(
                id=self._item_id(root, p),
                name=p.name,
                type=ItemType.DIRECTORY,
                modified_at=datetime.fromtimestamp(p.stat().st_mtime, tz=timezone.utc),
            )

        return await self._run(_do, f"mkdir {path}/{name}")

    async def _transfer(self, profile: SourceProfile, item_ids: Sequence[str], target_path: str, *, move: bool) -> BatchResult:
        self._check_writable(profile)
        target = self._resolve_under_root(profile, target_path)
        succeeded: List[str] = []
        failed: Dict[str, CommanderError] = {}

        for item_id in item_ids:
            try:
                src = self._resolve_under_root(profile, item_id)
                await self._run(lambda: self._transfer_one(src, target, move=move), f"transfer {item_id}")
            except CommanderError as e:
                failed[item_id] = e
            else:
                succeeded.append(item_id)

        return BatchResult(succeeded=tuple(succeeded), failed=failed)

    def _transfer_one(self, src: Path, target: Path, *, move: bool) -> None:
        if not src.exists():
            raise NotFoundError(f"Not found: {src.name}")
        if not target.is_dir():
            raise NotFoundError(f"Target is not a directory: {target.name}")
        if target == src or src in target.parents:
            raise ValidationError(f"Cannot place {src.name} inside itself")

        dest = target / src.name
        if dest == src:
            raise ValidationError(f"{src.name} is already there")
        if dest.exists() and dest.is_dir() != src.is_dir():
            raise ReadOnlyError(f"Cannot replace {dest.name} with an item of another kind")

        if move and src.is_dir() and dest.is_dir():
            # Existing directory of the same name: merge into it
            shutil.copytree(src, dest, dirs_exist_ok=True)
            shutil.rmtree(src)
        elif move:
            shutil.move(str(src), str(dest))
        elif src.is_dir():
            shutil.copytree(src, dest, dirs_exist_ok=True)
        else:
            shutil.copy2(src, dest)
