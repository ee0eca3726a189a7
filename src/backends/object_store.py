"""Object-store flavoured memory backend.

The top level holds buckets; objects only live inside a bucket. The bucket
named in the profile's `bucket` config exists from first use.
"""

from __future__ import annotations

from typing import Dict

from core.errors import ReadOnlyError
from core.models import ItemType, PluginMetadata, SourceProfile
from core.paths import ROOT, parent_path, split_posix

from backends.memory_backend import MemoryBackend, _Node


class ObjectStoreBackend(MemoryBackend):
    metadata = PluginMetadata(
        id="s3",
        display_name="S3 Buckets",
        description="Object storage buckets (in-memory reference)",
        config_fields=("bucket",),
    )

    def _container_type(self, path: str) -> ItemType:
        return ItemType.BUCKET if len(split_posix(path)) == 1 else ItemType.DIRECTORY

    def _init_store(self, profile: SourceProfile, store: Dict[str, _Node]) -> None:
        bucket = (profile.config.get("bucket") or "").strip().strip("/")
        if bucket:
            path = ROOT + bucket
            store[path] = _Node(type=self._container_type(path))

    def _check_leaf_location(self, item_id: str) -> None:
        if parent_path(item_id) == ROOT:
            raise ReadOnlyError("Objects must live inside a bucket")
