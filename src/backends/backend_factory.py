"""Startup wiring for backends and source profiles.

Builds the frozen PluginRegistry with every reference backend and the
ProfileRegistry from a JSON profiles file (or the built-in defaults).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional

from core.errors import ValidationError
from core.models import SourceProfile
from core.registry import PluginRegistry, ProfileRegistry

from backends.http_store import HttpStoreBackend
from backends.local_backend import LocalBackend
from backends.memory_backend import MemoryBackend
from backends.object_store import ObjectStoreBackend
from backends.warehouse import WarehouseBackend


def default_profiles(*, project_root: Path) -> List[SourceProfile]:
    return [
        SourceProfile(id="L", display_name="L: (Local Memory)", backend_id="memory"),
        SourceProfile(id="S", display_name="S: (S3 Bucket)", backend_id="s3", config={"bucket": "my-backups"}),
        SourceProfile(id="B", display_name="B: (Warehouse)", backend_id="warehouse", config={"project": "analytics"}),
        SourceProfile(id="D", display_name="D: (Project Disk)", backend_id="local", config={"root": str(project_root)}),
    ]


def build_plugin_registry(*, http_timeout: float = 20.0, http_verify: bool = False) -> PluginRegistry:
    """Register every reference backend once and freeze the registry."""
    registry = PluginRegistry(
        [
            MemoryBackend(),
            ObjectStoreBackend(),
            WarehouseBackend(),
            LocalBackend(),
            HttpStoreBackend(timeout=http_timeout, verify=http_verify),
        ]
    )
    return registry.freeze()


def _profile_from_dict(raw: Any) -> SourceProfile:
    if not isinstance(raw, dict):
        raise ValidationError("Each profile must be a JSON object")

    profile_id = str(raw.get("id") or "").strip()
    backend_id = str(raw.get("backendId") or raw.get("backend_id") or "").strip()
    if not profile_id or not backend_id:
        raise ValidationError("Profile needs 'id' and 'backendId'")

    config = raw.get("config") or {}
    if not isinstance(config, dict):
        raise ValidationError(f"Profile {profile_id}: 'config' must be an object")

    return SourceProfile(
        id=profile_id,
        display_name=str(raw.get("displayName") or raw.get("display_name") or profile_id),
        backend_id=backend_id,
        config={str(k): str(v) for k, v in config.items()},
    )


def load_profiles(path: Optional[str], *, project_root: Path) -> List[SourceProfile]:
    """Read profiles from a JSON list, or return the built-in defaults."""
    if not path:
        return default_profiles(project_root=project_root)

    profiles_path = Path(path)
    if not profiles_path.exists():
        raise ValidationError(f"Profiles file not found: {profiles_path}")

    try:
        doc = json.loads(profiles_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in profiles file: {e}") from e

    if not isinstance(doc, list) or not doc:
        raise ValidationError("Profiles file must hold a non-empty JSON list")
    return [_profile_from_dict(raw) for raw in doc]


def build_profile_registry(plugins: PluginRegistry, profiles: Iterable[SourceProfile]) -> ProfileRegistry:
    return ProfileRegistry(plugins, profiles).freeze()
