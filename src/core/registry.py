"""Plugin and source-profile registries.

Both are populated once at startup and frozen; after `freeze()` they are
read-only lookups passed explicitly to the panes, the operation engine and
the MCP tools.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from core.errors import ValidationError
from core.interfaces import StoragePlugin
from core.models import SourceProfile

_LOG = logging.getLogger(__name__)


class PluginRegistry:
    def __init__(self, plugins: Optional[Iterable[StoragePlugin]] = None) -> None:
        self._plugins: Dict[str, StoragePlugin] = {}
        self._frozen = False
        for plugin in plugins or ():
            self.register(plugin)

    def register(self, plugin: StoragePlugin) -> None:
        if self._frozen:
            raise ValidationError("Plugin registry is frozen")
        backend_id = plugin.metadata.id
        if backend_id in self._plugins:
            raise ValidationError(f"Duplicate backend id: {backend_id}")
        self._plugins[backend_id] = plugin
        _LOG.debug("registered backend %s", backend_id)

    def freeze(self) -> "PluginRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, backend_id: str) -> StoragePlugin:
        try:
            return self._plugins[backend_id]
        except KeyError:
            raise ValidationError(f"Unknown backend: {backend_id}") from None

    def all(self) -> List[StoragePlugin]:
        return list(self._plugins.values())

    def __contains__(self, backend_id: object) -> bool:
        return backend_id in self._plugins


class ProfileRegistry:
    """Source profiles keyed by id, validated against their backend metadata."""

    def __init__(self, plugins: PluginRegistry, profiles: Optional[Iterable[SourceProfile]] = None) -> None:
        self._plugins = plugins
        self._profiles: Dict[str, SourceProfile] = {}
        self._frozen = False
        for profile in profiles or ():
            self.register(profile)

    def register(self, profile: SourceProfile) -> None:
        if self._frozen:
            raise ValidationError("Profile registry is frozen")
        if not (profile.id or "").strip():
            raise ValidationError("Profile id is empty")
        if profile.id in self._profiles:
            raise ValidationError(f"Duplicate profile id: {profile.id}")

        plugin = self._plugins.get(profile.backend_id)
        missing = [f for f in plugin.metadata.config_fields if not (profile.config.get(f) or "").strip()]
        if missing:
            raise ValidationError(
                f"Profile {profile.id} is missing config for {profile.backend_id}: {', '.join(missing)}"
            )

        self._profiles[profile.id] = profile

    def freeze(self) -> "ProfileRegistry":
        self._frozen = True
        return self

    def get(self, profile_id: str) -> SourceProfile:
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise ValidationError(f"Unknown profile: {profile_id}") from None

    def plugin_for(self, profile_id: str) -> StoragePlugin:
        return self._plugins.get(self.get(profile_id).backend_id)

    def all(self) -> List[SourceProfile]:
        return list(self._profiles.values())

    @property
    def plugins(self) -> PluginRegistry:
        return self._plugins

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._profiles
