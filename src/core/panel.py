"""Per-pane state machine: listing, focus and multi-selection.

A Panel owns one PanelState and is IDLE or REFRESHING. Listings are
applied only if no newer navigate was issued on the same pane while the
request was in flight; stale replies (success or failure) are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from core.deadline import call_with_deadline
from core.errors import CommanderError, ValidationError
from core.formatting import format_size
from core.models import Item, Side
from core.paths import join_path, normalize_path, parent_path
from core.registry import ProfileRegistry

_LOG = logging.getLogger(__name__)


class PanelStatus(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass
class PanelState:
    profile_id: str
    path: str = "/"
    items: List[Item] = field(default_factory=list)
    focused_index: Optional[int] = None
    selection: Set[str] = field(default_factory=set)

    def focused_item(self) -> Optional[Item]:
        if self.focused_index is None or not self.items:
            return None
        return self.items[self.focused_index]


class Panel:
    def __init__(
        self,
        *,
        side: Side,
        profile_id: str,
        profiles: ProfileRegistry,
        path: str = "/",
        timeout: Optional[float] = None,
    ) -> None:
        self._side = side
        self._profiles = profiles
        self._timeout = timeout
        self._state = PanelState(profile_id=profile_id, path=normalize_path(path))
        self._status = PanelStatus.IDLE

        # Bumped on every navigate; a reply is applied only if its ticket is still current.
        self._generation = 0

    @property
    def side(self) -> Side:
        return self._side

    @property
    def state(self) -> PanelState:
        return self._state

    @property
    def status(self) -> PanelStatus:
        return self._status

    # --- listing ---

    async def navigate(self, path: str, profile_id: Optional[str] = None) -> bool:
        """List `path` on `profile_id` (default: current profile) and apply it.

        Returns True when the listing was applied, False when a newer
        navigate superseded this one. Errors of the current request
        propagate and leave the state untouched.
        """
        profile = self._profiles.get(profile_id or self._state.profile_id)
        plugin = self._profiles.plugin_for(profile.id)
        target = normalize_path(path)

        self._generation += 1
        ticket = self._generation
        self._status = PanelStatus.REFRESHING

        try:
            items = await call_with_deadline(
                plugin.list_items(profile=profile, path=target),
                timeout=self._timeout,
                context=f"list {profile.id}:{target}",
            )
        except CommanderError:
            if ticket != self._generation:
                _LOG.debug("%s: dropping stale failure for %s:%s", self._side.value, profile.id, target)
                return False
            self._status = PanelStatus.IDLE
            raise

        if ticket != self._generation:
            _LOG.debug("%s: dropping stale listing for %s:%s", self._side.value, profile.id, target)
            return False

        self._state.profile_id = profile.id
        self._state.path = target
        self._state.items = list(items)
        self._state.focused_index = 0 if self._state.items else None
        self._state.selection = set()
        self._status = PanelStatus.IDLE
        return True

    async def refresh(self) -> bool:
        return await self.navigate(self._state.path, self._state.profile_id)

    async def open_focused(self) -> bool:
        """Descend into the focused container, or go up on '..'."""
        item = self._state.focused_item()
        if item is None:
            return False
        if item.is_parent_link:
            return await self.navigate(parent_path(self._state.path))
        if not item.is_container:
            return False
        return await self.navigate(join_path(self._state.path, item.name))

    # --- focus & selection ---

    def move_focus(self, delta: int) -> Optional[int]:
        if not self._state.items:
            self._state.focused_index = None
            return None
        current = self._state.focused_index or 0
        self._state.focused_index = max(0, min(len(self._state.items) - 1, current + int(delta)))
        return self._state.focused_index

    def focused_item(self) -> Optional[Item]:
        return self._state.focused_item()

    def toggle_selection(self, index: int, *, ctrl: bool = False, shift: bool = False) -> None:
        """Apply a click on `index`.

        plain: collapse selection (focus only)
        ctrl:  toggle the clicked id
        shift: union the closed range between focus and `index`
        Shift wins when both modifiers are held. Focus always moves to `index`.
        """
        items = self._state.items
        if not 0 <= index < len(items):
            raise ValidationError(f"Index out of range: {index}")

        selection = self._state.selection
        if shift:
            anchor = self._state.focused_index if self._state.focused_index is not None else index
            lo, hi = min(anchor, index), max(anchor, index)
            selection.update(item.id for item in items[lo : hi + 1] if not item.is_parent_link)
        elif ctrl:
            item = items[index]
            if not item.is_parent_link:
                if item.id in selection:
                    selection.discard(item.id)
                else:
                    selection.add(item.id)
        else:
            selection.clear()

        self._state.focused_index = index

    def clear_selection(self) -> None:
        self._state.selection.clear()

    def resolve_operation_item_set(self) -> List[Item]:
        """Selection (listing order) if any, else the focused item, else nothing."""
        if self._state.selection:
            return [item for item in self._state.items if item.id in self._state.selection]

        item = self._state.focused_item()
        if item is None or item.is_parent_link:
            return []
        return [item]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "side": self._side.value,
            "status": self._status.value,
            "profileId": self._state.profile_id,
            "path": self._state.path,
            "items": [dict(item.to_dict(), sizeLabel=format_size(item)) for item in self._state.items],
            "focusedIndex": self._state.focused_index,
            "selection": sorted(self._state.selection),
        }
