"""Dual-pane session: the boundary where user and agent intents enter.

Commander owns the left/right panes, the active side, one OperationEngine
and the CommandLog. Backend and validation errors stop here: they are
written to the log and reported as a falsy return, never raised to the
presentation layer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from core.command_log import CommandLog
from core.deadline import call_with_deadline
from core.errors import CommanderError, ReadOnlyError
from core.interfaces import DirectoryPlugin
from core.models import Operation, OperationKind, OperationResult, Side
from core.operations import OperationEngine
from core.panel import Panel
from core.registry import ProfileRegistry

_LOG = logging.getLogger(__name__)


def describe_result(result: OperationResult) -> str:
    head = f"{result.kind.value}: {result.status.value.upper()} ({len(result.succeeded)} ok, {len(result.errors)} failed)"
    if not result.errors:
        return head
    details = ", ".join(f"{i} -> {e.code}" for i, e in result.errors.items())
    return f"{head}: {details}"


class Commander:
    def __init__(
        self,
        *,
        profiles: ProfileRegistry,
        left_profile_id: str,
        right_profile_id: str,
        log: Optional[CommandLog] = None,
        timeout: Optional[float] = None,
        max_concurrency: int = 4,
    ) -> None:
        self._profiles = profiles
        self._timeout = timeout
        self._log = log or CommandLog()
        self._panels: Dict[Side, Panel] = {
            Side.LEFT: Panel(side=Side.LEFT, profile_id=left_profile_id, profiles=profiles, timeout=timeout),
            Side.RIGHT: Panel(side=Side.RIGHT, profile_id=right_profile_id, profiles=profiles, timeout=timeout),
        }
        self._active = Side.LEFT
        self._engine = OperationEngine(profiles=profiles, timeout=timeout, max_concurrency=max_concurrency)

    # --- accessors ---

    @property
    def log(self) -> CommandLog:
        return self._log

    @property
    def engine(self) -> OperationEngine:
        return self._engine

    @property
    def profiles(self) -> ProfileRegistry:
        return self._profiles

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def active_side(self) -> Side:
        return self._active

    def panel(self, side: Side) -> Panel:
        return self._panels[side]

    @property
    def active_panel(self) -> Panel:
        return self._panels[self._active]

    @property
    def passive_panel(self) -> Panel:
        return self._panels[self._active.other]

    def switch_active(self) -> Side:
        self._active = self._active.other
        return self._active

    def set_active(self, side: Side) -> None:
        self._active = side

    # --- navigation ---

    async def start(self) -> None:
        names = ", ".join(p.display_name for p in self._profiles.all())
        self._log.system(f"Profiles loaded: {names}")
        await asyncio.gather(self.navigate(Side.LEFT, "/"), self.navigate(Side.RIGHT, "/"))

    async def navigate(self, side: Side, path: str, profile_id: Optional[str] = None) -> bool:
        panel = self._panels[side]
        pid = profile_id or panel.state.profile_id
        self._log.user(f"navigate {side.value} -> {pid}:{path}")
        try:
            return await panel.navigate(path, profile_id)
        except CommanderError as e:
            self._log.system(f"list {pid}:{path} failed: {e.code}: {e}")
            return False

    async def open_focused(self, side: Optional[Side] = None) -> bool:
        panel = self._panels[side or self._active]
        try:
            return await panel.open_focused()
        except CommanderError as e:
            self._log.system(f"open in {panel.side.value} failed: {e.code}: {e}")
            return False

    def move_focus(self, delta: int, side: Optional[Side] = None) -> Optional[int]:
        return self._panels[side or self._active].move_focus(delta)

    async def click(
        self,
        index: int,
        *,
        ctrl: bool = False,
        shift: bool = False,
        side: Optional[Side] = None,
    ) -> bool:
        """Route a click: '..' navigates up, anything else is a selection change."""
        target = side or self._active
        self._active = target
        panel = self._panels[target]
        items = panel.state.items
        if 0 <= index < len(items) and items[index].is_parent_link:
            panel.state.focused_index = index
            return await self.open_focused(target)
        try:
            panel.toggle_selection(index, ctrl=ctrl, shift=shift)
        except CommanderError as e:
            self._log.system(f"click failed: {e}")
            return False
        return True

    async def make_directory(self, name: str, side: Optional[Side] = None) -> bool:
        panel = self._panels[side or self._active]
        profile = self._profiles.get(panel.state.profile_id)
        plugin = self._profiles.plugin_for(profile.id)
        self._log.user(f"mkdir {profile.id}:{panel.state.path} {name}")
        try:
            if not isinstance(plugin, DirectoryPlugin):
                raise ReadOnlyError(f"{profile.backend_id} cannot create containers")
            await call_with_deadline(
                plugin.make_directory(profile=profile, path=panel.state.path, name=name),
                timeout=self._timeout,
                context=f"mkdir {profile.id}:{panel.state.path}",
            )
            return await panel.refresh()
        except CommanderError as e:
            self._log.system(f"mkdir failed: {e.code}: {e}")
            return False

    # --- operations ---

    def initiate(self, kind: OperationKind) -> Optional[Operation]:
        try:
            operation = self._engine.initiate(kind, active=self.active_panel, passive=self.passive_panel)
        except CommanderError as e:
            self._log.system(f"{kind.value} rejected: {e}")
            return None
        if operation is None:
            self._log.system(f"{kind.value}: nothing to operate on")
            return None
        self._log.user(f"{kind.value} {len(operation.items)} item(s) pending confirmation")
        return operation

    def set_target_path(self, path: str) -> bool:
        try:
            self._engine.set_target_path(path)
        except CommanderError as e:
            self._log.system(f"target path rejected: {e}")
            return False
        return True

    async def confirm(self) -> Optional[OperationResult]:
        try:
            result = await self._engine.confirm()
        except CommanderError as e:
            self._log.system(f"confirm rejected: {e}")
            return None
        self._log.system(describe_result(result))
        return result

    def cancel(self) -> bool:
        cancelled = self._engine.cancel()
        if cancelled:
            self._log.user("operation cancelled")
        return cancelled

    async def run_operation(self, operation: Operation) -> OperationResult:
        """Execute a fully-built operation (agent path) and refresh affected panes."""
        result = await self._engine.execute(operation)
        self._log.system(describe_result(result))

        touched = {operation.source_profile_id, operation.target_profile_id}
        for panel in self._panels.values():
            if panel.state.profile_id in touched:
                try:
                    await panel.refresh()
                except CommanderError as e:
                    self._log.system(f"refresh {panel.side.value} failed: {e.code}: {e}")
        return result

    def snapshot(self) -> Dict[str, Any]:
        pending = self._engine.pending
        return {
            "activeSide": self._active.value,
            "panels": {side.value: panel.snapshot() for side, panel in self._panels.items()},
            "operation": {
                "state": self._engine.state.value,
                "pending": pending.to_dict() if pending else None,
            },
        }
