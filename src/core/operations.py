"""Copy/move/delete orchestration between two panes.

The engine holds at most one pending Operation. `initiate` takes the active
and passive panes explicitly: items come from the active pane, the default
destination from the passive one. Execution picks one of two strategies
behind the same `run(operation)` call:

- BulkTransferStrategy: the source backend copies/moves natively (same
  profile on both ends, plugin implements BulkTransferPlugin).
- ItemByItemStrategy: read then write per item, deleting the source after
  a successful copy for moves. Bounded fan-out, results in item order.

Batches are best-effort and never rolled back.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

from core.deadline import call_with_deadline
from core.errors import CommanderError, ConflictError, ValidationError
from core.interfaces import BulkTransferPlugin
from core.models import (
    Item,
    Operation,
    OperationKind,
    OperationResult,
    SourceProfile,
)
from core.panel import Panel
from core.paths import join_path, normalize_path
from core.registry import ProfileRegistry

_LOG = logging.getLogger(__name__)

Outcomes = Dict[str, Optional[CommanderError]]


class EngineState(str, Enum):
    NONE = "none"
    PENDING_CONFIRMATION = "pending_confirmation"
    EXECUTING = "executing"


class TransferStrategy(Protocol):
    async def run(self, operation: Operation) -> Outcomes:
        ...


class ItemByItemStrategy:
    def __init__(self, *, profiles: ProfileRegistry, timeout: Optional[float], max_concurrency: int) -> None:
        self._profiles = profiles
        self._timeout = timeout
        self._max_concurrency = max(1, int(max_concurrency))

    async def run(self, operation: Operation) -> Outcomes:
        source = self._profiles.get(operation.source_profile_id)
        target = (
            self._profiles.get(operation.target_profile_id)
            if operation.target_profile_id is not None
            else None
        )
        sem = asyncio.Semaphore(self._max_concurrency)

        async def _one(item: Item) -> Optional[CommanderError]:
            async with sem:
                try:
                    await self._apply(operation, item, source, target)
                except CommanderError as e:
                    _LOG.warning("%s %s failed: %s", operation.kind.value, item.id, e)
                    return e
                return None

        # gather keeps argument order regardless of completion order
        results = await asyncio.gather(*(_one(item) for item in operation.items))
        return {item.id: err for item, err in zip(operation.items, results)}

    async def _apply(
        self,
        operation: Operation,
        item: Item,
        source: SourceProfile,
        target: Optional[SourceProfile],
    ) -> None:
        src_plugin = self._profiles.plugin_for(source.id)

        if operation.kind is OperationKind.DELETE:
            await self._call(src_plugin.delete_item(profile=source, item_id=item.id), f"delete {source.id}:{item.id}")
            return

        if target is None or operation.target_path is None:
            raise ValidationError(f"{operation.kind.value} needs a target location")
        dst_plugin = self._profiles.plugin_for(target.id)
        target_id = join_path(operation.target_path, item.name)

        content = await self._call(src_plugin.read_item(profile=source, item_id=item.id), f"read {source.id}:{item.id}")
        await self._call(
            dst_plugin.write_item(profile=target, item_id=target_id, content=content),
            f"write {target.id}:{target_id}",
        )
        _LOG.debug("copied %s:%s -> %s:%s", source.id, item.id, target.id, target_id)

        if operation.kind is OperationKind.MOVE:
            await self._call(src_plugin.delete_item(profile=source, item_id=item.id), f"delete {source.id}:{item.id}")

    async def _call(self, call, context: str):
        return await call_with_deadline(call, timeout=self._timeout, context=context)


class BulkTransferStrategy:
    def __init__(self, *, profiles: ProfileRegistry, timeout: Optional[float]) -> None:
        self._profiles = profiles
        self._timeout = timeout

    async def run(self, operation: Operation) -> Outcomes:
        profile = self._profiles.get(operation.source_profile_id)
        plugin = self._profiles.plugin_for(profile.id)
        ids = operation.item_ids
        bulk = plugin.move_items if operation.kind is OperationKind.MOVE else plugin.copy_items

        try:
            report = await call_with_deadline(
                bulk(profile=profile, item_ids=ids, target_path=operation.target_path),
                timeout=self._timeout,
                context=f"{operation.kind.value} {profile.id}:{len(ids)} items",
            )
        except CommanderError as e:
            return {i: e for i in ids}

        outcomes: Outcomes = {}
        for i in ids:
            if i in report.failed:
                outcomes[i] = report.failed[i]
            elif i in report.succeeded:
                outcomes[i] = None
            else:
                outcomes[i] = CommanderError(f"Backend reported no outcome for {i}")
        return outcomes


class OperationEngine:
    def __init__(
        self,
        *,
        profiles: ProfileRegistry,
        timeout: Optional[float] = None,
        max_concurrency: int = 4,
    ) -> None:
        self._profiles = profiles
        self._timeout = timeout
        self._item_by_item = ItemByItemStrategy(profiles=profiles, timeout=timeout, max_concurrency=max_concurrency)
        self._bulk = BulkTransferStrategy(profiles=profiles, timeout=timeout)

        self._state = EngineState.NONE
        self._pending: Optional[Operation] = None
        self._active: Optional[Panel] = None
        self._passive: Optional[Panel] = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def pending(self) -> Optional[Operation]:
        return self._pending

    def initiate(self, kind: OperationKind, *, active: Panel, passive: Panel) -> Optional[Operation]:
        if self._state is EngineState.EXECUTING:
            raise ConflictError("Another operation is still executing")

        items = active.resolve_operation_item_set()
        if not items:
            return None

        operation = Operation(
            kind=kind,
            items=tuple(items),
            source_profile_id=active.state.profile_id,
            source_path=active.state.path,
            target_profile_id=passive.state.profile_id,
            target_path=passive.state.path,
        )
        self._pending = operation
        self._active = active
        self._passive = passive
        self._state = EngineState.PENDING_CONFIRMATION
        return operation

    def set_target_path(self, path: str) -> None:
        op = self._require_pending()
        if op.kind is OperationKind.DELETE:
            raise ValidationError("Delete has no target path")
        op.target_path = (path or "").strip()

    def cancel(self) -> bool:
        if self._state is not EngineState.PENDING_CONFIRMATION:
            return False
        self._reset()
        return True

    async def confirm(self) -> OperationResult:
        operation = self._require_pending()
        self.validate(operation)

        active, passive = self._active, self._passive
        self._state = EngineState.EXECUTING
        try:
            result = await self.execute(operation)
        finally:
            self._reset()

        if active is not None:
            active.clear_selection()
        await self._refresh([p for p in (active, passive) if p is not None])
        return result

    def validate(self, operation: Operation) -> None:
        if operation.kind is OperationKind.DELETE:
            return

        raw = (operation.target_path or "").strip()
        if not raw:
            raise ValidationError("Target path is empty")
        if not operation.target_profile_id:
            raise ValidationError("Target profile is missing")
        self._profiles.get(operation.target_profile_id)

        operation.target_path = normalize_path(raw)
        if (
            operation.target_profile_id == operation.source_profile_id
            and operation.target_path == normalize_path(operation.source_path)
        ):
            raise ValidationError("Source and target locations are the same")

    async def execute(self, operation: Operation) -> OperationResult:
        """Run an operation without touching the pending state."""
        self.validate(operation)
        strategy = self._select_strategy(operation)
        _LOG.info(
            "%s %d item(s) from %s:%s via %s",
            operation.kind.value,
            len(operation.items),
            operation.source_profile_id,
            operation.source_path,
            type(strategy).__name__,
        )
        outcomes = await strategy.run(operation)
        return OperationResult.from_outcomes(operation.kind, operation.item_ids, outcomes)

    def _select_strategy(self, operation: Operation) -> TransferStrategy:
        if operation.kind is OperationKind.DELETE:
            return self._item_by_item
        if operation.source_profile_id != operation.target_profile_id:
            return self._item_by_item
        plugin = self._profiles.plugin_for(operation.source_profile_id)
        if isinstance(plugin, BulkTransferPlugin):
            return self._bulk
        return self._item_by_item

    async def _refresh(self, panels: Sequence[Panel]) -> List[bool]:
        async def _one(panel: Panel) -> bool:
            try:
                return await panel.refresh()
            except CommanderError as e:
                _LOG.warning("refresh of %s pane failed: %s", panel.side.value, e)
                return False

        return list(await asyncio.gather(*(_one(p) for p in panels)))

    def _require_pending(self) -> Operation:
        if self._state is not EngineState.PENDING_CONFIRMATION or self._pending is None:
            raise ValidationError("No operation is pending confirmation")
        return self._pending

    def _reset(self) -> None:
        self._state = EngineState.NONE
        self._pending = None
        self._active = None
        self._passive = None
