"""MCP tools that copy, move and delete items between source profiles.

Registers 'copy_item', 'move_item' and 'delete_item'. Each tool looks the
item up in its parent listing, builds an Operation and runs it through the
Commander, i.e. the same engine that confirms keyboard-initiated operations.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from core.commander import Commander
from core.deadline import call_with_deadline
from core.errors import NotFoundError, ValidationError
from core.models import Item, Operation, OperationKind
from core.paths import ROOT, normalize_path, parent_path


async def _lookup(commander: Commander, profile_id: str, item_id: str) -> Item:
    # Items carry type/name metadata the engine needs, so resolve through the parent listing.
    profiles = commander.profiles
    profile = profiles.get(profile_id)
    target = normalize_path(item_id)
    if target == ROOT:
        raise ValidationError("The root cannot be transferred")

    parent = parent_path(target)
    items = await call_with_deadline(
        profiles.plugin_for(profile.id).list_items(profile=profile, path=parent),
        timeout=commander.timeout,
        context=f"list {profile.id}:{parent}",
    )
    for item in items:
        if not item.is_parent_link and normalize_path(item.id) == target:
            return item
    raise NotFoundError(f"Item not found: {profile.id}:{target}")


def _require(name: str, value: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"Missing {name}")
    return value.strip()


def register(mcp: FastMCP, *, commander: Commander) -> None:
    async def _transfer(
        kind: OperationKind,
        source_profile_id: str,
        source_id: str,
        target_profile_id: str,
        target_path: str,
    ) -> Dict[str, Any]:
        args = {
            "source_profile_id": _require("source_profile_id", source_profile_id),
            "source_id": _require("source_id", source_id),
            "target_profile_id": _require("target_profile_id", target_profile_id),
            "target_path": _require("target_path", target_path),
        }
        commander.log.agent(f"{kind.value}_item({json.dumps(args)})")

        item = await _lookup(commander, args["source_profile_id"], args["source_id"])
        operation = Operation(
            kind=kind,
            items=(item,),
            source_profile_id=args["source_profile_id"],
            source_path=parent_path(item.id),
            target_profile_id=args["target_profile_id"],
            target_path=args["target_path"],
        )
        result = await commander.run_operation(operation)
        return result.to_dict()

    @mcp.tool(name="copy_item")
    async def copy_item(
        source_profile_id: str = "",
        source_id: str = "",
        target_profile_id: str = "",
        target_path: str = "",
    ) -> Dict[str, Any]:
        """Copy one item into a directory of (possibly another) profile.

        Returns:
          {"kind", "status": "ok"|"partial"|"failed", "succeeded", "errors"}.
        """
        return await _transfer(OperationKind.COPY, source_profile_id, source_id, target_profile_id, target_path)

    @mcp.tool(name="move_item")
    async def move_item(
        source_profile_id: str = "",
        source_id: str = "",
        target_profile_id: str = "",
        target_path: str = "",
    ) -> Dict[str, Any]:
        """Move an item from one profile/path to another profile/path.

        Across profiles the item is copied and the source deleted once the
        copy succeeded; there is no rollback.

        Returns:
          {"kind", "status": "ok"|"partial"|"failed", "succeeded", "errors"}.
        """
        return await _transfer(OperationKind.MOVE, source_profile_id, source_id, target_profile_id, target_path)

    @mcp.tool(name="delete_item")
    async def delete_item(profile_id: str = "", item_id: str = "") -> Dict[str, Any]:
        """Delete one item (containers are deleted with their contents)."""
        args = {"profile_id": _require("profile_id", profile_id), "item_id": _require("item_id", item_id)}
        commander.log.agent(f"delete_item({json.dumps(args)})")

        item = await _lookup(commander, args["profile_id"], args["item_id"])
        operation = Operation(
            kind=OperationKind.DELETE,
            items=(item,),
            source_profile_id=args["profile_id"],
            source_path=parent_path(item.id),
        )
        result = await commander.run_operation(operation)
        return result.to_dict()
