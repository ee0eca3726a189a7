"""MCP tool that lists the items under a profile path.

Registers the 'list_items' tool which lets an assistant browse any source
profile through the same backend contract the panes use.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from core.commander import Commander
from core.deadline import call_with_deadline
from core.errors import ValidationError
from core.paths import normalize_path


def register(mcp: FastMCP, *, commander: Commander) -> None:
    @mcp.tool(name="list_items")
    async def list_items(profile_id: str = "", path: str = "/") -> List[Dict[str, Any]]:
        """List the immediate children of a path in a source profile.

        Params:
          - profile_id: id of a configured source profile (required).
          - path: absolute path inside the profile (default: "/").

        Returns:
          Items as dicts (id, name, type, sizeBytes, modifiedAt, extension).
          Non-root listings start with the ".." entry.

        Raises:
          ValidationError for an unknown profile; NotFoundError,
          PermissionDeniedError or BackendUnavailableError from the backend.
        """
        if not profile_id or not profile_id.strip():
            raise ValidationError("Missing profile_id")

        profiles = commander.profiles
        profile = profiles.get(profile_id.strip())
        target = normalize_path(path)
        commander.log.agent(f"list_items({json.dumps({'profile_id': profile.id, 'path': target})})")

        items = await call_with_deadline(
            profiles.plugin_for(profile.id).list_items(profile=profile, path=target),
            timeout=commander.timeout,
            context=f"list {profile.id}:{target}",
        )
        return [item.to_dict() for item in items]
