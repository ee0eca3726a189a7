"""MCP tool that reads an item's content from a source profile.

Registers the 'read_item' tool which returns text content with a max size.
Binary payloads are decoded as UTF-8 with replacement characters.
"""

from __future__ import annotations

import json

from mcp.server.fastmcp import FastMCP

from config import MAX_READ_CHARS
from core.commander import Commander
from core.deadline import call_with_deadline
from core.errors import ValidationError
from core.paths import normalize_path


def register(mcp: FastMCP, *, commander: Commander) -> None:
    @mcp.tool(name="read_item")
    async def read_item(profile_id: str = "", item_id: str = "", max_chars: int = MAX_READ_CHARS) -> str:
        """Read an item and return its contents as text.

        Params:
          - profile_id: id of a configured source profile (required).
          - item_id: id of the item, as returned by list_items (required).
          - max_chars: maximum characters to return (default from config).

        Returns:
          The item contents. If they exceed max_chars they are truncated and
          the suffix "\n\n...[TRUNCATED]..." appended. Tables come back as a
          JSON document with "columns" and "rows".

        Raises:
          ValidationError for missing inputs; NotFoundError, UnreadableError
          or BackendUnavailableError from the backend.
        """
        if not profile_id or not profile_id.strip():
            raise ValidationError("Missing profile_id")
        if not item_id or not item_id.strip():
            raise ValidationError("Missing item_id")
        if int(max_chars) <= 0:
            raise ValidationError("max_chars must be positive")

        profiles = commander.profiles
        profile = profiles.get(profile_id.strip())
        target = normalize_path(item_id)
        commander.log.agent(f"read_item({json.dumps({'profile_id': profile.id, 'item_id': target})})")

        content = await call_with_deadline(
            profiles.plugin_for(profile.id).read_item(profile=profile, item_id=target),
            timeout=commander.timeout,
            context=f"read {profile.id}:{target}",
        )
        text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
        if len(text) > max_chars:
            # Truncate long payloads to avoid returning huge responses
            return text[:max_chars] + "\n\n...[TRUNCATED]..."
        return text
