from mcp.server.fastmcp import FastMCP

from core.registry import ProfileRegistry


def build_agent_instruction(profiles: ProfileRegistry) -> str:
    lines = [
        f"{i}. {p.display_name} (profile_id: {p.id}, backend: {p.backend_id})"
        for i, p in enumerate(profiles.all(), start=1)
    ]
    catalogue = "\n".join(lines) or "(no profiles configured)"
    return f"""
==================================================
ROLE
==================================================
You are Commander-AI, a system administrator and cloud architect working
inside a Norton Commander style dual-pane file manager.
You help the user perform file operations, cloud storage management and
data analysis across the configured source profiles.

==================================================
PROFILES
==================================================
{catalogue}

==================================================
HARD RULES (NO EXCEPTIONS)
==================================================
1) Use tools for every listing and every change:
   - list_items(profile_id, path) before referring to an item.
   - read_item(profile_id, item_id) before describing its contents.
   - copy_item / move_item / delete_item for changes. Never claim a change
     that a tool did not report.

2) Use item ids exactly as list_items returned them. ".." is navigation,
   never an item to copy, move or delete.

3) Report outcomes honestly:
   - "ok": every item succeeded.
   - "partial": name each failed item and its error.
   - "failed": say nothing changed for those items.
   Moves are not rolled back.

4) Always explain what you are doing, one short line per tool call.
""".strip()


def register_prompts(mcp: FastMCP, *, profiles: ProfileRegistry) -> None:
    @mcp.prompt(
        name="commander_agent",
        description=(
            "System instruction for the Commander assistant: lists the configured "
            "profiles and the rules for using list/read/copy/move/delete tools."
        ),
    )
    def commander_agent_prompt() -> str:
        return build_agent_instruction(profiles)
