import json

from mcp.server.fastmcp import FastMCP

from core.commander import Commander


def register_resources(mcp: FastMCP, *, commander: Commander) -> None:
    """
    Register read-only session resources for the MCP server.
    """

    @mcp.resource(
        "commander://profiles",
        mime_type="application/json",
        description="Configured source profiles (id, display name, backend, config)",
    )
    def profiles() -> str:
        return json.dumps([p.to_dict() for p in commander.profiles.all()], indent=2)

    @mcp.resource(
        "commander://plugins",
        mime_type="application/json",
        description="Registered storage backends and the config keys they expect",
    )
    def plugins() -> str:
        return json.dumps([p.metadata.to_dict() for p in commander.profiles.plugins.all()], indent=2)

    @mcp.resource(
        "commander://panels",
        mime_type="application/json",
        description="Current state of both panes and any pending operation",
    )
    def panels() -> str:
        return json.dumps(commander.snapshot(), indent=2)

    @mcp.resource(
        "commander://log",
        mime_type="application/json",
        description="Recent command log entries (user, agent and system)",
    )
    def command_log() -> str:
        return json.dumps([e.to_dict() for e in commander.log.entries()], indent=2)
