"""Server bootstrap for the Commander MCP service.

Builds the plugin and profile registries once, creates the dual-pane
Commander session, registers tools, resources and prompts on a FastMCP
instance, and starts the MCP server (stdio transport).
"""

import asyncio

from mcp.server.fastmcp import FastMCP

from backends.backend_factory import build_plugin_registry, build_profile_registry, load_profiles
from config import (
    BACKEND_TIMEOUT,
    COMMAND_LOG_LIMIT,
    HTTP_TIMEOUT,
    HTTP_VERIFY,
    LEFT_PROFILE,
    LOG_LEVEL,
    OPERATION_CONCURRENCY,
    PROFILES_PATH,
    PROJECT_ROOT,
    RIGHT_PROFILE,
)
from core.app_logging import init_logging
from core.command_log import CommandLog
from core.commander import Commander

from tools.list_items import register as register_list_items
from tools.read_item import register as register_read_item
from tools.transfer_items import register as register_transfer_items

from resources.commander_resources import register_resources
from prompts.commander_prompt import register_prompts

mcp = FastMCP("commander-mcp")

# Init-once, read-only afterwards
plugins = build_plugin_registry(http_timeout=HTTP_TIMEOUT, http_verify=HTTP_VERIFY)
profiles = build_profile_registry(plugins, load_profiles(PROFILES_PATH, project_root=PROJECT_ROOT))

commander = Commander(
    profiles=profiles,
    left_profile_id=LEFT_PROFILE,
    right_profile_id=RIGHT_PROFILE,
    log=CommandLog(maxlen=COMMAND_LOG_LIMIT),
    timeout=BACKEND_TIMEOUT,
    max_concurrency=OPERATION_CONCURRENCY,
)


def register_tools() -> None:
    register_list_items(mcp, commander=commander)
    register_read_item(mcp, commander=commander)
    register_transfer_items(mcp, commander=commander)


def register_all() -> None:
    register_tools()
    register_resources(mcp, commander=commander)
    register_prompts(mcp, profiles=profiles)


register_all()


def main() -> None:
    init_logging(LOG_LEVEL)
    commander.log.system("System initialized.")
    asyncio.run(commander.start())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
