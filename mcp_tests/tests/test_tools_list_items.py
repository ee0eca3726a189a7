import pytest

from core.command_log import LogSource
from core.errors import NotFoundError, ValidationError
from tools import list_items as list_items_tool


@pytest.mark.asyncio
async def test_list_items_tool_validates_missing_profile(dummy_mcp, commander):
    list_items_tool.register(dummy_mcp, commander=commander)
    fn = dummy_mcp.tools["list_items"]

    with pytest.raises(ValidationError):
        await fn(profile_id="  ", path="/")


@pytest.mark.asyncio
async def test_list_items_tool_unknown_profile(dummy_mcp, commander):
    list_items_tool.register(dummy_mcp, commander=commander)
    fn = dummy_mcp.tools["list_items"]

    with pytest.raises(ValidationError):
        await fn(profile_id="ZZ", path="/")


@pytest.mark.asyncio
async def test_list_items_tool_returns_dicts_and_logs(dummy_mcp, commander):
    list_items_tool.register(dummy_mcp, commander=commander)
    fn = dummy_mcp.tools["list_items"]

    out = await fn(profile_id="P1", path="a/")

    assert [i["name"] for i in out] == ["..", "sub", "a1.txt", "a2.txt", "a3.txt"]
    assert out[2] == {
        "id": "/a/a1.txt",
        "name": "a1.txt",
        "type": "file",
        "sizeBytes": 3,
        "modifiedAt": out[2]["modifiedAt"],
        "extension": "txt",
    }

    last = commander.log.entries()[-1]
    assert last.source is LogSource.AGENT
    assert last.message == 'list_items({"profile_id": "P1", "path": "/a"})'


@pytest.mark.asyncio
async def test_list_items_tool_propagates_backend_errors(dummy_mcp, commander):
    list_items_tool.register(dummy_mcp, commander=commander)
    fn = dummy_mcp.tools["list_items"]

    with pytest.raises(NotFoundError):
        await fn(profile_id="P1", path="/nope")
