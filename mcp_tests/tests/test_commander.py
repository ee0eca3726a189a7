import pytest

from backends.memory_backend import MemoryBackend
from core.command_log import LogSource
from core.commander import Commander, describe_result
from core.errors import NotFoundError, PermissionDeniedError
from core.models import Operation, OperationKind, OperationResult, OutcomeStatus, PluginMetadata, Side, SourceProfile
from core.operations import EngineState
from core.registry import PluginRegistry, ProfileRegistry

from conftest import P1


class ListOnlyBackend:
    metadata = PluginMetadata(id="listonly", display_name="List only", description="Listing without mkdir")

    async def list_items(self, *, profile, path):
        return []

    async def read_item(self, *, profile, item_id):
        raise NotFoundError(item_id)

    async def write_item(self, *, profile, item_id, content):
        return None

    async def delete_item(self, *, profile, item_id):
        return None


def _system_messages(commander):
    return [e.message for e in commander.log.entries() if e.source is LogSource.SYSTEM]


@pytest.mark.asyncio
async def test_start_lists_both_panes(commander):
    await commander.start()

    assert [i.name for i in commander.panel(Side.LEFT).state.items] == ["a", "readme.md"]
    assert [i.name for i in commander.panel(Side.RIGHT).state.items] == ["b"]
    assert _system_messages(commander)[0].startswith("Profiles loaded: P1: (Memory)")


@pytest.mark.asyncio
async def test_active_side_switching(commander):
    assert commander.active_side is Side.LEFT
    assert commander.passive_panel is commander.panel(Side.RIGHT)
    assert commander.switch_active() is Side.RIGHT
    assert commander.active_panel is commander.panel(Side.RIGHT)
    commander.set_active(Side.LEFT)
    assert commander.active_side is Side.LEFT


@pytest.mark.asyncio
async def test_navigate_failure_is_logged_not_raised(commander):
    await commander.start()
    assert await commander.navigate(Side.LEFT, "/missing") is False

    assert commander.panel(Side.LEFT).state.path == "/"
    assert _system_messages(commander)[-1].startswith("list P1:/missing failed: NotFound")


@pytest.mark.asyncio
async def test_navigate_to_other_profile(commander):
    assert await commander.navigate(Side.RIGHT, "/", profile_id="B")
    assert commander.panel(Side.RIGHT).state.profile_id == "B"
    assert [i.name for i in commander.panel(Side.RIGHT).state.items] == ["sales"]


@pytest.mark.asyncio
async def test_click_on_parent_link_goes_up(commander):
    await commander.navigate(Side.LEFT, "/a/sub")
    assert await commander.click(0)
    assert commander.active_panel.state.path == "/a"


@pytest.mark.asyncio
async def test_click_selects_and_activates_side(commander):
    await commander.start()
    await commander.navigate(Side.RIGHT, "/b")
    await commander.navigate(Side.LEFT, "/a")

    assert await commander.click(2, ctrl=True)
    assert await commander.click(3, ctrl=True)
    assert commander.active_panel.state.selection == {"/a/a1.txt", "/a/a2.txt"}

    assert await commander.click(9) is False
    assert _system_messages(commander)[-1].startswith("click failed")

    await commander.click(0, side=Side.RIGHT)
    assert commander.active_side is Side.RIGHT


@pytest.mark.asyncio
async def test_keyboard_copy_round_trip(commander, memory):
    await commander.start()
    await commander.navigate(Side.LEFT, "/a")
    await commander.navigate(Side.RIGHT, "/b")
    commander.set_active(Side.LEFT)
    await commander.click(2, ctrl=True)

    op = commander.initiate(OperationKind.COPY)
    assert op is not None
    assert commander.snapshot()["operation"]["state"] == "pending_confirmation"

    result = await commander.confirm()
    assert result.status is OutcomeStatus.OK
    assert [i.name for i in commander.panel(Side.RIGHT).state.items] == ["..", "a1.txt"]
    assert commander.panel(Side.LEFT).state.selection == set()
    assert _system_messages(commander)[-1] == "copy: OK (1 ok, 0 failed)"


@pytest.mark.asyncio
async def test_initiate_with_nothing_is_logged(commander):
    await commander.navigate(Side.LEFT, "/a")
    assert commander.initiate(OperationKind.DELETE) is None
    assert _system_messages(commander)[-1] == "delete: nothing to operate on"


@pytest.mark.asyncio
async def test_confirm_and_target_errors_are_logged(commander):
    assert await commander.confirm() is None
    assert _system_messages(commander)[-1].startswith("confirm rejected")

    await commander.navigate(Side.LEFT, "/a")
    await commander.navigate(Side.RIGHT, "/b")
    commander.move_focus(2)
    commander.initiate(OperationKind.DELETE)
    assert commander.set_target_path("/b") is False
    assert commander.cancel()
    assert commander.engine.state is EngineState.NONE
    assert commander.cancel() is False


@pytest.mark.asyncio
async def test_make_directory(commander, memory):
    await commander.navigate(Side.LEFT, "/a")
    assert await commander.make_directory("fresh")
    assert "fresh" in [i.name for i in commander.active_panel.state.items]

    assert await commander.make_directory("fresh") is False
    assert _system_messages(commander)[-1].startswith("mkdir failed: Validation")


@pytest.mark.asyncio
async def test_make_directory_without_capability_is_read_only():
    plugins = PluginRegistry([ListOnlyBackend()]).freeze()
    profile = SourceProfile(id="X", display_name="X", backend_id="listonly")
    profiles = ProfileRegistry(plugins, [profile]).freeze()
    commander = Commander(profiles=profiles, left_profile_id="X", right_profile_id="X")

    assert await commander.make_directory("new") is False
    assert _system_messages(commander)[-1].startswith("mkdir failed: ReadOnly")


def test_describe_result():
    err = PermissionDeniedError("locked")
    result = OperationResult.from_outcomes(OperationKind.MOVE, ["/x", "/y"], {"/x": None, "/y": err})
    assert describe_result(result) == "move: PARTIAL (1 ok, 1 failed): /y -> PermissionDenied"


@pytest.mark.asyncio
async def test_snapshot_shape(commander):
    await commander.start()
    snap = commander.snapshot()
    assert snap["activeSide"] == "left"
    assert set(snap["panels"]) == {"left", "right"}
    assert snap["panels"]["left"]["profileId"] == P1.id
    assert snap["operation"] == {"state": "none", "pending": None}


@pytest.mark.asyncio
async def test_run_operation_refreshes_pane_that_was_empty():
    backend = MemoryBackend()
    empty = SourceProfile(id="E", display_name="E: (Empty)", backend_id="memory")
    backend.seed(P1, {"/f.txt": "f"})
    plugins = PluginRegistry([backend]).freeze()
    profiles = ProfileRegistry(plugins, [P1, empty]).freeze()
    commander = Commander(profiles=profiles, left_profile_id="P1", right_profile_id="E")
    await commander.start()
    assert commander.panel(Side.RIGHT).state.items == []

    result = await commander.run_operation(
        Operation(
            kind=OperationKind.COPY,
            items=tuple(commander.panel(Side.LEFT).state.items),
            source_profile_id="P1",
            source_path="/",
            target_profile_id="E",
            target_path="/",
        )
    )

    assert result.status is OutcomeStatus.OK
    assert [i.name for i in commander.panel(Side.RIGHT).state.items] == ["f.txt"]
