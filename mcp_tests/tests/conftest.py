import pytest

from backends.memory_backend import MemoryBackend
from backends.object_store import ObjectStoreBackend
from backends.warehouse import WarehouseBackend
from core.command_log import CommandLog
from core.commander import Commander
from core.models import SourceProfile
from core.registry import PluginRegistry, ProfileRegistry


class DummyMCP:
    """Minimal FastMCP stand-in to capture tool/resource/prompt registration."""

    def __init__(self) -> None:
        self.tools = {}
        self.resources = {}
        self.prompts = {}

    def tool(self, *, name: str):
        def _decorator(fn):
            self.tools[name] = fn
            return fn
        return _decorator

    def resource(self, uri: str, **kwargs):
        def _decorator(fn):
            self.resources[uri] = fn
            return fn
        return _decorator

    def prompt(self, *, name: str, **kwargs):
        def _decorator(fn):
            self.prompts[name] = fn
            return fn
        return _decorator


class GatedBackend(MemoryBackend):
    """MemoryBackend whose listings and reads can be held until a gate opens."""

    def __init__(self) -> None:
        super().__init__()
        self.list_gates = {}
        self.read_gates = {}

    async def list_items(self, *, profile, path):
        gate = self.list_gates.get(path)
        if gate is not None:
            await gate.wait()
        return await super().list_items(profile=profile, path=path)

    async def read_item(self, *, profile, item_id):
        gate = self.read_gates.get(item_id)
        if gate is not None:
            await gate.wait()
        return await super().read_item(profile=profile, item_id=item_id)


P1 = SourceProfile(id="P1", display_name="P1: (Memory)", backend_id="memory")
P2 = SourceProfile(id="P2", display_name="P2: (Memory 2)", backend_id="memory")
S3 = SourceProfile(id="S", display_name="S: (S3 Bucket)", backend_id="s3", config={"bucket": "my-backups"})
BQ = SourceProfile(id="B", display_name="B: (Warehouse)", backend_id="warehouse", config={"project": "analytics"})


@pytest.fixture
def dummy_mcp():
    return DummyMCP()


@pytest.fixture
def memory():
    backend = GatedBackend()
    backend.seed(
        P1,
        {
            "/a/a1.txt": "one",
            "/a/a2.txt": "two",
            "/a/a3.txt": "three",
            "/a/sub/deep.txt": "deep",
            "/readme.md": "# hello",
        },
    )
    backend.seed_directory(P2, "/b")
    return backend


@pytest.fixture
def warehouse():
    backend = WarehouseBackend()
    backend.seed_table(BQ, "sales", "orders", [{"id": 1, "total": 9.5}, {"id": 2, "total": 3.0}])
    return backend


@pytest.fixture
def plugins(memory, warehouse):
    return PluginRegistry([memory, ObjectStoreBackend(), warehouse]).freeze()


@pytest.fixture
def profiles(plugins):
    return ProfileRegistry(plugins, [P1, P2, S3, BQ]).freeze()


@pytest.fixture
def commander(profiles):
    return Commander(
        profiles=profiles,
        left_profile_id="P1",
        right_profile_id="P2",
        log=CommandLog(maxlen=50),
        timeout=5.0,
    )
