import sys
import types
import uuid
import importlib.util
from pathlib import Path


def _find_server_py() -> Path:
    # Try common layouts:
    # 1) <root>/server.py
    # 2) <root>/server/server.py
    # 3) <root>/src/server/server.py
    root = Path(__file__).resolve().parents[2]
    candidates = [
        root / "server.py",
        root / "server" / "server.py",
        root / "src" / "server" / "server.py",
    ]
    for p in candidates:
        if p.exists():
            return p
    raise FileNotFoundError(f"Could not find server.py. Tried: {candidates}")


def _install_fake_modules(monkeypatch, captures: dict):
    # ---- Fake mcp.server.fastmcp.FastMCP ----
    mcp_mod = types.ModuleType("mcp")
    mcp_server_mod = types.ModuleType("mcp.server")
    fastmcp_mod = types.ModuleType("mcp.server.fastmcp")

    class DummyFastMCP:
        def __init__(self, name: str):
            captures["fastmcp_name"] = name
            captures["mcp_instance"] = self
            self.run_calls = []

        def run(self, *, transport: str):
            self.run_calls.append({"transport": transport})
            captures["run_calls"] = list(self.run_calls)

    fastmcp_mod.FastMCP = DummyFastMCP

    # Mark package structure
    mcp_mod.__path__ = []
    mcp_server_mod.__path__ = []

    monkeypatch.setitem(sys.modules, "mcp", mcp_mod)
    monkeypatch.setitem(sys.modules, "mcp.server", mcp_server_mod)
    monkeypatch.setitem(sys.modules, "mcp.server.fastmcp", fastmcp_mod)

    # ---- Fake config ----
    config_mod = types.ModuleType("config")
    config_mod.BACKEND_TIMEOUT = 7.5
    config_mod.COMMAND_LOG_LIMIT = 42
    config_mod.HTTP_TIMEOUT = 12.3
    config_mod.HTTP_VERIFY = True
    config_mod.LEFT_PROFILE = "L"
    config_mod.LOG_LEVEL = "DEBUG"
    config_mod.OPERATION_CONCURRENCY = 3
    config_mod.PROFILES_PATH = "/etc/profiles.json"
    config_mod.PROJECT_ROOT = Path("/srv/project")
    config_mod.RIGHT_PROFILE = "S"
    monkeypatch.setitem(sys.modules, "config", config_mod)

    def _ensure_pkg(name: str):
        pkg = types.ModuleType(name)
        pkg.__path__ = []
        monkeypatch.setitem(sys.modules, name, pkg)

    _ensure_pkg("backends")
    _ensure_pkg("core")
    _ensure_pkg("tools")
    _ensure_pkg("resources")
    _ensure_pkg("prompts")

    # ---- Fake backend factory ----
    factory_mod = types.ModuleType("backends.backend_factory")

    def build_plugin_registry(*, http_timeout, http_verify):
        captures["plugin_registry_calls"] = captures.get("plugin_registry_calls", []) + [
            {"http_timeout": http_timeout, "http_verify": http_verify}
        ]
        return "PLUGINS"

    def load_profiles(path, *, project_root):
        captures["load_profiles_calls"] = captures.get("load_profiles_calls", []) + [
            {"path": path, "project_root": project_root}
        ]
        return ["PROFILE"]

    def build_profile_registry(plugins, profiles):
        captures["profile_registry_args"] = (plugins, profiles)
        return "PROFILES"

    factory_mod.build_plugin_registry = build_plugin_registry
    factory_mod.load_profiles = load_profiles
    factory_mod.build_profile_registry = build_profile_registry
    monkeypatch.setitem(sys.modules, "backends.backend_factory", factory_mod)

    # ---- Fake core session pieces ----
    logging_mod = types.ModuleType("core.app_logging")
    log_mod = types.ModuleType("core.command_log")
    commander_mod = types.ModuleType("core.commander")

    def init_logging(level):
        captures["init_logging_calls"] = captures.get("init_logging_calls", []) + [level]
        return True

    class FakeCommandLog:
        def __init__(self, *, maxlen: int):
            captures["log_maxlen"] = maxlen
            self.messages = []

        def system(self, message: str):
            self.messages.append(message)

    class FakeCommander:
        def __init__(self, **kwargs):
            captures["commander_kwargs"] = kwargs
            captures["commander_instance"] = self
            self.log = kwargs["log"]
            self.started = 0

        async def start(self):
            self.started += 1

    logging_mod.init_logging = init_logging
    log_mod.CommandLog = FakeCommandLog
    commander_mod.Commander = FakeCommander

    monkeypatch.setitem(sys.modules, "core.app_logging", logging_mod)
    monkeypatch.setitem(sys.modules, "core.command_log", log_mod)
    monkeypatch.setitem(sys.modules, "core.commander", commander_mod)

    # ---- Fake tools + resources + prompts ----
    tools_list_mod = types.ModuleType("tools.list_items")
    tools_read_mod = types.ModuleType("tools.read_item")
    tools_transfer_mod = types.ModuleType("tools.transfer_items")
    res_mod = types.ModuleType("resources.commander_resources")
    prompts_mod = types.ModuleType("prompts.commander_prompt")

    def _recorder(key: str):
        def register(mcp, *, commander):
            captures[key] = captures.get(key, []) + [{"mcp": mcp, "commander": commander}]

        return register

    def register_resources(mcp, *, commander):
        captures["register_resources_calls"] = captures.get("register_resources_calls", []) + [
            {"mcp": mcp, "commander": commander}
        ]

    def register_prompts(mcp, *, profiles):
        captures["register_prompts_calls"] = captures.get("register_prompts_calls", []) + [
            {"mcp": mcp, "profiles": profiles}
        ]

    tools_list_mod.register = _recorder("register_list_items_calls")
    tools_read_mod.register = _recorder("register_read_item_calls")
    tools_transfer_mod.register = _recorder("register_transfer_items_calls")
    res_mod.register_resources = register_resources
    prompts_mod.register_prompts = register_prompts

    monkeypatch.setitem(sys.modules, "tools.list_items", tools_list_mod)
    monkeypatch.setitem(sys.modules, "tools.read_item", tools_read_mod)
    monkeypatch.setitem(sys.modules, "tools.transfer_items", tools_transfer_mod)
    monkeypatch.setitem(sys.modules, "resources.commander_resources", res_mod)
    monkeypatch.setitem(sys.modules, "prompts.commander_prompt", prompts_mod)


def _load_server_module(monkeypatch, captures: dict):
    _install_fake_modules(monkeypatch, captures)

    server_path = _find_server_py()
    mod_name = f"server_under_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, server_path)
    assert spec and spec.loader

    module = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, mod_name, module)
    spec.loader.exec_module(module)
    return module


def test_server_register_all_and_di(monkeypatch):
    captures = {}
    module = _load_server_module(monkeypatch, captures)

    # FastMCP created with correct name
    assert captures["fastmcp_name"] == "commander-mcp"
    mcp = captures["mcp_instance"]

    # Registries are built once from config
    assert captures["plugin_registry_calls"] == [{"http_timeout": 12.3, "http_verify": True}]
    assert captures["load_profiles_calls"] == [{"path": "/etc/profiles.json", "project_root": Path("/srv/project")}]
    assert captures["profile_registry_args"] == ("PLUGINS", ["PROFILE"])

    # Commander gets the frozen profiles and config limits
    kwargs = captures["commander_kwargs"]
    assert kwargs["profiles"] == "PROFILES"
    assert (kwargs["left_profile_id"], kwargs["right_profile_id"]) == ("L", "S")
    assert kwargs["timeout"] == 7.5
    assert kwargs["max_concurrency"] == 3
    assert captures["log_maxlen"] == 42

    # Every tool shares the SAME commander instance
    commander = captures["commander_instance"]
    for key in ("register_list_items_calls", "register_read_item_calls", "register_transfer_items_calls"):
        assert len(captures.get(key, [])) == 1
        assert captures[key][0]["mcp"] is mcp
        assert captures[key][0]["commander"] is commander

    # resources + prompts are registered
    assert captures["register_resources_calls"] == [{"mcp": mcp, "commander": commander}]
    assert captures["register_prompts_calls"] == [{"mcp": mcp, "profiles": "PROFILES"}]

    # main() initialises logging, opens both panes, then runs stdio transport
    module.main()
    assert captures["init_logging_calls"] == ["DEBUG"]
    assert commander.log.messages == ["System initialized."]
    assert commander.started == 1
    assert captures["run_calls"] == [{"transport": "stdio"}]
