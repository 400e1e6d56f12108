import asyncio
import importlib

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from mcp_servers.strimzi_mcp_server.errors import DuplicateToolError
from mcp_servers.strimzi_mcp_server.registry import RegistryFastMCP, ToolFactory, ToolRegistry
from mcp_servers.strimzi_mcp_server.server import load_factories
from mcp_servers.strimzi_mcp_server.tool import StrimziTool, success
from mcp_servers.strimzi_mcp_server.tools import TOOLSETS

EXPECTED_COUNTS = {
    "kafka": 5,
    "topic": 8,
    "user": 9,
    "cluster": 25,
    "observability": 5,
    "security": 3,
    "utility": 3,
}


def _factory(name):
    return importlib.import_module(f"mcp_servers.strimzi_mcp_server.tools.{name}").FACTORY


@pytest.mark.parametrize("name", TOOLSETS)
def test_toolset_sizes(name, store):
    assert len(_factory(name).create_tools(store)) == EXPECTED_COUNTS[name]


def test_all_toolsets_compose_without_duplicates(store):
    registry = ToolRegistry.from_factories(load_factories(TOOLSETS), store)
    assert len(registry) == 58
    for name in registry.names():
        # 每个 schema 都必须能解析
        assert registry.get(name).descriptor.input_schema.type == "object"


def test_safety_switches_filter_tools(store):
    factories = load_factories(TOOLSETS)
    readonly = ToolRegistry.from_factories(factories, store, readonly=True)
    assert "list_topics" in readonly
    assert "create_topic" not in readonly
    assert "delete_topic" not in readonly

    safe = ToolRegistry.from_factories(factories, store, disable_destructive=True)
    assert "create_topic" in safe
    assert "delete_topic" not in safe
    assert "rotate_user_credentials" not in safe


def test_unknown_toolset_is_skipped():
    assert [f.name for f in load_factories(["kafka", "bogus"])] == ["kafka"]


class _Ping(StrimziTool):
    name = "ping"

    def execute(self, args):
        return success("pong")


class _Pong(StrimziTool):
    name = "ping"


def test_duplicate_names_fail_composition():
    with pytest.raises(DuplicateToolError):
        ToolRegistry.from_factories([ToolFactory("a", [_Ping]), ToolFactory("b", [_Pong])], None)


def test_duplicate_detected_even_when_filtered():
    class _Mutating(StrimziTool):
        name = "ping"
        read_only = False

    with pytest.raises(DuplicateToolError):
        ToolRegistry.from_factories(
            [ToolFactory("a", [_Ping, _Mutating])], None, readonly=True
        )


def test_dispatch_unknown_tool():
    registry = ToolRegistry()
    result = registry.dispatch("nope", {})
    assert result.is_error
    assert result.text == "Unknown tool: nope"


def test_fastmcp_publishes_registry():
    registry = ToolRegistry.from_factories([ToolFactory("a", [_Ping])], None)
    server = RegistryFastMCP("test")
    server.bind_registry(registry)

    tools = asyncio.run(server.list_tools())
    assert [t.name for t in tools] == ["ping"]
    content = asyncio.run(server.call_tool("ping", {}))
    assert content[0].text == "pong"
    with pytest.raises(ToolError):
        asyncio.run(server.call_tool("missing", {}))
