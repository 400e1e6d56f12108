"""
Strimzi MCP Server - 工具集组合与发布

- ToolFactory：一个工具集（toolset）= 一组工具类
- ToolRegistry：把多个工具集展开为按名称索引的注册表；组合时检测重名，按安全开关过滤，按名称调度
- RegistryFastMCP：FastMCP 子类，把注册表中的描述符原样发布为 tools/list，
  并把 tools/call 转发给对应工具的处理函数
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import TextContent
from mcp.types import Tool as MCPTool

from .errors import DuplicateToolError
from .tool import Arguments, CallResult, StrimziTool, ToolDescriptor, ToolSpecification, error

logger = logging.getLogger(__name__)


class ToolFactory:
    def __init__(self, name: str, tool_classes: Sequence[Type[StrimziTool]]) -> None:
        self.name = name
        self.tool_classes = list(tool_classes)

    def create_tools(self, store: Any) -> List[StrimziTool]:
        return [cls(store) for cls in self.tool_classes]


class ToolRegistry:
    def __init__(self) -> None:
        self._specs: Dict[str, ToolSpecification] = {}

    def register(self, tool: StrimziTool) -> None:
        spec = tool.get_specification()
        name = spec.descriptor.name
        if name in self._specs:
            raise DuplicateToolError(name)
        self._specs[name] = spec

    @classmethod
    def from_factories(
        cls,
        factories: Iterable[ToolFactory],
        store: Any,
        readonly: bool = False,
        disable_destructive: bool = False,
    ) -> "ToolRegistry":
        """
        展开所有工具集。重名检测覆盖全部工具（包括随后被安全开关过滤掉的），
        保证配置错误在任何开关组合下都会在启动时暴露。
        """
        registry = cls()
        seen = set()
        for factory in factories:
            for tool in factory.create_tools(store):
                if tool.name in seen:
                    raise DuplicateToolError(tool.name)
                seen.add(tool.name)
                if readonly and not tool.read_only:
                    continue
                if disable_destructive and tool.destructive:
                    continue
                registry.register(tool)
        return registry

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def names(self) -> List[str]:
        return list(self._specs)

    def descriptors(self) -> List[ToolDescriptor]:
        return [s.descriptor for s in self._specs.values()]

    def get(self, name: str) -> Optional[ToolSpecification]:
        return self._specs.get(name)

    def dispatch(self, name: str, arguments: Arguments) -> CallResult:
        spec = self._specs.get(name)
        if spec is None:
            return error(f"Unknown tool: {name}")
        return spec.handler(arguments)


class RegistryFastMCP(FastMCP):
    """以 ToolRegistry 为工具来源的 FastMCP。"""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.registry = ToolRegistry()

    def bind_registry(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def list_tools(self) -> List[MCPTool]:
        return [
            MCPTool(
                name=d.name,
                description=d.description,
                inputSchema=d.input_schema.to_dict(),
            )
            for d in self.registry.descriptors()
        ]

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        result = self.registry.dispatch(name, arguments)
        if result.is_error:
            # 低层 server 会把 ToolError 包装成 isError=true 的普通结果
            raise ToolError(result.text)
        return [TextContent(type="text", text=segment) for segment in result.content]
