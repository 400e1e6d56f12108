"""
Strimzi MCP Server package initializer.

提供:
- 全局 MCP 实例 (RegistryFastMCP)，server.py 在启动时把组合好的 ToolRegistry 绑定到该实例
- 只读模式与禁用破坏性操作两个安全开关的环境变量读取
- 其他子模块通过 `from . import mcp` 共享同一个 MCP 实例
"""

from __future__ import annotations

import os

from .registry import RegistryFastMCP

SERVER_NAME = "strimzi-mcp-server"
SERVER_VERSION = "0.3.0"

# 全局 MCP 实例：工具不再通过装饰器注册，而是由 ToolRegistry 统一发布
# 运行传输模式由启动入口 server.py 控制 (stdio / sse / streamable-http)
mcp = RegistryFastMCP(SERVER_NAME)

_TRUTHY = {"1", "true", "yes", "on"}

# 安全与变更开关（环境变量控制）
# - STRIMZI_MCP_READ_ONLY=true: 仅注册只读工具
# - STRIMZI_MCP_DISABLE_DESTRUCTIVE=true: 去掉 delete / restart / scale / rotate 等破坏性工具
_READ_ONLY = os.getenv("STRIMZI_MCP_READ_ONLY", "").strip().lower() in _TRUTHY
_DISABLE_DESTRUCTIVE = (
    os.getenv("STRIMZI_MCP_DISABLE_DESTRUCTIVE", "").strip().lower() in _TRUTHY
)


def is_read_only() -> bool:
    """返回是否启用只读模式（READ-ONLY）：所有会修改集群的工具都不注册。"""
    return _READ_ONLY


def is_disable_destructive() -> bool:
    """
    返回是否禁用破坏性操作（删除、重启、缩容、凭据轮换等）。
    在 READ-ONLY 未开启时，可通过该开关保留 create/update 类工具。
    """
    return _DISABLE_DESTRUCTIVE


__all__ = [
    "mcp",
    "SERVER_NAME",
    "SERVER_VERSION",
    "is_read_only",
    "is_disable_destructive",
]
