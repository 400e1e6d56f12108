"""
Strimzi MCP Server - Entry Point

提供：
- 传输模式：stdio / sse / streamable-http
- 端口配置（SSE/Streamable HTTP）
- 工具集按需加载（kafka/topic/user/cluster/observability/security/utility）
- 只读与禁用破坏性操作两个安全开关，在组合注册表时过滤工具

命令行参数优先，环境变量（STRIMZI_MCP_*）作为默认值。
日志写到 stderr，stdout 留给 stdio 传输。
"""

from __future__ import annotations

import argparse
import importlib
import logging
import os
import sys
from typing import List, Optional, Sequence

from . import mcp as pkg_mcp, is_read_only, is_disable_destructive, SERVER_NAME, SERVER_VERSION
from .kube import KubeStore
from .registry import ToolFactory, ToolRegistry
from .tools import TOOLSETS

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(SERVER_NAME)
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default=os.getenv("STRIMZI_MCP_TRANSPORT", "stdio"),
        help="MCP transport mode: stdio / sse / streamable-http",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("STRIMZI_MCP_PORT", "8000")),
        help="Server port for SSE/Streamable-HTTP (default: 8000)",
    )
    parser.add_argument(
        "--toolsets",
        type=str,
        default=os.getenv("STRIMZI_MCP_TOOLSETS", ",".join(TOOLSETS)),
        help="Comma-separated toolsets to enable: " + ",".join(TOOLSETS),
    )
    parser.add_argument(
        "--context",
        default=os.getenv("STRIMZI_MCP_KUBE_CONTEXT") or None,
        help="kubeconfig context to use (default: current context)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("STRIMZI_MCP_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Run in read-only mode (only register tools that do not modify the cluster)",
    )
    parser.add_argument(
        "--disable-destructive",
        action="store_true",
        help="Disable destructive operations (delete/restart/scale/rotate) even if not fully read-only",
    )
    return parser.parse_args(argv)


def _normalize_toolsets(toolsets_str: str) -> List[str]:
    seen: List[str] = []
    for t in toolsets_str.split(","):
        t = t.strip()
        if t and t not in seen:
            seen.append(t)
    return seen


def load_factories(selected: Sequence[str]) -> List[ToolFactory]:
    """按名称导入 tools.<name> 模块并取出其 FACTORY；未知名称记录警告后跳过。"""
    factories = []
    for name in selected:
        if name not in TOOLSETS:
            logger.warning("Unknown toolset ignored: %s", name)
            continue
        module = importlib.import_module(f"{__package__}.tools.{name}")
        factories.append(module.FACTORY)
    return factories


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # 命令行优先，环境变量作为默认
    readonly = bool(args.read_only or is_read_only())
    disable_destructive = bool(args.disable_destructive or is_disable_destructive())

    # 网络模式需要端口
    if args.transport in {"sse", "streamable-http"}:
        pkg_mcp.settings.port = args.port

    selected = _normalize_toolsets(args.toolsets)
    store = KubeStore(context=args.context)
    registry = ToolRegistry.from_factories(
        load_factories(selected),
        store,
        readonly=readonly,
        disable_destructive=disable_destructive,
    )
    pkg_mcp.bind_registry(registry)

    logger.info("%s %s starting", SERVER_NAME, SERVER_VERSION)
    logger.info("transport=%s port=%s context=%s", args.transport, args.port, args.context or "<current>")
    logger.info("toolsets=%s", ",".join(selected))
    logger.info("readonly=%s disable_destructive=%s", readonly, disable_destructive)
    logger.info("Registered %d tools", len(registry))

    pkg_mcp.run(transport=args.transport)


if __name__ == "__main__":
    main()
