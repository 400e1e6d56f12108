"""
Strimzi MCP Server - 资源 dict 的读取与格式化小工具

资源对象都是集群返回的 JSON dict，这里集中处理 metadata / spec / status 的取值、
条件（Condition）判读与输出格式化，避免各工具模块重复写防御性的 .get 链。
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

READY = "Ready"


def metadata(obj: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return dict((obj or {}).get("metadata") or {})


def name_of(obj: Optional[Mapping[str, Any]]) -> str:
    return metadata(obj).get("name") or ""


def namespace_of(obj: Optional[Mapping[str, Any]]) -> str:
    return metadata(obj).get("namespace") or ""


def qualified(obj: Optional[Mapping[str, Any]]) -> str:
    return f"{namespace_of(obj)}/{name_of(obj)}"


def labels(obj: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    return dict(metadata(obj).get("labels") or {})


def annotations(obj: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    return dict(metadata(obj).get("annotations") or {})


def spec(obj: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return dict((obj or {}).get("spec") or {})


def status(obj: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return dict((obj or {}).get("status") or {})


def conditions(obj: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return list(status(obj).get("conditions") or [])


def find_condition(
    obj: Optional[Mapping[str, Any]], condition_type: str = READY
) -> Optional[Dict[str, Any]]:
    for c in conditions(obj):
        if c.get("type") == condition_type:
            return c
    return None


def is_ready(obj: Optional[Mapping[str, Any]]) -> bool:
    """
    任一 Ready 条件的 status 为 "True" 即算就绪。
    没有 status、没有条件、条件不是 True 一律视为未就绪。
    """
    return any(c.get("type") == READY and c.get("status") == "True" for c in conditions(obj))


def active_state(obj: Optional[Mapping[str, Any]]) -> str:
    """第一个 status 为 True 的条件类型，例如 KafkaRebalance 的 ProposalReady。"""
    for c in conditions(obj):
        if c.get("status") == "True":
            return c.get("type") or "Unknown"
    return "Unknown"


def fmt(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(fmt(v) for v in value) + "]"
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{k}={fmt(v)}" for k, v in value.items()) + "}"
    return str(value)


def format_conditions(
    conds: Iterable[Mapping[str, Any]],
    indent: str = "    ",
    show_reason: bool = False,
) -> str:
    out = []
    for c in conds:
        line = f"{indent}- {c.get('type')}: {c.get('status')}"
        if show_reason and c.get("reason"):
            line += f" ({c.get('reason')})"
        elif not show_reason and c.get("message"):
            line += f" ({c.get('message')})"
        out.append(line + "\n")
        if show_reason and c.get("message"):
            out.append(f"{indent}  Message: {c.get('message')}\n")
    return "".join(out)
