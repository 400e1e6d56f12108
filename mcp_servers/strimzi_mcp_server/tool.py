"""
Strimzi MCP Server - 工具调度契约

- CallResult：不可变的调用结果（文本片段序列 + is_error 标志）
- ToolDescriptor / ToolSpecification：对外声明的名称、描述、输入 schema 与处理函数
- StrimziTool：所有工具的基类。子类声明 name / description / schema 字面量，实现 execute(args)；
  call(args) 是真正注册给传输层的处理函数，负责把任何异常转换为错误结果，
  保证单个工具失败不会影响注册表或传输层。

参数读取器（get_*_arg）对缺失或类型不符的数据从不抛错，是否把“缺失”视为错误由工具自己决定。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import yaml

from .kinds import ResourceKind
from .repository import ResourceRepository
from .schema import SchemaDescriptor, SchemaParser

logger = logging.getLogger(__name__)

Arguments = Optional[Mapping[str, Any]]


@dataclass(frozen=True)
class CallResult:
    content: Tuple[str, ...]
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.content)


def success(text: str) -> CallResult:
    return CallResult(content=(text,), is_error=False)


def error(text: str) -> CallResult:
    return CallResult(content=(text,), is_error=True)


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: SchemaDescriptor


@dataclass(frozen=True)
class ToolSpecification:
    descriptor: ToolDescriptor
    handler: Callable[[Arguments], CallResult]


class StrimziTool:
    name: str = ""
    description: str = ""
    schema: str = '{"type": "object", "properties": {}}'
    # 未预期异常的错误前缀，例如 "Error listing topics"
    failure: str = "Error executing tool"
    # 安全开关过滤依据
    read_only: bool = True
    destructive: bool = False

    def __init__(self, store: Any) -> None:
        self.store = store

    def repo(self, kind: ResourceKind) -> ResourceRepository:
        return self.store.repository(kind)

    def input_schema(self) -> SchemaDescriptor:
        return SchemaParser.parse(self.schema)

    def get_specification(self) -> ToolSpecification:
        descriptor = ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema(),
        )
        return ToolSpecification(descriptor=descriptor, handler=self.call)

    def call(self, arguments: Arguments) -> CallResult:
        try:
            return self.execute(arguments or {})
        except Exception as e:
            logger.warning("Tool %s failed", self.name, exc_info=True)
            return error(f"{self.failure}: {e}")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        raise NotImplementedError

    def require(self, args: Arguments, *keys: str) -> Optional[CallResult]:
        """缺少任一必填字符串参数时返回错误结果，否则返回 None。"""
        absent = [k for k in keys if not self.get_string_arg(args, k)]
        return missing(*absent) if absent else None

    # ---- 参数读取器 ----

    @staticmethod
    def get_string_arg(args: Arguments, key: str) -> Optional[str]:
        if not args:
            return None
        value = args.get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    @staticmethod
    def get_optional_int_arg(args: Arguments, key: str) -> Optional[int]:
        if not args:
            return None
        value = args.get(key)
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            try:
                return int(float(value.strip()))
            except ValueError:
                return None
        return None

    @staticmethod
    def get_int_arg(args: Arguments, key: str, default: int) -> int:
        value = StrimziTool.get_optional_int_arg(args, key)
        return default if value is None else value

    @staticmethod
    def get_bool_arg(args: Arguments, key: str, default: bool = False) -> bool:
        if not args:
            return default
        value = args.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        if isinstance(value, (int, float)):
            return bool(value)
        return default

    @staticmethod
    def get_map_arg(args: Arguments, key: str) -> Optional[Dict[str, Any]]:
        if not args:
            return None
        value = args.get(key)
        if isinstance(value, Mapping):
            return dict(value)
        if isinstance(value, str) and value.strip():
            # 部分客户端把对象参数序列化成 JSON/YAML 字符串传入
            try:
                decoded = yaml.safe_load(value)
            except yaml.YAMLError:
                return None
            return dict(decoded) if isinstance(decoded, Mapping) else None
        return None

    @staticmethod
    def get_list_arg(args: Arguments, key: str) -> Optional[List[Any]]:
        if not args:
            return None
        value = args.get(key)
        if isinstance(value, (list, tuple)):
            return list(value)
        return None


def not_found(kind: str, namespace: Optional[str], name: str) -> CallResult:
    return error(f"{kind} not found: {namespace}/{name}")


def already_exists(kind: str, namespace: Optional[str], name: str) -> CallResult:
    return error(f"{kind} already exists: {namespace}/{name}")


def missing(*keys: str) -> CallResult:
    verb = "is" if len(keys) == 1 else "are"
    return error(f"{', '.join(keys)} {verb} required")
