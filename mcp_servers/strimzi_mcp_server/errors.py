"""
Strimzi MCP Server - 启动期错误类型

- SchemaParseError：工具的输入 schema 文档无法解析（编程错误，应终止启动）
- DuplicateToolError：多个工具使用了同一名称（配置错误，应终止启动）

运行期的集群访问错误不在此定义：工具与健康检查器会就地捕获并转换为错误结果。
"""

from __future__ import annotations


class SchemaParseError(RuntimeError):
    """schema 文档不是合法的结构化数据。"""


class DuplicateToolError(RuntimeError):
    """注册表组合时发现重名工具。"""

    def __init__(self, name: str) -> None:
        super().__init__(f"Duplicate tool name: {name}")
        self.name = name
