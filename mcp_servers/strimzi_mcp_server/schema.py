"""
Strimzi MCP Server - 工具输入 schema 解析

工具的 inputSchema 以 JSON 文本字面量的形式随工具类声明，启动时解析为 SchemaDescriptor。
解析只投影已识别的顶层字段，不做通用 JSON-Schema 校验；未识别的键被忽略。
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import SchemaParseError


class SchemaDescriptor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    type: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    required: Optional[List[str]] = None
    additional_properties: Optional[bool] = Field(
        default=None, alias="additionalProperties"
    )
    defs: Optional[Dict[str, Any]] = Field(default=None, alias="$defs")
    definitions: Optional[Dict[str, Any]] = None

    @property
    def required_properties(self) -> List[str]:
        # 未声明 required 时返回空列表
        return list(self.required or [])

    def to_dict(self) -> Dict[str, Any]:
        """渲染为 MCP inputSchema，缺省的可选部分不输出。"""
        return self.model_dump(by_alias=True, exclude_none=True)


class SchemaParser:
    @staticmethod
    def parse(document: Union[str, bytes, Mapping[str, Any]]) -> SchemaDescriptor:
        try:
            if isinstance(document, (str, bytes)):
                data = json.loads(document)
            else:
                data = dict(document)
            if not isinstance(data, dict):
                raise ValueError("schema document must be a JSON object")
            return SchemaDescriptor.model_validate(data)
        except (ValueError, TypeError) as e:
            # pydantic.ValidationError 与 json.JSONDecodeError 都是 ValueError
            raise SchemaParseError(f"Failed to parse JSON schema: {e}") from e
