"""
Strimzi MCP Server - 通用资源仓库

ResourceRepository 对单一资源类型提供 list / get / create / delete / exists / patch，
资源类型由构造时传入的 ResourceKind 决定。仓库本身无状态、无缓存，
每次调用都直接访问集群，可在任意多个并发调用之间共享。

约定：
- namespace 为空表示跨所有命名空间
- label_value 为空表示不按标签过滤
- get 遇到 404 返回 None（“不存在”是查询结果而不是错误）；其他错误原样抛出
- 返回值统一为普通 dict（集群的 JSON 形态）
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from kubernetes.client import ApiClient
from kubernetes.client.exceptions import ApiException

from .kinds import CLUSTER_LABEL, ResourceKind

MERGE_PATCH = "application/merge-patch+json"


def to_dict(obj: Any) -> Dict[str, Any]:
    """把 DynamicClient 的 ResourceInstance / 模型对象统一转换为 dict。"""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return ApiClient().sanitize_for_serialization(obj)


class ResourceRepository:
    def __init__(self, dynamic: Any, kind: ResourceKind) -> None:
        self._dynamic = dynamic
        self.kind = kind

    def _api(self) -> Any:
        return self._dynamic.resources.get(
            api_version=self.kind.api_version, kind=self.kind.kind
        )

    def list(
        self,
        namespace: Optional[str] = None,
        label_key: Optional[str] = CLUSTER_LABEL,
        label_value: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        selector = f"{label_key}={label_value}" if label_key and label_value else None
        api = self._api()
        if namespace:
            ret = api.list(namespace=namespace, label_selector=selector)
        else:
            ret = api.list(label_selector=selector)
        return [to_dict(item) for item in (to_dict(ret).get("items") or [])]

    def get(self, namespace: Optional[str], name: str) -> Optional[Dict[str, Any]]:
        api = self._api()
        try:
            obj = api.get(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return to_dict(obj)

    def exists(self, namespace: Optional[str], name: str) -> bool:
        return self.get(namespace, name) is not None

    def create(self, namespace: str, obj: Mapping[str, Any]) -> Dict[str, Any]:
        return to_dict(self._api().create(body=dict(obj), namespace=namespace))

    def delete(self, namespace: str, name: str) -> None:
        self._api().delete(name=name, namespace=namespace)

    def patch(
        self, namespace: str, name: str, body: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """JSON merge-patch：body 中值为 None 的字段会被删除。"""
        return to_dict(
            self._api().patch(
                name=name,
                namespace=namespace,
                body=dict(body),
                content_type=MERGE_PATCH,
            )
        )
