"""
Strimzi MCP Server - Kubernetes 客户端句柄

- load_api_client: 加载 kubeconfig（可指定 context），失败时回退到 in-cluster 配置
- KubeStore: 惰性创建 DynamicClient 与 CoreV1Api，按 ResourceKind 产出 ResourceRepository
  构造时不访问网络，首次调用时才加载配置，便于在没有集群的环境下启动与测试
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from kubernetes import config
from kubernetes.client import ApiClient, CoreV1Api
from kubernetes.dynamic import DynamicClient

from .kinds import ResourceKind
from .repository import ResourceRepository

logger = logging.getLogger(__name__)


def load_api_client(context: Optional[str] = None) -> ApiClient:
    """
    加载 kubeconfig（优先本地 kubeconfig，可选指定 context），失败时回退到集群内配置。
    """
    try:
        config.load_kube_config(context=context)
        logger.debug("Loaded kubeconfig (context=%s)", context or "<current>")
    except Exception as e:
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster configuration")
        except Exception as e2:
            raise RuntimeError(
                f"Failed to load kube config: {e}; in-cluster fallback failed: {e2}"
            ) from e2
    return ApiClient()


class KubeStore:
    """工具与健康检查共享的集群访问入口。"""

    def __init__(
        self,
        context: Optional[str] = None,
        dynamic: Any = None,
        core_v1: Any = None,
    ) -> None:
        self.context = context
        self._api_client: Optional[ApiClient] = None
        self._dynamic = dynamic
        self._core_v1 = core_v1

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = load_api_client(self.context)
        return self._api_client

    @property
    def dynamic(self) -> Any:
        if self._dynamic is None:
            self._dynamic = DynamicClient(self.api_client)
        return self._dynamic

    @property
    def core_v1(self) -> Any:
        if self._core_v1 is None:
            self._core_v1 = CoreV1Api(self.api_client)
        return self._core_v1

    def repository(self, kind: ResourceKind) -> ResourceRepository:
        return ResourceRepository(self.dynamic, kind)

    def read_pod_log(
        self,
        namespace: str,
        name: str,
        container: Optional[str] = None,
        tail_lines: Optional[int] = None,
        previous: bool = False,
    ) -> str:
        kwargs = {"name": name, "namespace": namespace, "previous": previous}
        if container:
            kwargs["container"] = container
        if tail_lines is not None:
            kwargs["tail_lines"] = tail_lines
        return self.core_v1.read_namespaced_pod_log(**kwargs) or ""
