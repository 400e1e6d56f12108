"""
内存版 DynamicClient / CoreV1Api，用于在没有集群的情况下驱动 ResourceRepository 与各工具。
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest
from kubernetes.client.exceptions import ApiException

from mcp_servers.strimzi_mcp_server.kube import KubeStore


def merge_patch(target: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            merge_patch(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class FakeResource:
    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.objects: Dict[Tuple[Optional[str], str], Dict[str, Any]] = {}
        self.patches: List[Dict[str, Any]] = []
        self.failure: Optional[Exception] = None

    def _check(self) -> None:
        if self.failure is not None:
            raise self.failure

    def list(self, namespace: Optional[str] = None, label_selector: Optional[str] = None):
        self._check()
        items = []
        for (ns, _), obj in self.objects.items():
            if namespace and ns != namespace:
                continue
            if label_selector:
                key, value = label_selector.split("=", 1)
                if (obj.get("metadata", {}).get("labels") or {}).get(key) != value:
                    continue
            items.append(copy.deepcopy(obj))
        return {"items": items}

    def get(self, name: str, namespace: Optional[str] = None):
        self._check()
        obj = self.objects.get((namespace, name))
        if obj is None:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(obj)

    def create(self, body: Dict[str, Any], namespace: Optional[str] = None):
        self._check()
        name = body["metadata"]["name"]
        if (namespace, name) in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        stored = copy.deepcopy(body)
        stored["metadata"].setdefault("namespace", namespace)
        self.objects[(namespace, name)] = stored
        return copy.deepcopy(stored)

    def delete(self, name: str, namespace: Optional[str] = None):
        self._check()
        if self.objects.pop((namespace, name), None) is None:
            raise ApiException(status=404, reason="Not Found")
        return {}

    def patch(self, body: Dict[str, Any], name: str, namespace: Optional[str] = None, content_type=None):
        self._check()
        obj = self.objects.get((namespace, name))
        if obj is None:
            raise ApiException(status=404, reason="Not Found")
        self.patches.append(copy.deepcopy(body))
        merge_patch(obj, body)
        return copy.deepcopy(obj)


class FakeResources:
    def __init__(self) -> None:
        self.by_kind: Dict[str, FakeResource] = {}

    def get(self, api_version: str, kind: str) -> FakeResource:
        return self.by_kind.setdefault(kind, FakeResource(kind))


class FakeDynamicClient:
    def __init__(self) -> None:
        self.resources = FakeResources()

    def add(self, kind: str, obj: Dict[str, Any]) -> Dict[str, Any]:
        meta = obj["metadata"]
        self.resources.get("", kind).objects[(meta.get("namespace"), meta["name"])] = obj
        return obj

    def stored(self, kind: str, namespace: str, name: str) -> Optional[Dict[str, Any]]:
        return self.resources.get("", kind).objects.get((namespace, name))

    def resource(self, kind: str) -> FakeResource:
        return self.resources.get("", kind)


class FakeCoreV1:
    def __init__(self) -> None:
        self.logs: Dict[Tuple[str, str], str] = {}
        self.calls: List[Dict[str, Any]] = []

    def read_namespaced_pod_log(self, name: str, namespace: str, **kwargs: Any) -> str:
        self.calls.append(dict(name=name, namespace=namespace, **kwargs))
        return self.logs.get((namespace, name), "")


def resource(
    name: str,
    namespace: str = "kafka",
    labels: Optional[Dict[str, str]] = None,
    spec: Optional[Dict[str, Any]] = None,
    status: Optional[Dict[str, Any]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    obj: Dict[str, Any] = {"metadata": {"name": name, "namespace": namespace}}
    if labels:
        obj["metadata"]["labels"] = labels
    if spec is not None:
        obj["spec"] = spec
    if status is not None:
        obj["status"] = status
    obj.update(extra)
    return obj


def ready(value: str = "True", **fields: Any) -> Dict[str, Any]:
    return {"conditions": [{"type": "Ready", "status": value}], **fields}


@pytest.fixture
def dynamic() -> FakeDynamicClient:
    return FakeDynamicClient()


@pytest.fixture
def core_v1() -> FakeCoreV1:
    return FakeCoreV1()


@pytest.fixture
def store(dynamic: FakeDynamicClient, core_v1: FakeCoreV1) -> KubeStore:
    return KubeStore(dynamic=dynamic, core_v1=core_v1)
