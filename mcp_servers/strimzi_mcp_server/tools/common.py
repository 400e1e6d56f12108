"""
工具之间共享的 Pod 查找与格式化逻辑（entity-operator / cluster-operator 状态、日志定位）。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .. import objects
from ..kinds import CLUSTER_LABEL, KIND_LABEL, NAME_LABEL, POD


def entity_operator_pods(store: Any, namespace: str, kafka_cluster: str) -> List[Dict[str, Any]]:
    """按 strimzi.io/name=<cluster>-entity-operator 查找，并要求 cluster / kind 标签一致。"""
    pods = store.repository(POD).list(
        namespace, NAME_LABEL, f"{kafka_cluster}-entity-operator"
    )
    return [
        p
        for p in pods
        if objects.labels(p).get(CLUSTER_LABEL) == kafka_cluster
        and objects.labels(p).get(KIND_LABEL) == "Kafka"
    ]


def container_state(cs: Dict[str, Any]) -> str:
    state = cs.get("state") or {}
    if state.get("running") is not None:
        return " (running)"
    if state.get("waiting") is not None:
        return f" (waiting: {state['waiting'].get('reason')})"
    if state.get("terminated") is not None:
        return f" (terminated: {state['terminated'].get('reason')})"
    return ""


def format_pod_status(pod: Dict[str, Any], container: Optional[str] = None) -> str:
    """Phase + 容器就绪/重启次数 + Pod 条件；container 指定时只展示该容器。"""
    st = objects.status(pod)
    out = [f"Pod: {objects.name_of(pod)}\n", f"  Phase: {st.get('phase')}\n"]
    statuses = st.get("containerStatuses")
    if statuses is not None:
        out.append("  Containers:\n")
        for cs in statuses:
            if container and cs.get("name") != container:
                continue
            out.append(
                f"    - {cs.get('name')}: ready={objects.fmt(cs.get('ready'))}, "
                f"restarts={cs.get('restartCount')}{container_state(cs)}\n"
            )
    if st.get("conditions") is not None:
        out.append("  Conditions:\n")
        out.append(objects.format_conditions(st["conditions"]))
    return "".join(out)


def operator_status(
    store: Any,
    namespace: str,
    kafka_cluster: str,
    operator: str,
    container: Optional[str] = None,
) -> str:
    pods = entity_operator_pods(store, namespace, kafka_cluster)
    out = [f"{operator} Status for cluster: {namespace}/{kafka_cluster}\n\n"]
    if not pods:
        out.append(f"No entity-operator pod found. The {operator} might not be deployed.\n")
        out.append("Check if entityOperator is configured in the Kafka resource.")
        return "".join(out)
    for pod in pods:
        out.append(format_pod_status(pod, container))
    return "".join(out)
