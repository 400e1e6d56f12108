"""
Kafka 集群工具

提供：
- list_kafkas: 列出 Kafka 集群及其 Ready 状态
- get_kafka_status: 集群规格与状态详情
- get_kafka_listeners: 监听器配置与客户端连接地址
- restart_kafka_broker: 通过 strimzi.io/manual-rolling-update 注解触发滚动重启（全部 / 节点池 / 单个 Pod）
- scale_node_pool: 调整 KafkaNodePool 副本数
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from .. import objects
from ..kinds import (
    KAFKA,
    KAFKA_NODE_POOL,
    MANUAL_ROLLING_UPDATE_ANNOTATION,
    POD,
    STRIMZI_POD_SET,
)
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, error, not_found, success

_CLUSTER_SCHEMA = """
{
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Name of the Kafka cluster"},
        "namespace": {"type": "string", "description": "Kubernetes namespace of the Kafka cluster"}
    },
    "required": ["name", "namespace"]
}
"""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def annotate(repo: Any, namespace: str, name: str, key: str, value: Any) -> None:
    repo.patch(namespace, name, {"metadata": {"annotations": {key: value}}})


class ListKafkasTool(StrimziTool):
    name = "list_kafkas"
    description = "List Strimzi Kafka clusters in the Kubernetes cluster"
    failure = "Error listing Kafka clusters"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace to list Kafka clusters from. If not specified, lists from all namespaces."
            }
        }
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        kafkas = self.repo(KAFKA).list(self.get_string_arg(args, "namespace"))
        out = [f"Found {len(kafkas)} Kafka cluster(s):\n\n"]
        for kafka in kafkas:
            line = f"- {objects.qualified(kafka)}"
            ready = objects.find_condition(kafka)
            if ready:
                line += f" [Ready: {ready.get('status')}]"
            out.append(line + "\n")
        return success("".join(out))


class GetKafkaStatusTool(StrimziTool):
    name = "get_kafka_status"
    description = "Get detailed status of a Strimzi Kafka cluster"
    failure = "Error getting Kafka status"
    schema = _CLUSTER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        kafka = self.repo(KAFKA).get(namespace, name)
        if kafka is None:
            return not_found("Kafka cluster", namespace, name)

        out = [f"Kafka Cluster: {namespace}/{name}\n\n"]
        spec = objects.spec(kafka)
        if spec.get("kafka") is not None:
            out.append("Kafka:\n")
            out.append(f"  Replicas: {objects.fmt(spec['kafka'].get('replicas'))}\n")
            out.append(f"  Version: {objects.fmt(spec['kafka'].get('version'))}\n")
        if spec.get("zookeeper") is not None:
            out.append("ZooKeeper:\n")
            out.append(f"  Replicas: {objects.fmt(spec['zookeeper'].get('replicas'))}\n")

        status = objects.status(kafka)
        if status:
            out.append("\nStatus:\n")
            if status.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(objects.format_conditions(status["conditions"]))
            pools = status.get("kafkaNodePools") or []
            if pools:
                out.append("  Node Pools:\n")
                out.extend(f"    - {p.get('name')}\n" for p in pools)
            if status.get("clusterId"):
                out.append(f"  Cluster ID: {status['clusterId']}\n")
        return success("".join(out))


class GetKafkaListenersTool(StrimziTool):
    name = "get_kafka_listeners"
    description = (
        "Get Kafka listener addresses for client connections, including bootstrap "
        "addresses and per-broker addresses"
    )
    failure = "Error getting listeners"
    schema = _CLUSTER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        kafka = self.repo(KAFKA).get(namespace, name)
        if kafka is None:
            return not_found("Kafka cluster", namespace, name)

        out = [f"Kafka Cluster: {namespace}/{name}\n\n"]
        listeners = (objects.spec(kafka).get("kafka") or {}).get("listeners")
        if listeners is not None:
            out.append("Configured Listeners:\n")
            for listener in listeners:
                out.append(f"  {listener.get('name')}:\n")
                out.append(f"    Type: {listener.get('type')}\n")
                out.append(f"    Port: {listener.get('port')}\n")
                if listener.get("configuration") is not None:
                    out.append("    Has custom configuration: yes\n")

        addresses = objects.status(kafka).get("listeners") or []
        if not addresses:
            out.append("\nNo listener addresses available yet. The cluster may still be starting.\n")
            return success("".join(out))

        out.append("\nListener Addresses:\n")
        for ls in addresses:
            out.append(f"  {ls.get('name')}:\n")
            if ls.get("bootstrapServers"):
                out.append(f"    Bootstrap: {ls['bootstrapServers']}\n")
            if ls.get("addresses"):
                out.append("    Addresses:\n")
                for addr in ls["addresses"]:
                    host = addr.get("host") or ""
                    port = f":{addr['port']}" if addr.get("port") is not None else ""
                    out.append(f"      - {host}{port}\n")
            if ls.get("certificates"):
                out.append("    Certificates available: Yes\n")
        return success("".join(out))


class RestartKafkaBrokerTool(StrimziTool):
    name = "restart_kafka_broker"
    description = (
        "Trigger a rolling restart of Kafka brokers via Strimzi annotation. Can restart "
        "all brokers, a specific node pool, or a single pod."
    )
    failure = "Error triggering restart"
    read_only = False
    destructive = True
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the Kafka cluster"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the Kafka cluster"},
            "nodePool": {
                "type": "string",
                "description": "Optional: specific node pool to restart. If not specified, restarts all brokers"
            },
            "podName": {
                "type": "string",
                "description": "Optional: specific pod name to restart. If not specified, restarts all pods in the scope"
            }
        },
        "required": ["name", "namespace"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        node_pool = self.get_string_arg(args, "nodePool")
        pod_name = self.get_string_arg(args, "podName")

        kafkas = self.repo(KAFKA)
        if not kafkas.exists(namespace, name):
            return not_found("Kafka cluster", namespace, name)

        timestamp = utc_now()
        if pod_name:
            pods = self.repo(POD)
            if not pods.exists(namespace, pod_name):
                return not_found("Pod", namespace, pod_name)
            annotate(pods, namespace, pod_name, MANUAL_ROLLING_UPDATE_ANNOTATION, timestamp)
            out = f"Triggered restart for pod: {pod_name}\n"
        elif node_pool:
            pod_set_name = f"{name}-{node_pool}"
            pod_sets = self.repo(STRIMZI_POD_SET)
            if not pod_sets.exists(namespace, pod_set_name):
                return not_found("StrimziPodSet", namespace, pod_set_name)
            annotate(pod_sets, namespace, pod_set_name, MANUAL_ROLLING_UPDATE_ANNOTATION, timestamp)
            out = f"Triggered rolling restart for node pool: {node_pool}\n"
        else:
            annotate(kafkas, namespace, name, MANUAL_ROLLING_UPDATE_ANNOTATION, timestamp)
            out = f"Triggered rolling restart for all Kafka brokers in cluster: {name}\n"

        out += "\nThe Cluster Operator will perform the rolling restart. "
        out += "Use get_kafka_status to monitor progress."
        return success(out)


class ScaleNodePoolTool(StrimziTool):
    name = "scale_node_pool"
    description = "Scale a KafkaNodePool by adjusting the number of replicas"
    failure = "Error scaling node pool"
    read_only = False
    destructive = True
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaNodePool to scale"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the KafkaNodePool"},
            "replicas": {"type": "integer", "description": "Desired number of replicas"}
        },
        "required": ["name", "namespace", "replicas"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        replicas = self.get_int_arg(args, "replicas", -1)
        if replicas < 0:
            return error("replicas must be a non-negative integer")

        pools = self.repo(KAFKA_NODE_POOL)
        pool = pools.get(namespace, name)
        if pool is None:
            return not_found("KafkaNodePool", namespace, name)

        current = int(objects.spec(pool).get("replicas") or 0)
        if current == replicas:
            return success(
                f"KafkaNodePool {name} already has {replicas} replicas. No change needed."
            )

        pools.patch(namespace, name, {"spec": {"replicas": replicas}})
        out = [
            f"Scaled KafkaNodePool: {namespace}/{name}\n",
            f"  Previous replicas: {current}\n",
            f"  New replicas: {replicas}\n",
        ]
        if replicas > current:
            out.append(f"\nThe Cluster Operator will add {replicas - current} new broker(s).")
        else:
            out.append(f"\nThe Cluster Operator will remove {current - replicas} broker(s).")
            out.append("\nNote: Partition data will be migrated before removal.")
        out.append("\nUse describe_node_pool to monitor progress.")
        return success("".join(out))


FACTORY = ToolFactory(
    "kafka",
    [
        ListKafkasTool,
        GetKafkaStatusTool,
        GetKafkaListenersTool,
        RestartKafkaBrokerTool,
        ScaleNodePoolTool,
    ],
)
