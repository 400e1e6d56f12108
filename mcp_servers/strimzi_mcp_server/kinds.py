"""
Strimzi MCP Server - 资源类型与标签常量

所有工具通过 ResourceKind 描述符选择资源类型，再交给通用的 ResourceRepository 访问；
不存在按类型复制的访问代码。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

STRIMZI_API_VERSION = "kafka.strimzi.io/v1beta2"
STRIMZI_CORE_API_VERSION = "core.strimzi.io/v1beta2"

# Strimzi 标签
CLUSTER_LABEL = "strimzi.io/cluster"
KIND_LABEL = "strimzi.io/kind"
NAME_LABEL = "strimzi.io/name"

# Strimzi 注解
MANUAL_ROLLING_UPDATE_ANNOTATION = "strimzi.io/manual-rolling-update"
FORCE_PASSWORD_RENEWAL_ANNOTATION = "strimzi.io/force-password-renewal"
REBALANCE_ANNOTATION = "strimzi.io/rebalance"
RESTART_ANNOTATION = "strimzi.io/restart"
RESTART_TASK_ANNOTATION = "strimzi.io/restart-task"
CA_CERT_GENERATION_ANNOTATION = "strimzi.io/ca-cert-generation"


@dataclass(frozen=True)
class ResourceKind:
    """apiVersion + kind，对应 DynamicClient 的 resources.get(api_version=, kind=)。"""

    api_version: str
    kind: str

    def __str__(self) -> str:
        return self.kind


KAFKA = ResourceKind(STRIMZI_API_VERSION, "Kafka")
KAFKA_TOPIC = ResourceKind(STRIMZI_API_VERSION, "KafkaTopic")
KAFKA_USER = ResourceKind(STRIMZI_API_VERSION, "KafkaUser")
KAFKA_CONNECT = ResourceKind(STRIMZI_API_VERSION, "KafkaConnect")
KAFKA_CONNECTOR = ResourceKind(STRIMZI_API_VERSION, "KafkaConnector")
KAFKA_NODE_POOL = ResourceKind(STRIMZI_API_VERSION, "KafkaNodePool")
KAFKA_REBALANCE = ResourceKind(STRIMZI_API_VERSION, "KafkaRebalance")
KAFKA_MIRROR_MAKER2 = ResourceKind(STRIMZI_API_VERSION, "KafkaMirrorMaker2")
KAFKA_BRIDGE = ResourceKind(STRIMZI_API_VERSION, "KafkaBridge")
STRIMZI_POD_SET = ResourceKind(STRIMZI_CORE_API_VERSION, "StrimziPodSet")

POD = ResourceKind("v1", "Pod")
SECRET = ResourceKind("v1", "Secret")
EVENT = ResourceKind("v1", "Event")
DEPLOYMENT = ResourceKind("apps/v1", "Deployment")

# export_resource_yaml 支持导出的类型
EXPORTABLE_KINDS: Dict[str, ResourceKind] = {
    k.kind: k
    for k in (
        KAFKA,
        KAFKA_TOPIC,
        KAFKA_USER,
        KAFKA_CONNECT,
        KAFKA_CONNECTOR,
        KAFKA_NODE_POOL,
        KAFKA_MIRROR_MAKER2,
        KAFKA_BRIDGE,
    )
}
