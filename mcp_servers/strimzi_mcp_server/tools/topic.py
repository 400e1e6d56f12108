"""
KafkaTopic 工具

提供：
- list_topics / describe_topic
- create_topic / delete_topic / update_topic_config（分区数只能增加）
- get_unready_topics: 列出未就绪的 Topic 及其条件，便于排查
- get_topic_operator_status: entity-operator 中 topic-operator 容器的状态
- compare_topic_config: 两个 Topic 之间、或单个 Topic 与 Kafka 默认值之间的配置对比
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .. import objects
from ..kinds import CLUSTER_LABEL, KAFKA_TOPIC
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, already_exists, error, not_found, success
from .common import operator_status

_TOPIC_SCHEMA = """
{
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Name of the KafkaTopic resource"},
        "namespace": {"type": "string", "description": "Kubernetes namespace of the topic"}
    },
    "required": ["name", "namespace"]
}
"""

_FILTER_SCHEMA = """
{
    "type": "object",
    "properties": {
        "namespace": {
            "type": "string",
            "description": "Kubernetes namespace to list topics from. If not specified, lists from all namespaces."
        },
        "kafkaCluster": {
            "type": "string",
            "description": "Filter topics by Kafka cluster name (matches strimzi.io/cluster label)"
        }
    }
}
"""

# Kafka 常用 Topic 配置默认值
DEFAULT_TOPIC_CONFIG: Dict[str, str] = {
    "cleanup.policy": "delete",
    "compression.type": "producer",
    "retention.ms": "604800000",
    "segment.bytes": "1073741824",
    "min.insync.replicas": "1",
    "max.message.bytes": "1048588",
}


def truncate(value: str, max_len: int = 18) -> str:
    if len(value) <= max_len:
        return value
    return value[: max_len - 3] + "..."


class ListTopicsTool(StrimziTool):
    name = "list_topics"
    description = "List Strimzi KafkaTopic resources"
    failure = "Error listing topics"
    schema = _FILTER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        topics = self.repo(KAFKA_TOPIC).list(
            self.get_string_arg(args, "namespace"),
            CLUSTER_LABEL,
            self.get_string_arg(args, "kafkaCluster"),
        )
        out = [f"Found {len(topics)} KafkaTopic(s):\n\n"]
        for topic in topics:
            line = f"- {objects.qualified(topic)}"
            spec = objects.spec(topic)
            if spec:
                line += (
                    f" [partitions: {objects.fmt(spec.get('partitions'))}, "
                    f"replicas: {objects.fmt(spec.get('replicas'))}]"
                )
            cluster = objects.labels(topic).get(CLUSTER_LABEL)
            if cluster:
                line += f" -> {cluster}"
            out.append(line + "\n")
        return success("".join(out))


class DescribeTopicTool(StrimziTool):
    name = "describe_topic"
    description = "Get detailed information about a KafkaTopic including spec, status, and configuration"
    failure = "Error describing topic"
    schema = _TOPIC_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        topic = self.repo(KAFKA_TOPIC).get(namespace, name)
        if topic is None:
            return not_found("KafkaTopic", namespace, name)

        out = [f"KafkaTopic: {namespace}/{name}\n\n"]
        cluster = objects.labels(topic).get(CLUSTER_LABEL)
        if cluster:
            out.append(f"Kafka Cluster: {cluster}\n")

        spec = objects.spec(topic)
        if spec:
            out.append("\nSpec:\n")
            out.append(f"  Partitions: {objects.fmt(spec.get('partitions'))}\n")
            out.append(f"  Replicas: {objects.fmt(spec.get('replicas'))}\n")
            if spec.get("config"):
                out.append("  Config:\n")
                out.extend(f"    {k}: {v}\n" for k, v in spec["config"].items())

        status = objects.status(topic)
        if status:
            out.append("\nStatus:\n")
            if status.get("topicName"):
                out.append(f"  Topic Name in Kafka: {status['topicName']}\n")
            if status.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(objects.format_conditions(status["conditions"], show_reason=True))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


class CreateTopicTool(StrimziTool):
    name = "create_topic"
    description = "Create a new KafkaTopic resource managed by the Topic Operator"
    failure = "Error creating topic"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaTopic resource to create"},
            "namespace": {"type": "string", "description": "Kubernetes namespace to create the topic in"},
            "kafkaCluster": {"type": "string", "description": "Name of the Kafka cluster (strimzi.io/cluster label)"},
            "partitions": {"type": "integer", "description": "Number of partitions (default: 1)"},
            "replicas": {"type": "integer", "description": "Number of replicas (default: 1)"},
            "config": {
                "type": "object",
                "description": "Topic configuration as key-value pairs (e.g., retention.ms, cleanup.policy)"
            }
        },
        "required": ["name", "namespace", "kafkaCluster"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace", "kafkaCluster")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        cluster = self.get_string_arg(args, "kafkaCluster")
        partitions = self.get_int_arg(args, "partitions", 1)
        replicas = self.get_int_arg(args, "replicas", 1)
        config = self.get_map_arg(args, "config")

        topics = self.repo(KAFKA_TOPIC)
        if topics.exists(namespace, name):
            return already_exists("KafkaTopic", namespace, name)

        spec: Dict[str, Any] = {"partitions": partitions, "replicas": replicas}
        if config:
            spec["config"] = dict(config)
        topics.create(
            namespace,
            {
                "apiVersion": KAFKA_TOPIC.api_version,
                "kind": KAFKA_TOPIC.kind,
                "metadata": {
                    "name": name,
                    "namespace": namespace,
                    "labels": {CLUSTER_LABEL: cluster},
                },
                "spec": spec,
            },
        )

        out = [
            f"Created KafkaTopic: {namespace}/{name}\n",
            f"  Kafka Cluster: {cluster}\n",
            f"  Partitions: {partitions}\n",
            f"  Replicas: {replicas}\n",
        ]
        if config:
            out.append(f"  Config: {objects.fmt(config)}\n")
        out.append("\nThe Topic Operator will create the topic in Kafka shortly.")
        return success("".join(out))


class DeleteTopicTool(StrimziTool):
    name = "delete_topic"
    description = "Delete a KafkaTopic resource (Topic Operator will delete the topic from Kafka)"
    failure = "Error deleting topic"
    read_only = False
    destructive = True
    schema = _TOPIC_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        topics = self.repo(KAFKA_TOPIC)
        if not topics.exists(namespace, name):
            return not_found("KafkaTopic", namespace, name)
        topics.delete(namespace, name)
        return success(
            f"Deleted KafkaTopic: {namespace}/{name}\n"
            "The Topic Operator will delete the topic from Kafka shortly."
        )


class UpdateTopicConfigTool(StrimziTool):
    name = "update_topic_config"
    description = "Update configuration of an existing KafkaTopic (partitions can only be increased)"
    failure = "Error updating topic"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaTopic resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the topic"},
            "partitions": {"type": "integer", "description": "New number of partitions (can only increase)"},
            "config": {"type": "object", "description": "Topic configuration to update as key-value pairs"}
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
        partitions = self.get_optional_int_arg(args, "partitions")
        config = self.get_map_arg(args, "config")

        topics = self.repo(KAFKA_TOPIC)
        topic = topics.get(namespace, name)
        if topic is None:
            return not_found("KafkaTopic", namespace, name)
        if partitions is None and not config:
            return error("No updates specified. Provide partitions or config to update.")

        spec_patch: Dict[str, Any] = {}
        changes = []
        if partitions is not None:
            current = int(objects.spec(topic).get("partitions") or 1)
            if partitions < current:
                return error(
                    f"Cannot decrease partitions from {current} to {partitions}. "
                    "Partitions can only be increased."
                )
            spec_patch["partitions"] = partitions
            changes.append(f"  Partitions: {current} -> {partitions}\n")
        if config:
            # merge-patch 本身就是对 config 的合并
            spec_patch["config"] = dict(config)
            changes.append(f"  Config updates: {objects.fmt(config)}\n")

        topics.patch(namespace, name, {"spec": spec_patch})
        return success(
            f"Updated KafkaTopic: {namespace}/{name}\n"
            + "".join(changes)
            + "\nThe Topic Operator will apply the changes to Kafka shortly."
        )


class GetUnreadyTopicsTool(StrimziTool):
    name = "get_unready_topics"
    description = "List KafkaTopics that are not in Ready state (useful for troubleshooting)"
    failure = "Error getting unready topics"
    schema = _FILTER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        topics = self.repo(KAFKA_TOPIC).list(
            self.get_string_arg(args, "namespace"),
            CLUSTER_LABEL,
            self.get_string_arg(args, "kafkaCluster"),
        )
        unready = [t for t in topics if not objects.is_ready(t)]
        if not unready:
            return success("All topics are in Ready state.")

        out = [f"Found {len(unready)} unready topic(s):\n\n"]
        for topic in unready:
            out.append(f"- {objects.qualified(topic)}\n")
            conds = objects.conditions(topic)
            if not conds:
                out.append("    No status available\n")
                continue
            for c in conds:
                line = f"    {c.get('type')}: {c.get('status')}"
                if c.get("reason"):
                    line += f" ({c['reason']})"
                out.append(line + "\n")
                if c.get("message"):
                    out.append(f"    Message: {c['message']}\n")
        return success("".join(out))


class GetTopicOperatorStatusTool(StrimziTool):
    name = "get_topic_operator_status"
    description = "Get status of the Topic Operator (entity-operator pod) for a Kafka cluster"
    failure = "Error getting Topic Operator status"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {"type": "string", "description": "Kubernetes namespace where Kafka cluster is deployed"},
            "kafkaCluster": {"type": "string", "description": "Name of the Kafka cluster"}
        },
        "required": ["namespace", "kafkaCluster"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "namespace", "kafkaCluster")
        if problem:
            return problem
        return success(
            operator_status(
                self.store,
                self.get_string_arg(args, "namespace"),
                self.get_string_arg(args, "kafkaCluster"),
                "Topic Operator",
                None,
            )
        )


class CompareTopicConfigTool(StrimziTool):
    name = "compare_topic_config"
    description = "Compare configuration between two topics or show how a topic differs from Kafka defaults"
    failure = "Error comparing topics"
    schema = """
    {
        "type": "object",
        "properties": {
            "topic1": {"type": "string", "description": "Name of the first KafkaTopic"},
            "topic2": {
                "type": "string",
                "description": "Name of the second KafkaTopic (optional, compares the first topic against Kafka defaults if omitted)"
            },
            "namespace": {"type": "string", "description": "Kubernetes namespace of the topics"}
        },
        "required": ["topic1", "namespace"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "topic1", "namespace")
        if problem:
            return problem
        name1 = self.get_string_arg(args, "topic1")
        name2 = self.get_string_arg(args, "topic2")
        namespace = self.get_string_arg(args, "namespace")

        topics = self.repo(KAFKA_TOPIC)
        topic1 = topics.get(namespace, name1)
        if topic1 is None:
            return not_found("KafkaTopic", namespace, name1)
        if not name2:
            return success(self._against_defaults(namespace, name1, topic1))

        topic2 = topics.get(namespace, name2)
        if topic2 is None:
            return not_found("KafkaTopic", namespace, name2)
        return success(self._against_topic(namespace, name1, topic1, name2, topic2))

    @staticmethod
    def _against_topic(namespace, name1, topic1, name2, topic2) -> str:
        spec1, spec2 = objects.spec(topic1), objects.spec(topic2)
        out = [
            "Comparing Topics\n",
            "═" * 60 + "\n",
            f"Topic 1: {namespace}/{name1}\n",
            f"Topic 2: {namespace}/{name2}\n\n",
            "BASIC PROPERTIES\n",
            "─" * 40 + "\n",
            "  %-20s %-15s %-15s\n" % ("Property", name1, name2),
            "  " + "-" * 50 + "\n",
        ]
        for prop in ("partitions", "replicas"):
            v1 = int(spec1.get(prop) or 1)
            v2 = int(spec2.get(prop) or 1)
            diff = " ≠" if v1 != v2 else ""
            out.append("  %-20s %-15d %-15d%s\n" % (prop, v1, v2, diff))
        out.append("\n")

        config1 = spec1.get("config") or {}
        config2 = spec2.get("config") or {}
        keys = sorted(set(config1) | set(config2))
        if not keys:
            out.append("Both topics use default configuration.\n")
            return "".join(out)

        out.append("CONFIGURATION\n")
        out.append("─" * 40 + "\n")
        out.append("  %-30s %-20s %-20s\n" % ("Config Key", name1, name2))
        out.append("  " + "-" * 70 + "\n")
        for key in keys:
            val1 = str(config1[key]) if key in config1 else "(default)"
            val2 = str(config2[key]) if key in config2 else "(default)"
            diff = " ≠" if val1 != val2 else ""
            out.append("  %-30s %-20s %-20s%s\n" % (key, truncate(val1), truncate(val2), diff))
        return "".join(out)

    @staticmethod
    def _against_defaults(namespace, name, topic) -> str:
        spec = objects.spec(topic)
        config = spec.get("config") or {}
        out = [
            "Topic Configuration vs Kafka Defaults\n",
            "═" * 60 + "\n",
            f"Topic: {namespace}/{name}\n\n",
            "BASIC PROPERTIES\n",
            "─" * 40 + "\n",
            f"  Partitions: {spec.get('partitions') or 1}\n",
            f"  Replicas: {spec.get('replicas') or 1}\n\n",
        ]
        if not config:
            out.append("This topic uses all default Kafka configuration values.\n")
            return "".join(out)

        out.append("CUSTOM CONFIGURATION (differs from defaults)\n")
        out.append("─" * 40 + "\n")
        out.append("  %-30s %-20s %-20s\n" % ("Config Key", "Current", "Default"))
        out.append("  " + "-" * 70 + "\n")
        for key, value in config.items():
            default = DEFAULT_TOPIC_CONFIG.get(key, "(Kafka default)")
            out.append("  %-30s %-20s %-20s\n" % (key, truncate(str(value)), truncate(default)))
        return "".join(out)


FACTORY = ToolFactory(
    "topic",
    [
        ListTopicsTool,
        DescribeTopicTool,
        CreateTopicTool,
        DeleteTopicTool,
        UpdateTopicConfigTool,
        GetUnreadyTopicsTool,
        GetTopicOperatorStatusTool,
        CompareTopicConfigTool,
    ],
)
