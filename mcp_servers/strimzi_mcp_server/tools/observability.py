"""
可观测性工具

提供：
- get_kafka_logs: broker Pod 日志（默认 100 行，最多 500 行，默认容器 kafka）
- get_operator_logs: Cluster / Topic / User Operator 日志
- get_kafka_events: Strimzi 相关的 Kubernetes 事件，按时间倒序
- describe_kafka_pod: Pod 的标签、状态、容器资源与卷
- health_check: 运行健康检查流水线并输出报告
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from .. import objects
from ..health import HealthCheckContext, HealthCheckPipeline
from ..health.result import BANNER
from ..kinds import CLUSTER_LABEL, EVENT, KIND_LABEL, POD
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, error, not_found, success
from .cluster import OPERATOR_NAME
from .common import entity_operator_pods

DEFAULT_LOG_LINES = 100
MAX_LOG_LINES = 500
DEFAULT_EVENT_LIMIT = 50

DIVIDER = "─" * 60


def clamp_lines(lines: int) -> int:
    return min(lines, MAX_LOG_LINES)


def _log_body(logs: str) -> str:
    return logs if logs else "(no logs available)"


class GetKafkaLogsTool(StrimziTool):
    name = "get_kafka_logs"
    description = "Fetch recent logs from Kafka broker pods"
    failure = "Error fetching logs"
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the Kafka cluster"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the Kafka cluster"},
            "podName": {
                "type": "string",
                "description": "Optional: specific pod name. If not specified, gets logs from the first broker."
            },
            "lines": {"type": "integer", "description": "Number of log lines to retrieve (default: 100, max: 500)"},
            "container": {"type": "string", "description": "Container name (default: kafka)"},
            "previous": {
                "type": "boolean",
                "description": "Get logs from previous container instance (default: false)"
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
        pod_name = self.get_string_arg(args, "podName")
        lines = clamp_lines(self.get_int_arg(args, "lines", DEFAULT_LOG_LINES))
        container = self.get_string_arg(args, "container") or "kafka"
        previous = self.get_bool_arg(args, "previous")

        pods = self.repo(POD)
        if not pod_name:
            brokers = [
                p
                for p in pods.list(namespace, CLUSTER_LABEL, name)
                if objects.labels(p).get(KIND_LABEL) == "Kafka"
            ]
            if not brokers:
                return error(f"No Kafka pods found for cluster: {namespace}/{name}")
            pod_name = objects.name_of(brokers[0])
        if not pods.exists(namespace, pod_name):
            return not_found("Pod", namespace, pod_name)

        logs = self.store.read_pod_log(
            namespace, pod_name, container=container, tail_lines=lines, previous=previous
        )
        header = f"Lines: {lines}"
        if previous:
            header += " (previous instance)"
        return success(
            f"Logs from pod: {namespace}/{pod_name}\n"
            f"Container: {container}\n"
            f"{header}\n"
            f"{DIVIDER}\n\n"
            f"{_log_body(logs)}"
        )


class GetOperatorLogsTool(StrimziTool):
    name = "get_operator_logs"
    description = "Fetch logs from Strimzi operators (Cluster Operator, Topic Operator, User Operator)"
    failure = "Error fetching operator logs"
    schema = """
    {
        "type": "object",
        "properties": {
            "operator": {
                "type": "string",
                "enum": ["cluster", "topic", "user"],
                "description": "Which operator logs to fetch"
            },
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace (for topic/user operators, this is where Kafka is deployed)"
            },
            "kafkaCluster": {
                "type": "string",
                "description": "Required for topic/user operators: name of the Kafka cluster"
            },
            "lines": {"type": "integer", "description": "Number of log lines to retrieve (default: 100, max: 500)"}
        },
        "required": ["operator", "namespace"]
    }
    """

    def _locate(
        self, operator: str, namespace: str, kafka_cluster: Optional[str]
    ) -> Tuple[Optional[str], Optional[str], Optional[CallResult]]:
        """返回 (pod 名, 容器名, 错误)。"""
        pods = self.repo(POD)
        if operator == "cluster":
            found = pods.list(namespace, "name", OPERATOR_NAME) or pods.list(
                namespace, KIND_LABEL, "cluster-operator"
            )
            if not found:
                return None, None, error(f"Cluster Operator pod not found in namespace: {namespace}")
            return objects.name_of(found[0]), OPERATOR_NAME, None

        if operator in ("topic", "user"):
            if not kafka_cluster:
                return None, None, error("kafkaCluster is required for topic/user operator logs")
            container = f"{operator}-operator"
            pod_name = f"{kafka_cluster}-entity-operator"
            if pods.exists(namespace, pod_name):
                return pod_name, container, None
            found = entity_operator_pods(self.store, namespace, kafka_cluster)
            if not found:
                return None, None, error(f"Entity Operator pod not found for cluster: {kafka_cluster}")
            return objects.name_of(found[0]), container, None

        return (
            None,
            None,
            error(f"Unknown operator type: {operator}. Use 'cluster', 'topic', or 'user'."),
        )

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "operator", "namespace")
        if problem:
            return problem
        operator = self.get_string_arg(args, "operator").lower()
        namespace = self.get_string_arg(args, "namespace")
        kafka_cluster = self.get_string_arg(args, "kafkaCluster")
        lines = clamp_lines(self.get_int_arg(args, "lines", DEFAULT_LOG_LINES))

        pod_name, container, refusal = self._locate(operator, namespace, kafka_cluster)
        if refusal:
            return refusal
        logs = self.store.read_pod_log(namespace, pod_name, container=container, tail_lines=lines)
        return success(
            f"Logs from {operator} operator\n"
            f"Pod: {namespace}/{pod_name}\n"
            f"Container: {container}\n"
            f"Lines: {lines}\n"
            f"{DIVIDER}\n\n"
            f"{_log_body(logs)}"
        )


def event_timestamp(event: Mapping[str, Any]) -> str:
    return event.get("lastTimestamp") or event.get("eventTime") or ""


class GetKafkaEventsTool(StrimziTool):
    name = "get_kafka_events"
    description = "Get Kubernetes events for Strimzi resources (useful for troubleshooting)"
    failure = "Error getting events"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {"type": "string", "description": "Kubernetes namespace to get events from"},
            "kafkaCluster": {"type": "string", "description": "Optional: filter events by Kafka cluster name"},
            "resourceKind": {
                "type": "string",
                "enum": ["Kafka", "KafkaTopic", "KafkaUser", "KafkaConnect", "KafkaConnector", "Pod", "all"],
                "description": "Filter by resource kind (default: all)"
            },
            "limit": {"type": "integer", "description": "Maximum number of events to return (default: 50)"},
            "warnings": {"type": "boolean", "description": "Only show Warning events (default: false)"}
        },
        "required": ["namespace"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "namespace")
        if problem:
            return problem
        namespace = self.get_string_arg(args, "namespace")
        kafka_cluster = self.get_string_arg(args, "kafkaCluster")
        resource_kind = self.get_string_arg(args, "resourceKind")
        limit = self.get_int_arg(args, "limit", DEFAULT_EVENT_LIMIT)
        warnings_only = self.get_bool_arg(args, "warnings")
        by_kind = resource_kind is not None and resource_kind.lower() != "all"

        def keep(event: Dict[str, Any]) -> bool:
            involved = event.get("involvedObject") or {}
            if warnings_only and event.get("type") != "Warning":
                return False
            if by_kind and (involved.get("kind") or "").lower() != resource_kind.lower():
                return False
            # 资源名通常以集群名为前缀，例如 my-cluster-kafka-0
            if kafka_cluster and kafka_cluster not in (involved.get("name") or ""):
                return False
            return True

        events = [e for e in self.repo(EVENT).list(namespace) if keep(e)]
        events.sort(key=event_timestamp, reverse=True)
        events = events[: max(limit, 0)]

        out = [f"Kubernetes Events in namespace: {namespace}\n"]
        if kafka_cluster:
            out.append(f"Filtered by cluster: {kafka_cluster}\n")
        if by_kind:
            out.append(f"Filtered by kind: {resource_kind}\n")
        if warnings_only:
            out.append("Showing warnings only\n")
        out.append(f"Found {len(events)} events\n")
        out.append(f"{DIVIDER}\n\n")
        if not events:
            out.append("No events found matching the criteria.")
            return success("".join(out))

        for event in events:
            kind = event.get("type") or "Normal"
            icon = "⚠" if kind == "Warning" else "ℹ"
            out.append(f"{icon} {kind} | {event_timestamp(event) or '(no timestamp)'}\n")
            involved = event.get("involvedObject")
            if involved:
                out.append(f"   Resource: {involved.get('kind')}/{involved.get('name')}\n")
            if event.get("reason"):
                out.append(f"   Reason: {event['reason']}\n")
            if event.get("message"):
                out.append(f"   Message: {event['message']}\n")
            if (event.get("count") or 0) > 1:
                out.append(f"   Count: {event['count']}\n")
            out.append("\n")
        return success("".join(out))


def _container_lines(container: Mapping[str, Any], cs: Optional[Mapping[str, Any]]) -> List[str]:
    out = [f"  {container.get('name')}:\n", f"    Image: {container.get('image')}\n"]
    resources = container.get("resources") or {}
    for key, title in (("requests", "Requests"), ("limits", "Limits")):
        if resources.get(key):
            out.append(f"    {title}:\n")
            out.extend(f"      {k}: {v}\n" for k, v in resources[key].items())
    if cs is None:
        return out

    out.append("    Status:\n")
    out.append(f"      Ready: {objects.fmt(cs.get('ready'))}\n")
    out.append(f"      Restart Count: {cs.get('restartCount')}\n")
    state = cs.get("state") or {}
    if state.get("running") is not None:
        out.append(f"      State: Running since {state['running'].get('startedAt')}\n")
    elif state.get("waiting") is not None:
        out.append(f"      State: Waiting - {state['waiting'].get('reason')}\n")
    elif state.get("terminated") is not None:
        out.append(f"      State: Terminated - {state['terminated'].get('reason')}\n")
    last = (cs.get("lastState") or {}).get("terminated")
    if last is not None:
        out.append("      Last Termination:\n")
        out.append(f"        Reason: {last.get('reason')}\n")
        out.append(f"        Exit Code: {last.get('exitCode')}\n")
        if last.get("finishedAt"):
            out.append(f"        Finished: {last['finishedAt']}\n")
    return out


def _volume_line(volume: Mapping[str, Any]) -> str:
    line = f"  {volume.get('name')}"
    if volume.get("persistentVolumeClaim") is not None:
        line += f" (PVC: {volume['persistentVolumeClaim'].get('claimName')})"
    elif volume.get("configMap") is not None:
        line += f" (ConfigMap: {volume['configMap'].get('name')})"
    elif volume.get("secret") is not None:
        line += f" (Secret: {volume['secret'].get('secretName')})"
    return line + "\n"


class DescribeKafkaPodTool(StrimziTool):
    name = "describe_kafka_pod"
    description = (
        "Get detailed information about a Kafka/Strimzi pod including resources, status, and events"
    )
    failure = "Error describing pod"
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the pod"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the pod"}
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
        pod = self.repo(POD).get(namespace, name)
        if pod is None:
            return not_found("Pod", namespace, name)

        out = [f"Pod: {namespace}/{name}\n", f"{BANNER}\n\n", "Labels:\n"]
        out.extend(f"  {k}: {v}\n" for k, v in objects.labels(pod).items())
        out.append("\n")

        st = objects.status(pod)
        spec = objects.spec(pod)
        out.append("Status:\n")
        out.append(f"  Phase: {st.get('phase')}\n")
        if st.get("reason"):
            out.append(f"  Reason: {st['reason']}\n")
        if st.get("message"):
            out.append(f"  Message: {st['message']}\n")
        out.append(f"  Pod IP: {st.get('podIP')}\n")
        out.append(f"  Node: {spec.get('nodeName')}\n")
        if st.get("startTime"):
            out.append(f"  Started: {st['startTime']}\n")
        out.append("\n")

        if st.get("conditions"):
            out.append("Conditions:\n")
            for c in st["conditions"]:
                line = f"  {c.get('type')}: {c.get('status')}"
                if c.get("reason"):
                    line += f" ({c['reason']})"
                out.append(line + "\n")
            out.append("\n")

        statuses = {cs.get("name"): cs for cs in st.get("containerStatuses") or []}
        out.append("Containers:\n")
        for container in spec.get("containers") or []:
            out.extend(_container_lines(container, statuses.get(container.get("name"))))
            out.append("\n")

        volumes = spec.get("volumes") or []
        if volumes:
            out.append("Volumes:\n")
            out.extend(_volume_line(v) for v in volumes)
        return success("".join(out))


class HealthCheckTool(StrimziTool):
    name = "health_check"
    description = "Perform a comprehensive health check of Strimzi resources and report any issues"
    failure = "Error performing health check"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace to check. If not specified, checks all namespaces."
            },
            "kafkaCluster": {"type": "string", "description": "Optional: specific Kafka cluster to check"}
        }
    }
    """

    def __init__(self, store: Any, pipeline: Optional[HealthCheckPipeline] = None) -> None:
        super().__init__(store)
        self.pipeline = pipeline or HealthCheckPipeline()

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        context = HealthCheckContext(
            store=self.store,
            namespace=self.get_string_arg(args, "namespace"),
            kafka_cluster=self.get_string_arg(args, "kafkaCluster"),
        )
        return success(self.pipeline.run(context).format())


FACTORY = ToolFactory(
    "observability",
    [
        GetKafkaLogsTool,
        GetOperatorLogsTool,
        GetKafkaEventsTool,
        DescribeKafkaPodTool,
        HealthCheckTool,
    ],
)
