"""
集群级资源工具

提供：
- list_node_pools / describe_node_pool
- list_rebalances / describe_rebalance / create_rebalance
- approve_rebalance（仅限 ProposalReady 状态）/ stop_rebalance / refresh_rebalance：
  均通过 strimzi.io/rebalance 注解驱动 Cruise Control
- get_cluster_operator_status: Cluster Operator 的 Pod 与 Deployment 状态

cluster 工具集同时发布 connect 模块中的 Kafka Connect / MirrorMaker2 / Bridge 工具。
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from .. import objects
from ..kinds import (
    CLUSTER_LABEL,
    DEPLOYMENT,
    KAFKA_NODE_POOL,
    KAFKA_REBALANCE,
    KIND_LABEL,
    POD,
    REBALANCE_ANNOTATION,
)
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, already_exists, error, not_found, success
from .common import container_state
from .connect import CONNECT_TOOLS
from .kafka import annotate

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR_NAMESPACE = "strimzi"
OPERATOR_NAME = "strimzi-cluster-operator"

_REBALANCE_MODES = ("full", "add-brokers", "remove-brokers")

_FILTER_SCHEMA = """
{
    "type": "object",
    "properties": {
        "namespace": {
            "type": "string",
            "description": "Kubernetes namespace to list %s from. If not specified, lists from all namespaces."
        },
        "kafkaCluster": {
            "type": "string",
            "description": "Filter %s by Kafka cluster name (matches strimzi.io/cluster label)"
        }
    }
}
"""


def _rebalance_schema(action: str) -> str:
    return """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaRebalance resource%s"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the rebalance"}
        },
        "required": ["name", "namespace"]
    }
    """ % (f" to {action}" if action else "")


# ---- KafkaNodePool ----


class ListNodePoolsTool(StrimziTool):
    name = "list_node_pools"
    description = "List Strimzi KafkaNodePool resources"
    failure = "Error listing node pools"
    schema = _FILTER_SCHEMA % ("node pools", "node pools")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        pools = self.repo(KAFKA_NODE_POOL).list(
            self.get_string_arg(args, "namespace"),
            CLUSTER_LABEL,
            self.get_string_arg(args, "kafkaCluster"),
        )
        out = [f"Found {len(pools)} KafkaNodePool(s):\n\n"]
        for pool in pools:
            line = f"- {objects.qualified(pool)}"
            spec = objects.spec(pool)
            if spec:
                line += f" [replicas: {objects.fmt(spec.get('replicas'))}"
                if spec.get("roles") is not None:
                    line += f", roles: {objects.fmt(spec['roles'])}"
                line += "]"
            node_ids = objects.status(pool).get("nodeIds")
            if node_ids is not None:
                line += f" nodeIds: {objects.fmt(node_ids)}"
            cluster = objects.labels(pool).get(CLUSTER_LABEL)
            if cluster:
                line += f" -> {cluster}"
            out.append(line + "\n")
        return success("".join(out))


class DescribeNodePoolTool(StrimziTool):
    name = "describe_node_pool"
    description = "Get detailed information about a KafkaNodePool including spec, status, and node IDs"
    failure = "Error describing node pool"
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaNodePool resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the node pool"}
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
        pool = self.repo(KAFKA_NODE_POOL).get(namespace, name)
        if pool is None:
            return not_found("KafkaNodePool", namespace, name)

        out = [f"KafkaNodePool: {namespace}/{name}\n\n"]
        cluster = objects.labels(pool).get(CLUSTER_LABEL)
        if cluster:
            out.append(f"Kafka Cluster: {cluster}\n")

        spec = objects.spec(pool)
        if spec:
            out.append("\nSpec:\n")
            out.append(f"  Replicas: {objects.fmt(spec.get('replicas'))}\n")
            if spec.get("roles") is not None:
                out.append(f"  Roles: {objects.fmt(spec['roles'])}\n")
            if spec.get("storage") is not None:
                out.append(f"  Storage Type: {spec['storage'].get('type')}\n")
            resources = spec.get("resources")
            if resources is not None:
                out.append("  Resources:\n")
                if resources.get("requests") is not None:
                    out.append(f"    Requests: {objects.fmt(resources['requests'])}\n")
                if resources.get("limits") is not None:
                    out.append(f"    Limits: {objects.fmt(resources['limits'])}\n")
            jvm = spec.get("jvmOptions")
            if jvm is not None:
                out.append("  JVM Options:\n")
                if jvm.get("-Xms") is not None:
                    out.append(f"    -Xms: {jvm['-Xms']}\n")
                if jvm.get("-Xmx") is not None:
                    out.append(f"    -Xmx: {jvm['-Xmx']}\n")

        status = objects.status(pool)
        if status:
            out.append("\nStatus:\n")
            if status.get("nodeIds") is not None:
                out.append(f"  Node IDs: {objects.fmt(status['nodeIds'])}\n")
            if status.get("clusterId"):
                out.append(f"  Cluster ID: {status['clusterId']}\n")
            if status.get("roles") is not None:
                out.append(f"  Roles: {objects.fmt(status['roles'])}\n")
            out.append(f"  Replicas: {objects.fmt(status.get('replicas'))}\n")
            if status.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(objects.format_conditions(status["conditions"], show_reason=True))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


# ---- KafkaRebalance ----


class ListRebalancesTool(StrimziTool):
    name = "list_rebalances"
    description = "List Strimzi KafkaRebalance resources for Cruise Control"
    failure = "Error listing rebalances"
    schema = _FILTER_SCHEMA % ("rebalances", "rebalances")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        rebalances = self.repo(KAFKA_REBALANCE).list(
            self.get_string_arg(args, "namespace"),
            CLUSTER_LABEL,
            self.get_string_arg(args, "kafkaCluster"),
        )
        out = [f"Found {len(rebalances)} KafkaRebalance(s):\n\n"]
        for rebalance in rebalances:
            line = f"- {objects.qualified(rebalance)}"
            mode = objects.spec(rebalance).get("mode")
            if mode:
                line += f" [mode: {mode}]"
            status = objects.status(rebalance)
            if status.get("conditions") is not None:
                state = objects.active_state(rebalance)
                if state != "Unknown":
                    line += f" [{state}]"
                if status.get("sessionId"):
                    line += f" session: {status['sessionId']}"
            cluster = objects.labels(rebalance).get(CLUSTER_LABEL)
            if cluster:
                line += f" -> {cluster}"
            out.append(line + "\n")
        return success("".join(out))


# Cruise Control 优化结果中展示的字段：(key, 标签, 后缀)
_OPTIMIZATION_FIELDS = (
    ("numIntraBrokerReplicaMovements", "Intra-Broker Replica Movements", ""),
    ("numReplicaMovements", "Replica Movements", ""),
    ("numLeaderMovements", "Leader Movements", ""),
    ("dataToMoveMB", "Data to Move", " MB"),
    ("excludedTopics", "Excluded Topics", ""),
    ("excludedBrokersForReplicaMove", "Excluded Brokers", ""),
    ("monitoredPartitionsPercentage", "Monitored Partitions", "%"),
    ("provisionStatus", "Provision Status", ""),
)


class DescribeRebalanceTool(StrimziTool):
    name = "describe_rebalance"
    description = (
        "Get detailed information about a KafkaRebalance including optimization proposal and progress"
    )
    failure = "Error describing rebalance"
    schema = _rebalance_schema("")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        rebalance = self.repo(KAFKA_REBALANCE).get(namespace, name)
        if rebalance is None:
            return not_found("KafkaRebalance", namespace, name)

        out = [f"KafkaRebalance: {namespace}/{name}\n\n"]
        cluster = objects.labels(rebalance).get(CLUSTER_LABEL)
        if cluster:
            out.append(f"Kafka Cluster: {cluster}\n")
        action = objects.annotations(rebalance).get(REBALANCE_ANNOTATION)
        if action:
            out.append(f"Rebalance Annotation: {action}\n")

        spec = objects.spec(rebalance)
        if spec:
            out.append("\nSpec:\n")
            if spec.get("mode"):
                out.append(f"  Mode: {spec['mode']}\n")
            if spec.get("brokers") is not None:
                out.append(f"  Brokers: {objects.fmt(spec['brokers'])}\n")
            if spec.get("goals"):
                out.append("  Goals:\n")
                out.extend(f"    - {goal}\n" for goal in spec["goals"])
            for key, label, suffix in (
                ("concurrentPartitionMovementsPerBroker", "Concurrent Partition Movements", ""),
                ("concurrentIntraBrokerPartitionMovements", "Concurrent Intra-Broker Movements", ""),
                ("concurrentLeaderMovements", "Concurrent Leader Movements", ""),
                ("replicationThrottle", "Replication Throttle", " bytes/sec"),
            ):
                if (spec.get(key) or 0) > 0:
                    out.append(f"  {label}: {spec[key]}{suffix}\n")

        status = objects.status(rebalance)
        if status:
            out.append("\nStatus:\n")
            conds = status.get("conditions")
            if conds is not None:
                state = ""
                for c in conds:
                    if c.get("status") == "True":
                        state = c.get("type") or ""
                        if c.get("reason"):
                            state += f" ({c['reason']})"
                        break
                out.append(f"  State: {state}\n")
                out.append("\n  Conditions:\n")
                out.append(objects.format_conditions(conds, show_reason=True))
            if status.get("sessionId"):
                out.append(f"\n  Session ID: {status['sessionId']}\n")
            opt = status.get("optimizationResult") or {}
            if opt:
                out.append("\n  Optimization Proposal:\n")
                for key, label, suffix in _OPTIMIZATION_FIELDS:
                    if key in opt:
                        out.append(f"    {label}: {objects.fmt(opt[key])}{suffix}\n")
                if "beforeLoadConfigMap" in opt or "afterLoadConfigMap" in opt:
                    out.append("\n    Load Statistics:\n")
                    if "beforeLoadConfigMap" in opt:
                        out.append(f"      Before: {opt['beforeLoadConfigMap']}\n")
                    if "afterLoadConfigMap" in opt:
                        out.append(f"      After: {opt['afterLoadConfigMap']}\n")
            out.append(f"\n  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


class CreateRebalanceTool(StrimziTool):
    name = "create_rebalance"
    description = "Create a new KafkaRebalance resource to trigger Cruise Control optimization"
    failure = "Error creating rebalance"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaRebalance resource to create"},
            "namespace": {"type": "string", "description": "Kubernetes namespace to create the rebalance in"},
            "kafkaCluster": {"type": "string", "description": "Name of the Kafka cluster (strimzi.io/cluster label)"},
            "mode": {
                "type": "string",
                "enum": ["full", "add-brokers", "remove-brokers"],
                "description": "Rebalance mode (default: full)"
            },
            "brokers": {
                "type": "array",
                "items": {"type": "integer"},
                "description": "Broker IDs for add-brokers or remove-brokers mode"
            },
            "goals": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Optional: list of optimization goals"
            },
            "skipHardGoalCheck": {"type": "boolean", "description": "Skip hard goal check (default: false)"},
            "rebalanceDisk": {"type": "boolean", "description": "Rebalance disk usage (default: false)"},
            "concurrentPartitionMovementsPerBroker": {
                "type": "integer",
                "description": "Max concurrent partition movements per broker"
            },
            "concurrentIntraBrokerPartitionMovements": {
                "type": "integer",
                "description": "Max concurrent intra-broker partition movements"
            },
            "concurrentLeaderMovements": {"type": "integer", "description": "Max concurrent leader movements"}
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
        mode = self.get_string_arg(args, "mode")
        brokers = self.get_list_arg(args, "brokers")
        goals = self.get_list_arg(args, "goals")

        rebalances = self.repo(KAFKA_REBALANCE)
        if rebalances.exists(namespace, name):
            return already_exists("KafkaRebalance", namespace, name)

        spec: Dict[str, Any] = {}
        if mode is not None:
            # 未知模式按 full 处理
            spec["mode"] = mode.lower() if mode.lower() in _REBALANCE_MODES else "full"
        if brokers:
            spec["brokers"] = [int(b) for b in brokers]
        if goals:
            spec["goals"] = [str(g) for g in goals]
        if self.get_bool_arg(args, "skipHardGoalCheck"):
            spec["skipHardGoalCheck"] = True
        if self.get_bool_arg(args, "rebalanceDisk"):
            spec["rebalanceDisk"] = True
        for key in (
            "concurrentPartitionMovementsPerBroker",
            "concurrentIntraBrokerPartitionMovements",
            "concurrentLeaderMovements",
        ):
            value = self.get_optional_int_arg(args, key)
            if value is not None:
                spec[key] = value

        rebalances.create(
            namespace,
            {
                "apiVersion": KAFKA_REBALANCE.api_version,
                "kind": KAFKA_REBALANCE.kind,
                "metadata": {
                    "name": name,
                    "namespace": namespace,
                    "labels": {CLUSTER_LABEL: cluster},
                },
                "spec": spec,
            },
        )

        out = [
            f"Created KafkaRebalance: {namespace}/{name}\n",
            f"  Kafka Cluster: {cluster}\n",
            f"  Mode: {mode or 'full'}\n",
        ]
        if brokers:
            out.append(f"  Brokers: {objects.fmt(spec['brokers'])}\n")
        if goals:
            out.append(f"  Goals: {len(goals)} custom goals\n")
        out.append("\nCruise Control will generate an optimization proposal.\n")
        out.append("Use describe_rebalance to check the proposal and approve_rebalance to execute it.")
        return success("".join(out))


class _RebalanceActionTool(StrimziTool):
    """approve / stop / refresh 的公共流程：读取当前状态，写入 strimzi.io/rebalance 注解。"""

    read_only = False
    action = ""

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        rebalances = self.repo(KAFKA_REBALANCE)
        rebalance = rebalances.get(namespace, name)
        if rebalance is None:
            return not_found("KafkaRebalance", namespace, name)

        state = objects.active_state(rebalance)
        refusal = self.precondition(state)
        if refusal:
            return refusal
        annotate(rebalances, namespace, name, REBALANCE_ANNOTATION, self.action)
        logger.info("Annotated KafkaRebalance %s/%s with %s", namespace, name, self.action)
        return success(self.report(namespace, name, state))

    def precondition(self, state: str) -> Any:
        return None

    def report(self, namespace: str, name: str, state: str) -> str:
        raise NotImplementedError


class ApproveRebalanceTool(_RebalanceActionTool):
    name = "approve_rebalance"
    description = "Approve a KafkaRebalance proposal for execution by Cruise Control"
    failure = "Error approving rebalance"
    schema = _rebalance_schema("approve")
    action = "approve"

    def precondition(self, state: str) -> Any:
        if state != "ProposalReady":
            return error(
                f"KafkaRebalance is not ready to approve. Current state: {state}. "
                "Expected: ProposalReady"
            )
        return None

    def report(self, namespace: str, name: str, state: str) -> str:
        return (
            f"Approved KafkaRebalance: {namespace}/{name}\n\n"
            "Cruise Control will now execute the optimization proposal.\n"
            "Use describe_rebalance to monitor progress."
        )


class StopRebalanceTool(_RebalanceActionTool):
    name = "stop_rebalance"
    description = (
        "Stop an in-progress KafkaRebalance operation (Cruise Control will stop partition movements)"
    )
    failure = "Error stopping rebalance"
    schema = _rebalance_schema("stop")
    action = "stop"

    def report(self, namespace: str, name: str, state: str) -> str:
        return (
            f"Stopped KafkaRebalance: {namespace}/{name}\n"
            f"Previous state: {state}\n\n"
            "Cruise Control will stop the rebalancing operation.\n"
            "Note: Partition movements that have already started will complete.\n"
            "Use describe_rebalance to check the final state."
        )


class RefreshRebalanceTool(_RebalanceActionTool):
    name = "refresh_rebalance"
    description = (
        "Refresh a KafkaRebalance proposal to get updated optimization results from Cruise Control"
    )
    failure = "Error refreshing rebalance"
    schema = _rebalance_schema("refresh")
    action = "refresh"

    def report(self, namespace: str, name: str, state: str) -> str:
        return (
            f"Refreshing KafkaRebalance: {namespace}/{name}\n"
            f"Previous state: {state}\n\n"
            "Cruise Control will generate a new optimization proposal.\n"
            "Use describe_rebalance to check the new proposal."
        )


# ---- Cluster Operator ----


class GetClusterOperatorStatusTool(StrimziTool):
    name = "get_cluster_operator_status"
    description = "Get status of the Strimzi Cluster Operator deployment"
    failure = "Error getting Cluster Operator status"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace where Cluster Operator is deployed (default: strimzi)"
            }
        }
    }
    """

    def _find(self, kind: Any, namespace: str) -> List[Dict[str, Any]]:
        # 先按 strimzi.io/kind 标签查找，找不到再按 Helm/YAML 安装默认的 name 标签
        repo = self.repo(kind)
        items = repo.list(namespace, KIND_LABEL, "cluster-operator")
        if not items:
            items = repo.list(namespace, "name", OPERATOR_NAME)
        return items

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        namespace = self.get_string_arg(args, "namespace") or DEFAULT_OPERATOR_NAMESPACE
        out = ["Strimzi Cluster Operator Status\n", f"Namespace: {namespace}\n\n"]

        pods = self._find(POD, namespace)
        if not pods:
            out.append(f"No Cluster Operator pods found in namespace '{namespace}'.\n")
            out.append("Try specifying the correct namespace where Strimzi is installed.")
            return success("".join(out))

        out.append(f"Found {len(pods)} Cluster Operator pod(s):\n\n")
        for pod in pods:
            st = objects.status(pod)
            out.append(f"Pod: {objects.name_of(pod)}\n")
            out.append(f"  Phase: {st.get('phase')}\n")
            out.append(f"  IP: {st.get('podIP')}\n")
            out.append(f"  Node: {objects.spec(pod).get('nodeName')}\n")
            statuses = st.get("containerStatuses")
            if statuses is not None:
                out.append("  Containers:\n")
                for cs in statuses:
                    state = container_state(cs)
                    started = ((cs.get("state") or {}).get("running") or {}).get("startedAt")
                    if started:
                        state = f" (running since {started})"
                    out.append(
                        f"    - {cs.get('name')}: ready={objects.fmt(cs.get('ready'))}, "
                        f"restarts={cs.get('restartCount')}{state}\n"
                    )
                    if cs.get("image"):
                        out.append(f"      Image: {cs['image']}\n")
            if st.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(objects.format_conditions(st["conditions"]))

        deployments = self._find(DEPLOYMENT, namespace)
        if deployments:
            out.append("\nDeployment Status:\n")
            for deployment in deployments:
                line = f"  {objects.name_of(deployment)}: "
                st = objects.status(deployment)
                if st:
                    line += (
                        f"replicas={objects.fmt(st.get('replicas'))}, "
                        f"ready={objects.fmt(st.get('readyReplicas'))}, "
                        f"available={objects.fmt(st.get('availableReplicas'))}"
                    )
                out.append(line + "\n")
        return success("".join(out))


FACTORY = ToolFactory(
    "cluster",
    [
        ListNodePoolsTool,
        DescribeNodePoolTool,
        *CONNECT_TOOLS,
        ListRebalancesTool,
        DescribeRebalanceTool,
        CreateRebalanceTool,
        ApproveRebalanceTool,
        StopRebalanceTool,
        RefreshRebalanceTool,
        GetClusterOperatorStatusTool,
    ],
)
