"""
实用工具

提供：
- export_resource_yaml: 导出 Strimzi 资源为 YAML（默认去掉 status 与服务端维护的 metadata）
- get_strimzi_version: Cluster Operator 镜像版本与各 Kafka 集群版本
- list_all_resources: 按命名空间汇总所有 Strimzi 资源
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .. import objects
from ..health.result import BANNER, RULE
from ..kinds import (
    DEPLOYMENT,
    EXPORTABLE_KINDS,
    KAFKA,
    KAFKA_BRIDGE,
    KAFKA_CONNECT,
    KAFKA_CONNECTOR,
    KAFKA_MIRROR_MAKER2,
    KAFKA_NODE_POOL,
    KAFKA_REBALANCE,
    KAFKA_TOPIC,
    KAFKA_USER,
    POD,
)
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, error, success
from .cluster import OPERATOR_NAME

logger = logging.getLogger(__name__)

OPERATOR_SEARCH_NAMESPACES = ("strimzi", "strimzi-system", "kafka", "default")
SUMMARY_LIMIT = 10

_SERVER_MANAGED_METADATA = (
    "resourceVersion",
    "uid",
    "creationTimestamp",
    "generation",
    "managedFields",
)
_VERSION_PATTERN = re.compile(r":([0-9]+\.[0-9]+\.[0-9]+)")


def strip_server_fields(obj: Mapping[str, Any]) -> Dict[str, Any]:
    """去掉 status、服务端维护的 metadata 字段，以及 strimzi.io/ 下记录代数/上次操作的注解。"""
    clean = copy.deepcopy(dict(obj))
    clean.pop("status", None)
    meta = clean.get("metadata")
    if isinstance(meta, dict):
        for key in _SERVER_MANAGED_METADATA:
            meta.pop(key, None)
        notes = meta.get("annotations")
        if isinstance(notes, dict):
            for key in [
                k for k in notes
                if k.startswith("strimzi.io/") and ("generation" in k or "last" in k)
            ]:
                del notes[key]
            if not notes:
                meta.pop("annotations")
    return clean


class ExportResourceYamlTool(StrimziTool):
    name = "export_resource_yaml"
    description = "Export a Strimzi resource as YAML (useful for backup or GitOps)"
    failure = "Error exporting resource"
    schema = """
    {
        "type": "object",
        "properties": {
            "kind": {
                "type": "string",
                "description": "Resource kind",
                "enum": ["Kafka", "KafkaTopic", "KafkaUser", "KafkaConnect", "KafkaConnector",
                         "KafkaNodePool", "KafkaMirrorMaker2", "KafkaBridge"]
            },
            "name": {"type": "string", "description": "Name of the resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace"},
            "includeStatus": {
                "type": "boolean",
                "description": "Include status section in export (default: false)"
            }
        },
        "required": ["kind", "name", "namespace"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "kind", "name", "namespace")
        if problem:
            return problem
        kind_name = self.get_string_arg(args, "kind")
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        include_status = self.get_bool_arg(args, "includeStatus")

        kind = EXPORTABLE_KINDS.get(kind_name)
        if kind is None:
            return error(
                f"Unsupported kind: {kind_name}. Supported kinds: {', '.join(EXPORTABLE_KINDS)}"
            )
        obj = self.repo(kind).get(namespace, name)
        if obj is None:
            return error(f"{kind_name} not found: {namespace}/{name}")

        if not include_status:
            obj = strip_server_fields(obj)
        header = f"# {kind_name}: {namespace}/{name}"
        if include_status:
            header += " (with status)"
        body = yaml.safe_dump(obj, sort_keys=False, default_flow_style=False, allow_unicode=True)
        return success(f"{header}\n{body}")


def image_version(image: Optional[str]) -> str:
    m = _VERSION_PATTERN.search(image or "")
    return m.group(1) if m else "unknown"


class GetStrimziVersionTool(StrimziTool):
    name = "get_strimzi_version"
    description = "Get Strimzi operator version and Kafka versions in use"
    failure = "Error getting Strimzi version"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Namespace where Strimzi operator is installed (optional, searches common namespaces if not specified)"
            }
        }
    }
    """

    def _find_operator(self, namespaces) -> Optional[Dict[str, Any]]:
        deployments = self.repo(DEPLOYMENT)
        for ns in namespaces:
            try:
                deployment = deployments.get(ns, OPERATOR_NAME)
            except Exception as e:
                logger.debug("Cannot read %s in namespace %s: %s", OPERATOR_NAME, ns, e)
                continue
            if deployment is not None:
                return deployment
        return None

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        namespace = self.get_string_arg(args, "namespace")
        namespaces = [namespace] if namespace else list(OPERATOR_SEARCH_NAMESPACES)

        out = ["Strimzi Version Information\n", f"{BANNER}\n\n", "CLUSTER OPERATOR\n", f"{RULE}\n"]
        deployment = self._find_operator(namespaces)
        if deployment is None:
            out.append("  Not found in searched namespaces\n")
        else:
            ns = objects.namespace_of(deployment)
            template = objects.spec(deployment).get("template") or {}
            containers = (template.get("spec") or {}).get("containers") or []
            image = containers[0].get("image") if containers else None
            out.append(f"  Namespace: {ns}\n")
            out.append(f"  Image: {image}\n")
            out.append(f"  Version: {image_version(image)}\n")
            pods = self.repo(POD).list(ns, "name", OPERATOR_NAME)
            if pods:
                out.append(f"  Status: {objects.status(pods[0]).get('phase')}\n")
        out.append("\n")

        out.append("KAFKA CLUSTERS\n")
        out.append(f"{RULE}\n")
        clusters = self.repo(KAFKA).list()
        if not clusters:
            out.append("  No Kafka clusters found\n")
        for k in clusters:
            kafka_spec = objects.spec(k).get("kafka") or {}
            st = objects.status(k)
            out.append(f"  {objects.qualified(k)}:\n")
            out.append(f"    Kafka Version: {kafka_spec.get('version') or 'default'}\n")
            if st.get("operatorLastSuccessfulVersion"):
                out.append(f"    Operator Version: {st['operatorLastSuccessfulVersion']}\n")
            if st.get("kafkaVersion"):
                out.append(f"    Running Kafka: {st['kafkaVersion']}\n")
        return success("".join(out))


class ListAllResourcesTool(StrimziTool):
    name = "list_all_resources"
    description = "List all Strimzi resources in a namespace or across all namespaces"
    failure = "Error listing resources"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace (optional, lists all namespaces if not specified)"
            }
        }
    }
    """

    @staticmethod
    def _section(title: str, lines: List[str], count: Optional[int] = None) -> str:
        count = len(lines) if count is None else count
        return f"{title} ({count})\n{RULE}\n" + "".join(lines) + "\n"

    @staticmethod
    def _summarised(items: List[Dict[str, Any]], noun: str, tool: str) -> List[str]:
        if len(items) > SUMMARY_LIMIT:
            return [f"  ({len(items)} {noun} - use {tool} for details)\n"]
        return [f"  {objects.qualified(i)}\n" for i in items]

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        namespace = self.get_string_arg(args, "namespace")

        def fetch(kind):
            return self.repo(kind).list(namespace)

        out = ["Strimzi Resources Summary\n", f"{BANNER}\n"]
        out.append(f"Namespace: {namespace}\n" if namespace else "Scope: All namespaces\n")
        out.append("\n")
        total = 0

        kafkas = fetch(KAFKA)
        total += len(kafkas)
        lines = []
        for k in kafkas:
            mark = ""
            if objects.conditions(k):
                mark = " ✓" if objects.is_ready(k) else " ✗"
            lines.append(f"  {objects.qualified(k)}{mark}\n")
        out.append(self._section("KAFKA CLUSTERS", lines))

        pools = fetch(KAFKA_NODE_POOL)
        total += len(pools)
        if pools:
            out.append(self._section("NODE POOLS", [
                f"  {objects.qualified(p)} ({objects.spec(p).get('replicas', 0)} replicas)\n"
                for p in pools
            ]))

        for kind, title, noun, tool in (
            (KAFKA_TOPIC, "TOPICS", "topics", "list_topics"),
            (KAFKA_USER, "USERS", "users", "list_users"),
        ):
            items = fetch(kind)
            total += len(items)
            out.append(self._section(title, self._summarised(items, noun, tool), len(items)))

        for kind, title in (
            (KAFKA_CONNECT, "KAFKA CONNECT"),
            (KAFKA_CONNECTOR, "CONNECTORS"),
            (KAFKA_MIRROR_MAKER2, "MIRRORMAKER2"),
            (KAFKA_BRIDGE, "BRIDGES"),
        ):
            items = fetch(kind)
            total += len(items)
            if items:
                out.append(self._section(title, [f"  {objects.qualified(i)}\n" for i in items]))

        rebalances = fetch(KAFKA_REBALANCE)
        total += len(rebalances)
        if rebalances:
            out.append(self._section("REBALANCES", [
                f"  {objects.qualified(r)} ({objects.active_state(r)})\n" for r in rebalances
            ]))

        out.append(f"{BANNER}\nTOTAL: {total} Strimzi resources\n")
        return success("".join(out))


FACTORY = ToolFactory(
    "utility",
    [
        ExportResourceYamlTool,
        GetStrimziVersionTool,
        ListAllResourcesTool,
    ],
)
