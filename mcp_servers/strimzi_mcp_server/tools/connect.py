"""
Kafka Connect / MirrorMaker2 / Bridge 工具

提供：
- list_kafka_connects / describe_kafka_connect / list_connect_plugins
- list_connectors / describe_connector / create_connector / delete_connector
- pause_connector / resume_connector: 修改 spec.pause
- restart_connector: strimzi.io/restart（整个连接器）或 strimzi.io/restart-task（单个任务）
- update_connector_config: 合并或整体替换 spec.config，可同时修改 tasksMax
- list_mirrormaker2s / describe_mirrormaker2 / create_mirrormaker2
- list_bridges / describe_bridge

这些类由 cluster 工具集统一发布（见 cluster.FACTORY）。
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from .. import objects
from ..kinds import (
    CLUSTER_LABEL,
    KAFKA_BRIDGE,
    KAFKA_CONNECT,
    KAFKA_CONNECTOR,
    KAFKA_MIRROR_MAKER2,
    RESTART_ANNOTATION,
    RESTART_TASK_ANNOTATION,
)
from ..tool import CallResult, StrimziTool, already_exists, not_found, success
from .kafka import annotate, utc_now

_NAMESPACE_ONLY_SCHEMA = """
{
    "type": "object",
    "properties": {
        "namespace": {
            "type": "string",
            "description": "Kubernetes namespace to list %s from. If not specified, lists from all namespaces."
        }
    }
}
"""

_CONNECTOR_SCHEMA = """
{
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Name of the KafkaConnector resource"},
        "namespace": {"type": "string", "description": "Kubernetes namespace of the connector"}
    },
    "required": ["name", "namespace"]
}
"""


def _named_schema(resource: str, where: str) -> str:
    return """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the %s resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the %s"}
        },
        "required": ["name", "namespace"]
    }
    """ % (resource, where)


def config_lines(config: Mapping[str, Any], indent: str = "  ") -> str:
    return "".join(f"{indent}{k}: {objects.fmt(v)}\n" for k, v in config.items())


def resources_block(resources: Mapping[str, Any], indent: str = "  ") -> str:
    out = []
    if resources.get("requests") is not None:
        out.append(f"{indent}Requests: {objects.fmt(resources['requests'])}\n")
    if resources.get("limits") is not None:
        out.append(f"{indent}Limits: {objects.fmt(resources['limits'])}\n")
    return "".join(out)


def reason_lines(conds: List[Mapping[str, Any]], indent: str = "    ") -> str:
    """每个条件一行，附带 reason，不展示 message。"""
    out = []
    for c in conds:
        line = f"{indent}- {c.get('type')}: {c.get('status')}"
        if c.get("reason"):
            line += f" ({c['reason']})"
        out.append(line + "\n")
    return "".join(out)


def _ready_suffix(obj: Mapping[str, Any]) -> str:
    ready = objects.find_condition(obj)
    return f" [Ready: {ready.get('status')}]" if ready else ""


def _connector_state(status: Mapping[str, Any]) -> Any:
    info = (status.get("connectorStatus") or {}).get("connector") or {}
    return info.get("state")


# ---- Kafka Connect 集群 ----


class ListKafkaConnectsTool(StrimziTool):
    name = "list_kafka_connects"
    description = "List Strimzi KafkaConnect clusters"
    failure = "Error listing Kafka Connect clusters"
    schema = _NAMESPACE_ONLY_SCHEMA % "Kafka Connect clusters"

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        connects = self.repo(KAFKA_CONNECT).list(self.get_string_arg(args, "namespace"))
        out = [f"Found {len(connects)} KafkaConnect cluster(s):\n\n"]
        for connect in connects:
            line = f"- {objects.qualified(connect)}"
            spec = objects.spec(connect)
            if spec:
                line += f" [replicas: {objects.fmt(spec.get('replicas'))}]"
                if spec.get("bootstrapServers"):
                    line += f" bootstrap: {spec['bootstrapServers']}"
            status = objects.status(connect)
            if status:
                if status.get("url"):
                    line += f"\n    REST API: {status['url']}"
                line += _ready_suffix(connect)
                if status.get("connectorPlugins") is not None:
                    line += f"\n    Plugins: {len(status['connectorPlugins'])} installed"
            out.append(line + "\n")
        return success("".join(out))


class DescribeKafkaConnectTool(StrimziTool):
    name = "describe_kafka_connect"
    description = (
        "Get detailed information about a KafkaConnect cluster including plugins and configuration"
    )
    failure = "Error describing Kafka Connect"
    schema = _named_schema("KafkaConnect", "Kafka Connect cluster")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        connect = self.repo(KAFKA_CONNECT).get(namespace, name)
        if connect is None:
            return not_found("KafkaConnect", namespace, name)

        out = [f"KafkaConnect: {namespace}/{name}\n\n"]
        spec = objects.spec(connect)
        if spec:
            out.append("Spec:\n")
            out.append(f"  Replicas: {objects.fmt(spec.get('replicas'))}\n")
            for key, label in (
                ("version", "Version"),
                ("bootstrapServers", "Bootstrap Servers"),
                ("image", "Image"),
            ):
                if spec.get(key) is not None:
                    out.append(f"  {label}: {spec[key]}\n")

            build = spec.get("build")
            if build is not None:
                out.append("\nBuild Configuration:\n")
                if build.get("output") is not None:
                    out.append(f"  Output Type: {build['output'].get('type')}\n")
                if build.get("plugins") is not None:
                    out.append(f"  Plugins to Install: {len(build['plugins'])}\n")
                    out.extend(f"    - {p.get('name')}\n" for p in build["plugins"])
            if spec.get("config"):
                out.append("\nConfiguration:\n")
                out.append(config_lines(spec["config"]))
            if spec.get("authentication") is not None:
                out.append("\nAuthentication:\n")
                out.append(f"  Type: {spec['authentication'].get('type')}\n")
            if spec.get("tls") is not None:
                out.append("\nTLS: enabled\n")
            if spec.get("resources") is not None:
                out.append("\nResources:\n")
                out.append(resources_block(spec["resources"]))
            jvm = spec.get("jvmOptions")
            if jvm is not None:
                out.append("\nJVM Options:\n")
                if jvm.get("-Xms") is not None:
                    out.append(f"  -Xms: {jvm['-Xms']}\n")
                if jvm.get("-Xmx") is not None:
                    out.append(f"  -Xmx: {jvm['-Xmx']}\n")

        status = objects.status(connect)
        if status:
            out.append("\nStatus:\n")
            if status.get("url"):
                out.append(f"  REST API URL: {status['url']}\n")
            out.append(f"  Replicas: {objects.fmt(status.get('replicas'))}\n")
            plugins = status.get("connectorPlugins") or []
            if plugins:
                out.append(f"\n  Available Plugins ({len(plugins)}):\n")
                for plugin in plugins:
                    line = f"    - {plugin.get('class')}"
                    if plugin.get("type"):
                        line += f" [{plugin['type']}]"
                    if plugin.get("version"):
                        line += f" v{plugin['version']}"
                    out.append(line + "\n")
            if status.get("conditions") is not None:
                out.append("\n  Conditions:\n")
                out.append(reason_lines(status["conditions"]))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


class ListConnectPluginsTool(StrimziTool):
    name = "list_connect_plugins"
    description = "List available connector plugins in a Kafka Connect cluster"
    failure = "Error listing connect plugins"
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaConnect cluster"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the Kafka Connect cluster"},
            "type": {
                "type": "string",
                "enum": ["source", "sink", "all"],
                "description": "Filter by connector type (default: all)"
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
        type_filter = (self.get_string_arg(args, "type") or "all").lower()

        connect = self.repo(KAFKA_CONNECT).get(namespace, name)
        if connect is None:
            return not_found("KafkaConnect", namespace, name)

        out = [f"Kafka Connect Cluster: {namespace}/{name}\n\n"]
        plugins = objects.status(connect).get("connectorPlugins") or []
        if not plugins:
            out.append("No connector plugins found.\n")
            out.append("The Kafka Connect cluster may still be starting, or no plugins are installed.\n")
            out.append("\nTo add plugins, use the 'build' configuration in the KafkaConnect resource.")
            return success("".join(out))

        def plugin_type(p: Mapping[str, Any]) -> str:
            return (p.get("type") or "").lower()

        if type_filter != "all":
            plugins = [p for p in plugins if type_filter in plugin_type(p)]

        header = "Available Plugins"
        if type_filter != "all":
            header += f" ({type_filter} only)"
        out.append(f"{header}: {len(plugins)}\n\n")

        sources = [p for p in plugins if "source" in plugin_type(p)]
        sinks = [p for p in plugins if "sink" in plugin_type(p)]
        others = [
            p for p in plugins if "source" not in plugin_type(p) and "sink" not in plugin_type(p)
        ]
        for title, group in (("Source Connectors", sources), ("Sink Connectors", sinks)):
            if not group:
                continue
            out.append(f"{title}:\n")
            for plugin in group:
                out.append(f"  - {plugin.get('class')}\n")
                if plugin.get("version"):
                    out.append(f"    Version: {plugin['version']}\n")
            out.append("\n")
        if others:
            out.append("Other/Transforms:\n")
            for plugin in others:
                line = f"  - {plugin.get('class')}"
                if plugin.get("type"):
                    line += f" ({plugin['type']})"
                out.append(line + "\n")
        return success("".join(out))


# ---- KafkaConnector ----


class ListConnectorsTool(StrimziTool):
    name = "list_connectors"
    description = "List Strimzi KafkaConnector resources"
    failure = "Error listing connectors"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace to list connectors from. If not specified, lists from all namespaces."
            },
            "connectCluster": {
                "type": "string",
                "description": "Filter connectors by Kafka Connect cluster name (matches strimzi.io/cluster label)"
            }
        }
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        connectors = self.repo(KAFKA_CONNECTOR).list(
            self.get_string_arg(args, "namespace"),
            CLUSTER_LABEL,
            self.get_string_arg(args, "connectCluster"),
        )
        out = [f"Found {len(connectors)} KafkaConnector(s):\n\n"]
        for connector in connectors:
            line = f"- {objects.qualified(connector)}"
            spec = objects.spec(connector)
            if spec:
                line += f" [class: {spec.get('class')}]"
                if spec.get("tasksMax") is not None:
                    line += f" tasks: {spec['tasksMax']}"
                if spec.get("pause"):
                    line += " PAUSED"
            status = objects.status(connector)
            if status:
                state = _connector_state(status)
                if state is not None:
                    line += f" state: {state}"
                if (status.get("tasksMax") or 0) > 0:
                    line += f" ({status['tasksMax']} tasks)"
            cluster = objects.labels(connector).get(CLUSTER_LABEL)
            if cluster:
                line += f" -> {cluster}"
            out.append(line + "\n")
        return success("".join(out))


class DescribeConnectorTool(StrimziTool):
    name = "describe_connector"
    description = (
        "Get detailed information about a KafkaConnector including configuration, tasks, and status"
    )
    failure = "Error describing connector"
    schema = _CONNECTOR_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        connector = self.repo(KAFKA_CONNECTOR).get(namespace, name)
        if connector is None:
            return not_found("KafkaConnector", namespace, name)

        out = [f"KafkaConnector: {namespace}/{name}\n\n"]
        cluster = objects.labels(connector).get(CLUSTER_LABEL)
        if cluster:
            out.append(f"Kafka Connect Cluster: {cluster}\n")

        spec = objects.spec(connector)
        if spec:
            out.append("\nSpec:\n")
            out.append(f"  Class: {objects.fmt(spec.get('class'))}\n")
            if spec.get("tasksMax") is not None:
                out.append(f"  Tasks Max: {spec['tasksMax']}\n")
            if spec.get("pause"):
                out.append("  Paused: true\n")
            auto_restart = spec.get("autoRestart")
            if auto_restart is not None:
                out.append("  Auto Restart: enabled\n")
                if auto_restart.get("maxRestarts") is not None:
                    out.append(f"    Max Restarts: {auto_restart['maxRestarts']}\n")
            if spec.get("config"):
                out.append("\nConfiguration:\n")
                out.append(config_lines(spec["config"]))

        status = objects.status(connector)
        if status:
            out.append("\nStatus:\n")
            out.append(f"  Tasks Max: {objects.fmt(status.get('tasksMax'))}\n")
            connector_status = status.get("connectorStatus") or {}
            info = connector_status.get("connector")
            if info:
                out.append("\n  Connector:\n")
                if "state" in info:
                    out.append(f"    State: {info['state']}\n")
                if "worker_id" in info:
                    out.append(f"    Worker: {info['worker_id']}\n")
            tasks = connector_status.get("tasks") or []
            if tasks:
                out.append("\n  Tasks:\n")
                for task in tasks:
                    line = f"    - Task {task.get('id')}"
                    if "state" in task:
                        line += f": {task['state']}"
                    if "worker_id" in task:
                        line += f" on {task['worker_id']}"
                    if task.get("trace"):
                        # 只展示堆栈第一行
                        line += f"\n      Error: {str(task['trace']).splitlines()[0]}"
                    out.append(line + "\n")
            restart_status = status.get("autoRestart")
            if restart_status is not None:
                out.append("\n  Auto Restart Status:\n")
                out.append(f"    Count: {objects.fmt(restart_status.get('count'))}\n")
                if restart_status.get("lastRestartTimestamp"):
                    out.append(f"    Last Restart: {restart_status['lastRestartTimestamp']}\n")
            if status.get("conditions") is not None:
                out.append("\n  Conditions:\n")
                out.append(reason_lines(status["conditions"]))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


class CreateConnectorTool(StrimziTool):
    name = "create_connector"
    description = "Create a new KafkaConnector resource for Kafka Connect"
    failure = "Error creating connector"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaConnector resource to create"},
            "namespace": {"type": "string", "description": "Kubernetes namespace to create the connector in"},
            "connectCluster": {
                "type": "string",
                "description": "Name of the Kafka Connect cluster (strimzi.io/cluster label)"
            },
            "className": {
                "type": "string",
                "description": "Fully qualified connector class name (e.g., org.apache.kafka.connect.file.FileStreamSourceConnector)"
            },
            "tasksMax": {"type": "integer", "description": "Maximum number of tasks (default: 1)"},
            "config": {"type": "object", "description": "Connector configuration as key-value pairs"},
            "autoRestart": {"type": "boolean", "description": "Enable automatic restart on failure (default: false)"},
            "pause": {"type": "boolean", "description": "Create connector in paused state (default: false)"}
        },
        "required": ["name", "namespace", "connectCluster", "className"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace", "connectCluster", "className")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        connect_cluster = self.get_string_arg(args, "connectCluster")
        class_name = self.get_string_arg(args, "className")
        tasks_max = self.get_int_arg(args, "tasksMax", 1)
        config = self.get_map_arg(args, "config")
        auto_restart = self.get_bool_arg(args, "autoRestart")
        pause = self.get_bool_arg(args, "pause")

        connectors = self.repo(KAFKA_CONNECTOR)
        if connectors.exists(namespace, name):
            return already_exists("KafkaConnector", namespace, name)

        spec: Dict[str, Any] = {"class": class_name, "tasksMax": tasks_max}
        if config:
            spec["config"] = config
        if auto_restart:
            spec["autoRestart"] = {"enabled": True}
        if pause:
            spec["pause"] = True
        connectors.create(
            namespace,
            {
                "apiVersion": KAFKA_CONNECTOR.api_version,
                "kind": KAFKA_CONNECTOR.kind,
                "metadata": {
                    "name": name,
                    "namespace": namespace,
                    "labels": {CLUSTER_LABEL: connect_cluster},
                },
                "spec": spec,
            },
        )

        out = [
            f"Created KafkaConnector: {namespace}/{name}\n",
            f"  Connect Cluster: {connect_cluster}\n",
            f"  Class: {class_name}\n",
            f"  Tasks Max: {tasks_max}\n",
        ]
        if auto_restart:
            out.append("  Auto Restart: enabled\n")
        if pause:
            out.append("  Initial State: paused\n")
        if config:
            out.append(f"  Config entries: {len(config)}\n")
        out.append("\nThe Kafka Connect cluster will create the connector shortly.")
        return success("".join(out))


class DeleteConnectorTool(StrimziTool):
    name = "delete_connector"
    description = "Delete a KafkaConnector resource (Kafka Connect will remove the connector)"
    failure = "Error deleting connector"
    read_only = False
    destructive = True
    schema = _CONNECTOR_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        connectors = self.repo(KAFKA_CONNECTOR)
        connector = connectors.get(namespace, name)
        if connector is None:
            return not_found("KafkaConnector", namespace, name)

        cluster = objects.labels(connector).get(CLUSTER_LABEL)
        class_name = objects.spec(connector).get("class") or "unknown"
        connectors.delete(namespace, name)

        out = [f"Deleted KafkaConnector: {namespace}/{name}\n"]
        if cluster:
            out.append(f"  Connect Cluster: {cluster}\n")
        out.append(f"  Class: {class_name}\n")
        out.append("\nThe connector and its tasks have been stopped.")
        return success("".join(out))


class PauseConnectorTool(StrimziTool):
    name = "pause_connector"
    description = "Pause a running KafkaConnector (stops processing without deleting)"
    failure = "Error pausing connector"
    read_only = False
    schema = _CONNECTOR_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        connectors = self.repo(KAFKA_CONNECTOR)
        connector = connectors.get(namespace, name)
        if connector is None:
            return not_found("KafkaConnector", namespace, name)
        if objects.spec(connector).get("pause") is True:
            return success(f"KafkaConnector {namespace}/{name} is already paused.")

        connectors.patch(namespace, name, {"spec": {"pause": True}})
        return success(
            f"Paused KafkaConnector: {namespace}/{name}\n"
            "\nThe connector and its tasks will stop processing messages.\n"
            "Use resume_connector to resume processing."
        )


class ResumeConnectorTool(StrimziTool):
    name = "resume_connector"
    description = "Resume a paused KafkaConnector"
    failure = "Error resuming connector"
    read_only = False
    schema = _CONNECTOR_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        connectors = self.repo(KAFKA_CONNECTOR)
        connector = connectors.get(namespace, name)
        if connector is None:
            return not_found("KafkaConnector", namespace, name)
        if objects.spec(connector).get("pause") is not True:
            return success(f"KafkaConnector {namespace}/{name} is already running (not paused).")

        connectors.patch(namespace, name, {"spec": {"pause": False}})
        return success(
            f"Resumed KafkaConnector: {namespace}/{name}\n"
            "\nThe connector and its tasks will resume processing messages."
        )


class RestartConnectorTool(StrimziTool):
    name = "restart_connector"
    description = "Restart a KafkaConnector or a specific task via Strimzi annotation"
    failure = "Error restarting connector"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaConnector resource to restart"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the connector"},
            "taskId": {
                "type": "integer",
                "description": "Optional: specific task ID to restart. If not specified, restarts the connector and all tasks."
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
        task_id = self.get_optional_int_arg(args, "taskId")

        connectors = self.repo(KAFKA_CONNECTOR)
        if not connectors.exists(namespace, name):
            return not_found("KafkaConnector", namespace, name)

        if task_id is not None:
            annotate(connectors, namespace, name, RESTART_TASK_ANNOTATION, str(task_id))
            out = f"Triggered restart for task {task_id} of KafkaConnector: {namespace}/{name}\n"
        else:
            annotate(connectors, namespace, name, RESTART_ANNOTATION, utc_now())
            out = f"Triggered restart for KafkaConnector: {namespace}/{name}\n"
            out += "\nThe connector and all its tasks will be restarted."
        out += "\nUse describe_connector to check the status."
        return success(out)


class UpdateConnectorConfigTool(StrimziTool):
    name = "update_connector_config"
    description = "Update configuration of an existing KafkaConnector"
    failure = "Error updating connector config"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaConnector resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the connector"},
            "config": {
                "type": "object",
                "description": "Configuration key-value pairs to update (merged with existing config)"
            },
            "tasksMax": {"type": "integer", "description": "Optional: update maximum number of tasks"},
            "replace": {
                "type": "boolean",
                "description": "If true, replace all config instead of merging (default: false)"
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
        new_config = self.get_map_arg(args, "config")
        tasks_max = self.get_optional_int_arg(args, "tasksMax")
        replace = self.get_bool_arg(args, "replace")

        connectors = self.repo(KAFKA_CONNECTOR)
        connector = connectors.get(namespace, name)
        if connector is None:
            return not_found("KafkaConnector", namespace, name)

        spec = objects.spec(connector)
        existing_tasks_max = spec.get("tasksMax") or 1
        patch: Dict[str, Any] = {
            "tasksMax": tasks_max if tasks_max is not None else existing_tasks_max
        }
        if new_config is not None:
            if replace:
                # merge-patch 只能增改字段，整体替换需要显式删除旧 key
                removed = {k: None for k in (spec.get("config") or {}) if k not in new_config}
                patch["config"] = {**removed, **new_config}
            else:
                patch["config"] = new_config
        connectors.patch(namespace, name, {"spec": patch})

        out = [f"Updated KafkaConnector: {namespace}/{name}\n\n"]
        if tasks_max is not None and tasks_max != existing_tasks_max:
            out.append(f"Tasks Max: {existing_tasks_max} -> {tasks_max}\n")
        if new_config is not None:
            out.append(f"Configuration updated ({'replaced' if replace else 'merged'}):\n")
            out.append(config_lines(new_config))
        out.append("\nThe connector will be reconfigured. Use describe_connector to check status.")
        return success("".join(out))


# ---- KafkaMirrorMaker2 ----


class ListMirrorMaker2sTool(StrimziTool):
    name = "list_mirrormaker2s"
    description = "List Strimzi KafkaMirrorMaker2 resources for cross-cluster replication"
    failure = "Error listing MirrorMaker2 clusters"
    schema = _NAMESPACE_ONLY_SCHEMA % "MirrorMaker2 clusters"

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        items = self.repo(KAFKA_MIRROR_MAKER2).list(self.get_string_arg(args, "namespace"))
        out = [f"Found {len(items)} KafkaMirrorMaker2 cluster(s):\n\n"]
        for mm2 in items:
            line = f"- {objects.qualified(mm2)}"
            spec = objects.spec(mm2)
            if spec:
                line += f" [replicas: {objects.fmt(spec.get('replicas'))}]"
                if spec.get("connectCluster"):
                    line += f" connect: {spec['connectCluster']}"
            line += _ready_suffix(mm2)
            if spec.get("clusters") is not None:
                line += "\n    Clusters: " + "".join(f"{c.get('alias')} " for c in spec["clusters"])
            if spec.get("mirrors") is not None:
                line += f"\n    Mirrors: {len(spec['mirrors'])} configured"
            out.append(line + "\n")
        return success("".join(out))


class DescribeMirrorMaker2Tool(StrimziTool):
    name = "describe_mirrormaker2"
    description = (
        "Get detailed information about a KafkaMirrorMaker2 including clusters, mirrors, and connectors"
    )
    failure = "Error describing MirrorMaker2"
    schema = _named_schema("KafkaMirrorMaker2", "MirrorMaker2")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        mm2 = self.repo(KAFKA_MIRROR_MAKER2).get(namespace, name)
        if mm2 is None:
            return not_found("KafkaMirrorMaker2", namespace, name)

        out = [f"KafkaMirrorMaker2: {namespace}/{name}\n\n"]
        spec = objects.spec(mm2)
        if spec:
            out.append("Spec:\n")
            out.append(f"  Replicas: {objects.fmt(spec.get('replicas'))}\n")
            if spec.get("version") is not None:
                out.append(f"  Version: {spec['version']}\n")
            if spec.get("connectCluster") is not None:
                out.append(f"  Connect Cluster: {spec['connectCluster']}\n")
            if spec.get("clusters"):
                out.append("\nClusters:\n")
                for cluster in spec["clusters"]:
                    out.append(f"  - {cluster.get('alias')}\n")
                    if cluster.get("bootstrapServers"):
                        out.append(f"      Bootstrap: {cluster['bootstrapServers']}\n")
                    if cluster.get("authentication") is not None:
                        out.append(f"      Auth: {cluster['authentication'].get('type')}\n")
                    if cluster.get("tls") is not None:
                        out.append("      TLS: enabled\n")
            if spec.get("mirrors"):
                out.append("\nMirrors:\n")
                for mirror in spec["mirrors"]:
                    out.append(f"  - {mirror.get('sourceCluster')} -> {mirror.get('targetCluster')}\n")
                    source = mirror.get("sourceConnector")
                    if source is not None:
                        out.append("      Source Connector: enabled\n")
                        if source.get("tasksMax") is not None:
                            out.append(f"        Tasks Max: {source['tasksMax']}\n")
                    if mirror.get("checkpointConnector") is not None:
                        out.append("      Checkpoint Connector: enabled\n")
                    if mirror.get("heartbeatConnector") is not None:
                        out.append("      Heartbeat Connector: enabled\n")
                    if mirror.get("topicsPattern"):
                        out.append(f"      Topics Pattern: {mirror['topicsPattern']}\n")
                    if mirror.get("groupsPattern"):
                        out.append(f"      Groups Pattern: {mirror['groupsPattern']}\n")

        status = objects.status(mm2)
        if status:
            out.append("\nStatus:\n")
            if status.get("url"):
                out.append(f"  REST API URL: {status['url']}\n")
            out.append(f"  Replicas: {objects.fmt(status.get('replicas'))}\n")
            connectors: List[Mapping[str, Any]] = status.get("connectors")
            if connectors is not None:
                out.append(f"  Connectors: {len(connectors)}\n")
                for connector in connectors:
                    line = ""
                    if "name" in connector:
                        line += f"    - {connector['name']}"
                    state = (connector.get("connector") or {}).get("state")
                    if state is not None:
                        line += f" [{state}]"
                    out.append(line + "\n")
            if status.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(reason_lines(status["conditions"]))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


class CreateMirrorMaker2Tool(StrimziTool):
    name = "create_mirrormaker2"
    description = "Create a new KafkaMirrorMaker2 resource for cross-cluster replication"
    failure = "Error creating MirrorMaker2"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaMirrorMaker2 resource to create"},
            "namespace": {"type": "string", "description": "Kubernetes namespace to create the MirrorMaker2 in"},
            "replicas": {"type": "integer", "description": "Number of replicas (default: 1)"},
            "connectCluster": {
                "type": "string",
                "description": "Alias of the Kafka Connect cluster to use (should match one of the clusters)"
            },
            "sourceClusterAlias": {"type": "string", "description": "Alias for the source Kafka cluster"},
            "sourceBootstrapServers": {"type": "string", "description": "Bootstrap servers for the source cluster"},
            "targetClusterAlias": {"type": "string", "description": "Alias for the target Kafka cluster"},
            "targetBootstrapServers": {"type": "string", "description": "Bootstrap servers for the target cluster"},
            "topicsPattern": {"type": "string", "description": "Regex pattern for topics to replicate (default: .*)"},
            "groupsPattern": {
                "type": "string",
                "description": "Regex pattern for consumer groups to replicate (default: .*)"
            }
        },
        "required": [
            "name",
            "namespace",
            "sourceClusterAlias",
            "sourceBootstrapServers",
            "targetClusterAlias",
            "targetBootstrapServers"
        ]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(
            args,
            "name",
            "namespace",
            "sourceClusterAlias",
            "sourceBootstrapServers",
            "targetClusterAlias",
            "targetBootstrapServers",
        )
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        replicas = self.get_int_arg(args, "replicas", 1)
        source_alias = self.get_string_arg(args, "sourceClusterAlias")
        source_bootstrap = self.get_string_arg(args, "sourceBootstrapServers")
        target_alias = self.get_string_arg(args, "targetClusterAlias")
        target_bootstrap = self.get_string_arg(args, "targetBootstrapServers")
        # MM2 运行在目标集群一侧
        connect_cluster = self.get_string_arg(args, "connectCluster") or target_alias
        topics_pattern = self.get_string_arg(args, "topicsPattern") or ".*"
        groups_pattern = self.get_string_arg(args, "groupsPattern") or ".*"

        mm2s = self.repo(KAFKA_MIRROR_MAKER2)
        if mm2s.exists(namespace, name):
            return already_exists("KafkaMirrorMaker2", namespace, name)

        mm2s.create(
            namespace,
            {
                "apiVersion": KAFKA_MIRROR_MAKER2.api_version,
                "kind": KAFKA_MIRROR_MAKER2.kind,
                "metadata": {"name": name, "namespace": namespace},
                "spec": {
                    "replicas": replicas,
                    "connectCluster": connect_cluster,
                    "clusters": [
                        {"alias": source_alias, "bootstrapServers": source_bootstrap},
                        {"alias": target_alias, "bootstrapServers": target_bootstrap},
                    ],
                    "mirrors": [
                        {
                            "sourceCluster": source_alias,
                            "targetCluster": target_alias,
                            "sourceConnector": {"tasksMax": 2},
                            "checkpointConnector": {"tasksMax": 1},
                            "topicsPattern": topics_pattern,
                            "groupsPattern": groups_pattern,
                        }
                    ],
                },
            },
        )

        return success(
            f"Created KafkaMirrorMaker2: {namespace}/{name}\n\n"
            "Configuration:\n"
            f"  Replicas: {replicas}\n"
            f"  Source: {source_alias} ({source_bootstrap})\n"
            f"  Target: {target_alias} ({target_bootstrap})\n"
            f"  Topics Pattern: {topics_pattern}\n"
            f"  Groups Pattern: {groups_pattern}\n"
            "\nMirrorMaker2 will start replicating topics matching the pattern.\n"
            "Use describe_mirrormaker2 to check status."
        )


# ---- KafkaBridge ----


class ListBridgesTool(StrimziTool):
    name = "list_bridges"
    description = "List Strimzi KafkaBridge resources for HTTP access to Kafka"
    failure = "Error listing bridges"
    schema = _NAMESPACE_ONLY_SCHEMA % "bridges"

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        bridges = self.repo(KAFKA_BRIDGE).list(self.get_string_arg(args, "namespace"))
        out = [f"Found {len(bridges)} KafkaBridge(s):\n\n"]
        for bridge in bridges:
            line = f"- {objects.qualified(bridge)}"
            spec = objects.spec(bridge)
            if spec:
                line += f" [replicas: {objects.fmt(spec.get('replicas'))}]"
                if spec.get("bootstrapServers"):
                    line += f" bootstrap: {spec['bootstrapServers']}"
            url = objects.status(bridge).get("url")
            if url:
                line += f"\n    HTTP URL: {url}"
            line += _ready_suffix(bridge)
            out.append(line + "\n")
        return success("".join(out))


class DescribeBridgeTool(StrimziTool):
    name = "describe_bridge"
    description = (
        "Get detailed information about a KafkaBridge including HTTP configuration and status"
    )
    failure = "Error describing bridge"
    schema = _named_schema("KafkaBridge", "bridge")

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        bridge = self.repo(KAFKA_BRIDGE).get(namespace, name)
        if bridge is None:
            return not_found("KafkaBridge", namespace, name)

        out = [f"KafkaBridge: {namespace}/{name}\n\n"]
        spec = objects.spec(bridge)
        if spec:
            out.append("Spec:\n")
            out.append(f"  Replicas: {objects.fmt(spec.get('replicas'))}\n")
            if spec.get("bootstrapServers"):
                out.append(f"  Bootstrap Servers: {spec['bootstrapServers']}\n")
            http = spec.get("http")
            if http is not None:
                out.append("\nHTTP Configuration:\n")
                if http.get("port"):
                    out.append(f"  Port: {http['port']}\n")
                cors = http.get("cors")
                if cors is not None:
                    out.append("  CORS: enabled\n")
                    if cors.get("allowedOrigins") is not None:
                        out.append(f"    Allowed Origins: {objects.fmt(cors['allowedOrigins'])}\n")
                    if cors.get("allowedMethods") is not None:
                        out.append(f"    Allowed Methods: {objects.fmt(cors['allowedMethods'])}\n")
            for key, title in (("producer", "Producer"), ("consumer", "Consumer")):
                section = spec.get(key)
                if section is not None:
                    out.append(f"\n{title} Configuration:\n")
                    out.append(config_lines(section.get("config") or {}))
            if spec.get("authentication") is not None:
                out.append("\nAuthentication:\n")
                out.append(f"  Type: {spec['authentication'].get('type')}\n")
            if spec.get("tls") is not None:
                out.append("\nTLS: enabled\n")
            if spec.get("resources") is not None:
                out.append("\nResources:\n")
                out.append(resources_block(spec["resources"]))

        status = objects.status(bridge)
        if status:
            out.append("\nStatus:\n")
            if status.get("url"):
                out.append(f"  HTTP URL: {status['url']}\n")
            out.append(f"  Replicas: {objects.fmt(status.get('replicas'))}\n")
            if status.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(objects.format_conditions(status["conditions"], show_reason=True))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


CONNECT_TOOLS = [
    ListKafkaConnectsTool,
    DescribeKafkaConnectTool,
    ListConnectPluginsTool,
    ListConnectorsTool,
    DescribeConnectorTool,
    CreateConnectorTool,
    DeleteConnectorTool,
    PauseConnectorTool,
    ResumeConnectorTool,
    RestartConnectorTool,
    UpdateConnectorConfigTool,
    ListMirrorMaker2sTool,
    DescribeMirrorMaker2Tool,
    CreateMirrorMaker2Tool,
    ListBridgesTool,
    DescribeBridgeTool,
]
