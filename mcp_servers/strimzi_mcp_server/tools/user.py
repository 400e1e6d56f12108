"""
KafkaUser 工具

提供：
- list_users / describe_user / create_user / delete_user
- get_user_credentials: 从 User Operator 生成的 Secret 中解码凭据
- get_user_operator_status: entity-operator 中 user-operator 容器的状态
- update_user_acls: 查看（show）或清空（clear）ACL
- update_user_quotas: 更新配额，0 表示移除对应配额
- list_user_acls: ACL 明细 + 按资源类型汇总
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Mapping, Optional

from .. import objects
from ..kinds import CLUSTER_LABEL, KAFKA_USER, SECRET
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, already_exists, error, not_found, success
from .common import operator_status

_USER_SCHEMA = """
{
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Name of the KafkaUser resource"},
        "namespace": {"type": "string", "description": "Kubernetes namespace of the user"}
    },
    "required": ["name", "namespace"]
}
"""

# (字段, 标签, 单位)
_QUOTA_FIELDS = (
    ("producerByteRate", "Producer Byte Rate", " bytes/sec"),
    ("consumerByteRate", "Consumer Byte Rate", " bytes/sec"),
    ("requestPercentage", "Request Percentage", "%"),
    ("controllerMutationRate", "Controller Mutation Rate", "/sec"),
)


def format_quotas(quotas: Optional[Mapping[str, Any]]) -> str:
    return "".join(
        f"  {label}: {quotas[key]}{unit}\n"
        for key, label, unit in _QUOTA_FIELDS
        if quotas and quotas.get(key) is not None
    )


def decode(data: Mapping[str, str], key: str) -> str:
    return base64.b64decode(data[key]).decode("utf-8")


def acl_rules(user: Mapping[str, Any]) -> List[Dict[str, Any]]:
    authz = objects.spec(user).get("authorization") or {}
    return list(authz.get("acls") or []) if authz.get("type") == "simple" else []


def acl_resource_type(acl: Mapping[str, Any]) -> str:
    return str((acl.get("resource") or {}).get("type") or "")


class ListUsersTool(StrimziTool):
    name = "list_users"
    description = "List Strimzi KafkaUser resources"
    failure = "Error listing users"
    schema = """
    {
        "type": "object",
        "properties": {
            "namespace": {
                "type": "string",
                "description": "Kubernetes namespace to list users from. If not specified, lists from all namespaces."
            },
            "kafkaCluster": {
                "type": "string",
                "description": "Filter users by Kafka cluster name (matches strimzi.io/cluster label)"
            }
        }
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        users = self.repo(KAFKA_USER).list(
            self.get_string_arg(args, "namespace"),
            CLUSTER_LABEL,
            self.get_string_arg(args, "kafkaCluster"),
        )
        out = [f"Found {len(users)} KafkaUser(s):\n\n"]
        for user in users:
            spec = objects.spec(user)
            line = f"- {objects.qualified(user)}"
            if spec.get("authentication"):
                line += f" [auth: {spec['authentication'].get('type')}]"
            if spec.get("authorization"):
                line += f" [authz: {spec['authorization'].get('type')}]"
            ready = objects.find_condition(user)
            if ready:
                line += f" [Ready: {ready.get('status')}]"
            cluster = objects.labels(user).get(CLUSTER_LABEL)
            if cluster:
                line += f" -> {cluster}"
            out.append(line + "\n")
        return success("".join(out))


class DescribeUserTool(StrimziTool):
    name = "describe_user"
    description = (
        "Get detailed information about a KafkaUser including authentication, "
        "authorization, and quotas"
    )
    failure = "Error describing user"
    schema = _USER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        user = self.repo(KAFKA_USER).get(namespace, name)
        if user is None:
            return not_found("KafkaUser", namespace, name)

        out = [f"KafkaUser: {namespace}/{name}\n\n"]
        cluster = objects.labels(user).get(CLUSTER_LABEL)
        if cluster:
            out.append(f"Kafka Cluster: {cluster}\n")

        spec = objects.spec(user)
        if spec:
            auth = spec.get("authentication")
            out.append("\nAuthentication:\n")
            out.append(f"  Type: {auth.get('type') if auth else 'none'}\n")

            authz = spec.get("authorization")
            if authz:
                out.append("\nAuthorization:\n")
                out.append(f"  Type: {authz.get('type')}\n")
                acls = acl_rules(user)
                if acls:
                    out.append(f"  ACL Rules ({len(acls)}):\n")
                    for acl in acls:
                        out.append(
                            f"    - {acl.get('type') or 'ALLOW'} "
                            f"{objects.fmt(acl.get('operations'))} on {acl_resource_type(acl)}\n"
                        )

            if spec.get("quotas") is not None:
                out.append("\nQuotas:\n")
                out.append(format_quotas(spec["quotas"]))

        status = objects.status(user)
        if status:
            out.append("\nStatus:\n")
            if status.get("username"):
                out.append(f"  Username: {status['username']}\n")
            if status.get("secret"):
                out.append(f"  Secret: {status['secret']}\n")
            if status.get("conditions") is not None:
                out.append("  Conditions:\n")
                out.append(objects.format_conditions(status["conditions"], show_reason=True))
            out.append(f"  Observed Generation: {objects.fmt(status.get('observedGeneration'))}\n")
        return success("".join(out))


class CreateUserTool(StrimziTool):
    name = "create_user"
    description = "Create a new KafkaUser resource managed by the User Operator"
    failure = "Error creating user"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaUser resource to create"},
            "namespace": {"type": "string", "description": "Kubernetes namespace to create the user in"},
            "kafkaCluster": {"type": "string", "description": "Name of the Kafka cluster (strimzi.io/cluster label)"},
            "authentication": {
                "type": "string",
                "enum": ["scram-sha-512", "tls"],
                "description": "Authentication type (default: scram-sha-512)"
            },
            "producerByteRate": {"type": "integer", "description": "Producer quota in bytes per second"},
            "consumerByteRate": {"type": "integer", "description": "Consumer quota in bytes per second"}
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
        auth_type = self.get_string_arg(args, "authentication") or "scram-sha-512"
        producer = self.get_optional_int_arg(args, "producerByteRate")
        consumer = self.get_optional_int_arg(args, "consumerByteRate")

        users = self.repo(KAFKA_USER)
        if users.exists(namespace, name):
            return already_exists("KafkaUser", namespace, name)

        spec: Dict[str, Any] = {
            "authentication": {"type": "tls" if auth_type == "tls" else "scram-sha-512"}
        }
        quotas = {
            k: v
            for k, v in (("producerByteRate", producer), ("consumerByteRate", consumer))
            if v is not None
        }
        if quotas:
            spec["quotas"] = quotas
        users.create(
            namespace,
            {
                "apiVersion": KAFKA_USER.api_version,
                "kind": KAFKA_USER.kind,
                "metadata": {
                    "name": name,
                    "namespace": namespace,
                    "labels": {CLUSTER_LABEL: cluster},
                },
                "spec": spec,
            },
        )

        out = [
            f"Created KafkaUser: {namespace}/{name}\n",
            f"  Kafka Cluster: {cluster}\n",
            f"  Authentication: {auth_type}\n",
            format_quotas(quotas),
            "\nThe User Operator will create the user in Kafka shortly.",
            f"\nCredentials will be stored in secret: {name}",
        ]
        return success("".join(out))


class DeleteUserTool(StrimziTool):
    name = "delete_user"
    description = "Delete a KafkaUser resource (User Operator will remove the user from Kafka)"
    failure = "Error deleting user"
    read_only = False
    destructive = True
    schema = _USER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        users = self.repo(KAFKA_USER)
        if not users.exists(namespace, name):
            return not_found("KafkaUser", namespace, name)
        users.delete(namespace, name)
        return success(
            f"Deleted KafkaUser: {namespace}/{name}\n"
            "The User Operator will remove the user from Kafka and delete associated credentials shortly."
        )


class GetUserCredentialsTool(StrimziTool):
    name = "get_user_credentials"
    description = "Get credentials for a KafkaUser from the generated Kubernetes Secret"
    failure = "Error getting user credentials"
    schema = _USER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        user = self.repo(KAFKA_USER).get(namespace, name)
        if user is None:
            return not_found("KafkaUser", namespace, name)

        secret_name = objects.status(user).get("secret") or name
        secret = self.repo(SECRET).get(namespace, secret_name)
        if secret is None:
            return error(
                f"Credentials secret not found: {namespace}/{secret_name}\n"
                "The User Operator may not have created it yet. Check user status."
            )

        out = [f"Credentials for KafkaUser: {namespace}/{name}\n", f"Secret: {secret_name}\n\n"]
        data = secret.get("data") or {}
        if "password" in data:
            out.append("Authentication: SCRAM-SHA-512\n")
            out.append(f"Username: {name}\n")
            out.append(f"Password: {decode(data, 'password')}\n")
        if "sasl.jaas.config" in data:
            out.append(f"\nJAAS Config:\n{decode(data, 'sasl.jaas.config')}\n")
        if "user.crt" in data:
            out.append("Authentication: TLS\n")
            out.append("Certificate: Available in secret key 'user.crt'\n")
            out.append("Private Key: Available in secret key 'user.key'\n")
            lines = decode(data, "user.crt").split("\n")
            out.append("\nCertificate (first 5 lines):\n")
            out.extend(f"  {line}\n" for line in lines[:5])
            if len(lines) > 5:
                out.append("  ...\n")
        if "ca.crt" in data:
            out.append("\nCA Certificate: Available in secret key 'ca.crt'\n")
        return success("".join(out))


class GetUserOperatorStatusTool(StrimziTool):
    name = "get_user_operator_status"
    description = "Get status of the User Operator (entity-operator pod) for a Kafka cluster"
    failure = "Error getting User Operator status"
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
                "User Operator",
                "user-operator",
            )
        )


class UpdateUserAclsTool(StrimziTool):
    name = "update_user_acls"
    description = (
        "Show or clear ACL rules for a KafkaUser. Use 'show' to view current ACLs, "
        "'clear' to remove all ACLs."
    )
    failure = "Error managing user ACLs"
    read_only = False
    destructive = True
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaUser resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the user"},
            "action": {
                "type": "string",
                "enum": ["clear", "show"],
                "description": "Action to perform: clear (remove all ACLs) or show (display current ACLs)"
            }
        },
        "required": ["name", "namespace", "action"]
    }
    """

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        action = (self.get_string_arg(args, "action") or "").lower()

        users = self.repo(KAFKA_USER)
        user = users.get(namespace, name)
        if user is None:
            return not_found("KafkaUser", namespace, name)

        if action == "show":
            return success(self._show(namespace, name, user))
        if action == "clear":
            removed = len(acl_rules(user))
            users.patch(namespace, name, {"spec": {"authorization": None}})
            return success(
                f"Cleared ACLs for KafkaUser: {namespace}/{name}\n"
                f"Removed {removed} ACL rule(s).\n"
                "\nThe User Operator will apply changes shortly."
            )
        return error(f"Invalid action: {self.get_string_arg(args, 'action')}. Use 'show' or 'clear'.")

    @staticmethod
    def _show(namespace: str, name: str, user: Mapping[str, Any]) -> str:
        out = [f"ACLs for KafkaUser: {namespace}/{name}\n\n"]
        authz = objects.spec(user).get("authorization")
        if not authz:
            out.append("No authorization configured for this user.\n")
        elif authz.get("type") == "simple":
            acls = acl_rules(user)
            if not acls:
                out.append("No ACL rules defined.\n")
            else:
                out.append(f"Total ACL rules: {len(acls)}\n\n")
                for i, acl in enumerate(acls, 1):
                    out.append(f"Rule {i}:\n")
                    out.append(f"  Type: {objects.fmt(acl.get('type'))}\n")
                    if acl.get("resource") is not None:
                        out.append(f"  Resource Type: {acl_resource_type(acl)}\n")
                    if acl.get("operations") is not None:
                        out.append(f"  Operations: {', '.join(acl['operations'])}\n")
                    if acl.get("host") is not None:
                        out.append(f"  Host: {acl['host']}\n")
                    out.append("\n")
        else:
            out.append(f"Authorization type: {authz.get('type')}\n")
        out.append(
            "\nTo modify ACLs, use export_resource_yaml to get the YAML and apply changes with kubectl."
        )
        return "".join(out)


class UpdateUserQuotasTool(StrimziTool):
    name = "update_user_quotas"
    description = "Update quotas (producer/consumer byte rates, request percentage) for a KafkaUser"
    failure = "Error updating user quotas"
    read_only = False
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaUser resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the user"},
            "producerByteRate": {
                "type": "integer",
                "description": "Producer quota in bytes per second. Set to 0 to remove quota."
            },
            "consumerByteRate": {
                "type": "integer",
                "description": "Consumer quota in bytes per second. Set to 0 to remove quota."
            },
            "requestPercentage": {
                "type": "integer",
                "description": "Request percentage quota (0-100). Set to 0 to remove quota."
            },
            "controllerMutationRate": {
                "type": "number",
                "description": "Controller mutation rate quota. Set to 0 to remove quota."
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
        requested: Dict[str, Any] = {
            "producerByteRate": self.get_optional_int_arg(args, "producerByteRate"),
            "consumerByteRate": self.get_optional_int_arg(args, "consumerByteRate"),
            "requestPercentage": self.get_optional_int_arg(args, "requestPercentage"),
        }
        rate = (args or {}).get("controllerMutationRate")
        if isinstance(rate, (int, float)) and not isinstance(rate, bool):
            requested["controllerMutationRate"] = float(rate)

        users = self.repo(KAFKA_USER)
        user = users.get(namespace, name)
        if user is None:
            return not_found("KafkaUser", namespace, name)

        previous = objects.spec(user).get("quotas")
        quotas = dict(previous or {})
        for key, value in requested.items():
            if value is not None:
                # 0（或负数）表示移除该配额
                quotas[key] = value if value > 0 else None
        remaining = {k: v for k, v in quotas.items() if v is not None}
        users.patch(namespace, name, {"spec": {"quotas": quotas if remaining else None}})

        new_values = {k: v for k, v in requested.items() if v is not None and v > 0}
        out = [
            f"Updated quotas for KafkaUser: {namespace}/{name}\n\n",
            "Previous quotas:\n",
            format_quotas(previous) if previous is not None else "  (none)\n",
            "\nNew quotas:\n",
            format_quotas(new_values),
            "\nThe User Operator will apply changes shortly.",
        ]
        return success("".join(out))


class ListUserAclsTool(StrimziTool):
    name = "list_user_acls"
    description = "List all ACL rules for a KafkaUser in a detailed, readable format"
    failure = "Error listing user ACLs"
    schema = _USER_SCHEMA

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        name = self.get_string_arg(args, "name")
        namespace = self.get_string_arg(args, "namespace")
        user = self.repo(KAFKA_USER).get(namespace, name)
        if user is None:
            return not_found("KafkaUser", namespace, name)

        out = [f"ACLs for KafkaUser: {namespace}/{name}\n\n"]
        authz = objects.spec(user).get("authorization")
        if not authz:
            out.append("No authorization configured for this user.\n")
            out.append("Use update_user_acls to add ACL rules.")
            return success("".join(out))
        if authz.get("type") != "simple":
            out.append(f"Authorization type: {authz.get('type')}\n")
            out.append("(ACL details not available for this authorization type)")
            return success("".join(out))

        acls = acl_rules(user)
        if not acls:
            out.append("No ACL rules defined.\n")
            out.append("Use update_user_acls to add ACL rules.")
            return success("".join(out))

        out.append(f"Total ACL rules: {len(acls)}\n\n")
        for i, acl in enumerate(acls, 1):
            out.append(f"Rule {i}:\n")
            out.append(f"  Type: {acl.get('type') or 'ALLOW'}\n")
            if acl.get("resource") is not None:
                out.append("  Resource:\n")
                out.append(f"    Type: {acl_resource_type(acl)}\n")
            if acl.get("operations"):
                out.append(f"  Operations: {', '.join(acl['operations'])}\n")
            if acl.get("host") is not None:
                out.append(f"  Host: {acl['host']}\n")
            out.append("\n")

        types = [acl_resource_type(a).lower() for a in acls]
        out.append("Summary by resource type:\n")
        for label, count in (
            ("Topic", types.count("topic")),
            ("Group", types.count("group")),
            ("Cluster", types.count("cluster")),
            ("TransactionalId", sum(1 for t in types if "transactional" in t)),
        ):
            if count > 0:
                out.append(f"  {label} rules: {count}\n")
        return success("".join(out))


FACTORY = ToolFactory(
    "user",
    [
        ListUsersTool,
        DescribeUserTool,
        CreateUserTool,
        DeleteUserTool,
        GetUserCredentialsTool,
        GetUserOperatorStatusTool,
        UpdateUserAclsTool,
        UpdateUserQuotasTool,
        ListUserAclsTool,
    ],
)
