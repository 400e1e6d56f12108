"""
安全相关工具

提供：
- rotate_user_credentials: 通过 strimzi.io/force-password-renewal 注解强制重新生成用户凭据
- list_certificates: 集群 CA / 客户端 CA Secret 及其它证书类 Secret
- get_certificate_expiry: 解析 CA 证书（X.509）并按 warningDays 给出过期提示
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from cryptography import x509

from .. import objects
from ..health.result import BANNER, RULE
from ..kinds import (
    CA_CERT_GENERATION_ANNOTATION,
    CLUSTER_LABEL,
    FORCE_PASSWORD_RENEWAL_ANNOTATION,
    KAFKA,
    KAFKA_USER,
    SECRET,
)
from ..registry import ToolFactory
from ..tool import CallResult, StrimziTool, not_found, success
from .kafka import annotate, utc_now

logger = logging.getLogger(__name__)

DEFAULT_WARNING_DAYS = 30

_CLUSTER_SCHEMA = """
{
    "type": "object",
    "properties": {
        "kafkaCluster": {"type": "string", "description": "Name of the Kafka cluster"},
        "namespace": {"type": "string", "description": "Kubernetes namespace of the Kafka cluster"}
    },
    "required": ["kafkaCluster", "namespace"]
}
"""


def ca_secret_names(kafka_cluster: str) -> Tuple[str, str]:
    """(集群 CA 证书 Secret, 客户端 CA 证书 Secret)"""
    return f"{kafka_cluster}-cluster-ca-cert", f"{kafka_cluster}-clients-ca-cert"


class RotateUserCredentialsTool(StrimziTool):
    name = "rotate_user_credentials"
    description = "Trigger credential rotation for a KafkaUser (forces new password/certificate generation)"
    failure = "Error rotating credentials"
    read_only = False
    destructive = True
    schema = """
    {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Name of the KafkaUser resource"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the user"}
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
        users = self.repo(KAFKA_USER)
        user = users.get(namespace, name)
        if user is None:
            return not_found("KafkaUser", namespace, name)

        auth_type = (objects.spec(user).get("authentication") or {}).get("type") or "unknown"
        annotate(users, namespace, name, FORCE_PASSWORD_RENEWAL_ANNOTATION, utc_now())
        logger.info("Requested credential rotation for KafkaUser %s/%s", namespace, name)

        out = [
            f"Triggered credential rotation for KafkaUser: {namespace}/{name}\n",
            f"Authentication type: {auth_type}\n\n",
        ]
        if auth_type.lower() == "scram-sha-512":
            out.append("The User Operator will generate a new SCRAM password.\n")
            out.append(f"The new password will be stored in secret: {name}\n")
        elif auth_type.lower() == "tls":
            out.append("The User Operator will generate a new TLS certificate.\n")
            out.append(f"The new certificate will be stored in secret: {name}\n")
        out.append("\nIMPORTANT: Update any clients using the old credentials.\n")
        out.append("Use get_user_credentials to retrieve the new credentials.")
        return success("".join(out))


def _is_cert_secret(name: str) -> bool:
    return "-cert" in name or "-crt" in name or "-ca" in name


class ListCertificatesTool(StrimziTool):
    name = "list_certificates"
    description = "List TLS certificates for a Kafka cluster (CA certificates, listener certificates)"
    failure = "Error listing certificates"
    schema = _CLUSTER_SCHEMA

    def _ca_section(self, title: str, namespace: str, secret_name: str) -> str:
        out = [f"{title}\n", f"{RULE}\n"]
        secret = self.repo(SECRET).get(namespace, secret_name)
        if secret is None:
            out.append("Not found\n")
        else:
            out.append(f"Secret: {secret_name}\n")
            data = secret.get("data")
            if data is not None:
                out.append(f"Keys: {', '.join(data)}\n")
            generation = objects.annotations(secret).get(CA_CERT_GENERATION_ANNOTATION)
            if generation is not None:
                out.append(f"Generation: {generation}\n")
        out.append("\n")
        return "".join(out)

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "kafkaCluster", "namespace")
        if problem:
            return problem
        cluster = self.get_string_arg(args, "kafkaCluster")
        namespace = self.get_string_arg(args, "namespace")
        if not self.repo(KAFKA).exists(namespace, cluster):
            return not_found("Kafka cluster", namespace, cluster)

        cluster_ca, clients_ca = ca_secret_names(cluster)
        out = [
            f"Certificates for Kafka Cluster: {namespace}/{cluster}\n",
            f"{BANNER}\n\n",
            self._ca_section("CLUSTER CA CERTIFICATE", namespace, cluster_ca),
            self._ca_section("CLIENTS CA CERTIFICATE", namespace, clients_ca),
        ]

        others = [
            objects.name_of(s)
            for s in self.repo(SECRET).list(namespace, CLUSTER_LABEL, cluster)
            if _is_cert_secret(objects.name_of(s))
        ]
        others = [n for n in others if n not in (cluster_ca, clients_ca)]
        if others:
            out.append("OTHER CERTIFICATE SECRETS\n")
            out.append(f"{RULE}\n")
            out.extend(f"  {n}\n" for n in others)

        out.append(
            "\nTo rotate certificates, update the Kafka resource or use specific strimzi.io annotations."
        )
        return success("".join(out))


@dataclass(frozen=True)
class CertInfo:
    subject: str
    not_before: datetime
    not_after: datetime


def parse_certificate(encoded: str) -> Optional[CertInfo]:
    """
    解析 Secret 中 base64 编码的 PEM（或 DER）证书；无法解析时返回 None。
    """
    try:
        raw = base64.b64decode(encoded)
        if raw.lstrip().startswith(b"-----BEGIN"):
            cert = x509.load_pem_x509_certificate(raw)
        else:
            cert = x509.load_der_x509_certificate(raw)
    except ValueError:
        logger.debug("Unable to parse certificate", exc_info=True)
        return None
    return CertInfo(
        subject=cert.subject.rfc4514_string(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
    )


def expiry_marker(info: CertInfo, now: datetime, warning_days: int) -> Tuple[str, bool]:
    """返回 (追加在 Not After 后面的标记, 是否需要关注)。"""
    if info.not_after < now:
        return " ✗ EXPIRED", True
    if info.not_after < now + timedelta(days=warning_days):
        return f" ⚠ Expires in {(info.not_after - now).days} days", True
    return " ✓", False


class GetCertificateExpiryTool(StrimziTool):
    name = "get_certificate_expiry"
    description = "Check certificate expiry dates for a Kafka cluster's CA and listener certificates"
    failure = "Error checking certificate expiry"
    schema = """
    {
        "type": "object",
        "properties": {
            "kafkaCluster": {"type": "string", "description": "Name of the Kafka cluster"},
            "namespace": {"type": "string", "description": "Kubernetes namespace of the Kafka cluster"},
            "warningDays": {
                "type": "integer",
                "description": "Show warning if certificate expires within this many days (default: 30)"
            }
        },
        "required": ["kafkaCluster", "namespace"]
    }
    """

    def _ca_section(
        self, title: str, namespace: str, secret_name: str, now: datetime, warning_days: int
    ) -> Tuple[str, bool]:
        out = [f"{title}\n", f"{RULE}\n"]
        attention = False
        secret = self.repo(SECRET).get(namespace, secret_name)
        data: Dict[str, str] = (secret or {}).get("data") or {}
        if secret is None or not data:
            out.append("  Secret not found\n")
        elif "ca.crt" not in data:
            out.append("  ca.crt not found in secret\n")
        else:
            info = parse_certificate(data["ca.crt"])
            if info is not None:
                marker, attention = expiry_marker(info, now, warning_days)
                out.append(f"  Subject: {info.subject}\n")
                out.append(f"  Not Before: {info.not_before.isoformat()}\n")
                out.append(f"  Not After: {info.not_after.isoformat()}{marker}\n")
        out.append("\n")
        return "".join(out), attention

    def execute(self, args: Mapping[str, Any]) -> CallResult:
        problem = self.require(args, "kafkaCluster", "namespace")
        if problem:
            return problem
        cluster = self.get_string_arg(args, "kafkaCluster")
        namespace = self.get_string_arg(args, "namespace")
        warning_days = self.get_int_arg(args, "warningDays", DEFAULT_WARNING_DAYS)
        if not self.repo(KAFKA).exists(namespace, cluster):
            return not_found("Kafka cluster", namespace, cluster)

        now = datetime.now(timezone.utc)
        out: List[str] = [
            f"Certificate Expiry Report for: {namespace}/{cluster}\n",
            f"{BANNER}\n\n",
        ]
        needs_attention = False
        for title, secret_name in zip(("CLUSTER CA", "CLIENTS CA"), ca_secret_names(cluster)):
            text, attention = self._ca_section(title, namespace, secret_name, now, warning_days)
            out.append(text)
            needs_attention = needs_attention or attention

        out.append(f"{BANNER}\n")
        if needs_attention:
            out.append("⚠ Warning: Some certificates need attention!\n")
            out.append("Consider rotating certificates before they expire.\n")
        else:
            out.append("✓ All certificates are valid and not expiring soon.\n")
        return success("".join(out))


FACTORY = ToolFactory(
    "security",
    [
        RotateUserCredentialsTool,
        ListCertificatesTool,
        GetCertificateExpiryTool,
    ],
)
