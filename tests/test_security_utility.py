import base64
from datetime import datetime, timedelta, timezone

import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from mcp_servers.strimzi_mcp_server.kinds import (
    CA_CERT_GENERATION_ANNOTATION,
    CLUSTER_LABEL,
    FORCE_PASSWORD_RENEWAL_ANNOTATION,
)
from mcp_servers.strimzi_mcp_server.tools.security import (
    GetCertificateExpiryTool,
    ListCertificatesTool,
    RotateUserCredentialsTool,
    parse_certificate,
)
from mcp_servers.strimzi_mcp_server.tools.utility import (
    ExportResourceYamlTool,
    GetStrimziVersionTool,
    ListAllResourcesTool,
    image_version,
    strip_server_fields,
)
from tests.conftest import ready, resource


def _pem(days_left, common_name="cluster-ca v0"):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=365))
        .not_valid_after(now + timedelta(days=days_left))
        .sign(key, hashes.SHA256())
    )
    return base64.b64encode(cert.public_bytes(serialization.Encoding.PEM)).decode()


def _ca_secrets(dynamic, cluster_days, clients_days):
    dynamic.add("Kafka", resource("my-cluster", status=ready()))
    dynamic.add(
        "Secret",
        resource(
            "my-cluster-cluster-ca-cert",
            labels={CLUSTER_LABEL: "my-cluster"},
            data={"ca.crt": _pem(cluster_days), "ca.p12": "eA=="},
        ),
    )
    dynamic.add(
        "Secret",
        resource(
            "my-cluster-clients-ca-cert",
            labels={CLUSTER_LABEL: "my-cluster"},
            data={"ca.crt": _pem(clients_days, "clients-ca v0")},
        ),
    )


def test_rotate_scram_credentials(dynamic, store):
    dynamic.add("KafkaUser", resource("app", spec={"authentication": {"type": "scram-sha-512"}}))
    result = RotateUserCredentialsTool(store).call({"name": "app", "namespace": "kafka"})
    assert result.text.startswith(
        "Triggered credential rotation for KafkaUser: kafka/app\nAuthentication type: scram-sha-512\n\n"
    )
    assert "The new password will be stored in secret: app\n" in result.text
    notes = dynamic.stored("KafkaUser", "kafka", "app")["metadata"]["annotations"]
    assert notes[FORCE_PASSWORD_RENEWAL_ANNOTATION]


def test_rotate_missing_user(store):
    result = RotateUserCredentialsTool(store).call({"name": "app", "namespace": "kafka"})
    assert result.text == "KafkaUser not found: kafka/app"


def test_list_certificates(dynamic, store):
    _ca_secrets(dynamic, 300, 300)
    dynamic.resource("Secret").objects[("kafka", "my-cluster-cluster-ca-cert")]["metadata"][
        "annotations"
    ] = {CA_CERT_GENERATION_ANNOTATION: "3"}
    dynamic.add("Secret", resource("my-cluster-kafka-brokers-cert", labels={CLUSTER_LABEL: "my-cluster"}))
    dynamic.add("Secret", resource("my-cluster-unrelated", labels={CLUSTER_LABEL: "my-cluster"}))

    text = ListCertificatesTool(store).call({"kafkaCluster": "my-cluster", "namespace": "kafka"}).text

    assert "Secret: my-cluster-cluster-ca-cert\nKeys: ca.crt, ca.p12\nGeneration: 3\n" in text
    assert "  my-cluster-kafka-brokers-cert\n" in text
    assert "my-cluster-unrelated" not in text
    assert text.count("my-cluster-clients-ca-cert") == 1


def test_list_certificates_requires_cluster(store):
    result = ListCertificatesTool(store).call({"kafkaCluster": "nope", "namespace": "kafka"})
    assert result.is_error
    assert result.text == "Kafka cluster not found: kafka/nope"


def test_certificate_expiry_all_valid(dynamic, store):
    _ca_secrets(dynamic, 300, 300)
    text = GetCertificateExpiryTool(store).call({"kafkaCluster": "my-cluster", "namespace": "kafka"}).text
    assert "  Subject: CN=cluster-ca v0\n" in text
    assert text.count(" ✓\n") == 2
    assert text.endswith("✓ All certificates are valid and not expiring soon.\n")


def test_certificate_expiry_warns(dynamic, store):
    _ca_secrets(dynamic, 10, -1)
    text = GetCertificateExpiryTool(store).call(
        {"kafkaCluster": "my-cluster", "namespace": "kafka", "warningDays": 30}
    ).text
    assert " ⚠ Expires in 9 days\n" in text or " ⚠ Expires in 10 days\n" in text
    assert " ✗ EXPIRED\n" in text
    assert "⚠ Warning: Some certificates need attention!\n" in text


def test_certificate_expiry_missing_secret(dynamic, store):
    dynamic.add("Kafka", resource("my-cluster"))
    text = GetCertificateExpiryTool(store).call({"kafkaCluster": "my-cluster", "namespace": "kafka"}).text
    assert text.count("  Secret not found\n") == 2


def test_parse_certificate_rejects_garbage():
    assert parse_certificate(base64.b64encode(b"not a cert").decode()) is None


def _topic():
    return resource(
        "orders",
        labels={CLUSTER_LABEL: "my-cluster"},
        spec={"partitions": 3},
        status=ready(),
        apiVersion="kafka.strimzi.io/v1beta2",
        kind="KafkaTopic",
    )


def test_export_strips_server_fields(dynamic, store):
    topic = _topic()
    topic["metadata"].update(
        resourceVersion="42",
        uid="abc",
        generation=2,
        annotations={"strimzi.io/last-applied": "x", "team": "payments"},
    )
    dynamic.add("KafkaTopic", topic)

    result = ExportResourceYamlTool(store).call({"kind": "KafkaTopic", "name": "orders", "namespace": "kafka"})

    header, body = result.text.split("\n", 1)
    assert header == "# KafkaTopic: kafka/orders"
    exported = yaml.safe_load(body)
    assert "status" not in exported
    assert exported["metadata"] == {
        "name": "orders",
        "namespace": "kafka",
        "labels": {CLUSTER_LABEL: "my-cluster"},
        "annotations": {"team": "payments"},
    }
    assert exported["spec"] == {"partitions": 3}


def test_export_with_status(dynamic, store):
    dynamic.add("KafkaTopic", _topic())
    result = ExportResourceYamlTool(store).call(
        {"kind": "KafkaTopic", "name": "orders", "namespace": "kafka", "includeStatus": True}
    )
    assert result.text.startswith("# KafkaTopic: kafka/orders (with status)\n")
    assert "status" in yaml.safe_load(result.text.split("\n", 1)[1])


def test_export_errors(store):
    missing = ExportResourceYamlTool(store).call({"kind": "KafkaTopic", "name": "x", "namespace": "kafka"})
    assert missing.text == "KafkaTopic not found: kafka/x"
    unknown = ExportResourceYamlTool(store).call({"kind": "Pod", "name": "x", "namespace": "kafka"})
    assert unknown.is_error
    assert unknown.text.startswith("Unsupported kind: Pod")


def test_strip_server_fields_does_not_mutate_input():
    topic = _topic()
    strip_server_fields(topic)
    assert "status" in topic


def test_image_version():
    assert image_version("quay.io/strimzi/operator:0.45.0") == "0.45.0"
    assert image_version("quay.io/strimzi/operator:latest") == "unknown"
    assert image_version(None) == "unknown"


def test_strimzi_version(dynamic, store):
    dynamic.add(
        "Deployment",
        resource(
            "strimzi-cluster-operator",
            namespace="strimzi",
            spec={"template": {"spec": {"containers": [{"image": "quay.io/strimzi/operator:0.45.0"}]}}},
        ),
    )
    dynamic.add(
        "Kafka",
        resource("my-cluster", spec={"kafka": {"version": "3.9.0"}}, status={"kafkaVersion": "3.9.0"}),
    )
    text = GetStrimziVersionTool(store).call({}).text
    assert "  Namespace: strimzi\n" in text
    assert "  Version: 0.45.0\n" in text
    assert "  kafka/my-cluster:\n    Kafka Version: 3.9.0\n    Running Kafka: 3.9.0\n" in text


def test_strimzi_version_not_found(store):
    text = GetStrimziVersionTool(store).call({"namespace": "elsewhere"}).text
    assert "  Not found in searched namespaces\n" in text
    assert "  No Kafka clusters found\n" in text


def test_list_all_resources(dynamic, store):
    dynamic.add("Kafka", resource("my-cluster", status=ready()))
    for i in range(12):
        dynamic.add("KafkaTopic", resource(f"t{i}"))
    dynamic.add("KafkaUser", resource("app"))
    dynamic.add(
        "KafkaRebalance",
        resource("rb", status={"conditions": [{"type": "ProposalReady", "status": "True"}]}),
    )

    text = ListAllResourcesTool(store).call({"namespace": "kafka"}).text

    assert text.startswith("Strimzi Resources Summary\n")
    assert "Namespace: kafka\n" in text
    assert "  kafka/my-cluster ✓\n" in text
    assert "TOPICS (12)\n" in text
    assert "  (12 topics - use list_topics for details)\n" in text
    assert "USERS (1)\n" in text
    assert "  kafka/rb (ProposalReady)\n" in text
    assert "NODE POOLS" not in text
    assert "CONNECTORS" not in text
    assert text.endswith("TOTAL: 15 Strimzi resources\n")
