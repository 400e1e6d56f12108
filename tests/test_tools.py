import pytest

from mcp_servers.strimzi_mcp_server import objects
from mcp_servers.strimzi_mcp_server.kinds import (
    CLUSTER_LABEL,
    KIND_LABEL,
    REBALANCE_ANNOTATION,
    RESTART_ANNOTATION,
    RESTART_TASK_ANNOTATION,
)
from mcp_servers.strimzi_mcp_server.tools.cluster import (
    ApproveRebalanceTool,
    CreateRebalanceTool,
    StopRebalanceTool,
)
from mcp_servers.strimzi_mcp_server.tools.connect import (
    PauseConnectorTool,
    RestartConnectorTool,
    ResumeConnectorTool,
    UpdateConnectorConfigTool,
)
from mcp_servers.strimzi_mcp_server.tools.kafka import (
    GetKafkaListenersTool,
    GetKafkaStatusTool,
    RestartKafkaBrokerTool,
)
from mcp_servers.strimzi_mcp_server.tools.observability import (
    GetKafkaLogsTool,
    GetOperatorLogsTool,
)
from mcp_servers.strimzi_mcp_server.tools.topic import DescribeTopicTool
from mcp_servers.strimzi_mcp_server.tools.user import UpdateUserQuotasTool
from tests.conftest import resource


def _connector(dynamic, **spec):
    return dynamic.add(
        "KafkaConnector",
        resource("sink", labels={CLUSTER_LABEL: "my-connect"}, spec={"class": "FileSink", **spec}),
    )


def test_describe_missing_topic(store):
    result = DescribeTopicTool(store).call({"name": "ghost", "namespace": "kafka"})
    assert result.is_error
    assert result.text == "KafkaTopic not found: kafka/ghost"


def test_pause_then_resume_connector(dynamic, store):
    _connector(dynamic)
    args = {"name": "sink", "namespace": "kafka"}

    result = PauseConnectorTool(store).call(args)
    assert result.text.startswith("Paused KafkaConnector: kafka/sink\n")
    assert dynamic.stored("KafkaConnector", "kafka", "sink")["spec"]["pause"] is True

    again = PauseConnectorTool(store).call(args)
    assert not again.is_error
    assert again.text == "KafkaConnector kafka/sink is already paused."

    result = ResumeConnectorTool(store).call(args)
    assert result.text.startswith("Resumed KafkaConnector: kafka/sink\n")
    assert dynamic.stored("KafkaConnector", "kafka", "sink")["spec"]["pause"] is False


def test_resume_running_connector_is_noop(dynamic, store):
    _connector(dynamic)
    result = ResumeConnectorTool(store).call({"name": "sink", "namespace": "kafka"})
    assert result.text == "KafkaConnector kafka/sink is already running (not paused)."
    assert dynamic.resource("KafkaConnector").patches == []


def test_restart_connector_annotations(dynamic, store):
    _connector(dynamic)
    RestartConnectorTool(store).call({"name": "sink", "namespace": "kafka", "taskId": 2})
    notes = dynamic.stored("KafkaConnector", "kafka", "sink")["metadata"]["annotations"]
    assert notes[RESTART_TASK_ANNOTATION] == "2"

    result = RestartConnectorTool(store).call({"name": "sink", "namespace": "kafka"})
    notes = dynamic.stored("KafkaConnector", "kafka", "sink")["metadata"]["annotations"]
    assert notes[RESTART_ANNOTATION]
    assert "all its tasks will be restarted" in result.text


def test_restart_missing_connector(store):
    result = RestartConnectorTool(store).call({"name": "nope", "namespace": "kafka"})
    assert result.is_error
    assert result.text == "KafkaConnector not found: kafka/nope"


def test_update_connector_config_replace_drops_old_keys(dynamic, store):
    _connector(dynamic, tasksMax=1, config={"file": "/tmp/a", "topics": "orders"})
    result = UpdateConnectorConfigTool(store).call(
        {"name": "sink", "namespace": "kafka", "config": {"file": "/tmp/b"}, "tasksMax": 3, "replace": True}
    )
    spec = dynamic.stored("KafkaConnector", "kafka", "sink")["spec"]
    assert spec["config"] == {"file": "/tmp/b"}
    assert spec["tasksMax"] == 3
    assert "Tasks Max: 1 -> 3\n" in result.text
    assert "Configuration updated (replaced):\n" in result.text


def test_update_connector_config_merge_keeps_old_keys(dynamic, store):
    _connector(dynamic, tasksMax=2, config={"file": "/tmp/a", "topics": "orders"})
    UpdateConnectorConfigTool(store).call(
        {"name": "sink", "namespace": "kafka", "config": {"file": "/tmp/b"}}
    )
    spec = dynamic.stored("KafkaConnector", "kafka", "sink")["spec"]
    assert spec["config"] == {"file": "/tmp/b", "topics": "orders"}
    assert spec["tasksMax"] == 2


def _rebalance(dynamic, state):
    return dynamic.add(
        "KafkaRebalance",
        resource(
            "rb",
            labels={CLUSTER_LABEL: "my-cluster"},
            spec={},
            status={"conditions": [{"type": state, "status": "True"}]},
        ),
    )


def test_approve_rebalance_requires_proposal(dynamic, store):
    _rebalance(dynamic, "PendingProposal")
    result = ApproveRebalanceTool(store).call({"name": "rb", "namespace": "kafka"})
    assert result.is_error
    assert result.text == (
        "KafkaRebalance is not ready to approve. Current state: PendingProposal. "
        "Expected: ProposalReady"
    )
    assert dynamic.resource("KafkaRebalance").patches == []


def test_approve_ready_rebalance(dynamic, store):
    _rebalance(dynamic, "ProposalReady")
    result = ApproveRebalanceTool(store).call({"name": "rb", "namespace": "kafka"})
    assert not result.is_error
    notes = dynamic.stored("KafkaRebalance", "kafka", "rb")["metadata"]["annotations"]
    assert notes[REBALANCE_ANNOTATION] == "approve"


def test_stop_rebalance_annotates(dynamic, store):
    _rebalance(dynamic, "Rebalancing")
    StopRebalanceTool(store).call({"name": "rb", "namespace": "kafka"})
    notes = dynamic.stored("KafkaRebalance", "kafka", "rb")["metadata"]["annotations"]
    assert notes[REBALANCE_ANNOTATION] == "stop"


def test_create_rebalance_unknown_mode_becomes_full(dynamic, store):
    result = CreateRebalanceTool(store).call(
        {"name": "rb", "namespace": "kafka", "kafkaCluster": "my-cluster", "mode": "sideways"}
    )
    assert not result.is_error
    stored = dynamic.stored("KafkaRebalance", "kafka", "rb")
    assert stored["spec"]["mode"] == "full"
    assert stored["metadata"]["labels"] == {CLUSTER_LABEL: "my-cluster"}

    duplicate = CreateRebalanceTool(store).call(
        {"name": "rb", "namespace": "kafka", "kafkaCluster": "my-cluster"}
    )
    assert duplicate.text == "KafkaRebalance already exists: kafka/rb"


def test_update_user_quotas_zero_removes(dynamic, store):
    dynamic.add(
        "KafkaUser",
        resource("app", spec={"quotas": {"producerByteRate": 1024, "consumerByteRate": 2048}}),
    )
    result = UpdateUserQuotasTool(store).call(
        {"name": "app", "namespace": "kafka", "producerByteRate": 0, "requestPercentage": 50}
    )
    assert not result.is_error
    quotas = dynamic.stored("KafkaUser", "kafka", "app")["spec"]["quotas"]
    assert quotas == {"consumerByteRate": 2048, "requestPercentage": 50}
    assert result.text.startswith("Updated quotas for KafkaUser: kafka/app\n\nPrevious quotas:\n")


def test_update_user_quotas_clearing_everything_removes_section(dynamic, store):
    dynamic.add("KafkaUser", resource("app", spec={"quotas": {"producerByteRate": 1024}}))
    UpdateUserQuotasTool(store).call({"name": "app", "namespace": "kafka", "producerByteRate": 0})
    assert "quotas" not in dynamic.stored("KafkaUser", "kafka", "app")["spec"]


def _brokers(dynamic):
    for i in range(2):
        dynamic.add(
            "Pod",
            resource(
                f"my-cluster-kafka-{i}",
                labels={CLUSTER_LABEL: "my-cluster", KIND_LABEL: "Kafka"},
            ),
        )


@pytest.mark.parametrize("requested, expected", [(None, 100), (50, 50), (10000, 500)])
def test_kafka_logs_line_limit(dynamic, core_v1, store, requested, expected):
    _brokers(dynamic)
    core_v1.logs[("kafka", "my-cluster-kafka-0")] = "INFO started\n"
    args = {"name": "my-cluster", "namespace": "kafka"}
    if requested is not None:
        args["lines"] = requested

    result = GetKafkaLogsTool(store).call(args)

    assert core_v1.calls[-1]["tail_lines"] == expected
    assert core_v1.calls[-1]["container"] == "kafka"
    assert f"Lines: {expected}\n" in result.text
    assert result.text.endswith("INFO started\n")


def test_kafka_logs_without_brokers(store):
    result = GetKafkaLogsTool(store).call({"name": "my-cluster", "namespace": "kafka"})
    assert result.is_error
    assert result.text == "No Kafka pods found for cluster: kafka/my-cluster"


def test_kafka_logs_empty(dynamic, store):
    _brokers(dynamic)
    result = GetKafkaLogsTool(store).call(
        {"name": "my-cluster", "namespace": "kafka", "podName": "my-cluster-kafka-1"}
    )
    assert result.text.endswith("(no logs available)")


def test_operator_logs_validation(store):
    result = GetOperatorLogsTool(store).call({"operator": "topic", "namespace": "kafka"})
    assert result.text == "kafkaCluster is required for topic/user operator logs"
    result = GetOperatorLogsTool(store).call({"operator": "zoo", "namespace": "kafka"})
    assert result.text == "Unknown operator type: zoo. Use 'cluster', 'topic', or 'user'."


def test_operator_logs_entity_operator(dynamic, core_v1, store):
    dynamic.add("Pod", resource("my-cluster-entity-operator"))
    GetOperatorLogsTool(store).call(
        {"operator": "user", "namespace": "kafka", "kafkaCluster": "my-cluster"}
    )
    assert core_v1.calls[-1]["name"] == "my-cluster-entity-operator"
    assert core_v1.calls[-1]["container"] == "user-operator"


@pytest.mark.parametrize(
    "conditions, expected",
    [
        ([{"type": "Ready", "status": "False"}, {"type": "Ready", "status": "True"}], True),
        ([{"type": "Warning", "status": "True"}, {"type": "Ready", "status": "True"}], True),
        ([{"type": "Ready", "status": "Unknown"}], False),
        ([], False),
    ],
)
def test_is_ready_checks_every_condition(conditions, expected):
    assert objects.is_ready(resource("x", status={"conditions": conditions})) is expected
    assert objects.is_ready(resource("x")) is False


@pytest.mark.parametrize("tool", [GetKafkaStatusTool, GetKafkaListenersTool, RestartKafkaBrokerTool])
def test_kafka_tools_require_name_and_namespace(tool, dynamic, store):
    result = tool(store).call({"namespace": "kafka"})
    assert result.is_error
    assert result.text == "name is required"
    assert dynamic.resource("Kafka").patches == []
