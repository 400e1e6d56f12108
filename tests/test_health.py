from mcp_servers.strimzi_mcp_server.health import (
    HealthCheckContext,
    HealthCheckPipeline,
    HealthCheckResult,
    HealthChecker,
    default_checkers,
)
from mcp_servers.strimzi_mcp_server.kinds import CLUSTER_LABEL, KIND_LABEL
from mcp_servers.strimzi_mcp_server.tools.observability import HealthCheckTool
from tests.conftest import ready, resource


def _broker(name, phase):
    return resource(
        name,
        labels={CLUSTER_LABEL: "my-cluster", KIND_LABEL: "Kafka"},
        status={"phase": phase},
    )


def test_report_counts_broker_warning(dynamic, store):
    dynamic.add("Kafka", resource("my-cluster", status=ready()))
    dynamic.add("Pod", _broker("my-cluster-kafka-0", "Running"))
    dynamic.add("Pod", _broker("my-cluster-kafka-1", "Running"))
    dynamic.add("Pod", _broker("my-cluster-kafka-2", "Pending"))

    result = HealthCheckPipeline().run(HealthCheckContext(store, "kafka"))
    report = result.format()

    assert result.sections == ["KAFKA CLUSTERS", "TOPICS", "USERS", "KAFKA CONNECT"]
    assert "  kafka/my-cluster: ✓ Ready\n" in report
    assert "    Brokers: 2/3 running ⚠\n" in report
    assert result.total_issues == 0
    assert result.warnings == 1
    assert "⚠ Warnings: 1\n" in report
    assert "✗ Critical issues" not in report


def test_not_ready_cluster_is_an_issue(dynamic, store):
    dynamic.add(
        "Kafka",
        resource("my-cluster", status={"conditions": [
            {"type": "Ready", "status": "False", "message": "Pods are not ready"}
        ]}),
    )
    dynamic.add("KafkaTopic", resource("t1", labels={CLUSTER_LABEL: "my-cluster"}))

    result = HealthCheckPipeline().run(HealthCheckContext(store, "kafka", "my-cluster"))
    report = result.format()

    assert "✗ Not Ready - Pods are not ready\n" in report
    assert "  Not Ready: 1 ⚠\n" in report
    assert result.total_issues == 1
    assert "✗ Critical issues: 1\n" in report


def test_missing_status_counts_as_not_ready(dynamic, store):
    dynamic.add("KafkaUser", resource("u1", labels={CLUSTER_LABEL: "c"}))
    dynamic.add("KafkaUser", resource("u2", labels={CLUSTER_LABEL: "c"}, status=ready()))

    report = HealthCheckPipeline().run(HealthCheckContext(store)).format()
    assert "USERS\n" in report
    assert "  Total: 2\n  Ready: 1\n  Not Ready: 1 ⚠\n" in report


def test_empty_store_is_healthy(store):
    report = HealthCheckPipeline().run(HealthCheckContext(store)).format()
    assert "  No Kafka clusters found.\n" in report
    assert report.endswith("SUMMARY\n✓ All resources are healthy!\n")


def test_failing_checker_is_contained(dynamic, store):
    dynamic.resource("KafkaTopic").failure = RuntimeError("connection refused")
    dynamic.add("KafkaUser", resource("u1", status=ready()))

    result = HealthCheckPipeline().run(HealthCheckContext(store))
    report = result.format()

    assert "  ✗ Unable to check topics: connection refused\n" in report
    # 后续检查器仍然执行
    assert "USERS\n" in report
    assert "KAFKA CONNECT\n" in report
    assert result.total_issues == 1


class _Static(HealthChecker):
    title = "STATIC"

    def inspect(self, context, result):
        result.append("  fine\n")
        result.add_warning()


def test_custom_checkers_and_format_is_stable(store):
    result = HealthCheckPipeline([_Static()]).run(HealthCheckContext(store))
    first = result.format()
    assert first == result.format()
    assert first.startswith("Strimzi Health Check Report\n")
    assert "STATIC\n" in first
    assert "\nUse describe_* tools to investigate specific resources.\n" in first


def test_result_healthy_flag():
    result = HealthCheckResult()
    assert result.healthy
    result.add_issue()
    assert not result.healthy


def test_health_check_tool_uses_pipeline(store):
    tool = HealthCheckTool(store, pipeline=HealthCheckPipeline([_Static()]))
    result = tool.call({"namespace": "kafka"})
    assert not result.is_error
    assert "STATIC" in result.text


def test_duplicate_ready_conditions_count_as_ready(dynamic, store):
    conditions = [{"type": "Ready", "status": "False"}, {"type": "Ready", "status": "True"}]
    dynamic.add(
        "KafkaTopic",
        resource("orders", labels={CLUSTER_LABEL: "c"}, status={"conditions": conditions}),
    )
    dynamic.add("KafkaConnector", resource("sink", status={"conditions": list(conditions)}))

    result = HealthCheckPipeline().run(HealthCheckContext(store))
    report = result.format()

    assert "  Total: 1\n  Ready: 1\n" in report
    assert "Not Ready" not in report
    assert "Failed/Not Ready" not in report
    assert result.warnings == 0


class _Recording(HealthChecker):
    """包装一个检查器，记录它运行之后的计数。"""

    def __init__(self, inner, seen):
        self.inner = inner
        self.title = inner.title
        self.seen = seen

    def inspect(self, context, result):
        self.inner.inspect(context, result)

    def check(self, context, result):
        super().check(context, result)
        self.seen.append((result.total_issues, result.warnings))


def test_counters_never_decrease_across_chain(dynamic, store):
    dynamic.add(
        "Kafka",
        resource("my-cluster", status={"conditions": [{"type": "Ready", "status": "False"}]}),
    )
    dynamic.add("Pod", _broker("my-cluster-kafka-0", "Pending"))
    dynamic.add("KafkaTopic", resource("t1", labels={CLUSTER_LABEL: "my-cluster"}))
    dynamic.resource("KafkaUser").failure = RuntimeError("forbidden")
    dynamic.add("KafkaConnector", resource("sink"))

    seen = [(0, 0)]
    checkers = [_Recording(c, seen) for c in default_checkers()]
    result = HealthCheckPipeline(checkers).run(HealthCheckContext(store))

    assert len(seen) == 5
    for before, after in zip(seen, seen[1:]):
        assert after[0] >= before[0]
        assert after[1] >= before[1]
    assert seen[-1] == (result.total_issues, result.warnings) == (2, 3)
