import pytest
from kubernetes.client.exceptions import ApiException

from mcp_servers.strimzi_mcp_server.kinds import CLUSTER_LABEL, KAFKA_TOPIC
from mcp_servers.strimzi_mcp_server.repository import ResourceRepository, to_dict
from tests.conftest import resource


def _topics(dynamic):
    dynamic.add("KafkaTopic", resource("orders", labels={CLUSTER_LABEL: "my-cluster"}))
    dynamic.add("KafkaTopic", resource("audit", labels={CLUSTER_LABEL: "other"}))
    dynamic.add("KafkaTopic", resource("events", namespace="prod", labels={CLUSTER_LABEL: "my-cluster"}))
    return ResourceRepository(dynamic, KAFKA_TOPIC)


def test_list_filters_by_namespace_and_cluster_label(dynamic):
    repo = _topics(dynamic)
    assert {t["metadata"]["name"] for t in repo.list("kafka")} == {"orders", "audit"}
    assert [t["metadata"]["name"] for t in repo.list("kafka", CLUSTER_LABEL, "my-cluster")] == ["orders"]
    assert len(repo.list(None, CLUSTER_LABEL, "my-cluster")) == 2
    assert len(repo.list()) == 3


def _keys(items):
    return [(t["metadata"]["namespace"], t["metadata"]["name"]) for t in items]


def test_all_namespace_list_is_union_of_namespaces(dynamic):
    repo = _topics(dynamic)
    everywhere = _keys(repo.list(None, CLUSTER_LABEL, "my-cluster"))
    per_namespace = _keys(repo.list("kafka", CLUSTER_LABEL, "my-cluster")) + _keys(
        repo.list("prod", CLUSTER_LABEL, "my-cluster")
    )
    assert len(everywhere) == len(set(everywhere))
    assert set(everywhere) == set(per_namespace)

    unfiltered = _keys(repo.list())
    assert len(unfiltered) == len(set(unfiltered))
    assert set(unfiltered) == set(_keys(repo.list("kafka")) + _keys(repo.list("prod")))


def test_label_filter_returns_subset(dynamic):
    repo = _topics(dynamic)
    labelled = set(_keys(repo.list("kafka", CLUSTER_LABEL, "my-cluster")))
    assert labelled <= set(_keys(repo.list("kafka")))


def test_list_ignores_label_key_without_value(dynamic):
    repo = _topics(dynamic)
    assert len(repo.list("kafka", CLUSTER_LABEL, None)) == 2


def test_get_returns_none_for_missing(dynamic):
    repo = _topics(dynamic)
    assert repo.get("kafka", "nope") is None
    assert not repo.exists("kafka", "nope")
    assert repo.exists("kafka", "orders")


def test_get_propagates_other_errors(dynamic):
    repo = _topics(dynamic)
    dynamic.resource("KafkaTopic").failure = ApiException(status=403, reason="Forbidden")
    with pytest.raises(ApiException):
        repo.get("kafka", "orders")


def test_create_then_delete(dynamic):
    repo = ResourceRepository(dynamic, KAFKA_TOPIC)
    repo.create("kafka", resource("new", spec={"partitions": 3}))
    assert repo.get("kafka", "new")["spec"]["partitions"] == 3
    repo.delete("kafka", "new")
    assert repo.get("kafka", "new") is None


def test_patch_none_removes_key(dynamic):
    repo = _topics(dynamic)
    repo.patch("kafka", "orders", {"spec": {"config": {"retention.ms": "1000", "cleanup.policy": "compact"}}})
    repo.patch("kafka", "orders", {"spec": {"config": {"cleanup.policy": None}}})
    assert repo.get("kafka", "orders")["spec"]["config"] == {"retention.ms": "1000"}


def test_to_dict_handles_models():
    class Model:
        def to_dict(self):
            return {"a": 1}

    assert to_dict(None) == {}
    assert to_dict({"b": 2}) == {"b": 2}
    assert to_dict(Model()) == {"a": 1}
