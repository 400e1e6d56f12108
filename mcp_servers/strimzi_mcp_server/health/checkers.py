"""
健康检查器：每个检查器负责一个资源族，向共享结果追加一个章节的内容。

分类策略：
- Kafka 集群 Ready != True 记为 issue；broker Pod 未全部 Running 记为 warning
- Topic / User / Connector 存在未就绪项时各记一个 warning
- 检查器访问集群失败时写入一行 “✗ Unable to check ...” 并记一个 issue，不向上抛出
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .. import objects
from ..kinds import (
    CLUSTER_LABEL,
    KAFKA,
    KAFKA_CONNECT,
    KAFKA_CONNECTOR,
    KAFKA_TOPIC,
    KAFKA_USER,
    KIND_LABEL,
    POD,
)
from .context import HealthCheckContext
from .result import HealthCheckResult

logger = logging.getLogger(__name__)


class HealthChecker:
    title: str = ""

    def check(self, context: HealthCheckContext, result: HealthCheckResult) -> None:
        try:
            self.inspect(context, result)
        except Exception as e:
            logger.warning("Health checker %s failed", self.title, exc_info=True)
            result.append(f"  ✗ Unable to check {self.title.lower()}: {e}\n")
            result.add_issue()
        result.new_line()

    def inspect(self, context: HealthCheckContext, result: HealthCheckResult) -> None:
        raise NotImplementedError


def _count_unready(items: List[Dict[str, Any]]) -> int:
    return sum(1 for item in items if not objects.is_ready(item))


class KafkaHealthChecker(HealthChecker):
    title = "KAFKA CLUSTERS"

    def inspect(self, context: HealthCheckContext, result: HealthCheckResult) -> None:
        kafkas = context.repository(KAFKA).list(context.namespace)
        if context.has_cluster_filter:
            kafkas = [k for k in kafkas if objects.name_of(k) == context.kafka_cluster]

        if not kafkas:
            result.append("  No Kafka clusters found.\n")
            return
        for kafka in kafkas:
            self._check_cluster(context, kafka, result)

    def _check_cluster(
        self, context: HealthCheckContext, kafka: Dict[str, Any], result: HealthCheckResult
    ) -> None:
        ns, name = objects.namespace_of(kafka), objects.name_of(kafka)
        result.append(f"  {ns}/{name}: ")

        if objects.is_ready(kafka):
            result.append("✓ Ready\n")
        else:
            message = (objects.find_condition(kafka) or {}).get("message") or ""
            result.append("✗ Not Ready")
            if message:
                result.append(f" - {message}")
            result.new_line()
            result.add_issue()

        pods = [
            p
            for p in context.repository(POD).list(ns, CLUSTER_LABEL, name)
            if objects.labels(p).get(KIND_LABEL) == "Kafka"
        ]
        running = sum(1 for p in pods if objects.status(p).get("phase") == "Running")
        result.append(f"    Brokers: {running}/{len(pods)} running")
        if running < len(pods):
            result.append(" ⚠")
            result.add_warning()
        result.new_line()


class _ReadinessCountChecker(HealthChecker):
    kind = KAFKA_TOPIC

    def inspect(self, context: HealthCheckContext, result: HealthCheckResult) -> None:
        items = context.repository(self.kind).list(
            context.namespace, CLUSTER_LABEL, context.kafka_cluster
        )
        unready = _count_unready(items)
        result.append(f"  Total: {len(items)}\n")
        result.append(f"  Ready: {len(items) - unready}\n")
        if unready > 0:
            result.append(f"  Not Ready: {unready} ⚠\n")
            result.add_warning()


class TopicHealthChecker(_ReadinessCountChecker):
    title = "TOPICS"
    kind = KAFKA_TOPIC


class UserHealthChecker(_ReadinessCountChecker):
    title = "USERS"
    kind = KAFKA_USER


class ConnectorHealthChecker(HealthChecker):
    title = "KAFKA CONNECT"

    def inspect(self, context: HealthCheckContext, result: HealthCheckResult) -> None:
        # Connect 集群不属于某个 Kafka 集群标签，只按命名空间过滤
        connects = context.repository(KAFKA_CONNECT).list(context.namespace)
        connectors = context.repository(KAFKA_CONNECTOR).list(context.namespace)
        failed = _count_unready(connectors)
        result.append(f"  Connect Clusters: {len(connects)}\n")
        result.append(f"  Connectors: {len(connectors)}\n")
        if failed > 0:
            result.append(f"  Failed/Not Ready: {failed} ⚠\n")
            result.add_warning()
