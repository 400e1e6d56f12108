from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..kinds import ResourceKind
from ..repository import ResourceRepository


@dataclass(frozen=True)
class HealthCheckContext:
    """一次健康检查的共享上下文：集群访问句柄 + 可选的命名空间 / Kafka 集群过滤条件。"""

    store: Any
    namespace: Optional[str] = None
    kafka_cluster: Optional[str] = None

    @property
    def has_cluster_filter(self) -> bool:
        return bool(self.kafka_cluster)

    def repository(self, kind: ResourceKind) -> ResourceRepository:
        return self.store.repository(kind)
