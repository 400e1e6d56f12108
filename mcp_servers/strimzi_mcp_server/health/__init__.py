"""
Strimzi MCP Server - 健康检查流水线

HealthCheckPipeline 按固定顺序依次运行各 HealthChecker（Kafka / Topic / User / Connect），
所有检查器共享同一个只读的 HealthCheckContext 与同一个 HealthCheckResult 累加器，
最后由 HealthCheckResult.format() 生成带汇总的报告。
"""

from .checkers import (
    ConnectorHealthChecker,
    HealthChecker,
    KafkaHealthChecker,
    TopicHealthChecker,
    UserHealthChecker,
)
from .context import HealthCheckContext
from .pipeline import HealthCheckPipeline, default_checkers
from .result import HealthCheckResult

__all__ = [
    "HealthChecker",
    "KafkaHealthChecker",
    "TopicHealthChecker",
    "UserHealthChecker",
    "ConnectorHealthChecker",
    "HealthCheckContext",
    "HealthCheckResult",
    "HealthCheckPipeline",
    "default_checkers",
]
