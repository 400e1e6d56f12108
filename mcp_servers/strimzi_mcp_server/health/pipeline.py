from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .checkers import (
    ConnectorHealthChecker,
    HealthChecker,
    KafkaHealthChecker,
    TopicHealthChecker,
    UserHealthChecker,
)
from .context import HealthCheckContext
from .result import HealthCheckResult

logger = logging.getLogger(__name__)


def default_checkers() -> List[HealthChecker]:
    return [
        KafkaHealthChecker(),
        TopicHealthChecker(),
        UserHealthChecker(),
        ConnectorHealthChecker(),
    ]


class HealthCheckPipeline:
    def __init__(self, checkers: Optional[Sequence[HealthChecker]] = None) -> None:
        self.checkers = list(checkers) if checkers is not None else default_checkers()

    def run(self, context: HealthCheckContext) -> HealthCheckResult:
        """按声明顺序依次执行检查器；每个检查器自己负责捕获访问失败，链条不会中断。"""
        result = HealthCheckResult()
        for checker in self.checkers:
            result.start_section(checker.title)
            checker.check(context, result)
        logger.info(
            "Health check finished: issues=%d warnings=%d",
            result.total_issues,
            result.warnings,
        )
        return result
