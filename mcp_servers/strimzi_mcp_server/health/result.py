from __future__ import annotations

from typing import List

BANNER = "═" * 60
RULE = "─" * 40


class HealthCheckResult:
    """
    健康检查累加器：按顺序记录的章节标题、不断增长的文本缓冲区、issue 计数与 warning 计数。
    由检查链顺序修改，不做并发保护；format() 只读，重复调用输出完全一致。
    """

    def __init__(self) -> None:
        self.sections: List[str] = []
        self._buffer: List[str] = []
        self.total_issues = 0
        self.warnings = 0

    def start_section(self, title: str) -> "HealthCheckResult":
        self.sections.append(title)
        self._buffer.append(f"{title}\n{RULE}\n")
        return self

    def append(self, text: str) -> "HealthCheckResult":
        self._buffer.append(text)
        return self

    def new_line(self) -> "HealthCheckResult":
        self._buffer.append("\n")
        return self

    def add_issue(self) -> None:
        self.total_issues += 1

    def add_warning(self) -> None:
        self.warnings += 1

    @property
    def healthy(self) -> bool:
        return self.total_issues == 0 and self.warnings == 0

    @property
    def body(self) -> str:
        return "".join(self._buffer)

    def format(self) -> str:
        out = ["Strimzi Health Check Report\n", BANNER, "\n\n", self.body, BANNER, "\n", "SUMMARY\n"]
        if self.healthy:
            out.append("✓ All resources are healthy!\n")
        else:
            if self.total_issues > 0:
                out.append(f"✗ Critical issues: {self.total_issues}\n")
            if self.warnings > 0:
                out.append(f"⚠ Warnings: {self.warnings}\n")
            out.append("\nUse describe_* tools to investigate specific resources.\n")
        return "".join(out)
