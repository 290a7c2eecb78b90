"""运行结果的文本汇总。"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from responsive_variants.core.models import CleanupReport, FileOutcome, RunReport


def display_path(path: Path, base_dir: Optional[Path] = None) -> str:
    """尽量以相对 base_dir 的形式显示路径。"""

    if base_dir is not None:
        try:
            return str(path.relative_to(base_dir))
        except ValueError:
            pass
    return str(path)


def format_failure(outcome: FileOutcome, base_dir: Optional[Path] = None) -> str:
    target = outcome.output_path or outcome.source_path
    line = f"x {outcome.status} {display_path(target, base_dir)}"
    if outcome.message:
        line += f": {outcome.message}"
    return line


def summarize_run(report: RunReport, base_dir: Optional[Path] = None) -> list[str]:
    """生成模式的汇总行：计数行在前，失败逐条列出。"""

    counts = report.counts()
    headline = f"created={counts['created']} skipped={counts['skipped']} failed={counts['failed']}"
    if report.aborted:
        headline += " (aborted)"
    return [headline, *(format_failure(item, base_dir) for item in report.failed)]


def summarize_cleanup(report: CleanupReport, base_dir: Optional[Path] = None) -> list[str]:
    """清理模式的汇总行。"""

    counts = report.counts()
    headline = f"removed={counts['removed']} failed={counts['failed']}"
    return [headline, *(format_failure(item, base_dir) for item in report.failed)]
