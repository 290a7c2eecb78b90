"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class PathKind(str, Enum):
    """文件在一次运行中的分类结果。"""

    SOURCE = "source"
    CANONICAL = "canonical"
    STALE = "stale"
    IGNORED = "ignored"


@dataclass(frozen=True, slots=True)
class Classification:
    """分类结果；CANONICAL 时附带宽度。"""

    kind: PathKind
    width: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ImagePath:
    """文件路径及其派生字段（基础名不含扩展名与变体后缀）。"""

    path: Path
    base_name: str
    extension: str

    @property
    def parent(self) -> Path:
        return self.path.parent


@dataclass(slots=True)
class GenerationTask:
    """描述单个 (源图, 宽度) 的生成任务。"""

    source_path: Path
    target_width: int
    resize_width: int
    output_path: Path
    output_format: str
    quality: int
    method: int = 5
    max_pixels: Optional[int] = None


@dataclass(slots=True)
class VariantPlan:
    """单个源图的规划结果。"""

    tasks: list[GenerationTask] = field(default_factory=list)
    up_to_date: list[Path] = field(default_factory=list)
    rejected: list[Path] = field(default_factory=list)


@dataclass(slots=True)
class FileOutcome:
    """记录单个文件的处理结果（用于汇总/日志）。"""

    source_path: Path
    status: str
    output_path: Optional[Path] = None
    message: Optional[str] = None
    size: Optional[tuple[int, int]] = None


@dataclass(slots=True)
class RunReport:
    """生成模式的运行汇总，仅在内存中返回。"""

    created: list[FileOutcome] = field(default_factory=list)
    skipped: list[FileOutcome] = field(default_factory=list)
    failed: list[FileOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    scanned: int = 0
    sources: int = 0
    aborted: bool = False

    def counts(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


@dataclass(slots=True)
class CleanupReport:
    """清理模式的运行汇总。"""

    removed: list[Path] = field(default_factory=list)
    failed: list[FileOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    scanned: int = 0

    def counts(self) -> dict[str, int]:
        return {"removed": len(self.removed), "failed": len(self.failed)}
