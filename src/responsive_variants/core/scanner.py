"""文件扫描与筛选逻辑。"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence

from responsive_variants.core.config import JobConfig
from responsive_variants.core.exceptions import InvalidConfigurationError

LOGGER = logging.getLogger(__name__)

# [<root>/]**/*.{png,jpg} 或 [<root>/]**/*.png，省略 root 时为当前目录
_GLOB_RE = re.compile(r"^(?:(?P<root>.*?)/)?\*\*/\*\.(?:\{(?P<exts>[^{}]+)\}|(?P<ext>[A-Za-z0-9]+))$")

MissingRootCallback = Optional[Callable[[Path], None]]


@dataclass(slots=True)
class GlobSpec:
    """解析后的简化 glob：根目录与扩展名过滤。"""

    root: Path
    extensions: Optional[tuple[str, ...]] = None


def walk(roots: Iterable[Path], on_missing: MissingRootCallback = None) -> Iterator[Path]:
    """递归遍历根目录，惰性产出普通文件的绝对路径。

    每个目录的条目在 ``os.scandir`` 上下文内读完再产出，调用方提前停止迭代时不会
    遗留打开的目录句柄。不存在的根目录通过 ``on_missing`` 通知并跳过。
    """

    for root in roots:
        root = Path(root).absolute()
        if root.is_file():
            yield root
            continue
        if not root.is_dir():
            LOGGER.debug("扫描路径不存在：%s", root)
            if on_missing is not None:
                on_missing(root)
            continue

        pending = [root]
        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as iterator:
                    entries = sorted(iterator, key=lambda entry: entry.name)
            except OSError as exc:
                LOGGER.warning("无法读取目录 %s: %s", directory, exc)
                continue

            subdirs: list[Path] = []
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                elif entry.is_file():
                    yield Path(entry.path)
            pending.extend(reversed(subdirs))


def parse_glob(pattern: str, base_dir: Path) -> GlobSpec:
    """解析 ``<root>/**/*.{ext,...}``；已存在的文件或目录按原样接受。"""

    normalized = pattern.replace("\\", "/")
    match = _GLOB_RE.match(normalized)
    if match:
        raw = match.group("exts") or match.group("ext")
        extensions = tuple("." + ext.strip().lower().lstrip(".") for ext in raw.split(",") if ext.strip())
        return GlobSpec(root=base_dir / (match.group("root") or "."), extensions=extensions)

    candidate = base_dir / pattern
    if candidate.exists():
        return GlobSpec(root=candidate)

    raise InvalidConfigurationError(f"不支持的匹配模式: {pattern}（仅支持 <目录>/**/*.{{ext,...}}）")


def _matches_extension(path: Path, extensions: Optional[Sequence[str]]) -> bool:
    if not extensions:
        return True
    return path.suffix.lower() in {ext.lower() for ext in extensions}


def collect_files(config: JobConfig, warnings: Optional[list[str]] = None) -> list[Path]:
    """根据配置扫描所有根路径，返回去重并排序后的文件列表。"""

    def _on_missing(root: Path) -> None:
        message = f"扫描路径不存在，已跳过: {root}"
        LOGGER.warning(message)
        if warnings is not None:
            warnings.append(message)

    collected: list[Path] = []
    seen_paths: set[Path] = set()

    for candidate in walk(config.resolved_sources(), on_missing=_on_missing):
        resolved = candidate.resolve()
        if resolved in seen_paths:
            continue
        seen_paths.add(resolved)

        if not _matches_extension(candidate, config.include_extensions):
            continue
        collected.append(candidate)

    collected.sort(key=lambda x: str(x).lower())
    return collected
