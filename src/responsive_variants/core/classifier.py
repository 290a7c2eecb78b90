"""根据文件名判断源图、规范变体与过期变体。

分类只看路径本身，不访问文件系统。顺序固定：先判断过期变体，再判断规范变体，
最后按扩展名判断源图；其余文件一律忽略。过期文件名的末尾可能与规范后缀相同
（如 ``photo-900w-768.webp``），因此过期判断必须排在最前。
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

from responsive_variants.core.config import VariantConfig
from responsive_variants.core.models import Classification, ImagePath, PathKind

# 文件名末尾连续的 "-<数字>[w]" 片段
_SUFFIX_RUN_RE = re.compile(r"(?:-\d+[wW]?)+$")
_SEGMENT_RE = re.compile(r"-(\d+)([wW]?)")


def _split_suffix_run(stem: str) -> tuple[str, list[tuple[int, bool]]]:
    """拆出基础名与末尾的宽度片段列表 [(宽度, 是否带 w)]。"""

    match = _SUFFIX_RUN_RE.search(stem)
    if not match:
        return stem, []
    segments = [(int(digits), bool(marker)) for digits, marker in _SEGMENT_RE.findall(match.group(0))]
    return stem[: match.start()], segments


def _is_canonical(segments: Sequence[tuple[int, bool]], widths: Sequence[int]) -> bool:
    """最后一段是不带 w 的目标宽度，且前面各段都不带 w。

    前面的纯数字片段属于源图的基础名（如 ``shot-1.png`` 生成的 ``shot-1-768.webp``）。
    """

    if not segments:
        return False
    width, has_marker = segments[-1]
    if has_marker or width not in widths:
        return False
    return not any(marker for _, marker in segments[:-1])


def _is_stale(segments: Sequence[tuple[int, bool]], widths: Sequence[int]) -> bool:
    return bool(segments) and not _is_canonical(segments, widths)


def classify(path: Path, config: VariantConfig) -> Classification:
    """返回路径的分类。对任意输入都不会抛出异常。"""

    extension = path.suffix.lower()
    widths = config.widths

    if extension == config.output_extension:
        _, segments = _split_suffix_run(path.stem)
        if _is_stale(segments, widths):
            return Classification(PathKind.STALE)
        if _is_canonical(segments, widths):
            return Classification(PathKind.CANONICAL, width=segments[-1][0])

    if extension in {ext.lower() for ext in config.source_extensions}:
        return Classification(PathKind.SOURCE)

    return Classification(PathKind.IGNORED)


def describe(path: Path, config: VariantConfig) -> ImagePath:
    """构造 ImagePath；变体文件的基础名去掉宽度后缀。"""

    kind = classify(path, config).kind
    base_name = path.stem
    if kind is PathKind.CANONICAL:
        base_name = path.stem.rsplit("-", 1)[0]
    elif kind is PathKind.STALE:
        base_name, _ = _split_suffix_run(path.stem)
    return ImagePath(path=path, base_name=base_name, extension=path.suffix.lower())


def variant_path(source: ImagePath, width: int, output_extension: str) -> Path:
    """同目录下的 ``<基础名>-<宽度><扩展名>``。"""

    return source.parent / f"{source.base_name}-{width}{output_extension}"
