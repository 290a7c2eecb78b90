"""变体规划：计算每个源图需要（重新）生成的输出。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from responsive_variants.core.classifier import classify, variant_path
from responsive_variants.core.config import VariantConfig
from responsive_variants.core.models import GenerationTask, ImagePath, PathKind, VariantPlan

LOGGER = logging.getLogger(__name__)

WidthProbe = Callable[[Path], Optional[int]]


def is_up_to_date(output_path: Path, source_path: Path) -> bool:
    """输出存在且修改时间不早于源图。"""

    try:
        output_mtime = output_path.stat().st_mtime
        source_mtime = source_path.stat().st_mtime
    except OSError:
        return False
    return output_mtime >= source_mtime


def plan(
    source: ImagePath,
    target_widths: Sequence[int],
    output_ext: str,
    *,
    output_format: str = "WEBP",
    quality: int = 62,
    method: int = 5,
    max_pixels: Optional[int] = None,
    width_probe: Optional[WidthProbe] = None,
) -> VariantPlan:
    """为单个源图生成任务列表。

    输出路径只由基础名与目标宽度决定。已是最新的输出计入 ``up_to_date``；文件名
    不会被识别为规范变体的输出（如 ``hero-900w.jpg`` -> ``hero-900w-768.webp``）
    计入 ``rejected``，不生成。提供 ``width_probe`` 时，源图比目标宽度窄则
    ``resize_width`` 取源图原始宽度，不放大。
    """

    result = VariantPlan()
    naming = VariantConfig(target_widths=tuple(target_widths), output_format=output_ext.lstrip("."))
    native_width: Optional[int] = None
    probed = False

    for width in sorted(set(target_widths)):
        output_path = variant_path(source, width, output_ext)
        if classify(output_path, naming).kind is not PathKind.CANONICAL:
            LOGGER.debug("输出文件名会被判定为过期变体，跳过：%s", output_path.name)
            result.rejected.append(output_path)
            continue

        if is_up_to_date(output_path, source.path):
            result.up_to_date.append(output_path)
            continue

        if not probed and width_probe is not None:
            native_width = width_probe(source.path)
        probed = True

        resize_width = width if native_width is None else min(width, native_width)
        result.tasks.append(
            GenerationTask(
                source_path=source.path,
                target_width=width,
                resize_width=resize_width,
                output_path=output_path,
                output_format=output_format,
                quality=quality,
                method=method,
                max_pixels=max_pixels,
            )
        )

    LOGGER.debug("%s: %d 个任务，%d 个已是最新", source.path.name, len(result.tasks), len(result.up_to_date))
    return result
