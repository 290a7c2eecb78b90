"""并发处理的工作单元。"""

from __future__ import annotations

import signal
from typing import Optional

from PIL import Image

from responsive_variants.core.models import FileOutcome, GenerationTask
from responsive_variants.core.output_manager import ImageWriteError, save_image
from responsive_variants.processing.image_loader import ImageLoadingError, load_image
from responsive_variants.processing.resize import resize_to_width


def init_worker() -> None:
    """工作进程忽略 SIGINT，中断只由主进程处理。"""

    signal.signal(signal.SIGINT, signal.SIG_IGN)


def transcode(task: GenerationTask) -> FileOutcome:
    """在工作进程中执行读取、缩放、编码与写入。"""

    image: Optional[Image.Image] = None
    resized: Optional[Image.Image] = None

    try:
        image = load_image(task.source_path, max_pixels=task.max_pixels)
    except ImageLoadingError as exc:
        return FileOutcome(
            source_path=task.source_path,
            status="error-load",
            output_path=task.output_path,
            message=str(exc),
        )

    try:
        resized = resize_to_width(image, task.resize_width)
        save_image(resized, task.output_path, quality=task.quality, method=task.method)
    except ImageWriteError as exc:
        _close_if_needed(image, resized)
        return FileOutcome(
            source_path=task.source_path,
            status="error-write",
            output_path=task.output_path,
            message=str(exc),
        )

    size = resized.size
    _close_if_needed(image, resized)

    note = None
    if task.resize_width < task.target_width:
        note = f"源图宽度不足 {task.target_width}px，按原始宽度 {task.resize_width}px 输出"

    return FileOutcome(
        source_path=task.source_path,
        status="created",
        output_path=task.output_path,
        message=note,
        size=size,
    )


def _close_if_needed(*images: Optional[Image.Image]) -> None:
    for img in images:
        if img is not None:
            img.close()
