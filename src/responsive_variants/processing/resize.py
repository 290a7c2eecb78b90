"""按宽度等比缩放。"""

from __future__ import annotations

from PIL import Image


def compute_target_size(size: tuple[int, int], width: int) -> tuple[int, int]:
    """Return the (width, height) for a proportional resize that never enlarges."""

    src_w, src_h = size
    if width <= 0 or src_w <= 0 or src_h <= 0:
        return size

    target_w = min(width, src_w)
    target_h = max(1, round(src_h * target_w / src_w))
    return target_w, target_h


def resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """等比缩放到指定宽度；宽度不小于原图时返回副本。"""

    target_size = compute_target_size(image.size, width)
    if target_size == image.size:
        return image.copy()
    return image.resize(target_size, Image.LANCZOS)
