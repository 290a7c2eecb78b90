"""图片加载与基础预处理实现。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from responsive_variants.core.exceptions import VariantPipelineError

LOGGER = logging.getLogger(__name__)

# EXIF Orientation 5~8 表示宽高互换
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}


class ImageLoadingError(VariantPipelineError):
    """图片加载失败。"""


def probe_width(path: Path) -> Optional[int]:
    """只读取文件头，返回考虑 EXIF 旋转后的像素宽度；无法识别时返回 None。"""

    try:
        with Image.open(path) as img:
            width, height = img.size
            orientation = img.getexif().get(0x0112)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        LOGGER.debug("无法读取图像尺寸 %s: %s", path, exc)
        return None

    if orientation in _TRANSPOSED_ORIENTATIONS:
        return height
    return width


def load_image(path: Path, max_pixels: Optional[int] = None) -> Image.Image:
    """加载单张图片并执行 EXIF 旋转与模式归一化。

    带透明通道的图片归一化为 RGBA，其余为 RGB。超过 ``max_pixels`` 的图片直接拒绝。
    返回值为新的 Image 对象，调用者负责关闭。
    """

    try:
        with Image.open(path) as img:
            if max_pixels is not None and img.width * img.height > max_pixels:
                raise ImageLoadingError(f"图像像素数超出上限 ({img.width}x{img.height}): {path}")

            img.load()

            # EXIF Orientation 校正
            img = ImageOps.exif_transpose(img)

            if img.mode not in {"RGB", "RGBA"}:
                img = _normalize_mode(img)

            return img.copy()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法加载图像: {path}") from exc


def _normalize_mode(img: Image.Image) -> Image.Image:
    """将任意模式图像转换为 RGB 或 RGBA。"""

    if img.mode in {"LA", "PA"}:
        return img.convert("RGBA")

    if img.mode == "P":
        return img.convert("RGBA" if "transparency" in img.info else "RGB")

    # CMYK、L 等其他模式直接转换
    return img.convert("RGB")
