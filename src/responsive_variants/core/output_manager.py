"""输出写入与删除。"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from PIL import Image

from responsive_variants.core.config import OUTPUT_FORMATS
from responsive_variants.core.exceptions import VariantPipelineError

LOGGER = logging.getLogger(__name__)

# 不支持透明通道的编码器
_OPAQUE_FORMATS = {"JPEG"}


class ImageWriteError(VariantPipelineError):
    """输出写入失败。"""


def temp_path_for(destination: Path) -> Path:
    """目标同目录下的隐藏临时文件，扩展名 .part 不会被识别为图片。"""

    return destination.with_name(f".{destination.name}.{uuid.uuid4().hex[:8]}.part")


def save_image(image: Image.Image, destination: Path, *, quality: int, method: int = 5) -> None:
    """先写入临时文件再重命名到目标路径，失败时不留下半成品。"""

    image_format = OUTPUT_FORMATS.get(destination.suffix.lower().lstrip("."))
    if not image_format:
        raise ImageWriteError(f"不支持的输出格式: {destination.suffix}")

    save_params: dict[str, object] = {}
    image_to_save = image
    if image_format == "WEBP":
        save_params.update(quality=quality, method=method)
    elif image_format == "JPEG":
        save_params.update(quality=quality, optimize=True, progressive=True)
    else:
        save_params.update(optimize=True)

    if image_format in _OPAQUE_FORMATS and image.mode != "RGB":
        image_to_save = _flatten(image)

    tmp_path = temp_path_for(destination)
    try:
        image_to_save.save(tmp_path, format=image_format, **save_params)
        os.replace(tmp_path, destination)
    except (OSError, ValueError) as exc:
        _discard(tmp_path)
        raise ImageWriteError(f"写入文件失败: {destination} ({exc})") from exc
    finally:
        if image_to_save is not image:
            image_to_save.close()


def delete_file(path: Path) -> None:
    """删除单个文件，失败时抛出 ImageWriteError。"""

    try:
        path.unlink()
    except FileNotFoundError:
        LOGGER.debug("文件已不存在：%s", path)
    except OSError as exc:
        raise ImageWriteError(f"删除文件失败: {path} ({exc})") from exc


def _flatten(image: Image.Image) -> Image.Image:
    """透明区域以白色背景合成为 RGB。"""

    if image.mode == "RGBA":
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        return background
    return image.convert("RGB")


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        LOGGER.warning("无法删除临时文件 %s: %s", path, exc)
