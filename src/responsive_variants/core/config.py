"""变体生成任务的配置模型。"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

from responsive_variants.core.exceptions import InvalidConfigurationError

# 输出扩展名 -> Pillow 编码器名称
OUTPUT_FORMATS = {
    "webp": "WEBP",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
}

DEFAULT_ROOTS: Tuple[str, ...] = ("public/images", "src/assets/images")


@dataclass(slots=True)
class VariantConfig:
    """变体命名与编码参数。"""

    target_widths: Tuple[int, ...] = (768, 1200)
    output_format: str = "webp"
    quality: int = 62
    method: int = 5  # WebP 编码强度 0~6
    source_extensions: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".webp")
    max_pixels: Optional[int] = None

    @property
    def output_extension(self) -> str:
        return "." + self.output_format.lower()

    @property
    def widths(self) -> Tuple[int, ...]:
        """去重并升序排列的目标宽度。"""

        return tuple(sorted(set(self.target_widths)))

    def validate(self) -> None:
        """校验配置，失败时抛出 InvalidConfigurationError。"""

        if not self.target_widths:
            raise InvalidConfigurationError("至少需要一个目标宽度")
        for width in self.target_widths:
            if width <= 0:
                raise InvalidConfigurationError(f"目标宽度必须大于 0: {width}")
        if self.output_format.lower() not in OUTPUT_FORMATS:
            raise InvalidConfigurationError(f"不支持的输出格式: {self.output_format}")
        if not 0 <= self.quality <= 100:
            raise InvalidConfigurationError(f"quality 必须位于 0~100: {self.quality}")
        if not 0 <= self.method <= 6:
            raise InvalidConfigurationError(f"method 必须位于 0~6: {self.method}")
        if self.max_pixels is not None and self.max_pixels <= 0:
            raise InvalidConfigurationError("max_pixels 必须大于 0")
        for ext in self.source_extensions:
            if not ext.startswith("."):
                raise InvalidConfigurationError(f"扩展名需以 '.' 开头: {ext}")


@dataclass(slots=True)
class JobConfig:
    """单次运行的配置集合。

    ``sources`` 中的相对路径相对于 ``base_dir`` 解析；为空时扫描 ``DEFAULT_ROOTS``。
    """

    base_dir: Path
    sources: Sequence[Path] = field(default_factory=tuple)
    variant: VariantConfig = field(default_factory=VariantConfig)
    include_extensions: Optional[Sequence[str]] = None
    max_workers: int = field(default_factory=lambda: os.cpu_count() or 1)

    def resolved_sources(self) -> list[Path]:
        """返回绝对路径形式的扫描根目录或文件。"""

        entries = self.sources or [Path(root) for root in DEFAULT_ROOTS]
        return [(self.base_dir / entry).resolve() for entry in entries]
