"""文件名分类规则测试。"""

from __future__ import annotations

from pathlib import Path

import pytest

from responsive_variants.core.classifier import classify, describe, variant_path
from responsive_variants.core.config import VariantConfig
from responsive_variants.core.models import PathKind

CONFIG = VariantConfig()


@pytest.mark.parametrize(
    ("name", "kind", "width"),
    [
        ("hero.jpg", PathKind.SOURCE, None),
        ("hero.JPEG", PathKind.SOURCE, None),
        ("hero.png", PathKind.SOURCE, None),
        ("hero.webp", PathKind.SOURCE, None),
        ("hero-2880x3874.jpg", PathKind.SOURCE, None),
        ("hero-768.png", PathKind.SOURCE, None),
        ("hero-768.webp", PathKind.CANONICAL, 768),
        ("hero-1200.WEBP", PathKind.CANONICAL, 1200),
        ("hero-2880x3874-768.webp", PathKind.CANONICAL, 768),
        ("photo-900w-768.webp", PathKind.STALE, None),
        ("photo-900w.webp", PathKind.STALE, None),
        ("photo-900W.webp", PathKind.STALE, None),
        ("hero-768-1200.webp", PathKind.CANONICAL, 1200),
        ("shot-1-768.webp", PathKind.CANONICAL, 768),
        ("IMG-2024-1200.webp", PathKind.CANONICAL, 1200),
        ("hero-900w-1200-768.webp", PathKind.STALE, None),
        ("hero-768-640.webp", PathKind.STALE, None),
        ("hero-640.webp", PathKind.STALE, None),
        ("notes.txt", PathKind.IGNORED, None),
        ("hero.gif", PathKind.IGNORED, None),
        (".hero-768.webp.1a2b3c4d.part", PathKind.IGNORED, None),
    ],
)
def test_classify_names(name: str, kind: PathKind, width: int | None) -> None:
    result = classify(Path("/site/images") / name, CONFIG)

    assert result.kind is kind
    assert result.width == width


def test_legacy_double_suffix_is_never_source_or_canonical() -> None:
    path = Path("photo-900w-768.webp")

    # 末尾 "-768.webp" 与规范后缀相同，但整体属于旧命名
    assert classify(path, CONFIG).kind is PathKind.STALE


def test_classification_is_deterministic() -> None:
    names = ["a.jpg", "a-768.webp", "a-900w.webp", "a.txt"]
    first = [classify(Path(name), CONFIG) for name in names]
    second = [classify(Path(name), CONFIG) for name in names]

    assert first == second


def test_custom_width_set_changes_canonical_and_stale() -> None:
    config = VariantConfig(target_widths=(640,))

    assert classify(Path("hero-640.webp"), config).kind is PathKind.CANONICAL
    assert classify(Path("hero-768.webp"), config).kind is PathKind.STALE


def test_non_webp_output_format() -> None:
    config = VariantConfig(output_format="jpg", source_extensions=(".png", ".jpg"))

    assert classify(Path("hero-768.jpg"), config).kind is PathKind.CANONICAL
    assert classify(Path("hero-900w.jpg"), config).kind is PathKind.STALE
    assert classify(Path("hero.jpg"), config).kind is PathKind.SOURCE
    # webp 不在源图扩展名里，也不是输出格式
    assert classify(Path("hero-768.webp"), config).kind is PathKind.IGNORED


def test_describe_strips_variant_suffix() -> None:
    assert describe(Path("/img/photo-900w-768.webp"), CONFIG).base_name == "photo"
    assert describe(Path("/img/hero-1200.webp"), CONFIG).base_name == "hero"

    source = describe(Path("/img/hero-2880x3874.jpg"), CONFIG)
    assert source.base_name == "hero-2880x3874"
    assert source.extension == ".jpg"
    assert source.parent == Path("/img")


def test_variant_path_is_sibling_and_canonical() -> None:
    source = describe(Path("/img/hero.jpg"), CONFIG)
    output = variant_path(source, 768, CONFIG.output_extension)

    assert output == Path("/img/hero-768.webp")
    assert classify(output, CONFIG).kind is PathKind.CANONICAL


@pytest.mark.parametrize("name", ["shot-1.png", "IMG-2024.jpg", "banner-2.png", "hero-768.png"])
def test_variants_of_numbered_sources_are_canonical(name: str) -> None:
    source = describe(Path("/img") / name, CONFIG)
    assert classify(source.path, CONFIG).kind is PathKind.SOURCE

    for width in CONFIG.widths:
        output = variant_path(source, width, CONFIG.output_extension)
        result = classify(output, CONFIG)

        assert result.kind is PathKind.CANONICAL
        assert result.width == width
        assert describe(output, CONFIG).base_name == source.base_name
