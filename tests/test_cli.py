"""命令行行为与退出码测试。"""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

from responsive_variants.cli.main import _interrupt_sets, app

runner = CliRunner()


@pytest.fixture
def site(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    images = tmp_path / "public" / "images"
    images.mkdir(parents=True)
    Image.new("RGB", (2000, 1000), "orange").save(images / "hero.jpg")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_generate_default_roots_then_rerun(site: Path) -> None:
    first = runner.invoke(app, ["generate", "--workers", "1"])

    assert first.exit_code == 0, first.output
    assert "created=2 skipped=0 failed=0" in first.output
    assert "hero-768.webp" in first.output
    assert (site / "public" / "images" / "hero-1200.webp").exists()

    second = runner.invoke(app, ["generate", "--workers", "1"])

    assert second.exit_code == 0, second.output
    assert "created=0 skipped=2 failed=0" in second.output


def test_generate_single_file_with_custom_width(site: Path) -> None:
    result = runner.invoke(
        app,
        ["generate", "--file", "public/images/hero.jpg", "--width", "640", "--workers", "1"],
    )

    assert result.exit_code == 0, result.output
    assert "created=1 skipped=0 failed=0" in result.output
    with Image.open(site / "public" / "images" / "hero-640.webp") as variant:
        assert variant.width == 640


def test_generate_missing_file_exits_non_zero(site: Path) -> None:
    result = runner.invoke(app, ["generate", "--file", "public/images/nope.jpg"])

    assert result.exit_code == 1
    assert "nope.jpg" in result.output
    assert not list((site / "public" / "images").glob("*.webp"))


def test_generate_without_sources_exits_non_zero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["generate", "--workers", "1"])

    assert result.exit_code == 1


def test_generate_reports_failures_but_exits_zero(site: Path) -> None:
    (site / "public" / "images" / "broken.png").write_text("not an image")

    result = runner.invoke(app, ["generate", "--workers", "1"])

    assert result.exit_code == 0, result.output
    assert "created=2 skipped=0 failed=2" in result.output
    assert "error-load" in result.output


def test_generate_glob_filters_extensions(site: Path) -> None:
    Image.new("RGB", (1000, 500), "blue").save(site / "public" / "images" / "logo.png")

    result = runner.invoke(app, ["generate", "--glob", "public/images/**/*.{png}", "--workers", "1"])

    assert result.exit_code == 0, result.output
    assert (site / "public" / "images" / "logo-768.webp").exists()
    assert not (site / "public" / "images" / "hero-768.webp").exists()


def test_generate_rejects_unsupported_glob(site: Path) -> None:
    result = runner.invoke(app, ["generate", "--glob", "public/*/hero?.jpg"])

    assert result.exit_code == 1


def test_generate_rejects_invalid_width(site: Path) -> None:
    result = runner.invoke(app, ["generate", "--width", "0"])

    assert result.exit_code == 1


def test_clean_removes_stale_variants(site: Path) -> None:
    images = site / "public" / "images"
    (images / "hero-900w-768.webp").write_bytes(b"legacy")
    (images / "hero-900w.webp").write_bytes(b"legacy")
    Image.new("RGB", (768, 384), "orange").save(images / "hero-768.webp")

    result = runner.invoke(app, ["clean"])

    assert result.exit_code == 0, result.output
    assert "removed=2 failed=0" in result.output
    assert sorted(p.name for p in images.iterdir()) == ["hero-768.webp", "hero.jpg"]


def test_clean_without_files_exits_non_zero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["clean"])

    assert result.exit_code == 1


def test_interrupt_sets_abort_event_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    event = threading.Event()
    original = signal.getsignal(signal.SIGINT)

    with caplog.at_level(logging.WARNING, logger="responsive_variants.cli.main"):
        with _interrupt_sets(event):
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)

    assert event.is_set()
    assert any(record.name == "responsive_variants.cli.main" for record in caplog.records)
    assert signal.getsignal(signal.SIGINT) is original


def test_generate_accepts_rootless_glob(site: Path) -> None:
    images = site / "public" / "images"

    result = runner.invoke(app, ["generate", "--glob", "**/*.{jpg}", "--workers", "1"])

    assert result.exit_code == 0, result.output
    assert (images / "hero-768.webp").exists()
