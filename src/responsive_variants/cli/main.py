"""命令行入口。"""

from __future__ import annotations

import logging
import os
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from responsive_variants.core.config import JobConfig, VariantConfig
from responsive_variants.core.exceptions import InvalidConfigurationError
from responsive_variants.core.progress import ProgressUpdate
from responsive_variants.core.report import display_path, summarize_cleanup, summarize_run
from responsive_variants.core.scanner import parse_glob
from responsive_variants.processing.pipeline import clean_stale_variants, generate_variants
from responsive_variants.utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="为站点图片批量生成响应式 WebP 变体，并清理旧命名规则留下的文件。")

EXIT_INTERRUPTED = 130


def _build_job(
    base_dir: Path,
    file: Optional[Path],
    glob: Optional[str],
    roots: Optional[List[Path]],
    variant: VariantConfig,
    max_workers: Optional[int] = None,
) -> JobConfig:
    if file is not None and glob is not None:
        raise typer.BadParameter("--file 与 --glob 不能同时使用")

    sources: list[Path] = []
    include_extensions = None

    if file is not None:
        target = base_dir / file
        if not target.is_file():
            raise InvalidConfigurationError(f"文件不存在: {file}")
        sources = [target]
    elif glob is not None:
        spec = parse_glob(glob, base_dir)
        sources = [spec.root]
        include_extensions = spec.extensions
    elif roots:
        sources = list(roots)

    job = JobConfig(base_dir=base_dir, sources=sources, variant=variant, include_extensions=include_extensions)
    if max_workers is not None:
        job.max_workers = max_workers
    return job


def _build_progress_callback(progress: Progress, base_dir: Path):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("处理图片", total=update.total)
        progress.update(task_id, completed=update.completed)
        if update.path is None:
            return
        shown = display_path(update.path, base_dir)
        if update.status == "created":
            progress.console.print(f"→ {shown}", markup=False, highlight=False, soft_wrap=True)
        elif update.status == "removed":
            progress.console.print(f"removed {shown}", markup=False, highlight=False, soft_wrap=True)

    return callback


def _make_progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )


@contextmanager
def _interrupt_sets(event: threading.Event) -> Iterator[None]:
    """运行期间 Ctrl+C 只设置中断标记，不直接抛出 KeyboardInterrupt。"""

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame) -> None:  # noqa: ARG001
        LOGGER.warning("收到中断信号，等待进行中的任务结束")
        event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command("generate")
def generate_cli(  # noqa: PLR0913
    file: Optional[Path] = typer.Option(None, "--file", help="只处理单个源图"),
    glob: Optional[str] = typer.Option(None, "--glob", help="匹配模式，形如 public/images/**/*.{png,jpg}"),
    roots: Optional[List[Path]] = typer.Option(None, "--root", "-r", help="扫描目录，可指定多个"),
    widths: Optional[List[int]] = typer.Option(None, "--width", "-w", help="目标宽度，可指定多个，默认 768 1200"),
    quality: int = typer.Option(62, "--quality", "-q", help="WebP 质量 0~100"),
    method: int = typer.Option(5, "--method", help="WebP 编码强度 0~6"),
    max_workers: int = typer.Option(os.cpu_count() or 1, "--workers", "-j", help="并发进程数量"),
    max_pixels: Optional[int] = typer.Option(None, "--max-pixels", help="拒绝像素数超过该值的源图"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """为源图生成缺失或过期的响应式变体。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    base_dir = Path.cwd()

    variant = VariantConfig(quality=quality, method=method, max_pixels=max_pixels)
    if widths:
        variant.target_widths = tuple(widths)

    try:
        job = _build_job(base_dir, file, glob, roots, variant, max_workers=max_workers)
        variant.validate()
    except InvalidConfigurationError as exc:
        _fail(str(exc))

    console = Console()
    abort_event = threading.Event()
    with _interrupt_sets(abort_event), _make_progress(console) as progress:
        report = generate_variants(
            job,
            progress_callback=_build_progress_callback(progress, base_dir),
            abort_event=abort_event,
        )

    if report.sources == 0:
        _fail("没有找到可处理的源图。")

    for line in summarize_run(report, base_dir):
        typer.echo(line)

    if report.aborted:
        raise typer.Exit(code=EXIT_INTERRUPTED)


@app.command("clean")
def clean_cli(
    file: Optional[Path] = typer.Option(None, "--file", help="只检查单个文件"),
    glob: Optional[str] = typer.Option(None, "--glob", help="匹配模式，形如 public/images/**/*.webp"),
    roots: Optional[List[Path]] = typer.Option(None, "--root", "-r", help="扫描目录，可指定多个"),
    widths: Optional[List[int]] = typer.Option(None, "--width", "-w", help="当前使用的目标宽度，默认 768 1200"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """删除旧命名规则留下的过期变体。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    base_dir = Path.cwd()

    variant = VariantConfig()
    if widths:
        variant.target_widths = tuple(widths)

    try:
        job = _build_job(base_dir, file, glob, roots, variant)
        variant.validate()
    except InvalidConfigurationError as exc:
        _fail(str(exc))

    console = Console()
    with _make_progress(console) as progress:
        report = clean_stale_variants(job, progress_callback=_build_progress_callback(progress, base_dir))

    if report.scanned == 0:
        _fail("没有找到任何文件。")

    for line in summarize_cleanup(report, base_dir):
        typer.echo(line)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
