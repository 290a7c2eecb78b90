"""处理流水线：扫描、分类、规划、并发转码，以及过期变体清理。"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from pathlib import Path
from typing import Callable, Iterator, Optional

from responsive_variants.core.classifier import classify, describe
from responsive_variants.core.config import OUTPUT_FORMATS, JobConfig
from responsive_variants.core.models import (
    CleanupReport,
    FileOutcome,
    GenerationTask,
    ImagePath,
    PathKind,
    RunReport,
)
from responsive_variants.core.output_manager import ImageWriteError, delete_file
from responsive_variants.core.planner import plan
from responsive_variants.core.progress import ProgressUpdate
from responsive_variants.core.scanner import collect_files
from responsive_variants.processing.image_loader import probe_width
from responsive_variants.processing.worker import init_worker, transcode

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def generate_variants(
    config: JobConfig,
    progress_callback: ProgressCallback = None,
    abort_event: Optional[threading.Event] = None,
) -> RunReport:
    """生成模式入口：为每个源图补齐缺失或过期的变体。

    ``abort_event`` 被设置后不再派发新任务，已在执行的任务照常完成，返回的报告
    带 ``aborted=True``。
    """

    variant = config.variant
    variant.validate()
    report = RunReport()

    LOGGER.info("开始扫描输入路径")
    files = collect_files(config, report.warnings)
    report.scanned = len(files)

    sources: list[ImagePath] = [
        describe(path, variant) for path in files if classify(path, variant).kind is PathKind.SOURCE
    ]
    report.sources = len(sources)
    LOGGER.info("扫描到 %d 个文件，其中 %d 个源图", len(files), len(sources))

    if not sources:
        _emit_progress(progress_callback, completed=0, total=0, message="没有需要处理的图片")
        return report

    tasks: list[GenerationTask] = []
    for source in sources:
        source_plan = plan(
            source,
            variant.widths,
            variant.output_extension,
            output_format=OUTPUT_FORMATS[variant.output_format.lower()],
            quality=variant.quality,
            method=variant.method,
            max_pixels=variant.max_pixels,
            width_probe=probe_width,
        )
        for output_path in source_plan.up_to_date:
            report.skipped.append(
                FileOutcome(source_path=source.path, status="skip-up-to-date", output_path=output_path)
            )
        for output_path in source_plan.rejected:
            LOGGER.error("输出文件名与过期变体规则冲突，未生成：%s", output_path)
            report.failed.append(
                FileOutcome(
                    source_path=source.path,
                    status="error-name",
                    output_path=output_path,
                    message="源图文件名以 -<数字>w 结尾，生成的变体会被当作过期文件清理，请重命名源图",
                )
            )
        tasks.extend(source_plan.tasks)

    total = len(tasks) + len(report.skipped)
    completed = len(report.skipped)
    LOGGER.info("共 %d 个变体，%d 个已是最新，%d 个待生成", total, completed, len(tasks))

    if not tasks:
        _emit_progress(progress_callback, total, total, "全部变体已是最新")
        return report

    _emit_progress(progress_callback, completed, total, "开始执行转码任务")

    workers = min(config.max_workers, len(tasks))
    if workers <= 1:
        for task in tasks:
            if _is_set(abort_event):
                report.aborted = True
                break
            outcome = _run_inline(task)
            completed += 1
            _record_outcome(report, outcome, progress_callback, completed, total)
    else:
        for outcome in _run_in_pool(tasks, workers, abort_event, report):
            completed += 1
            _record_outcome(report, outcome, progress_callback, completed, total)

    if report.aborted:
        LOGGER.warning("任务已中断，已完成 %d/%d", completed, total)
        _emit_progress(progress_callback, completed, total, "任务已中断", status="aborted")
    else:
        _emit_progress(progress_callback, total, total, "处理完成", status="done")
    return report


def _run_in_pool(
    tasks: list[GenerationTask],
    workers: int,
    abort_event: Optional[threading.Event],
    report: RunReport,
) -> Iterator[FileOutcome]:
    """在进程池中执行任务，同时在途的任务数不超过 workers。"""

    pending = iter(tasks)
    exhausted = False
    in_flight: dict[Future, GenerationTask] = {}

    with ProcessPoolExecutor(max_workers=workers, initializer=init_worker) as executor:
        while True:
            while not exhausted and len(in_flight) < workers:
                if _is_set(abort_event):
                    report.aborted = True
                    exhausted = True
                    break
                task = next(pending, None)
                if task is None:
                    exhausted = True
                    break
                in_flight[executor.submit(transcode, task)] = task

            if not in_flight:
                return

            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                task = in_flight.pop(future)
                try:
                    outcome = future.result()
                except Exception as exc:  # noqa: BLE001
                    outcome = _worker_failure(task, exc)
                yield outcome


def _run_inline(task: GenerationTask) -> FileOutcome:
    try:
        return transcode(task)
    except Exception as exc:  # noqa: BLE001
        return _worker_failure(task, exc)


def _worker_failure(task: GenerationTask, exc: Exception) -> FileOutcome:
    """未预期的异常折算为单个文件的失败记录。"""

    LOGGER.exception("任务执行异常：%s", exc)
    return FileOutcome(
        source_path=task.source_path,
        status="error-worker",
        output_path=task.output_path,
        message=str(exc),
    )


def clean_stale_variants(config: JobConfig, progress_callback: ProgressCallback = None) -> CleanupReport:
    """清理模式入口：删除所有被判定为过期的变体。"""

    variant = config.variant
    variant.validate()
    report = CleanupReport()

    files = collect_files(config, report.warnings)
    report.scanned = len(files)
    stale = [path for path in files if classify(path, variant).kind is PathKind.STALE]
    LOGGER.info("扫描到 %d 个文件，其中 %d 个过期变体", len(files), len(stale))

    total = len(stale)
    for index, path in enumerate(stale, start=1):
        try:
            delete_file(path)
        except ImageWriteError as exc:
            LOGGER.error("删除失败：%s", exc)
            report.failed.append(FileOutcome(source_path=path, status="error-delete", message=str(exc)))
            _emit_progress(progress_callback, index, total, str(exc), status="failed", path=path)
            continue

        report.removed.append(path)
        _emit_progress(progress_callback, index, total, f"已删除 {path.name}", status="removed", path=path)

    return report


def _record_outcome(
    report: RunReport,
    outcome: FileOutcome,
    callback: ProgressCallback,
    completed: int,
    total: int,
) -> None:
    if outcome.status == "created":
        report.created.append(outcome)
        _emit_progress(callback, completed, total, outcome.message, status="created", path=outcome.output_path)
    else:
        LOGGER.error("生成失败 %s: %s", outcome.source_path, outcome.message)
        report.failed.append(outcome)
        _emit_progress(callback, completed, total, outcome.message, status="failed", path=outcome.source_path)


def _is_set(event: Optional[threading.Event]) -> bool:
    return event is not None and event.is_set()


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    message: Optional[str] = None,
    status: str = "running",
    path: Optional[Path] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=completed, message=message, status=status, path=path))
