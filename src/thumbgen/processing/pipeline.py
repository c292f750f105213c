"""处理流水线：遍历目录，对每张图片判断新鲜度、组装任务、执行并同步时间戳。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from thumbgen.core.config import RunConfig
from thumbgen.core.exceptions import ExecutionError, LaunchFailedError
from thumbgen.core.models import (
    FileOutcome,
    FolderSummary,
    ProgressUpdate,
    RunSummary,
    SourceImage,
    TargetState,
    ThumbTarget,
)
from thumbgen.core.report import write_csv_report
from thumbgen.core.scanner import iter_folders, list_source_images
from thumbgen.processing.executor import ConversionBackend, ExternalToolExecutor
from thumbgen.processing.job_builder import build_job
from thumbgen.processing.native import PillowExecutor
from thumbgen.processing.source_chain import select_read_source
from thumbgen.processing.staleness import evaluate
from thumbgen.processing.stamper import stamp

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def create_backend(config: RunConfig) -> ConversionBackend:
    """根据配置选择转换后端。"""

    if config.tool == "pillow":
        return PillowExecutor(config)
    return ExternalToolExecutor(config)


def process_file(path: Path, config: RunConfig, backend: ConversionBackend) -> FileOutcome:
    """处理单张图片，任何错误都只影响这一张。"""

    try:
        source = SourceImage.from_path(path)
    except OSError as exc:
        LOGGER.error("无法读取文件信息 %s: %s", path, exc)
        return FileOutcome(source_path=path, status="error-source", message=str(exc))

    targets = evaluate(source, config.specs)
    blocked = [target for target in targets if target.state is TargetState.BLOCKED]

    read_source, used_alt = select_read_source(source, targets)
    job = build_job(read_source, targets)
    if job.is_noop:
        LOGGER.debug("所有分辨率的缩略图都已存在，跳过 %s", path.name)
        return FileOutcome(
            source_path=path,
            status="fresh" if not blocked else "error-planning",
            message=_blocked_note(blocked),
        )

    if used_alt:
        LOGGER.debug("文件 %s 已存在，用作更小缩略图的源", read_source.path.name)
    LOGGER.debug("转换文件 %s", read_source.path)

    try:
        backend.run(job)
    except LaunchFailedError as exc:
        LOGGER.error("无法启动进程: %s", exc)
        return FileOutcome(source_path=path, status="error-launch", read_source=read_source.path, message=str(exc))
    except ExecutionError as exc:
        LOGGER.error("转换失败: %s", exc)
        return FileOutcome(source_path=path, status="error-tool", read_source=read_source.path, message=str(exc))

    stamps = stamp(job, read_source.modified_ns)
    notes = [f"{result.destination.name}: {result.message}" for result in stamps if not result.stamped]
    blocked_note = _blocked_note(blocked)
    if blocked_note:
        notes.append(blocked_note)

    return FileOutcome(
        source_path=path,
        status="converted",
        read_source=read_source.path,
        written=[result.destination for result in stamps if result.stamped],
        message="; ".join(notes) or None,
    )


def process_folder(folder: Path, config: RunConfig, backend: ConversionBackend) -> FolderSummary:
    """处理单个目录下的图片（不递归）。"""

    summary = FolderSummary(folder=folder)
    files = list_source_images(folder, config.extensions)
    total = len(files)

    for index, path in enumerate(files, start=1):
        LOGGER.debug("分析 (%d/%d) %s，共 %d 个尺寸", index, total, path, len(config.specs))
        outcome = process_file(path, config, backend)
        if outcome.converted:
            LOGGER.info("已转换 (%d/%d) %s", index, total, path)
        summary.outcomes.append(outcome)

    LOGGER.info("目录完成：%d/%d 个文件生成了缩略图。", summary.converted, summary.total)
    return summary


def process_tree(
    config: RunConfig,
    backend: Optional[ConversionBackend] = None,
    progress_callback: ProgressCallback = None,
) -> RunSummary:
    """遍历入口：按配置的顺序深度优先处理每个目录。"""

    backend = backend or create_backend(config)
    folders = list(iter_folders(config.root, config.recursive, config.sort_mode))
    total = len(folders)
    LOGGER.info("开始为目录 %s 生成 Synology 缩略图", config.root)

    result = RunSummary()
    for index, folder in enumerate(folders, start=1):
        LOGGER.info("处理目录 (%d/%d) %s...", index, total, folder)
        result.folders.append(process_folder(folder, config, backend))
        _emit_progress(progress_callback, index, total, f"完成 {folder}")

    if config.report_path is not None:
        _write_report(config.report_path, result)

    LOGGER.info("缩略图生成完成：%d/%d 个文件已转换。", result.converted, result.processed)
    return result


def _blocked_note(blocked: list[ThumbTarget]) -> Optional[str]:
    if not blocked:
        return None
    return "无法准备: " + ", ".join(target.spec.file_name for target in blocked)


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=completed, message=message))


def _write_report(report_path: Path, result: RunSummary) -> None:
    try:
        write_csv_report(result.all_outcomes(), report_path)
    except OSError as exc:
        LOGGER.error("写入报告失败：%s", exc)
