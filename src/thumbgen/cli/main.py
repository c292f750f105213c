"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from thumbgen.core.config import RunConfig, validate_config
from thumbgen.core.exceptions import InvalidConfigurationError
from thumbgen.core.models import ProgressUpdate, RunSummary
from thumbgen.processing.pipeline import process_tree
from thumbgen.utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)

USAGE = """Usage: thumbgen <folder> [options]
Generates Synology thumbnails within the specified folder. Options:
 -v      Enable verbose logging.
 -r      Recurse into subdirectories.
 -alpha  Process folders in alphabetic order (default is most recently created first).
 -gm     Use GraphicsMagick instead of ImageMagick.
 -net    Convert in-process with Pillow instead of an external tool."""

app = typer.Typer(help="为 Synology Photo Station 批量生成缩略图。", add_completion=False)


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("处理目录", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


def _select_tool(use_gm: bool, use_native: bool) -> str:
    if use_native:
        return "pillow"
    if use_gm:
        return "graphicsmagick"
    return "imagemagick"


def _log_flags(config: RunConfig) -> None:
    if config.recursive:
        LOGGER.info("已启用递归模式。")
    if config.sort_mode == "alpha":
        LOGGER.info("已启用字母顺序排序。")
    else:
        LOGGER.info("已启用最近创建优先排序。")
    if config.verbose:
        LOGGER.info("已启用详细日志。")
    if config.tool == "graphicsmagick":
        LOGGER.info("已启用 GraphicsMagick。")
    elif config.tool == "pillow":
        LOGGER.info("已启用 Pillow 内置转换。")


@app.command(context_settings={"token_normalize_func": lambda token: token.lower()})
def run_cli(  # noqa: PLR0913
    root: Optional[Path] = typer.Argument(None, help="要处理的图片目录"),
    recursive: bool = typer.Option(False, "-r", help="递归处理子目录"),
    verbose: bool = typer.Option(False, "-v", help="输出详细日志"),
    alpha: bool = typer.Option(False, "-alpha", help="按字母顺序处理目录（默认最近创建优先）"),
    use_gm: bool = typer.Option(False, "-gm", help="使用 GraphicsMagick 代替 ImageMagick"),
    use_native: bool = typer.Option(False, "-net", help="使用 Pillow 在进程内转换"),
    strict: bool = typer.Option(False, "--strict", help="外部工具非零退出码视为失败"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="单次转换的最长等待秒数"),
    tool_path: Optional[Path] = typer.Option(None, "--tool-path", help="外部工具可执行文件路径"),
    report: Optional[Path] = typer.Option(None, "--report", help="写出 CSV 处理报告"),
) -> None:
    """生成缩略图。"""

    if root is None:
        typer.echo(USAGE)
        raise typer.Exit()

    setup_logging(verbose)

    try:
        config = validate_config(
            RunConfig(
                root=root.expanduser().resolve(),
                recursive=recursive,
                verbose=verbose,
                sort_mode="alpha" if alpha else "recent",
                tool=_select_tool(use_gm, use_native),
                tool_path=tool_path,
                strict_exit=strict,
                timeout=timeout,
                report_path=report.expanduser().resolve() if report else None,
            )
        )
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not config.root.is_dir():
        raise typer.BadParameter(f"目录不存在: {config.root}")

    _log_flags(config)
    result = _run(config)
    typer.echo(f"处理完成：共 {result.processed} 个文件，生成缩略图 {result.converted} 个。")


def _run(config: RunConfig) -> RunSummary:
    if config.verbose:
        return process_tree(config)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )
    with progress:
        return process_tree(config, progress_callback=_build_progress_callback(progress))


if __name__ == "__main__":
    app()
