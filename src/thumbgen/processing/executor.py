"""调用外部图像工具执行转换任务。"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from typing import IO, Optional, Protocol

from thumbgen.core.config import RunConfig
from thumbgen.core.exceptions import LaunchFailedError, ToolFailedError, ToolTimeoutError
from thumbgen.core.models import ConversionJob, ExecutionResult
from thumbgen.processing.job_builder import compose_arguments

LOGGER = logging.getLogger(__name__)


class ConversionBackend(Protocol):
    def run(self, job: ConversionJob) -> ExecutionResult:
        ...


def resolve_executable(config: RunConfig) -> str:
    """确定要启动的可执行文件；ImageMagick 7 优先使用 ``magick``。"""

    if config.tool_path is not None:
        return str(config.tool_path)
    if config.tool == "graphicsmagick":
        return "gm"
    return shutil.which("magick") or "convert"


class ExternalToolExecutor:
    """每个任务启动一次外部进程，并逐行收集其输出。

    默认沿用"进程已启动并等待结束即成功"的判定；``strict_exit`` 打开后，
    非零退出码视为失败。
    """

    def __init__(self, config: RunConfig) -> None:
        self.config = config
        self.executable = resolve_executable(config)

    def command_for(self, job: ConversionJob) -> list[str]:
        return [self.executable, *compose_arguments(job, self.config.tool)]

    def run(self, job: ConversionJob) -> ExecutionResult:
        if job.is_noop:
            return ExecutionResult()

        command = self.command_for(job)
        LOGGER.debug("  执行: %s", subprocess.list2cmdline(command))

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            raise LaunchFailedError(f"无法启动进程 {self.executable}: {exc}") from exc

        output: list[str] = []
        lock = threading.Lock()
        readers = [
            threading.Thread(target=self._drain, args=(stream, output, lock), daemon=True)
            for stream in (process.stdout, process.stderr)
        ]
        for reader in readers:
            reader.start()

        try:
            return_code = process.wait(timeout=self.config.timeout)
        except subprocess.TimeoutExpired as exc:
            process.kill()
            process.wait()
            raise ToolTimeoutError(
                f"{self.executable} 超过 {self.config.timeout} 秒未结束，已终止: {job.read_source.path}"
            ) from exc
        finally:
            for reader in readers:
                reader.join()

        LOGGER.debug("执行完成，退出码 %s", return_code)
        if self.config.strict_exit and return_code != 0:
            raise ToolFailedError(f"{self.executable} 退出码 {return_code}: {job.read_source.path}")
        return ExecutionResult(return_code=return_code, output=output)

    def _drain(self, stream: Optional[IO[str]], output: list[str], lock: threading.Lock) -> None:
        if stream is None:
            return
        with stream:
            for raw in stream:
                line = raw.rstrip("\r\n")
                if not line:
                    continue
                with lock:
                    output.append(line)
                if self.config.verbose:
                    LOGGER.debug("%s", line)
