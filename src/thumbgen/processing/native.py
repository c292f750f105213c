"""基于 Pillow 的进程内转换后端。"""

from __future__ import annotations

import logging

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from thumbgen.core.config import JPEG_QUALITY, RunConfig
from thumbgen.core.exceptions import ToolFailedError
from thumbgen.core.models import ConversionJob, ExecutionResult

LOGGER = logging.getLogger(__name__)

_RESAMPLING = getattr(Image, "Resampling", Image)

# 与命令行参数 -unsharp 0.5x0.5+1.25+0.0 对应。
_UNSHARP = ImageFilter.UnsharpMask(radius=0.5, percent=125, threshold=0)


class PillowExecutor:
    """读取一次源图，按顺序逐级缩小并写出每个目标。

    尺寸只缩不放，与 ``-thumbnail WxH>`` 一致。
    """

    def __init__(self, config: RunConfig) -> None:
        self.config = config

    def run(self, job: ConversionJob) -> ExecutionResult:
        if job.is_noop:
            return ExecutionResult()

        source = job.read_source.path
        LOGGER.debug("  Pillow 读取: %s", source)
        output: list[str] = []
        try:
            with Image.open(source) as img:
                # JPEG 解码时直接按最大目标尺寸缩小，相当于 jpeg:size 提示。
                img.draft("RGB", job.size_hint)
                img.load()
                current = ImageOps.exif_transpose(img)
                if current.mode != "RGB":
                    current = current.convert("RGB")
                current = current.filter(_UNSHARP)

                for write in job.writes:
                    current.thumbnail((write.width, write.height), _RESAMPLING.LANCZOS)
                    current.save(write.destination, format="JPEG", quality=JPEG_QUALITY)
                    output.append(f"{write.destination} {current.width}x{current.height}")
        except (UnidentifiedImageError, OSError) as exc:
            raise ToolFailedError(f"Pillow 无法转换 {source}: {exc}") from exc

        for line in output:
            LOGGER.debug("%s", line)
        return ExecutionResult(return_code=0, output=output)
