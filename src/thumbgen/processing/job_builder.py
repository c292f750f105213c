"""根据过期目标组装一次转换调用。"""

from __future__ import annotations

from typing import Sequence

from thumbgen.core.config import JPEG_QUALITY, UNSHARP, ToolVariant
from thumbgen.core.exceptions import InvalidConfigurationError
from thumbgen.core.models import ConversionJob, ReadSource, TargetState, ThumbTarget, WriteDirective


def build_job(read_source: ReadSource, targets: Sequence[ThumbTarget]) -> ConversionJob:
    """只挑出 STALE 目标，按规格顺序生成写出指令。

    没有过期目标时返回空任务，调用方据此跳过执行。
    """

    writes = [
        WriteDirective(target=target, width=target.spec.width, height=target.spec.height)
        for target in targets
        if target.state is TargetState.STALE
    ]
    if not writes:
        return ConversionJob(read_source=read_source)

    if any(write.destination == read_source.path for write in writes):
        raise InvalidConfigurationError(f"读取源不能同时作为输出: {read_source.path}")

    size_hint = (max(write.width for write in writes), max(write.height for write in writes))
    return ConversionJob(read_source=read_source, writes=writes, size_hint=size_hint)


def compose_arguments(job: ConversionJob, variant: ToolVariant) -> list[str]:
    """生成外部工具的参数列表（不含可执行文件本身）。

    解码尺寸提示让工具一次性按最大目标分配内存。每个输出都带 ``-auto-orient``，
    以规避 Photo Station 不识别 EXIF 旋转的问题。最后一个输出作为终端输出，不带 ``-write``。
    """

    if job.is_noop:
        return []

    hint_w, hint_h = job.size_hint
    source = str(job.read_source.path)
    if variant == "imagemagick":
        args = ["-define", f"jpeg:size={hint_w}x{hint_h}", source]
    elif variant == "graphicsmagick":
        args = ["convert", "-size", f"{hint_w}x{hint_h}", source]
    else:
        raise InvalidConfigurationError(f"工具 {variant} 不接受命令行参数")

    args += ["-quality", str(JPEG_QUALITY), "-unsharp", UNSHARP]

    last_index = len(job.writes) - 1
    for index, write in enumerate(job.writes):
        args += ["-thumbnail", f"{write.width}x{write.height}>", "-auto-orient"]
        if index != last_index:
            args.append("-write")
        args.append(str(write.destination))
    return args
