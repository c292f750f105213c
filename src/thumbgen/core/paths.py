"""缩略图输出路径的计算。"""

from __future__ import annotations

from pathlib import Path

from thumbgen.core.config import DERIVATIVE_DIR_NAME, ThumbSpec


def thumb_path(directory: Path, base_name: str, spec: ThumbSpec) -> Path:
    """返回 ``<directory>/@eaDir/<base_name>/<spec.file_name>``，不访问文件系统。"""

    return Path(directory) / DERIVATIVE_DIR_NAME / base_name / spec.file_name
