"""判断每个缩略图目标是否需要重新生成。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from thumbgen.core.config import ThumbSpec
from thumbgen.core.exceptions import PlanningError
from thumbgen.core.models import SourceImage, TargetState, ThumbTarget
from thumbgen.core.paths import thumb_path

LOGGER = logging.getLogger(__name__)


def evaluate(source: SourceImage, specs: Sequence[ThumbSpec]) -> list[ThumbTarget]:
    """按规格顺序为原图计算所有目标及其新鲜度。

    目标存在且修改时间与原图 *完全相等* 时才算新鲜，更早或更晚都视为过期。
    输出目录无法创建时该目标标记为 BLOCKED，其余目标照常判断。
    """

    targets: list[ThumbTarget] = []
    for spec in specs:
        destination = thumb_path(source.directory, source.base_name, spec)

        try:
            _ensure_parent(destination)
        except PlanningError as exc:
            LOGGER.error("%s", exc)
            targets.append(ThumbTarget(spec=spec, destination=destination, state=TargetState.BLOCKED, error=exc))
            continue

        modified_ns = _modified_ns(destination)
        if modified_ns is not None and modified_ns == source.modified_ns:
            LOGGER.debug("文件 %s 已存在且修改时间一致", destination)
            state = TargetState.FRESH
        else:
            state = TargetState.STALE

        targets.append(ThumbTarget(spec=spec, destination=destination, state=state, modified_ns=modified_ns))

    return targets


def _ensure_parent(destination: Path) -> None:
    parent = destination.parent
    try:
        if parent.is_dir():
            return
        LOGGER.debug("创建目录: %s", parent)
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PlanningError(f"无法创建目录 {parent}: {exc}") from exc


def _modified_ns(path: Path) -> Optional[int]:
    try:
        if not path.is_file():
            return None
        return path.stat().st_mtime_ns
    except OSError:
        return None
