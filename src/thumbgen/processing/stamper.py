"""转换成功后同步输出文件的修改时间。"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from thumbgen.core.exceptions import StampError
from thumbgen.core.models import ConversionJob, StampResult

LOGGER = logging.getLogger(__name__)


def stamp(job: ConversionJob, modified_ns: int) -> list[StampResult]:
    """把任务中每个已存在的输出的修改时间设为 ``modified_ns``。

    时间取自实际读取源（可能是替代源），下次运行时的新鲜度判断正依赖这一相等关系。
    单个文件失败只记录日志，不影响其他文件，也不回滚已写出的文件。
    """

    results: list[StampResult] = []
    for destination in job.destinations():
        try:
            if not _exists(destination):
                results.append(StampResult(destination=destination, stamped=False, message="输出不存在"))
                continue
            _set_modified(destination, modified_ns)
        except StampError as exc:
            LOGGER.error("%s", exc)
            results.append(StampResult(destination=destination, stamped=False, message=str(exc)))
            continue
        results.append(StampResult(destination=destination, stamped=True))
    return results


def _set_modified(destination: Path, modified_ns: int) -> None:
    try:
        atime_ns = destination.stat().st_atime_ns
        os.utime(destination, ns=(atime_ns, modified_ns))
    except OSError as exc:
        raise StampError(f"无法更新 {destination} 的修改时间，可能是权限问题: {exc}") from exc


def _exists(destination: Path) -> bool:
    try:
        return destination.is_file()
    except OSError as exc:
        raise StampError(f"无法检查输出 {destination}: {exc}") from exc
