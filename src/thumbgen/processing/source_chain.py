"""挑选最便宜的读取源。"""

from __future__ import annotations

from typing import Sequence

from thumbgen.core.models import ReadSource, SourceImage, TargetState, ThumbTarget


def select_read_source(source: SourceImage, targets: Sequence[ThumbTarget]) -> tuple[ReadSource, bool]:
    """返回 ``(读取源, 是否使用了替代源)``。

    按规格顺序取第一个既新鲜又允许作为源的缩略图；新鲜意味着其内容与当前原图一致，
    解码它比重新解码整张原图更省。找不到时返回原图本身。
    """

    for target in targets:
        if target.state is TargetState.FRESH and target.spec.use_as_source:
            modified_ns = target.modified_ns if target.modified_ns is not None else source.modified_ns
            return ReadSource(path=target.destination, modified_ns=modified_ns, is_alternate=True), True

    return ReadSource(path=source.path, modified_ns=source.modified_ns), False
