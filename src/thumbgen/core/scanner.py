"""目录遍历与筛选逻辑。"""

from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import Iterator, Sequence

from thumbgen.core.config import DEFAULT_EXTENSIONS, DERIVATIVE_DIR_NAME, SortMode
from thumbgen.core.exceptions import InvalidConfigurationError

LOGGER = logging.getLogger(__name__)

_HIDDEN_ATTRIBUTE = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0)


def include_folder(path: Path) -> bool:
    """隐藏目录、点开头目录与 @eaDir 永远不进入遍历。"""

    name = path.name
    if name.startswith("."):
        return False
    if name.lower() == DERIVATIVE_DIR_NAME.lower():
        return False
    return not _is_hidden(path)


def _is_hidden(path: Path) -> bool:
    if not _HIDDEN_ATTRIBUTE:
        return False
    try:
        attributes = getattr(path.stat(), "st_file_attributes", 0)
    except OSError:
        return False
    return bool(attributes & _HIDDEN_ATTRIBUTE)


def _creation_time(path: Path) -> float:
    """返回目录创建时间；平台不提供时退回 ctime。"""

    info = path.stat()
    return getattr(info, "st_birthtime", info.st_ctime)


def _ordered_subfolders(folder: Path, sort_mode: SortMode) -> list[Path]:
    if sort_mode not in ("alpha", "recent"):
        raise InvalidConfigurationError(f"未知的排序模式: {sort_mode}")

    try:
        entries = list(folder.iterdir())
    except OSError as exc:
        LOGGER.error("无法读取目录 %s: %s", folder, exc)
        return []

    keyed: list[tuple[float, Path]] = []
    for child in entries:
        # 列出目录与读取属性之间，子目录可能已被删除或改名。
        try:
            if not child.is_dir() or not include_folder(child):
                continue
            created = _creation_time(child) if sort_mode == "recent" else 0.0
        except OSError as exc:
            LOGGER.warning("跳过无法访问的目录 %s: %s", child, exc)
            continue
        keyed.append((created, child))

    if sort_mode == "alpha":
        return sorted((child for _, child in keyed), key=lambda child: child.name.lower())
    keyed.sort(key=lambda item: item[0], reverse=True)
    return [child for _, child in keyed]


def iter_folders(root: Path, recursive: bool, sort_mode: SortMode = "recent") -> Iterator[Path]:
    """深度优先（先序）产出需要处理的目录，根目录总是第一个。"""

    yield root
    if not recursive:
        return
    for child in _ordered_subfolders(root, sort_mode):
        yield from iter_folders(child, recursive, sort_mode)


def list_source_images(folder: Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """列出目录下（不递归）扩展名匹配的图片文件。"""

    wanted = {ext.lower() for ext in extensions}
    try:
        candidates = [
            entry
            for entry in folder.iterdir()
            if entry.suffix.lower() in wanted and entry.is_file()
        ]
    except OSError as exc:
        LOGGER.error("无法读取目录 %s: %s", folder, exc)
        return []
    return sorted(candidates, key=lambda entry: entry.name.lower())
