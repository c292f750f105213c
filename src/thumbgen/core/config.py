"""运行配置与缩略图规格定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from thumbgen.core.exceptions import InvalidConfigurationError

SortMode = str  # recent | alpha
ToolVariant = str  # imagemagick | graphicsmagick | pillow

VALID_SORT_MODES = {"recent", "alpha"}
VALID_TOOLS = {"imagemagick", "graphicsmagick", "pillow"}

# Synology 存放缩略图的保留目录，遍历时始终跳过。
DERIVATIVE_DIR_NAME = "@eaDir"

# 所有输出共用的质量与锐化参数。
JPEG_QUALITY = 90
UNSHARP = "0.5x0.5+1.25+0.0"


@dataclass(frozen=True, slots=True)
class ThumbSpec:
    """单个目标分辨率。"""

    width: int
    height: int
    file_name: str
    use_as_source: bool = False


# Photo Station / Moments 期望的分辨率集合，按从大到小排列。
DEFAULT_THUMB_SPECS: tuple[ThumbSpec, ...] = (
    ThumbSpec(1280, 1280, "SYNOPHOTO_THUMB_XL.jpg", use_as_source=True),
    ThumbSpec(800, 800, "SYNOPHOTO_THUMB_L.jpg", use_as_source=True),
    ThumbSpec(640, 640, "SYNOPHOTO_THUMB_B.jpg"),
    ThumbSpec(320, 320, "SYNOPHOTO_THUMB_M.jpg"),
    ThumbSpec(160, 120, "SYNOPHOTO_THUMB_PREVIEW.jpg"),
    ThumbSpec(120, 120, "SYNOPHOTO_THUMB_S.jpg"),
)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg")


@dataclass(frozen=True, slots=True)
class RunConfig:
    """一次运行的全部配置，启动时构造后不再修改。"""

    root: Path
    recursive: bool = False
    verbose: bool = False
    sort_mode: SortMode = "recent"
    tool: ToolVariant = "imagemagick"
    tool_path: Optional[Path] = None
    strict_exit: bool = False
    timeout: Optional[float] = None
    specs: Sequence[ThumbSpec] = field(default_factory=lambda: DEFAULT_THUMB_SPECS)
    extensions: Sequence[str] = field(default_factory=lambda: DEFAULT_EXTENSIONS)
    report_path: Optional[Path] = None


def validate_config(config: RunConfig) -> RunConfig:
    """检查配置取值，非法时抛出 InvalidConfigurationError。"""

    if config.sort_mode not in VALID_SORT_MODES:
        raise InvalidConfigurationError(f"未知的排序模式: {config.sort_mode}")
    if config.tool not in VALID_TOOLS:
        raise InvalidConfigurationError(f"未知的转换工具: {config.tool}")
    if config.timeout is not None and config.timeout <= 0:
        raise InvalidConfigurationError("timeout 必须大于 0")
    if not config.specs:
        raise InvalidConfigurationError("至少需要一个缩略图规格")
    for spec in config.specs:
        if spec.width <= 0 or spec.height <= 0:
            raise InvalidConfigurationError(f"缩略图尺寸必须大于 0: {spec.file_name}")
    return config
