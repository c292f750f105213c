"""核心数据模型定义。"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from thumbgen.core.config import ThumbSpec
from thumbgen.core.exceptions import PlanningError


class TargetState(enum.Enum):
    FRESH = "fresh"
    STALE = "stale"
    BLOCKED = "blocked"


@dataclass(frozen=True, slots=True)
class SourceImage:
    """待处理的原图，只读。"""

    path: Path
    modified_ns: int
    directory: Path
    base_name: str

    @classmethod
    def from_path(cls, path: Path) -> "SourceImage":
        return cls(
            path=path,
            modified_ns=path.stat().st_mtime_ns,
            directory=path.parent,
            base_name=path.name,
        )


@dataclass(slots=True)
class ThumbTarget:
    """某张原图在某个规格下的输出目标，每次运行重新计算。"""

    spec: ThumbSpec
    destination: Path
    state: TargetState
    modified_ns: Optional[int] = None
    error: Optional[PlanningError] = None


@dataclass(frozen=True, slots=True)
class ReadSource:
    """实际被解码的文件：原图或一张新鲜的大尺寸缩略图。"""

    path: Path
    modified_ns: int
    is_alternate: bool = False


@dataclass(frozen=True, slots=True)
class WriteDirective:
    target: ThumbTarget
    width: int
    height: int

    @property
    def destination(self) -> Path:
        return self.target.destination


@dataclass(slots=True)
class ConversionJob:
    """一次转换调用：读取一次，按顺序写出所有过期目标。"""

    read_source: ReadSource
    writes: list[WriteDirective] = field(default_factory=list)
    size_hint: tuple[int, int] = (0, 0)

    @property
    def is_noop(self) -> bool:
        return not self.writes

    def destinations(self) -> list[Path]:
        return [write.destination for write in self.writes]


@dataclass(slots=True)
class ExecutionResult:
    """转换工具的执行结果。"""

    return_code: Optional[int] = None
    output: list[str] = field(default_factory=list)


@dataclass(slots=True)
class StampResult:
    destination: Path
    stamped: bool
    message: Optional[str] = None


@dataclass(slots=True)
class FileOutcome:
    """记录单个文件的处理结果（用于汇总/报告）。"""

    source_path: Path
    status: str
    read_source: Optional[Path] = None
    written: list[Path] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def converted(self) -> bool:
        return self.status == "converted"


@dataclass(slots=True)
class FolderSummary:
    folder: Path
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def converted(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.converted)


@dataclass(slots=True)
class RunSummary:
    """整次运行的汇总。"""

    folders: list[FolderSummary] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(folder.total for folder in self.folders)

    @property
    def converted(self) -> int:
        return sum(folder.converted for folder in self.folders)

    def all_outcomes(self) -> list[FileOutcome]:
        """返回所有结果记录，方便生成报告。"""

        return [outcome for folder in self.folders for outcome in folder.outcomes]


@dataclass(slots=True)
class ProgressUpdate:
    """目录遍历的进度信息。"""

    total: int
    completed: int
    message: Optional[str] = None
