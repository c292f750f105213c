"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from thumbgen.core.models import FileOutcome

HEADER = ["source_path", "status", "read_source", "written", "message"]


def write_csv_report(outcomes: Iterable[FileOutcome], report_path: Path) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in outcomes:
            writer.writerow(
                [
                    str(record.source_path),
                    record.status,
                    str(record.read_source) if record.read_source else "",
                    ";".join(path.name for path in record.written),
                    record.message or "",
                ]
            )
    return report_path
