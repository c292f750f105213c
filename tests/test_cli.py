"""命令行参数解析测试。"""

from __future__ import annotations

import os
from pathlib import Path

from PIL import Image
from typer.testing import CliRunner

from thumbgen.cli.main import app
from thumbgen.core.config import DEFAULT_THUMB_SPECS
from thumbgen.core.paths import thumb_path

runner = CliRunner()


def make_photo(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (200, 100), "gray").save(path)


def test_missing_root_prints_usage_and_exits_cleanly() -> None:
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "Usage: thumbgen <folder>" in result.output


def test_flags_are_case_insensitive_and_order_independent(tmp_path: Path) -> None:
    make_photo(tmp_path / "album" / "photo.jpg")

    result = runner.invoke(app, ["-NET", str(tmp_path), "-R", "-Alpha"])

    assert result.exit_code == 0, result.output
    assert "生成缩略图 1 个" in result.output
    for spec in DEFAULT_THUMB_SPECS:
        destination = thumb_path(tmp_path / "album", "photo.jpg", spec)
        assert destination.exists()
        assert destination.stat().st_mtime_ns == (tmp_path / "album" / "photo.jpg").stat().st_mtime_ns


def test_without_recursion_subfolders_are_ignored(tmp_path: Path) -> None:
    make_photo(tmp_path / "album" / "photo.jpg")

    result = runner.invoke(app, [str(tmp_path), "-net"])

    assert result.exit_code == 0, result.output
    assert "共 0 个文件" in result.output
    assert not (tmp_path / "album" / "@eaDir").exists()


def test_launch_failure_does_not_change_exit_code(tmp_path: Path) -> None:
    make_photo(tmp_path / "photo.jpg")

    result = runner.invoke(app, [str(tmp_path), "-gm", "-v", "--tool-path", str(tmp_path / "missing-gm")])

    assert result.exit_code == 0, result.output
    assert "生成缩略图 0 个" in result.output


def test_report_option_writes_csv(tmp_path: Path) -> None:
    make_photo(tmp_path / "photo.jpg")
    report = tmp_path / "report.csv"

    result = runner.invoke(app, [str(tmp_path), "-net", "--report", str(report)])

    assert result.exit_code == 0, result.output
    assert report.read_text(encoding="utf-8").startswith("source_path,status")


def test_missing_root_folder_is_usage_error(tmp_path: Path) -> None:
    result = runner.invoke(app, [str(tmp_path / "nope")])

    assert result.exit_code != 0


def test_invalid_timeout_is_rejected(tmp_path: Path) -> None:
    result = runner.invoke(app, [str(tmp_path), "--timeout", "0"])

    assert result.exit_code != 0
    assert not os.listdir(tmp_path)
