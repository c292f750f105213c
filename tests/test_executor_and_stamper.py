"""外部工具执行与时间戳同步的测试。"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest
from PIL import Image

from thumbgen.core.config import RunConfig, ThumbSpec
from thumbgen.core.exceptions import LaunchFailedError, ToolFailedError, ToolTimeoutError
from thumbgen.core.models import ConversionJob, ReadSource, SourceImage, TargetState
from thumbgen.core.paths import thumb_path
from thumbgen.processing import stamper
from thumbgen.processing.executor import ExternalToolExecutor
from thumbgen.processing.job_builder import build_job
from thumbgen.processing.stamper import stamp
from thumbgen.processing.staleness import evaluate

T0 = 1_600_000_000 * 10**9
T1 = 1_700_000_000 * 10**9

SPECS = (
    ThumbSpec(1280, 1280, "SYNOPHOTO_THUMB_XL.jpg", use_as_source=True),
    ThumbSpec(640, 640, "SYNOPHOTO_THUMB_B.jpg"),
    ThumbSpec(120, 120, "SYNOPHOTO_THUMB_S.jpg"),
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="测试工具是 POSIX shell 脚本")

FAKE_TOOL = """#!/bin/sh
prev=""
last=""
for arg in "$@"; do
  if [ "$prev" = "-write" ]; then : > "$arg"; fi
  prev="$arg"
  last="$arg"
done
: > "$last"
echo "wrote $last"
echo "warning from tool" >&2
exit {exit_code}
"""


def write_tool(directory: Path, body: str) -> Path:
    tool = directory / "fake-convert"
    tool.write_text(body)
    tool.chmod(0o755)
    return tool


def make_source(directory: Path, modified_ns: int = T0) -> SourceImage:
    path = directory / "photo.jpg"
    Image.new("RGB", (32, 32), "teal").save(path)
    os.utime(path, ns=(modified_ns, modified_ns))
    return SourceImage.from_path(path)


def make_job(source: SourceImage) -> ConversionJob:
    targets = evaluate(source, SPECS)
    return build_job(ReadSource(path=source.path, modified_ns=source.modified_ns), targets)


@posix_only
def test_executor_runs_tool_once_and_captures_both_streams(tmp_path: Path) -> None:
    tool = write_tool(tmp_path, FAKE_TOOL.format(exit_code=0))
    source = make_source(tmp_path)
    job = make_job(source)
    executor = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tool, verbose=True))

    result = executor.run(job)

    assert result.return_code == 0
    assert sorted(result.output) == sorted([f"wrote {job.writes[-1].destination}", "warning from tool"])
    assert all(path.exists() for path in job.destinations())


def test_executor_command_starts_with_configured_executable(tmp_path: Path) -> None:
    source = make_source(tmp_path)
    executor = ExternalToolExecutor(RunConfig(root=tmp_path, tool="graphicsmagick"))

    command = executor.command_for(make_job(source))

    assert command[:2] == ["gm", "convert"]


def test_missing_executable_raises_launch_failed(tmp_path: Path) -> None:
    source = make_source(tmp_path)
    executor = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tmp_path / "no-such-tool"))

    with pytest.raises(LaunchFailedError):
        executor.run(make_job(source))


def test_noop_job_never_launches_process(tmp_path: Path) -> None:
    executor = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tmp_path / "no-such-tool"))
    job = ConversionJob(read_source=ReadSource(path=tmp_path / "photo.jpg", modified_ns=T0))

    result = executor.run(job)

    assert result.return_code is None
    assert result.output == []


@posix_only
def test_non_zero_exit_is_success_unless_strict(tmp_path: Path) -> None:
    tool = write_tool(tmp_path, FAKE_TOOL.format(exit_code=3))
    source = make_source(tmp_path)

    lenient = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tool))
    assert lenient.run(make_job(source)).return_code == 3

    strict = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tool, strict_exit=True))
    with pytest.raises(ToolFailedError):
        strict.run(make_job(source))


@posix_only
def test_timeout_kills_hung_tool(tmp_path: Path) -> None:
    tool = write_tool(tmp_path, "#!/bin/sh\nexec sleep 30\n")
    source = make_source(tmp_path)
    executor = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tool, timeout=0.2))

    with pytest.raises(ToolTimeoutError):
        executor.run(make_job(source))


def test_stamp_sets_every_written_destination_to_given_mtime(tmp_path: Path) -> None:
    source = make_source(tmp_path)
    job = make_job(source)
    for path in job.destinations():
        path.write_bytes(b"thumb")

    results = stamp(job, source.modified_ns)

    assert all(result.stamped for result in results)
    assert all(path.stat().st_mtime_ns == T0 for path in job.destinations())
    assert all(target.state is TargetState.FRESH for target in evaluate(source, SPECS))


def test_stamp_reports_missing_outputs(tmp_path: Path) -> None:
    source = make_source(tmp_path)
    job = make_job(source)
    job.destinations()[0].write_bytes(b"thumb")

    results = stamp(job, T0)

    assert [result.stamped for result in results] == [True, False, False]


def test_stamp_failure_does_not_stop_remaining_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = make_source(tmp_path)
    job = make_job(source)
    for path in job.destinations():
        path.write_bytes(b"thumb")
    denied = job.destinations()[0]
    real_utime = os.utime

    def fake_utime(path, *args, **kwargs):
        if Path(path) == denied:
            raise PermissionError("denied")
        return real_utime(path, *args, **kwargs)

    monkeypatch.setattr(stamper.os, "utime", fake_utime)

    results = stamp(job, T0)

    assert [result.stamped for result in results] == [False, True, True]
    assert "denied" in (results[0].message or "")
    assert job.destinations()[1].stat().st_mtime_ns == T0


def test_stamping_from_alternate_source_uses_its_mtime(tmp_path: Path) -> None:
    """替代源与原图修改时间不一致时，输出按替代源盖时间戳，随后对原图判断仍为过期。

    这是预期行为：新鲜度始终以原图的修改时间为准。
    """

    source = make_source(tmp_path, T0)
    alt = thumb_path(tmp_path, "photo.jpg", SPECS[0])
    alt.parent.mkdir(parents=True)
    alt.write_bytes(b"xl")
    os.utime(alt, ns=(T1, T1))

    targets = evaluate(source, SPECS)
    job = build_job(ReadSource(path=alt, modified_ns=T1, is_alternate=True), targets[1:])
    for path in job.destinations():
        path.write_bytes(b"thumb")

    stamp(job, job.read_source.modified_ns)

    assert all(path.stat().st_mtime_ns == T1 for path in job.destinations())
    states = [target.state for target in evaluate(source, SPECS)]
    assert states == [TargetState.STALE, TargetState.STALE, TargetState.STALE]


def test_unreadable_output_is_reported_not_raised(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = make_source(tmp_path)
    job = make_job(source)
    for path in job.destinations():
        path.write_bytes(b"thumb")
    denied = job.destinations()[1]
    real_is_file = Path.is_file

    def fake_is_file(self: Path) -> bool:
        if self == denied:
            raise PermissionError(13, "Permission denied", str(self))
        return real_is_file(self)

    monkeypatch.setattr(Path, "is_file", fake_is_file)

    results = stamp(job, T0)

    assert [result.stamped for result in results] == [True, False, True]
    assert "Permission denied" in (results[1].message or "")


@posix_only
@pytest.mark.parametrize("verbose", [True, False])
def test_tool_output_is_echoed_only_when_verbose(
    tmp_path: Path, caplog: pytest.LogCaptureFixture, verbose: bool
) -> None:
    tool = write_tool(tmp_path, FAKE_TOOL.format(exit_code=0))
    source = make_source(tmp_path)
    executor = ExternalToolExecutor(RunConfig(root=tmp_path, tool_path=tool, verbose=verbose))
    caplog.set_level(logging.DEBUG, logger="thumbgen.processing.executor")

    result = executor.run(make_job(source))

    assert "warning from tool" in result.output
    echoed = [record.getMessage() for record in caplog.records]
    assert ("warning from tool" in echoed) is verbose
