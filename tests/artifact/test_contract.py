"""Behavior every backend must share, run against each implementation."""

import threading
from pathlib import Path

import pytest

from artifact.backends.protocols import Backend
from artifact.exceptions import (
    ArtifactAlreadyExistsError,
    ArtifactNotFoundError,
    ErrorKind,
    LocalPathError,
    TransferCancelledError,
)

KEY = "artifacts/projects/p1/report.txt"


def make_tree(root: Path) -> dict[str, bytes]:
    """Create files at several depths and return their relative contents."""
    files = {
        "a.txt": b"alpha",
        "sub/b.txt": b"bravo!",
        "sub/deeper/c.bin": bytes(range(256)),
        "z/empty.txt": b"",
    }
    for relative, data in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    (root / "empty-dir").mkdir()
    return files


def test_protocol_compliance(any_backend: Backend) -> None:
    """Every implementation satisfies the Backend protocol."""
    assert isinstance(any_backend, Backend)


def test_report_scenario(any_backend: Backend, tmp_path: Path) -> None:
    """Push, conflicting re-push, pull, yank of a single report."""
    report = tmp_path / "report.txt"
    report.write_text("hello world")

    stats = any_backend.push(report, KEY)
    assert (stats.file_count, stats.total_size) == (1, 11)
    assert any_backend.exists(KEY) is True

    with pytest.raises(ArtifactAlreadyExistsError) as exc_info:
        any_backend.push(report, KEY)
    assert exc_info.value.kind == ErrorKind.ALREADY_EXISTS

    out = tmp_path / "out.txt"
    stats = any_backend.pull(KEY, out)
    assert out.read_text() == "hello world"
    assert (stats.file_count, stats.total_size) == (1, 11)

    any_backend.yank(KEY)
    assert any_backend.exists(KEY) is False


def test_forced_push_overwrites(any_backend: Backend, tmp_path: Path) -> None:
    """A forced re-push replaces content instead of appending."""
    source = tmp_path / "data.txt"
    source.write_text("first version")
    any_backend.push(source, KEY)

    source.write_text("v2")
    any_backend.push(source, KEY, force=True)

    out = tmp_path / "out.txt"
    any_backend.pull(KEY, out)
    assert out.read_text() == "v2"


def test_directory_round_trip(any_backend: Backend, tmp_path: Path) -> None:
    """Directory push then pull reproduces relative paths and contents."""
    source = tmp_path / "src"
    files = make_tree(source)

    stats = any_backend.push(source, "artifacts/jobs/j1/build")
    assert stats.file_count == len(files)
    assert stats.total_size == sum(len(data) for data in files.values())

    target = tmp_path / "copy"
    stats = any_backend.pull("artifacts/jobs/j1/build", target)
    assert stats.file_count == len(files)

    for relative, data in files.items():
        assert (target / relative).read_bytes() == data
    assert not (target / "empty-dir").exists()


def test_pull_missing_prefix_writes_nothing(any_backend: Backend, tmp_path: Path) -> None:
    """Pulling a prefix with no objects fails and leaves no files."""
    target = tmp_path / "target"

    with pytest.raises(ArtifactNotFoundError) as exc_info:
        any_backend.pull("artifacts/jobs/j1/missing", target)

    assert exc_info.value.kind == ErrorKind.NOT_FOUND
    assert not target.exists()


def test_pull_refuses_existing_destination(any_backend: Backend, tmp_path: Path) -> None:
    """Unforced pull over an existing file fails without touching it."""
    source = tmp_path / "report.txt"
    source.write_text("remote content")
    any_backend.push(source, KEY)

    out = tmp_path / "out.txt"
    out.write_text("local content")

    with pytest.raises(ArtifactAlreadyExistsError) as exc_info:
        any_backend.pull(KEY, out)
    assert exc_info.value.location == "local"
    assert out.read_text() == "local content"

    any_backend.pull(KEY, out, force=True)
    assert out.read_text() == "remote content"


def test_yank_is_idempotent(any_backend: Backend) -> None:
    """Yanking something that never existed is not an error."""
    any_backend.yank("artifacts/workflows/w1/never-pushed")
    assert any_backend.exists("artifacts/workflows/w1/never-pushed") is False


def test_yank_directory(any_backend: Backend, tmp_path: Path) -> None:
    """Yank removes every object under the prefix and nothing else."""
    source = tmp_path / "src"
    make_tree(source)
    any_backend.push(source, "artifacts/jobs/j1/build")

    keep = tmp_path / "keep.txt"
    keep.write_text("keep")
    any_backend.push(keep, "artifacts/jobs/j1/build-notes.txt")

    any_backend.yank("artifacts/jobs/j1/build")

    assert any_backend.exists("artifacts/jobs/j1/build") is False
    assert any_backend.exists("artifacts/jobs/j1/build-notes.txt") is True


def test_exists_for_directory_prefix(any_backend: Backend, tmp_path: Path) -> None:
    """exists() is true for a prefix that only holds nested objects."""
    source = tmp_path / "src"
    make_tree(source)
    any_backend.push(source, "artifacts/jobs/j1/build")

    assert any_backend.exists("artifacts/jobs/j1/build") is True
    assert any_backend.exists("artifacts/jobs/j1/bui") is False


def test_push_missing_local_path(any_backend: Backend, tmp_path: Path) -> None:
    """Pushing a path that does not exist fails before any upload."""
    with pytest.raises(LocalPathError):
        any_backend.push(tmp_path / "nope", KEY)
    assert any_backend.exists(KEY) is False


def test_cancelled_push_uploads_nothing(any_backend: Backend, tmp_path: Path) -> None:
    """A cancel signal set up front stops before the first object."""
    source = tmp_path / "src"
    make_tree(source)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(TransferCancelledError) as exc_info:
        any_backend.push(source, "artifacts/jobs/j1/build", cancel=cancel)

    assert exc_info.value.kind == ErrorKind.CANCELLED
    assert any_backend.exists("artifacts/jobs/j1/build") is False


def test_close_is_idempotent(any_backend: Backend) -> None:
    any_backend.close()
    any_backend.close()


def test_exists_honours_cancel(any_backend: Backend) -> None:
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(TransferCancelledError):
        any_backend.exists(KEY, cancel=cancel)


def test_exists_ignores_sibling_with_shared_prefix(any_backend: Backend, tmp_path: Path) -> None:
    """A key that merely starts with the path does not make it exist."""
    backup = tmp_path / "report.txt.bak"
    backup.write_text("old")
    any_backend.push(backup, KEY + ".bak")

    assert any_backend.exists(KEY) is False
    with pytest.raises(ArtifactNotFoundError):
        any_backend.pull(KEY, tmp_path / "out.txt")
