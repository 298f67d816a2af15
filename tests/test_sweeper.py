import os
from pathlib import Path

import pytest

from ddx_viewer.conversion.file_lock import is_file_in_use, open_shared
from ddx_viewer.conversion.metrics import metrics
from ddx_viewer.conversion.sweeper import ArtifactSweeper


def _make(tmp_path: Path, *names: str) -> list[Path]:
    paths = []
    for name in names:
        p = tmp_path / name
        p.write_bytes(b"artifact")
        paths.append(p)
    return paths


def test_sweep_deletes_matching_files_only(tmp_path: Path):
    _make(tmp_path, "a.png", "b.png", "keep.ddx", "notes.txt")

    report = ArtifactSweeper().sweep(tmp_path, "*.png")

    assert sorted(p.name for p in report.deleted) == ["a.png", "b.png"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["keep.ddx", "notes.txt"]
    assert report.errors == []
    assert metrics.counter("sweeper.deleted") == 2


def test_second_sweep_is_a_no_op(tmp_path: Path):
    _make(tmp_path, "a.png", "b.png")
    sweeper = ArtifactSweeper()

    sweeper.sweep(tmp_path, "*.png")
    second = sweeper.sweep(tmp_path, "*.png")

    assert second.deleted == []
    assert second.errors == []
    assert second.clean


@pytest.mark.skipif(os.name == "nt", reason="advisory shared locks are POSIX only")
def test_file_held_by_reader_survives_until_released(tmp_path: Path):
    (held,) = _make(tmp_path, "photo.png")
    sweeper = ArtifactSweeper()

    with open_shared(held) as f:
        assert f.read() == b"artifact"
        assert is_file_in_use(held)
        report = sweeper.sweep(tmp_path, "*.png")
        assert held.exists()
        assert report.skipped_in_use == [held.resolve()]
        assert report.errors == []

    assert not is_file_in_use(held)
    report = sweeper.sweep(tmp_path, "*.png")
    assert report.deleted == [held.resolve()]
    assert not held.exists()


def test_protected_executable_is_never_deleted(tmp_path: Path):
    exe, artifact = _make(tmp_path, "texconv.exe", "photo.exe")
    sweeper = ArtifactSweeper(protected=[exe])

    report = sweeper.sweep(tmp_path, "*.exe")

    assert exe.exists()
    assert not artifact.exists()
    assert report.deleted == [artifact.resolve()]


def test_missing_directory_yields_empty_report(tmp_path: Path):
    report = ArtifactSweeper().sweep(tmp_path / "nope")
    assert report.deleted == [] and report.errors == [] and report.skipped_in_use == []


def test_per_file_failure_does_not_abort_sweep(tmp_path: Path, monkeypatch):
    a, b, c = _make(tmp_path, "a.png", "b.png", "c.png")
    real_unlink = Path.unlink

    def flaky_unlink(self, *args, **kwargs):
        if self.name == "b.png":
            raise PermissionError(13, "Permission denied")
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", flaky_unlink)

    report = ArtifactSweeper().sweep(tmp_path, "*.png")

    assert sorted(p.name for p in report.deleted) == ["a.png", "c.png"]
    assert len(report.errors) == 1
    assert report.errors[0].path == b.resolve()
    assert "Permission denied" in report.errors[0].reason
    assert b.exists()


def test_race_deleted_file_is_ignored(tmp_path: Path, monkeypatch):
    (gone,) = _make(tmp_path, "gone.png")
    from ddx_viewer.conversion import sweeper as sweeper_mod

    def vanish(path):
        Path(path).unlink()
        raise FileNotFoundError(path)

    monkeypatch.setattr(sweeper_mod, "is_file_in_use", vanish)

    report = ArtifactSweeper().sweep(tmp_path, "*.png")

    assert report.deleted == []
    assert report.errors == []
    assert not gone.exists()


def test_directories_matching_pattern_are_skipped(tmp_path: Path):
    (tmp_path / "folder.png").mkdir()
    report = ArtifactSweeper().sweep(tmp_path, "*.png")
    assert report.deleted == []
    assert (tmp_path / "folder.png").is_dir()
