"""Integration tests for fix_file / run_fix against files on disk.

Each test builds a small site under tmp_path. DIRTY holds one js fence that needs
escaping; CLEAN is prose only and must never be rewritten.
"""

import logging
import threading

import pytest

from liquidscrub.core import pipeline
from liquidscrub.core.models import FileStatus
from liquidscrub.core.pipeline import fix_file, run_fix


DIRTY = "# Hooks\n\n```jsx\n<View style={{ flex: 1 }} />\n```\n"
DIRTY_FIXED = "# Hooks\n\n```jsx\n<View style=&#123;&#123; flex: 1 &#125;&#125; />\n```\n"
CLEAN = "# About\n\nThis site uses {{ site.title }} in layouts.\n"


@pytest.fixture(name="site")
def site_fixture(tmp_path):
    (tmp_path / "dirty.md").write_text(DIRTY)
    (tmp_path / "clean.md").write_text(CLEAN)
    return tmp_path


# --- fix_file ---

def test_fix_file_writes_fixed_content(site):
    result = fix_file(site / "dirty.md")
    assert result.status == FileStatus.fixed
    assert result.changed_lines == 1
    assert (site / "dirty.md").read_text() == DIRTY_FIXED


def test_fix_file_second_run_does_not_write(site, monkeypatch):
    """Write-if-changed: an already fixed file is reported unchanged and never rewritten."""
    fix_file(site / "dirty.md")
    monkeypatch.setattr(pipeline, "_write", lambda *a: pytest.fail("unchanged file was rewritten"))
    assert fix_file(site / "dirty.md").status == FileStatus.unchanged


def test_fix_file_dry_run_leaves_file(site):
    result = fix_file(site / "dirty.md", dry_run=True)
    assert result.status == FileStatus.fixed
    assert (site / "dirty.md").read_text() == DIRTY


def test_fix_file_backup(site):
    fix_file(site / "dirty.md", backup=True)
    assert (site / "dirty.md.backup").read_text() == DIRTY
    assert (site / "dirty.md").read_text() == DIRTY_FIXED


def test_fix_file_diff(site):
    result = fix_file(site / "dirty.md", dry_run=True, with_diff=True)
    assert "-<View style={{ flex: 1 }} />\n" in result.diff
    assert "+<View style=&#123;&#123; flex: 1 &#125;&#125; />\n" in result.diff


def test_fix_file_preserves_crlf(tmp_path):
    f = tmp_path / "win.md"
    f.write_bytes(b"```\r\n{{a}}\r\n```\r\n")
    fix_file(f)
    assert f.read_bytes() == b"```\r\n&#123;&#123;a&#125;&#125;\r\n```\r\n"


def test_fix_file_leaves_no_temp_files(site):
    fix_file(site / "dirty.md", backup=True)
    assert sorted(p.name for p in site.iterdir()) == ["clean.md", "dirty.md", "dirty.md.backup"]


def test_fix_file_keeps_file_mode(site):
    (site / "dirty.md").chmod(0o640)
    fix_file(site / "dirty.md")
    assert (site / "dirty.md").stat().st_mode & 0o777 == 0o640


def test_fix_file_failed_replace_keeps_original(site, monkeypatch):
    """A failure while swapping in the new content leaves the old file whole."""
    def refuse(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(pipeline.os, "replace", refuse)
    result = fix_file(site / "dirty.md")
    assert result.status == FileStatus.failed
    assert "disk full" in result.reason
    assert (site / "dirty.md").read_text() == DIRTY
    assert sorted(p.name for p in site.iterdir()) == ["clean.md", "dirty.md"]


def test_fix_file_logs_unterminated_fence(tmp_path, caplog):
    f = tmp_path / "open.md"
    f.write_text("text\n```\n{{x}}\n")
    with caplog.at_level(logging.WARNING, logger="liquidscrub"):
        fix_file(f)
    assert any(
        r.name == "liquidscrub.core.pipeline" and r.levelno == logging.WARNING
        and "unterminated code fence" in r.getMessage()
        for r in caplog.records
    )


def test_fix_file_records_unterminated_fence_warning(tmp_path):
    f = tmp_path / "open.md"
    f.write_text("text\n```\n{{x}}\n")
    result = fix_file(f)
    assert result.status == FileStatus.fixed
    assert len(result.warnings) == 1
    assert "open.md:2" in result.warnings[0]


def test_fix_file_undecodable_fails(tmp_path):
    f = tmp_path / "binary.md"
    f.write_bytes(b"\xff\xfe\x00{{")
    result = fix_file(f)
    assert result.status == FileStatus.failed
    assert "UnicodeDecodeError" in result.reason


def test_fix_file_unreadable_fails(tmp_path):
    d = tmp_path / "folder.md"
    d.mkdir()
    result = fix_file(d)
    assert result.status == FileStatus.failed
    assert result.reason


# --- run_fix ---

def test_run_fix_isolates_failures(site):
    """One bad file does not stop its siblings from being fixed."""
    (site / "bad.md").write_bytes(b"\xff\xfe")
    paths = [site / "bad.md", site / "dirty.md", site / "clean.md"]
    report = run_fix(paths, max_workers=2)
    assert [r.status for r in report.results] == [FileStatus.failed, FileStatus.fixed, FileStatus.unchanged]
    assert not report.ok
    assert (site / "dirty.md").read_text() == DIRTY_FIXED
    assert (site / "clean.md").read_text() == CLEAN


def test_run_fix_isolates_unexpected_errors(site, monkeypatch):
    real = pipeline.fix_file

    def flaky(path, **kwargs):
        if path.name == "dirty.md":
            raise RuntimeError("boom")
        return real(path, **kwargs)

    monkeypatch.setattr(pipeline, "fix_file", flaky)
    report = run_fix([site / "dirty.md", site / "clean.md"])
    assert report.results[0].status == FileStatus.failed
    assert report.results[0].reason == "RuntimeError: boom"
    assert report.results[1].status == FileStatus.unchanged


def test_run_fix_keeps_input_order(tmp_path):
    paths = []
    for i in range(12):
        p = tmp_path / f"doc{i:02}.md"
        p.write_text(DIRTY if i % 2 else CLEAN)
        paths.append(p)
    report = run_fix(paths, max_workers=4)
    assert [r.path for r in report.results] == [str(p) for p in paths]
    assert report.count(FileStatus.fixed) == 6
    assert report.count(FileStatus.unchanged) == 6


def test_run_fix_pre_cancelled_does_nothing(site):
    cancel = threading.Event()
    cancel.set()
    report = run_fix([site / "dirty.md"], cancel=cancel)
    assert report.results == []
    assert report.cancelled
    assert (site / "dirty.md").read_text() == DIRTY


def test_run_fix_cancel_between_files(tmp_path, monkeypatch):
    """Files started before cancellation stay fixed; later files are not touched."""
    paths = []
    for i in range(3):
        p = tmp_path / f"doc{i}.md"
        p.write_text(DIRTY)
        paths.append(p)

    cancel = threading.Event()
    real = pipeline.fix_file

    def fix_then_cancel(path, **kwargs):
        result = real(path, **kwargs)
        cancel.set()
        return result

    monkeypatch.setattr(pipeline, "fix_file", fix_then_cancel)
    report = run_fix(paths, max_workers=1, cancel=cancel)
    assert report.cancelled
    assert len(report.results) == 1
    assert paths[0].read_text() == DIRTY_FIXED
    assert paths[1].read_text() == DIRTY
