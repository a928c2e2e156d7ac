"""Pipeline driver: canonicalize -> classify -> escape per file, fanned out over a worker pool"""

import difflib
import logging
import os
import shutil
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from liquidscrub.core.canonicalize import canonicalize_line, strip_stray_markers
from liquidscrub.core.classify import classify, is_fence, split_lines
from liquidscrub.core.escape import escape_line
from liquidscrub.core.models import Document, FileResult, FileStatus, Line, RunReport, ScanState
from liquidscrub.errors import UnterminatedFenceWarning


logger = logging.getLogger(__name__)

# Upper bound on canonicalize+escape rounds per line; real input settles in one or two.
_MAX_ROUNDS = 16


@dataclass
class FixOutcome:
    """Result of fixing one document's text in memory."""
    original:        str
    text:            str
    changed_lines:   int = 0
    removed_markers: int = 0
    unterminated_at: Optional[int] = None    # line of the fence left open, if any
    warnings:        list[UnterminatedFenceWarning] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.text != self.original


def _round(line: Line) -> Line:
    """One canonicalize + escape round for a code line.

    A repair that would turn the line into a fence (`{% raw %}```` -> ```` ``` ````) is
    skipped so the document's block structure never changes under a fix.
    """
    repaired = canonicalize_line(line.text)
    if is_fence(repaired):
        repaired = line.text
    return escape_line(Line(text=repaired, eol=line.eol, state=line.state))


def _fix_line(line: Line) -> Line:
    """Repeat rounds until the code line is stable, so a second fix is a no-op."""
    if line.state != ScanState.code:
        return line
    current = line
    for _ in range(_MAX_ROUNDS):
        fixed = _round(current)
        if fixed.text == current.text:
            break
        current = fixed
    return line if current.text == line.text else current


def fix_document(text: str, path: Optional[Path] = None) -> tuple[Document, FixOutcome]:
    """Run all stages over text and return the fixed Document with its outcome."""
    pairs, removed = strip_stray_markers(split_lines(text))
    lines, opened_at = classify(pairs)

    fixed = [_fix_line(line) for line in lines]
    changed = removed + sum(1 for old, new in zip(lines, fixed) if old.text != new.text)
    doc = Document(path=path, lines=fixed)

    outcome = FixOutcome(
        original=text,
        text=doc.render(),
        changed_lines=changed,
        removed_markers=removed,
        unterminated_at=opened_at,
    )
    if opened_at is not None:
        outcome.warnings.append(UnterminatedFenceWarning(str(path or "<text>"), opened_at))
    return doc, outcome


def fix_text(text: str) -> str:
    """Return text with code-block template delimiters escaped; idempotent."""
    return fix_document(text)[1].text


def _read(path: Path) -> str:
    with open(path, encoding='utf-8', newline='') as fh:
        return fh.read()


def _write(path: Path, text: str) -> None:
    """Replace path in one step via a temp file in the same directory."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as fh:
            fh.write(text)
        if path.exists():
            shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except BaseException:
        with suppress(OSError):
            os.unlink(tmp)
        raise


def fix_file(
    path: Path,
    dry_run: bool = False,
    backup: bool = False,
    with_diff: bool = False,
    ) -> FileResult:
    """Fix a single file, writing only when its content changes.

    Read/write/decode errors are returned as a failed FileResult rather than raised.
    """
    try:
        raw = _read(path)
        _, outcome = fix_document(raw, path)
        warnings = [str(w) for w in outcome.warnings]
        for w in warnings:
            logger.warning(w)

        if not outcome.changed:
            logger.debug("%s: unchanged", path)
            return FileResult(path=str(path), status=FileStatus.unchanged, warnings=warnings)

        diff = []
        if with_diff:
            diff = list(difflib.unified_diff(
                raw.splitlines(keepends=True),
                outcome.text.splitlines(keepends=True),
                fromfile=f"a/{path}",
                tofile=f"b/{path}",
            ))
        if not dry_run:
            if backup:
                _write(path.with_name(path.name + '.backup'), raw)
            _write(path, outcome.text)
        logger.info("%s: %d line(s) %s", path, outcome.changed_lines,
                    "would change" if dry_run else "fixed")
        return FileResult(
            path=str(path),
            status=FileStatus.fixed,
            changed_lines=outcome.changed_lines,
            warnings=warnings,
            diff=diff,
        )
    except (OSError, UnicodeError) as e:
        logger.error("%s: %s", path, e)
        return FileResult(path=str(path), status=FileStatus.failed, reason=f"{type(e).__name__}: {e}")


def run_fix(
    paths: Iterable[Path],
    dry_run: bool = False,
    backup: bool = False,
    with_diff: bool = False,
    max_workers: int = 4,
    cancel: Optional[threading.Event] = None,
    ) -> RunReport:
    """Fix every path on a thread pool and return results in input order.

    Files share no state, so they are processed independently. `cancel` is checked
    before each file starts; files already written stay fixed. A KeyboardInterrupt
    sets `cancel` and returns the partial report.
    """
    paths = list(paths)
    cancel = cancel or threading.Event()

    def _task(p: Path) -> Optional[FileResult]:
        if cancel.is_set():
            return None
        try:
            return fix_file(p, dry_run=dry_run, backup=backup, with_diff=with_diff)
        except Exception as e:
            logger.exception("%s: unexpected failure", p)
            return FileResult(path=str(p), status=FileStatus.failed, reason=f"{type(e).__name__}: {e}")

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(_task, p) for p in paths]
        try:
            results = [f.result() for f in futures]
        except KeyboardInterrupt:
            cancel.set()
            results = [f.result() for f in futures]

    done = [r for r in results if r is not None]
    report = RunReport(results=done, cancelled=len(done) < len(paths))
    logger.info(
        "run complete: %d unchanged, %d fixed, %d failed%s",
        report.count(FileStatus.unchanged), report.count(FileStatus.fixed),
        report.count(FileStatus.failed), " (cancelled)" if report.cancelled else "",
    )
    return report
