"""Data models for the sanitize pipeline: scan states, lines, rules, and results"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class ScanState(str, Enum):
    prose = "prose"
    fence = "fence"
    code = "code"


class FileStatus(str, Enum):
    unchanged = "unchanged"
    fixed = "fixed"
    failed = "failed"


@dataclass(frozen=True)
class Line:
    """One source line: text without its terminator, the terminator, and its scan state."""
    text:  str
    eol:   str
    state: ScanState

    def render(self) -> str:
        return self.text + self.eol


@dataclass
class Document:
    """An ordered list of classified lines belonging to one source file."""
    path:  Optional[Path]
    lines: list[Line] = field(default_factory=list)

    def render(self) -> str:
        return "".join(line.render() for line in self.lines)


@dataclass(frozen=True)
class EscapeRule:
    """Replace every raw `pattern` with `replacement` on lines in `applies_in`."""
    pattern:     str
    replacement: str
    applies_in:  ScanState = ScanState.code

    def apply(self, text: str) -> str:
        return text.replace(self.pattern, self.replacement)


@dataclass(frozen=True)
class MalformedArtifact:
    """A broken escape pattern left by an earlier tool, and what it canonicalizes to."""
    name:        str
    pattern:     re.Pattern
    replacement: str

    def repair(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


class FileResult(BaseModel):
    """Per-file outcome reported by the driver."""
    path:     str
    status:   FileStatus
    reason:   Optional[str] = None   # set only for failed
    changed_lines: int = 0
    warnings: list[str] = []
    diff:     list[str] = []         # filled only when a diff was requested


class RunReport(BaseModel):
    """All FileResults of one run, in input order."""
    results:   list[FileResult] = []
    cancelled: bool = False

    def count(self, status: FileStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def failed(self) -> list[FileResult]:
        return [r for r in self.results if r.status == FileStatus.failed]

    @property
    def ok(self) -> bool:
        return not self.failed
