"""Line splitting and fenced-code-block classification"""

import re
from typing import Iterable, Optional

from liquidscrub.core.models import Line, ScanState


FENCE_RE = re.compile(r"^`{3,}[^`]*$")
LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+$")


def split_lines(text: str) -> list[tuple[str, str]]:
    """Split text into (content, terminator) pairs; joining them reproduces text exactly."""
    pairs = []
    for chunk in LINE_RE.findall(text):
        content = chunk.rstrip("\r\n")
        pairs.append((content, chunk[len(content):]))
    return pairs


def is_fence(text: str) -> bool:
    """True when the trimmed line is a run of 3+ backticks with an optional info string (no backticks)."""
    return bool(FENCE_RE.match(text.strip()))


def next_state(in_code: bool, text: str) -> tuple[ScanState, bool]:
    """Return (state of this line, whether the following line starts inside a code block)."""
    if is_fence(text):
        return ScanState.fence, not in_code
    return (ScanState.code if in_code else ScanState.prose), in_code


def classify(pairs: Iterable[tuple[str, str]]) -> tuple[list[Line], Optional[int]]:
    """Fold next_state over the lines.

    Returns the classified lines and, when the input ends inside a code block,
    the 1-based line number of the fence that opened it (else None).
    """
    lines: list[Line] = []
    in_code = False
    opened_at = None
    for number, (text, eol) in enumerate(pairs, start=1):
        state, in_code = next_state(in_code, text)
        if state == ScanState.fence and in_code:
            opened_at = number
        lines.append(Line(text=text, eol=eol, state=state))
    return lines, (opened_at if in_code else None)
