"""Optional site-build verification: run the generator and collect remaining template errors"""

import logging
import re
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from liquidscrub.errors import VerifierBuildError, VerifierTimeout


logger = logging.getLogger(__name__)

LIQUID_ERROR_RE = re.compile(
    r"Liquid (?P<kind>Exception|Warning|Error):\s*(?P<message>.*)\s+in\s+(?P<path>\S+?)\s*$"
)
LINE_NO_RE = re.compile(r"\(line (\d+)\)")
_TAIL_LINES = 20


class VerifyStatus(str, Enum):
    clean = "clean"
    template_errors_remain = "template_errors_remain"


class TemplateError(BaseModel):
    kind:    str
    message: str
    path:    str
    line:    Optional[int] = None

    def location(self) -> str:
        return f"{self.path}:{self.line}" if self.line is not None else self.path


class VerifyResult(BaseModel):
    status:     VerifyStatus
    returncode: int
    errors:     list[TemplateError] = []


def parse_template_errors(output: str) -> list[TemplateError]:
    """Extract Liquid exception/warning markers (kind, message, file, line) from build output."""
    errors = []
    for raw in output.splitlines():
        m = LIQUID_ERROR_RE.search(raw)
        if not m:
            continue
        line_no = LINE_NO_RE.search(m.group('message'))
        errors.append(TemplateError(
            kind=m.group('kind'),
            message=m.group('message').strip(),
            path=m.group('path'),
            line=int(line_no.group(1)) if line_no else None,
        ))
    return errors


def _tail(text: str, n: int = _TAIL_LINES) -> str:
    return "\n".join(text.strip().splitlines()[-n:])


def run_verify(command: list[str], cwd: Optional[Path] = None, timeout: Optional[float] = None) -> VerifyResult:
    """Run the site build and classify its outcome. Never modifies files.

    Raises VerifierTimeout when the build outlives `timeout`, and VerifierBuildError
    when the command cannot start or fails without reporting any template errors.
    """
    logger.info("verifying with: %s", " ".join(command))
    try:
        proc = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise VerifierTimeout(command, timeout) from e
    except OSError as e:
        raise VerifierBuildError(f"Could not run '{command[0]}': {e}") from e

    output = f"{proc.stdout or ''}\n{proc.stderr or ''}"
    errors = parse_template_errors(output)
    if errors:
        logger.warning("build reported %d template error(s)", len(errors))
        return VerifyResult(status=VerifyStatus.template_errors_remain, returncode=proc.returncode, errors=errors)
    if proc.returncode != 0:
        raise VerifierBuildError(
            f"Build exited with status {proc.returncode}",
            returncode=proc.returncode,
            output=_tail(proc.stderr or proc.stdout or ""),
        )
    return VerifyResult(status=VerifyStatus.clean, returncode=proc.returncode)
