"""Error and warning types raised or recorded by the sanitizer"""


class ScrubError(Exception):
    """Base class for liquidscrub errors."""


class UnterminatedFenceWarning(UserWarning):
    """A file ended inside a fenced code block; trailing lines were treated as code."""

    def __init__(self, path: str, opened_at: int):
        self.path = path
        self.opened_at = opened_at
        super().__init__(f"{path}:{opened_at}: unterminated code fence; trailing lines treated as code")


class VerifierError(ScrubError):
    """The site build could not be used to verify the corpus."""


class VerifierTimeout(VerifierError):
    def __init__(self, command: list[str], timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"'{' '.join(command)}' did not finish within {timeout:g}s")


class VerifierBuildError(VerifierError):
    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        self.returncode = returncode
        self.output = output
        super().__init__(message)
