"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from liquidscrub.config import Settings, load_config
from liquidscrub.core.discover import discover_all
from liquidscrub.core.models import FileStatus, RunReport
from liquidscrub.core.pipeline import run_fix
from liquidscrub.core.verify import VerifyStatus, run_verify
from liquidscrub.errors import VerifierBuildError, VerifierError
from liquidscrub.logging_ import setup_logging


PathsArg = Annotated[
    list[Path],
    typer.Argument(exists=True, readable=True, help="Site root directory or markdown files"),
]
SiteDirOpt = Annotated[
    Path,
    typer.Option("--site-dir", exists=True, file_okay=False, help="Directory the site build runs in"),
]
LogLevelOpt = Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    setup_logging(settings.log_level)
    return settings


def _echo_report(report: RunReport, dry_run: bool) -> None:
    """Print per-file status, warnings, diffs and a summary line."""
    fixed_label = "would fix" if dry_run else "fixed"
    for r in report.results:
        if r.status == FileStatus.fixed:
            typer.echo(f"  {fixed_label}: {r.path} ({r.changed_lines} line(s))")
        elif r.status == FileStatus.failed:
            typer.echo(f"  failed: {r.path} - {r.reason}", err=True)
        for w in r.warnings:
            typer.echo(f"  warning: {w}", err=True)
        if r.diff:
            typer.echo("".join(r.diff), nl=False)
    typer.echo(
        f"{'Check' if dry_run else 'Fix'} complete - "
        f"{report.count(FileStatus.unchanged)} unchanged, "
        f"{report.count(FileStatus.fixed)} {fixed_label}, "
        f"{report.count(FileStatus.failed)} failed"
    )
    if report.cancelled:
        typer.echo("Run cancelled; remaining files were not processed.", err=True)


def _verify(settings: Settings, site_dir: Path) -> bool:
    """Run the site build and print its template errors. Returns True when clean."""
    typer.echo(f"Verifying: {settings.verify_command}")
    try:
        result = run_verify(settings.verify_argv, cwd=site_dir, timeout=settings.verify_timeout)
    except VerifierError as e:
        typer.echo(f"Verify failed: {e}", err=True)
        if isinstance(e, VerifierBuildError) and e.output:
            typer.echo(e.output, err=True)
        return False

    if result.status == VerifyStatus.clean:
        typer.echo("Verify clean - no template errors.")
        return True
    for err in result.errors:
        typer.echo(f"  {err.location()}: Liquid {err.kind}: {err.message}", err=True)
    typer.echo(f"Verify found {len(result.errors)} template error(s).", err=True)
    return False


def _collect(paths: list[Path], settings: Settings) -> list[Path]:
    files = discover_all(paths, settings.extensions, settings.exclude_dirs)
    if not files:
        typer.echo("No markdown files found.")
    return files


def fix_cmd(
    paths: PathsArg,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Report changes without writing files")] = False,
    verify: Annotated[bool, typer.Option("--verify", help="Run the site build after fixing")] = False,
    diff: Annotated[bool, typer.Option("--diff", help="Print a unified diff of each change")] = False,
    backup: Annotated[Optional[bool], typer.Option("--backup/--no-backup", help="Keep <file>.backup copies")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Files processed concurrently")] = None,
    site_dir: SiteDirOpt = Path("."),
    verify_timeout: Annotated[Optional[float], typer.Option("--verify-timeout", help="Seconds before the build is abandoned")] = None,
    log_level: LogLevelOpt = None,
    ):
    """Escape {{ }} inside fenced code blocks so the site generator leaves them alone."""
    settings = _settings(overrides={
        "backup": backup, "max_workers": workers,
        "verify_timeout": verify_timeout, "log_level": log_level,
    })

    files = _collect(paths, settings)
    ok = True
    if files:
        report = run_fix(
            files, dry_run=dry_run, backup=settings.backup,
            with_diff=diff, max_workers=settings.max_workers,
        )
        _echo_report(report, dry_run)
        ok = report.ok and not report.cancelled

    if verify and not _verify(settings, site_dir):
        ok = False
    if not ok:
        raise typer.Exit(1)


def check_cmd(
    paths: PathsArg,
    diff: Annotated[bool, typer.Option("--diff", help="Print a unified diff of each pending change")] = False,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Files processed concurrently")] = None,
    log_level: LogLevelOpt = None,
    ):
    """Exit 1 when any file would be changed or cannot be read. Writes nothing."""
    settings = _settings(overrides={"max_workers": workers, "log_level": log_level})
    files = _collect(paths, settings)
    if not files:
        return
    report = run_fix(files, dry_run=True, with_diff=diff, max_workers=settings.max_workers)
    _echo_report(report, dry_run=True)
    if report.count(FileStatus.fixed) or not report.ok:
        raise typer.Exit(1)


def verify_cmd(
    site_dir: SiteDirOpt = Path("."),
    command: Annotated[Optional[str], typer.Option("--command", help="Build command to run")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Seconds before the build is abandoned")] = None,
    log_level: LogLevelOpt = None,
    ):
    """Run the site build and list any remaining template errors."""
    settings = _settings(overrides={"verify_command": command, "verify_timeout": timeout, "log_level": log_level})
    if not _verify(settings, site_dir):
        raise typer.Exit(1)
