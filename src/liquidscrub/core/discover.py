"""Markdown source discovery, skipping build output and VCS directories"""

from pathlib import Path
from typing import Iterable


MD_EXTENSIONS = {'.md', '.markdown'}
EXCLUDE_DIRS = {'_site', '.git', '.jekyll-cache', '.sass-cache', 'node_modules', 'vendor'}


def _excluded(path: Path, root: Path, exclude_dirs: set[str]) -> bool:
    return any(part in exclude_dirs for part in path.relative_to(root).parts[:-1])


def discover_files(
    path: Path,
    extensions: Iterable[str] = MD_EXTENSIONS,
    exclude_dirs: Iterable[str] = EXCLUDE_DIRS,
    ) -> list[Path]:
    """Return sorted markdown files under path, or [path] if it is a single markdown file."""
    extensions = {e.lower() for e in extensions}
    if path.is_file():
        return [path] if path.suffix.lower() in extensions else []
    exclude = set(exclude_dirs)
    return sorted(
        p for p in path.rglob('*')
        if p.is_file() and p.suffix.lower() in extensions and not _excluded(p, path, exclude)
    )


def discover_all(
    paths: Iterable[Path],
    extensions: Iterable[str] = MD_EXTENSIONS,
    exclude_dirs: Iterable[str] = EXCLUDE_DIRS,
    ) -> list[Path]:
    """Discover files under each path, de-duplicated, preserving first-seen order."""
    seen: dict[Path, None] = {}
    for path in paths:
        for p in discover_files(path, extensions, exclude_dirs):
            seen.setdefault(p, None)
    return list(seen)
