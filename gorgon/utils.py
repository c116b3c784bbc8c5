"""Utility functions for Gorgon.

Key functions:
    split_post_filename: Split a post filename into its name and extension.
    is_markdown_extension: Check a post extension.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import shutil
from pathlib import Path


def split_post_filename(filename: str) -> tuple[str, str] | None:
    """Split a filename at its first dot.

    Args:
        filename: Bare filename, e.g. ``hello.md``.

    Returns:
        Tuple of (name, extension without the dot), or None if the filename
        has no dot.

    Examples:
        >>> split_post_filename("hello.md")
        ('hello', 'md')

        >>> split_post_filename("notes.draft.md")
        ('notes', 'draft.md')

        >>> split_post_filename("README") is None
        True
    """
    name, dot, ext = filename.partition(".")
    if not dot:
        return None
    return name, ext


def is_markdown_extension(ext: str) -> bool:
    """Check if an extension (without the dot) is the post extension.

    Only the exact lowercase ``md`` is accepted.
    """
    return ext == "md"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the path exists it is removed first. Creates the directory
    afresh.

    Args:
        path: Directory path to clean or create.

    Raises:
        OSError: If the old tree cannot be removed or the directory
            cannot be created.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
