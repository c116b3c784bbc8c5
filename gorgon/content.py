"""Post loading for Gorgon.

This module discovers posts in the ``posts/`` directory and turns each one
into a Post record. A post is either a single ``name.md`` file or a
``name/`` directory holding ``index.md`` next to the images it references.

Key classes:
- Post: Dataclass representing one loaded post.
- PostLoader: Discovers and loads every post of a site.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import BuildError, FrontmatterError
from .extractors import extract_frontmatter
from .utils import is_markdown_extension, split_post_filename

logger = logging.getLogger(__name__)

DIRECTORY_POST_INDEX = "index.md"


@dataclass(frozen=True)
class Post:
    """A post ready to be rendered.

    Attributes:
        name: Slug, taken verbatim from the file or directory name.
        title: Title from the frontmatter.
        date: Date from the frontmatter, unparsed.
        body: Markdown body following the frontmatter.
        source_dir: Directory image references are resolved against.
        path: Markdown file the post was read from.
    """

    name: str
    title: str
    date: str
    body: str
    source_dir: Path
    path: Path


class PostLoader:
    """Loads posts from a directory.

    Entries are processed in name order so that builds are reproducible.

    Attributes:
        posts_dir: Directory containing post files and post directories.
    """

    def __init__(self, posts_dir: Path):
        """Initialize the post loader.

        Args:
            posts_dir: Path to the ``posts/`` directory.
        """
        self.posts_dir = posts_dir

    def iter_entries(self) -> list[Path]:
        """List post entries sorted by name.

        Raises:
            BuildError: If the directory cannot be listed.
        """
        try:
            return sorted(self.posts_dir.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise BuildError(
                self.posts_dir, f"reading posts from {self.posts_dir}", exc
            ) from exc

    def load(self) -> list[Post]:
        """Load every post.

        Returns:
            List of Post objects, in name order.

        Raises:
            BuildError: On the first entry that cannot be loaded.
        """
        posts = [self.load_entry(entry) for entry in self.iter_entries()]
        logger.debug("Loaded %d posts from %s", len(posts), self.posts_dir)
        return posts

    def load_entry(self, entry: Path) -> Post:
        """Load one post entry.

        Args:
            entry: A ``name.md`` file or a ``name/`` directory.

        Returns:
            Post object.

        Raises:
            BuildError: If the entry has an invalid name, cannot be read,
                or has invalid frontmatter. The cause is chained.
        """
        if entry.is_dir():
            name = entry.name
            path = entry / DIRECTORY_POST_INDEX
            source_dir = entry
        else:
            parts = split_post_filename(entry.name)
            if parts is None:
                raise BuildError(
                    entry, f"invalid post filename {entry.name}, must be *.md"
                )
            name, ext = parts
            if not is_markdown_extension(ext):
                raise BuildError(
                    entry, f"invalid filename {entry.name}, only .md extensions are allowed"
                )
            path = entry
            source_dir = entry.parent

        try:
            raw = path.read_text(encoding="utf-8")
            frontmatter, body = extract_frontmatter(raw)
        except (OSError, UnicodeDecodeError, FrontmatterError) as exc:
            raise BuildError(path, f"generating post {name}", exc) from exc

        logger.debug("Found post %s (%s)", name, path)
        return Post(
            name=name,
            title=frontmatter.title,
            date=frontmatter.date,
            body=body,
            source_dir=source_dir,
            path=path,
        )
