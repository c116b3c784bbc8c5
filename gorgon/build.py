"""Site building functionality for Gorgon.

This module drives the content pipeline: it loads every post, renders each
one to a page, and writes the static assets the pages reference.

Order matters. Posts are loaded before the output directory is wiped, so a
broken post never costs the previous build. Static files are written only
after every post rendered, so no page ever points at an asset that was not
written.

Key functions:
- build_site: Main function to build the entire site.
- load_config: Loads site configuration from gorgon.yaml.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateError

from .assets import STATIC_DIR, StaticFileStore
from .content import Post, PostLoader
from .errors import BuildError, ImageError, MarkdownStructureError
from .images import ImageTranscoder
from .renderers import MarkdownRenderer
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)

CONFIG_FILE = "gorgon.yaml"

DEFAULT_CONFIG = {
    "optimize": False,
}

POSTS_DIR = "posts"
TEMPLATES_DIR = "templates"
POSTS_OUTPUT_DIR = Path("blog") / "posts"


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: All posts that were rendered.
        output_dir: Directory where the site was built.
        static_files: Paths of the static files written.
    """

    posts: list[Post]
    output_dir: Path
    static_files: list[Path]


def load_config(input_root: Path) -> dict[str, Any]:
    """Load site configuration from gorgon.yaml.

    Args:
        input_root: Root directory of the site sources.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        BuildError: If gorgon.yaml exists but cannot be read or parsed.
    """
    config_path = input_root / CONFIG_FILE
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise BuildError(config_path, f"reading {CONFIG_FILE}", exc) from exc
        if isinstance(loaded, dict):
            config.update(loaded)
    return config


def build_site(
    input_root: Path,
    output_dir: Path,
    optimize: bool | None = None,
) -> BuildResult:
    """Build the entire static site.

    The first error aborts the build; nothing is skipped.

    Args:
        input_root: Directory containing ``posts/``.
        output_dir: Directory to build into. Removed and recreated.
        optimize: Whether to add AVIF and WebP renditions. Overrides the
            config file when not None.

    Returns:
        BuildResult describing what was written.

    Raises:
        BuildError: If the config, theme, a post, or the output cannot be
            read or written. The cause is chained.
    """
    config = load_config(input_root)
    if optimize is not None:
        config["optimize"] = optimize

    store = StaticFileStore()
    engine = TemplateEngine(input_root / TEMPLATES_DIR)
    try:
        theme_css = engine.theme_css()
    except OSError as exc:
        raise BuildError(input_root / TEMPLATES_DIR, "reading theme.css", exc) from exc
    theme_css_path = store.register("theme", ".css", theme_css)

    posts = PostLoader(input_root / POSTS_DIR).load()

    try:
        ensure_clean_dir(output_dir)
    except OSError as exc:
        raise BuildError(output_dir, "initializing output", exc) from exc

    renderer = MarkdownRenderer(ImageTranscoder(optimize=bool(config["optimize"])))
    for post in posts:
        try:
            body = renderer.render(post.source_dir, post.body, store)
            rendered = engine.render_post(post.title, body, theme_css_path)
            _write_post(output_dir, post, rendered)
        except (MarkdownStructureError, ImageError, TemplateError, OSError) as exc:
            raise BuildError(post.path, f"rendering post {post.name}", exc) from exc

    try:
        static_files = store.flush(output_dir)
    except OSError as exc:
        raise BuildError(output_dir / STATIC_DIR, "writing static files", exc) from exc
    return BuildResult(posts=posts, output_dir=output_dir, static_files=static_files)


def _write_post(output_dir: Path, post: Post, rendered: str) -> None:
    """Write a rendered post to ``blog/posts/{name}/index.html``.

    Args:
        output_dir: Base output directory.
        post: Post being written.
        rendered: Rendered HTML document.
    """
    target_dir = output_dir / POSTS_OUTPUT_DIR / post.name
    target_dir.mkdir(parents=True, exist_ok=True)
    html_path = target_dir / "index.html"
    with open(html_path, "w", encoding="utf-8") as f:
        f.write(rendered)
    logger.info("Wrote post %s to %s", post.name, html_path)
