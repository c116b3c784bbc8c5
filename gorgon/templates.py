"""Template rendering engine for Gorgon.

This module uses Jinja2 to wrap a rendered post body in a full HTML page.
The core pipeline treats it as a black box that takes a title, a body and the
path of the theme stylesheet.

Templates are looked up first in the site's own ``templates/`` directory, then
in the defaults shipped with the package.

Key class:
- TemplateEngine: Renders post pages and provides the theme stylesheet.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

POST_TEMPLATE = "post.html"
THEME_STYLESHEET = "theme.css"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        search_path: Directories searched for templates, in order.
        env: Jinja2 environment.
    """

    def __init__(self, site_templates_dir: Path | None = None):
        """Initialize the template engine.

        Args:
            site_templates_dir: Optional directory whose templates override
                the packaged defaults.
        """
        self.search_path: list[Path] = []
        if site_templates_dir is not None and site_templates_dir.is_dir():
            self.search_path.append(site_templates_dir)
        self.search_path.append(DEFAULT_TEMPLATES_DIR)
        self.env = Environment(
            loader=FileSystemLoader(self.search_path),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=False,
        )

    def theme_css(self) -> bytes:
        """Return the bytes of the theme stylesheet."""
        for directory in self.search_path:
            candidate = directory / THEME_STYLESHEET
            if candidate.is_file():
                return candidate.read_bytes()
        raise FileNotFoundError(f"{THEME_STYLESHEET} not found in {self.search_path}")

    def render_post(self, title: str, body: str, theme_css_path: str) -> str:
        """Render a post page.

        Args:
            title: Post title; escaped by the template.
            body: Rendered HTML body; inserted as is.
            theme_css_path: Reference path of the theme stylesheet.

        Returns:
            Complete HTML document.
        """
        template = self.env.get_template(POST_TEMPLATE)
        return template.render(
            title=title,
            body=Markup(body),
            theme_css_path=theme_css_path,
        )
