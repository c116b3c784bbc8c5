"""Markdown rendering for Gorgon.

Post bodies are rendered with mistune. Every token is serialized by the stock
HTMLRenderer except images, which are replaced by a <picture> element whose
sources are produced by the image transcoder.

An image token is read as a short event sequence (image start, alt text,
image end) by ImageTagMatcher, a small state machine that rejects any other
shape. The picture markup needs the literal alt text, so an alt made of
emphasis, links or nothing at all is an error rather than a guess.

Key classes:
- ImageEvent: One event in an image token's sequence.
- ImageTagMatcher: State machine over image events.
- MarkdownRenderer: Renders a post body, rewriting images.
"""

from __future__ import annotations

import enum
import html
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import mistune

from .errors import MarkdownStructureError
from .html_utils import html_attrs
from .images import PictureDescriptor
from .protocols import AssetRegistry, Transcoder

MARKDOWN_PLUGINS = ["table", "footnotes", "strikethrough"]

IMAGE_START = "image_start"
IMAGE_END = "image_end"
TEXT = "text"


def create_markdown(renderer: mistune.HTMLRenderer | None = None) -> mistune.Markdown:
    """Create a mistune parser with the plugins posts are written against.

    Args:
        renderer: Renderer to use; defaults to a plain HTMLRenderer that
            passes raw HTML through.

    Returns:
        Configured mistune Markdown instance.
    """
    return mistune.create_markdown(
        renderer=renderer or mistune.HTMLRenderer(escape=False),
        plugins=MARKDOWN_PLUGINS,
    )


@dataclass(frozen=True)
class ImageEvent:
    """One event of an image token.

    Attributes:
        kind: ``image_start``, ``text``, ``image_end``, or the type of any
            other inline token found inside the alt text.
        value: URL for ``image_start``, text for ``text``, empty otherwise.
    """

    kind: str
    value: str = ""


@dataclass(frozen=True)
class ImageReference:
    """A fully matched image: its destination and its alt text."""

    url: str
    alt: str


class MatcherState(enum.Enum):
    SCANNING = "scanning"
    EXPECTING_ALT_TEXT = "expecting_alt_text"
    EXPECTING_IMAGE_END = "expecting_image_end"


class ImageTagMatcher:
    """Matches ``image_start, text, image_end`` and nothing else.

    Events outside an image pass through in the SCANNING state. ``feed``
    returns an ImageReference when an image end completes a match.
    """

    def __init__(self):
        self.state = MatcherState.SCANNING
        self._url = ""
        self._alt = ""

    def feed(self, event: ImageEvent) -> ImageReference | None:
        """Advance the state machine by one event.

        Args:
            event: Next event of the stream.

        Returns:
            The matched image once its end event arrives, otherwise None.

        Raises:
            MarkdownStructureError: If the event is not allowed in the
                current state.
        """
        if self.state is MatcherState.SCANNING:
            if event.kind == IMAGE_END:
                raise MarkdownStructureError("image end tag without an image")
            if event.kind == IMAGE_START:
                self._url = event.value
                self.state = MatcherState.EXPECTING_ALT_TEXT
            return None

        if self.state is MatcherState.EXPECTING_ALT_TEXT:
            if event.kind != TEXT:
                raise MarkdownStructureError(
                    f"no alt text for image {self._url!r}, found {event.kind}"
                )
            self._alt = event.value
            self.state = MatcherState.EXPECTING_IMAGE_END
            return None

        if event.kind != IMAGE_END:
            raise MarkdownStructureError(
                f"no end tag for image {self._url!r}, found {event.kind}"
            )
        reference = ImageReference(url=self._url, alt=self._alt)
        self.state = MatcherState.SCANNING
        self._url = ""
        self._alt = ""
        return reference


def image_events(token: dict[str, Any]) -> Iterator[ImageEvent]:
    """Flatten a mistune image token into events.

    Args:
        token: mistune token of type ``image``.

    Yields:
        ``image_start``, one event per child token, then ``image_end``.
    """
    yield ImageEvent(IMAGE_START, token.get("attrs", {}).get("url", ""))
    for child in token.get("children") or []:
        if child["type"] == TEXT:
            yield ImageEvent(TEXT, html.unescape(child.get("raw", "")))
        else:
            yield ImageEvent(child["type"])
    yield ImageEvent(IMAGE_END)


def resolve_image_path(url: str, relative_to: Path) -> Path:
    """Turn an image destination from markdown into a filesystem path.

    mistune hands over URLs percent-encoded and HTML-escaped; both are undone
    before joining.

    Examples:
        >>> resolve_image_path("my%20cat.png", Path("posts/hello"))
        PosixPath('posts/hello/my cat.png')
    """
    return relative_to / unquote(html.unescape(url))


def render_picture(descriptor: PictureDescriptor, alt: str) -> str:
    """Build the <picture> markup for a transcoded image.

    Sources are emitted in descriptor order, before the fallback <img>.

    Args:
        descriptor: Transcoder output.
        alt: Literal alt text.

    Returns:
        HTML string.
    """
    parts = ["<picture>"]
    for source in descriptor.sources:
        parts.append(
            f"<source {html_attrs([('srcset', source.path), ('type', source.media_type)])}>"
        )
    img_attrs = html_attrs(
        [
            ("src", descriptor.fallback_path),
            ("alt", alt),
            ("height", descriptor.height),
            ("width", descriptor.width),
        ]
    )
    parts.append(f"<img {img_attrs}>")
    parts.append("</picture>")
    return "".join(parts)


class _PictureRenderer(mistune.HTMLRenderer):
    """HTML renderer that swaps image tokens for <picture> markup.

    Instances live for a single ``MarkdownRenderer.render`` call and drop
    their asset store reference with it.

    Attributes:
        relative_to: Directory image URLs are resolved against.
        transcoder: Image transcoder.
        store: Asset registry for this render.
    """

    def __init__(self, relative_to: Path, transcoder: Transcoder, store: AssetRegistry):
        super().__init__(escape=False)
        self.relative_to = relative_to
        self.transcoder = transcoder
        self.store = store
        self._matcher = ImageTagMatcher()

    def render_token(self, token: dict[str, Any], state: mistune.BlockState) -> str:
        if token["type"] != "image":
            return super().render_token(token, state)

        # The last event is always image_end, which yields the reference.
        for event in image_events(token):
            reference = self._matcher.feed(event)

        path = resolve_image_path(reference.url, self.relative_to)
        descriptor = self.transcoder.transcode(path, self.store)
        return render_picture(descriptor, reference.alt)


class MarkdownRenderer:
    """Renders post bodies to HTML, transcoding every referenced image.

    Attributes:
        transcoder: Transcoder used for image references.
    """

    def __init__(self, transcoder: Transcoder):
        self.transcoder = transcoder

    def render(self, relative_to: Path, content: str, store: AssetRegistry) -> str:
        """Render markdown to HTML.

        Args:
            relative_to: Directory image URLs are relative to (the post's
                source directory).
            content: Markdown source.
            store: Asset registry receiving transcoded images. Only used
                for the duration of this call.

        Returns:
            Rendered HTML.

        Raises:
            MarkdownStructureError: If an image is not followed by plain alt
                text and its end tag.
            ImageError: If a referenced image cannot be transcoded.
        """
        renderer = _PictureRenderer(relative_to, self.transcoder, store)
        markdown = create_markdown(renderer)
        return markdown(content)
