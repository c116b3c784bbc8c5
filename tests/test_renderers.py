from pathlib import Path

import mistune
import pytest

from gorgon.assets import StaticFileStore
from gorgon.errors import MarkdownStructureError
from gorgon.images import PictureDescriptor, PictureSource
from gorgon.protocols import Transcoder
from gorgon.renderers import (
    ImageEvent,
    ImageReference,
    ImageTagMatcher,
    MarkdownRenderer,
    MatcherState,
    create_markdown,
    image_events,
    render_picture,
    resolve_image_path,
)


class FakeTranscoder:
    """Records requested paths and registers placeholder renditions."""

    def __init__(self, optimize: bool = True):
        self.optimize = optimize
        self.paths: list[Path] = []

    def transcode(self, path, store):
        self.paths.append(path)
        fallback = store.register(path.stem, ".jpg", b"jpeg:" + path.name.encode())
        sources = []
        if self.optimize:
            sources = [
                PictureSource(
                    store.register(path.stem, ".avif", b"avif:" + path.name.encode()),
                    "image/avif",
                ),
                PictureSource(
                    store.register(path.stem, ".webp", b"webp:" + path.name.encode()),
                    "image/webp",
                ),
            ]
        return PictureDescriptor(
            fallback_path=fallback, width=640, height=480, sources=tuple(sources)
        )


SAMPLE = """# Heading

Some *emphasis*, **strong** and ~~gone~~ text.[^1]

| a | b |
|---|---|
| 1 | 2 |

<div class="raw">kept</div>

[^1]: A footnote.
"""


def test_fake_transcoder_matches_protocol():
    assert isinstance(FakeTranscoder(), Transcoder)


# --- ImageTagMatcher ---


def test_matcher_matches_start_text_end():
    matcher = ImageTagMatcher()
    assert matcher.feed(ImageEvent("image_start", "cat.png")) is None
    assert matcher.state is MatcherState.EXPECTING_ALT_TEXT
    assert matcher.feed(ImageEvent("text", "a cat")) is None
    assert matcher.state is MatcherState.EXPECTING_IMAGE_END
    assert matcher.feed(ImageEvent("image_end")) == ImageReference("cat.png", "a cat")
    assert matcher.state is MatcherState.SCANNING


def test_matcher_passes_other_events_while_scanning():
    matcher = ImageTagMatcher()
    for kind in ("paragraph", "text", "emphasis"):
        assert matcher.feed(ImageEvent(kind)) is None
    assert matcher.state is MatcherState.SCANNING


def test_matcher_rejects_missing_alt_text():
    matcher = ImageTagMatcher()
    matcher.feed(ImageEvent("image_start", "cat.png"))
    with pytest.raises(MarkdownStructureError, match="no alt text"):
        matcher.feed(ImageEvent("image_end"))


def test_matcher_rejects_extra_event_before_end():
    matcher = ImageTagMatcher()
    matcher.feed(ImageEvent("image_start", "cat.png"))
    matcher.feed(ImageEvent("text", "a "))
    with pytest.raises(MarkdownStructureError, match="no end tag"):
        matcher.feed(ImageEvent("emphasis"))


def test_matcher_rejects_stray_end():
    with pytest.raises(MarkdownStructureError):
        ImageTagMatcher().feed(ImageEvent("image_end"))


def test_image_events_flatten_token():
    token = {
        "type": "image",
        "attrs": {"url": "cat.png"},
        "children": [{"type": "text", "raw": "a cat"}],
    }
    assert list(image_events(token)) == [
        ImageEvent("image_start", "cat.png"),
        ImageEvent("text", "a cat"),
        ImageEvent("image_end"),
    ]


# --- Picture markup ---


def test_render_picture_puts_sources_before_fallback():
    descriptor = PictureDescriptor(
        fallback_path="/static/cat-x.jpg",
        width=4,
        height=3,
        sources=(
            PictureSource("/static/cat-y.avif", "image/avif"),
            PictureSource("/static/cat-z.webp", "image/webp"),
        ),
    )
    assert render_picture(descriptor, "a cat") == (
        "<picture>"
        '<source srcset="/static/cat-y.avif" type="image/avif">'
        '<source srcset="/static/cat-z.webp" type="image/webp">'
        '<img src="/static/cat-x.jpg" alt="a cat" height="3" width="4">'
        "</picture>"
    )


def test_render_picture_escapes_alt():
    descriptor = PictureDescriptor(fallback_path="/static/a.jpg", width=1, height=1)
    html = render_picture(descriptor, 'a "quoted" <cat>')
    assert 'alt="a &quot;quoted&quot; &lt;cat&gt;"' in html


def test_resolve_image_path_decodes_url():
    base = Path("posts") / "hello"
    assert resolve_image_path("cat.png", base) == base / "cat.png"
    assert resolve_image_path("my%20cat.png", base) == base / "my cat.png"
    assert resolve_image_path("a&amp;b.png", base) == base / "a&b.png"


# --- MarkdownRenderer ---


def test_render_without_images_matches_mistune():
    store = StaticFileStore()
    transcoder = FakeTranscoder()
    html = MarkdownRenderer(transcoder).render(Path("posts"), SAMPLE, store)

    standalone = mistune.create_markdown(
        renderer=mistune.HTMLRenderer(escape=False),
        plugins=["table", "footnotes", "strikethrough"],
    )(SAMPLE)
    assert html == standalone
    assert html == create_markdown()(SAMPLE)
    assert "<del>gone</del>" in html
    assert "<table>" in html
    assert '<div class="raw">kept</div>' in html
    assert transcoder.paths == []
    assert len(store) == 0


def test_render_replaces_image_with_picture(tmp_path):
    store = StaticFileStore()
    transcoder = FakeTranscoder(optimize=True)
    html = MarkdownRenderer(transcoder).render(
        tmp_path, "Intro\n\n![a cat](cat.png)\n", store
    )

    assert transcoder.paths == [tmp_path / "cat.png"]
    assert "<picture>" in html and "</picture>" in html
    avif = html.index('type="image/avif"')
    webp = html.index('type="image/webp"')
    img = html.index("<img ")
    assert avif < webp < img
    assert 'alt="a cat"' in html
    assert 'height="480" width="640"' in html
    assert "<p>Intro</p>" in html
    assert len(store) == 3


def test_render_without_optimize_has_no_sources(tmp_path):
    store = StaticFileStore()
    html = MarkdownRenderer(FakeTranscoder(optimize=False)).render(
        tmp_path, "![a cat](cat.png)", store
    )
    assert "<source" not in html
    assert html.count("<img ") == 1


def test_render_multiple_images(tmp_path):
    store = StaticFileStore()
    transcoder = FakeTranscoder(optimize=False)
    MarkdownRenderer(transcoder).render(
        tmp_path, "![one](a.png) and ![two](sub/b.png)", store
    )
    assert transcoder.paths == [tmp_path / "a.png", tmp_path / "sub" / "b.png"]


def test_render_rejects_image_without_alt(tmp_path):
    transcoder = FakeTranscoder()
    with pytest.raises(MarkdownStructureError):
        MarkdownRenderer(transcoder).render(tmp_path, "![](cat.png)", StaticFileStore())
    assert transcoder.paths == []


def test_render_rejects_formatted_alt(tmp_path):
    transcoder = FakeTranscoder()
    with pytest.raises(MarkdownStructureError):
        MarkdownRenderer(transcoder).render(
            tmp_path, "![a *fluffy* cat](cat.png)", StaticFileStore()
        )
    assert transcoder.paths == []


def test_render_decodes_entities_in_alt(tmp_path):
    transcoder = FakeTranscoder(optimize=False)
    html = MarkdownRenderer(transcoder).render(
        tmp_path, "![Tom &amp; Jerry](c.png) ![Tom & Jerry](d.png)", StaticFileStore()
    )
    assert html.count('alt="Tom &amp; Jerry"') == 2
    assert "&amp;amp;" not in html
