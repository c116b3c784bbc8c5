"""Frontmatter extraction for Gorgon.

A post starts with a YAML header between two ``---`` lines. The header must
hold exactly the fields the site needs, ``title`` and ``date``, both strings.
No defaults are filled in: a post without a title is a broken post.

Key functions:
- extract_frontmatter: Split raw post text into Frontmatter and body.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

import yaml

from .errors import FrontmatterError

FRONTMATTER_DELIMITER = "---\n"

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates as the strings they were written as."""


_FrontmatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass(frozen=True)
class Frontmatter:
    """Required post metadata.

    Attributes:
        title: Post title, rendered into the page.
        date: Publication date, kept verbatim.
    """

    title: str
    date: str

    @classmethod
    def from_mapping(cls, data: Any) -> Frontmatter:
        """Validate a parsed YAML header.

        Unknown keys are ignored.

        Raises:
            FrontmatterError: If ``data`` is not a mapping, or a required
                field is missing or not a string.
        """
        if not isinstance(data, dict):
            raise FrontmatterError(
                f"frontmatter must be a mapping, got {type(data).__name__}"
            )
        values: dict[str, str] = {}
        for item in fields(cls):
            if item.name not in data:
                raise FrontmatterError(f"missing required field '{item.name}'")
            value = data[item.name]
            if not isinstance(value, str):
                raise FrontmatterError(
                    f"field '{item.name}' must be a string, got {type(value).__name__}"
                )
            values[item.name] = value
        return cls(**values)


def extract_frontmatter(text: str) -> tuple[Frontmatter, str]:
    """Split raw post text into its header and body.

    The text must begin with ``---\\n``. The header ends at the first
    following ``---\\n``; everything after it is the body, verbatim.

    Args:
        text: Raw post content.

    Returns:
        Tuple of (Frontmatter, body).

    Raises:
        FrontmatterError: If either delimiter is missing or the header is
            not valid.

    Examples:
        >>> extract_frontmatter("---\\ntitle: X\\ndate: Y\\n---\\nBODY")
        (Frontmatter(title='X', date='Y'), 'BODY')
    """
    if not text.startswith(FRONTMATTER_DELIMITER):
        raise FrontmatterError("post must start with `---`")
    rest = text[len(FRONTMATTER_DELIMITER) :]
    header, delimiter, body = rest.partition(FRONTMATTER_DELIMITER)
    if not delimiter:
        raise FrontmatterError("unterminated frontmatter, needs another `---`")

    try:
        data = yaml.load(header, Loader=_FrontmatterLoader)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"invalid frontmatter: {exc}") from exc
    return Frontmatter.from_mapping(data), body
