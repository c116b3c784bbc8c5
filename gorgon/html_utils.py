"""HTML utility functions for Gorgon.

This module provides the small amount of HTML string manipulation the
markdown rewriter needs when it builds <picture> markup by hand.

Functions:
    escape_html: Escape special HTML characters in a string.
    html_attrs: Render a sequence of attribute pairs.
"""

from __future__ import annotations

from collections.abc import Iterable


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts the following characters to their HTML entity equivalents:
    - & becomes &amp;
    - < becomes &lt;
    - > becomes &gt;
    - " becomes &quot;

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in an HTML attribute.

    Examples:
        >>> escape_html('a "cat" & a <dog>')
        'a &quot;cat&quot; &amp; a &lt;dog&gt;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def html_attrs(pairs: Iterable[tuple[str, object]]) -> str:
    """Render attribute pairs in the given order.

    Values are converted to strings and escaped.

    Examples:
        >>> html_attrs([("src", "/a.jpg"), ("width", 4)])
        'src="/a.jpg" width="4"'
    """
    return " ".join(f'{name}="{escape_html(str(value))}"' for name, value in pairs)
