"""Comment text extraction – turns raw comment markup into visible text.

Strips non-visible elements (scripts, styles, buttons) and HTML comments,
extracts the text content and normalises whitespace so the classifier sees
what a reader sees.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Comment

# Elements whose text never shows up as part of the comment body
_STRIP_TAGS = {
    "script", "style", "noscript",   # code / styling
    "button", "svg",                 # reply / like chrome
}

_WHITESPACE = re.compile(r"\s+")


def extract_text(raw_html: str) -> str:
    """Convert raw comment markup to plain text.

    Returns an empty string when nothing visible is left.
    """
    if not raw_html or not raw_html.strip():
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")

    for tag_name in _STRIP_TAGS:
        for element in soup.find_all(tag_name):
            element.decompose()

    for comment in soup.find_all(string=lambda t: isinstance(t, Comment)):
        comment.extract()

    text = soup.get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()
