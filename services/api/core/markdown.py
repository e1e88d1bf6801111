# services/api/core/markdown.py
"""Markdown stripping for scope text written into worksheet cells."""
from __future__ import annotations

import re
from typing import Optional

_HEADER = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_BOLD_STARS = re.compile(r"\*\*(.+?)\*\*")
_BOLD_UNDERSCORES = re.compile(r"__(.+?)__")
_ITALIC_STAR = re.compile(r"\*([^*]+?)\*")
_ITALIC_UNDERSCORE = re.compile(r"_([^_]+?)_")
_BULLET = re.compile(r"^[-*]\s+", re.MULTILINE)


def strip_markdown(markdown: Optional[str]) -> str:
    """
    Return plain text: headers, bold and italic markers removed,
    '-'/'*' bullets rendered as '• '.
    """
    if not markdown:
        return ""

    text = _HEADER.sub("", markdown)
    text = _BOLD_STARS.sub(r"\1", text)
    text = _BOLD_UNDERSCORES.sub(r"\1", text)
    # bullets before italics so "* item" is not read as an italic opener
    text = _BULLET.sub("• ", text)
    text = _ITALIC_STAR.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    return text
