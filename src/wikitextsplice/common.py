# Some definitions used by the scanners and the object model
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re

# Unicode bidirectional control characters; MediaWiki strips these
# from titles and so do we from titles, headings and link captions.
BIDI_RE: re.Pattern[str] = re.compile("[\u200e\u200f\u202a-\u202e]+")

COMMENT_RE: re.Pattern[str] = re.compile(r"<!--.*?-->")


def clean(text: str, trim: bool = True) -> str:
    """Removes bidi control characters and (by default) surrounding
    whitespace."""
    text = BIDI_RE.sub("", text)
    return text.strip() if trim else text


def remove_comments(text: str) -> str:
    """Removes all <!-- comments --> from the text."""
    return COMMENT_RE.sub("", text)


def byte_length(text: str) -> int:
    """Returns the length of the text in UTF-8 bytes."""
    return len(text.encode("utf-8", "surrogatepass"))


def trim_byte_length(text: str, limit: int) -> str:
    """Cuts the text to at most ``limit`` UTF-8 bytes without splitting a
    character."""
    if byte_length(text) <= limit:
        return text
    total = 0
    for i, ch in enumerate(text):
        total += byte_length(ch)
        if total > limit:
            return text[:i]
    return text
