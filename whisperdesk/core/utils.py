"""Shared utility functions for WhisperDesk."""

import re

# Speaker labels, timestamps and markers such as [BLANK_AUDIO]
_BRACKETED = re.compile(r"\[.*?\]", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


def normalize_transcript(text: str) -> str:
    """Clean raw engine output into a single line of plain text.

    Drops bracketed tokens and colons, collapses every whitespace run
    (newlines included) into one space and trims the ends, so
    ``"[SPEAKER]: Hello\\nworld  !"`` becomes ``"Hello world !"``.
    Applying it twice gives the same result as applying it once.
    """
    text = _BRACKETED.sub("", text)
    text = text.replace(":", "")
    return _WHITESPACE.sub(" ", text).strip()
