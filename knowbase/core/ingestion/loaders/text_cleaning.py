"""
Text normalization applied to every extractor's output.

Dependencies: re
System role: Shared cleanup before chunking
"""

import re

# C0 and C1 control characters, DEL included; newline is handled separately
_CONTROL_CHARS = re.compile(r"[\x00-\x09\x0b-\x1f\x7f-\x9f]")
_SPACE_RUNS = re.compile(r"[ \u00a0]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_BLANK_LINE_RUNS = re.compile(r"\n{2,}")


def clean_text(text: str) -> str:
    """
    Normalize extracted text.

    Removes control characters (newlines are kept), collapses runs of spaces
    and tabs into one space and runs of blank lines into one paragraph
    break, then strips the result.

    Args:
        text: Raw extracted text

    Returns:
        str: Cleaned text, possibly empty
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", " ")
    text = _CONTROL_CHARS.sub("", text)
    text = _SPACE_RUNS.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _BLANK_LINE_RUNS.sub("\n\n", text)
    return text.strip()
