"""
Plain-text extraction from RTF.

A single pass over the document that tracks group depth. Destination groups
(font and color tables, stylesheets, document info, pictures, embedded
objects, headers, footers and any ``\\*`` group) are skipped entirely.
Control words are dropped, ``\\'hh`` hex escapes are removed, ``\\uN`` is
decoded, and paragraph/line breaks become newlines.

Dependencies: re
System role: RTF extractor for the document loader
"""

import re

_CONTROL_WORD = re.compile(r"([a-zA-Z]{1,32})(-?\d{1,10})? ?")

_DESTINATIONS = frozenset(
    {
        "fonttbl",
        "colortbl",
        "stylesheet",
        "info",
        "pict",
        "object",
        "shppict",
        "nonshppict",
        "listtable",
        "listoverridetable",
        "revtbl",
        "rsidtbl",
        "generator",
        "xmlnstbl",
        "themedata",
        "colorschememapping",
        "datastore",
        "latentstyles",
        "fldinst",
    }
)
_NEWLINE_WORDS = frozenset({"par", "line", "sect", "page", "row"})
_SPACE_WORDS = frozenset({"tab", "cell"})


def _is_destination(word: str) -> bool:
    return word in _DESTINATIONS or word.startswith(("header", "footer"))


class _RtfScanner:
    def __init__(self, content: str) -> None:
        self._content = content
        self._pos = 0
        self._out: list[str] = []
        self._skip = False
        # Fallback characters to drop after \uN, set by \ucN
        self._uc = 1
        self._pending_fallback = 0
        self._groups: list[tuple[bool, int]] = []

    def scan(self) -> str:
        content = self._content
        length = len(content)
        while self._pos < length:
            ch = content[self._pos]
            if ch == "{":
                self._groups.append((self._skip, self._uc))
                self._pos += 1
            elif ch == "}":
                if self._groups:
                    self._skip, self._uc = self._groups.pop()
                self._pending_fallback = 0
                self._pos += 1
            elif ch == "\\":
                self._control()
            elif ch in "\r\n":
                self._pos += 1
            else:
                self._emit(ch)
                self._pos += 1
        return "".join(self._out)

    def _emit(self, text: str) -> None:
        if self._pending_fallback:
            self._pending_fallback -= 1
            return
        if not self._skip:
            self._out.append(text)

    def _control(self) -> None:
        content = self._content
        self._pos += 1
        if self._pos >= len(content):
            return

        symbol = content[self._pos]
        if symbol in "\\{}":
            self._emit(symbol)
            self._pos += 1
            return
        if symbol == "*":
            self._skip = True
            self._pos += 1
            return
        if symbol == "'":
            # Hex escapes are removed, but still count as a \uN fallback
            if self._pending_fallback:
                self._pending_fallback -= 1
            self._pos += 3
            return
        if symbol in "\r\n":
            self._emit("\n")
            self._pos += 1
            return
        if symbol == "~":
            self._emit(" ")
            self._pos += 1
            return

        match = _CONTROL_WORD.match(content, self._pos)
        if match is None:
            # Other control symbols (\-, \_, \|, \:) carry no text
            self._pos += 1
            return

        self._pos = match.end()
        word, arg = match.group(1), match.group(2)
        self._pending_fallback = 0

        if word == "bin" and arg:
            self._pos += max(int(arg), 0)
        elif word == "u" and arg:
            code = int(arg)
            if code < 0:
                code += 65536
            self._emit(chr(code))
            self._pending_fallback = self._uc
        elif word == "uc" and arg:
            self._uc = max(int(arg), 0)
        elif _is_destination(word):
            self._skip = True
        elif word in _NEWLINE_WORDS:
            self._emit("\n")
        elif word in _SPACE_WORDS:
            self._emit(" ")


def strip_rtf(content: str) -> str:
    """
    Extract readable text from an RTF document.

    Args:
        content: RTF source

    Returns:
        str: Plain text with surrounding whitespace stripped
    """
    if not content:
        return ""
    return _RtfScanner(content).scan().strip()
