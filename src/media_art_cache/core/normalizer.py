"""
Metadata string normalization.

Turns free-text artist/title metadata into the canonical comparison form
used for cache keys and for matching image filenames.
"""

from typing import Optional

from .constants import BRACKET_PAIRS, INVALID_CHARACTERS

# Same set g_ascii_isspace() accepts; str.strip() without arguments would
# also trim Unicode spaces and break compatibility with existing caches.
_ASCII_WHITESPACE = " \t\n\r\x0b\x0c"

_DELETE_INVALID = str.maketrans("", "", INVALID_CHARACTERS)


def _strip_blocks(text: str) -> str:
    """
    Remove bracketed blocks, earliest opening bracket first.

    For every bracket kind the first opening character is paired with the
    next closing character after it; there is no nesting awareness, so
    ``met[xX[x]alli]ca`` becomes ``metalli]ca``.
    """
    pieces = []
    rest = text

    while True:
        block_start = -1
        block_end = -1

        for open_char, close_char in BRACKET_PAIRS:
            start = rest.find(open_char)
            if start == -1:
                continue
            end = rest.find(close_char, start + 1)
            if end == -1:
                continue
            if block_start == -1 or start < block_start:
                block_start, block_end = start, end

        if block_start == -1:
            pieces.append(rest)
            break

        pieces.append(rest[:block_start])
        rest = rest[block_end + 1:]
        if not rest:
            break

    return "".join(pieces)


def strip_invalid_entities(original: Optional[str]) -> Optional[str]:
    """
    Normalize an artist or title string.

    Args:
        original: Raw metadata value

    Returns:
        The normalized string, or None when ``original`` is None. An empty
        string stays an empty string.
    """
    if original is None:
        return None

    text = _strip_blocks(original)
    text = text.lower()
    text = text.translate(_DELETE_INVALID)
    text = text.replace("\t", " ")

    while "  " in text:
        text = text.replace("  ", " ")

    return text.strip(_ASCII_WHITESPACE)


normalize = strip_invalid_entities
