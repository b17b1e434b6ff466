"""
Vietnamese name helpers for OCR output.

OCR frequently drops the spaces of an all-caps beneficiary name, so
"LE VAN NAM" arrives as "LEVANNAM". split_vietnamese_name() restores the
SURNAME MIDDLE GIVEN shape using a closed list of common surnames.
"""

import unicodedata

from .vocabulary import NAME_BREAK_TOKENS, VIETNAMESE_SURNAMES

# Tried longest first: "LAMVANNAM" is LAM + VANNAM, not LA + MVANNAM.
_SURNAMES_LONGEST_FIRST = tuple(sorted(VIETNAMESE_SURNAMES, key=len, reverse=True))

MIN_CONCATENATED_LENGTH = 6
MIN_REMAINDER_LENGTH = 4
MAX_REMAINDER_LENGTH = 12
SPLIT_OFFSETS = (0, 1, 2)


def split_vietnamese_name(concatenated: str | None) -> str | None:
    """
    Split a concatenated all-caps name into "SURNAME MIDDLE GIVEN".

    The remainder after the surname is cut near its midpoint, trying offsets
    0, +1 and +2; the first cut leaving both parts with at least 2 letters wins.

    Returns:
        The spaced name, or None when no surname matches or the remainder
        length falls outside 4-12.
    """
    if not concatenated or len(concatenated) < MIN_CONCATENATED_LENGTH:
        return None

    for surname in _SURNAMES_LONGEST_FIRST:
        if not concatenated.startswith(surname):
            continue

        remaining = concatenated[len(surname):]
        if not MIN_REMAINDER_LENGTH <= len(remaining) <= MAX_REMAINDER_LENGTH:
            continue

        mid = len(remaining) // 2
        for offset in SPLIT_OFFSETS:
            breakpoint_ = mid + offset
            middle, given = remaining[:breakpoint_], remaining[breakpoint_:]
            if len(middle) >= 2 and len(given) >= 2:
                return f"{surname} {middle} {given}"

    return None


def fold_to_ascii_upper(text: str) -> str:
    """NGUYỄN Văn Nam -> NGUYEN VAN NAM (diacritics removed, đ/Đ -> D)."""
    text = text.replace("đ", "d").replace("Đ", "D")
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.upper()


def name_segments(tokens: list[str]) -> list[list[str]]:
    """
    Cut a run of upper-case tokens into name-shaped segments.

    Stop words, bank tokens and receipt labels end the current segment and
    are dropped.
    Tokens of a single letter also end it, except that a trailing initial
    ("NGUYEN VAN A") is kept when at least two full tokens precede it.
    Only segments of 2-5 tokens are returned.
    """
    segments = []
    current: list[str] = []

    def close():
        if 2 <= len(current) <= 5:
            segments.append(list(current))
        current.clear()

    for token in tokens:
        if token in NAME_BREAK_TOKENS:
            close()
        elif len(token) == 1:
            if len(current) >= 2 and token.isalpha():
                current.append(token)
            close()
        else:
            current.append(token)
    close()

    return segments


def is_valid_name(name: str | None) -> bool:
    """At least two tokens of 2+ letters, optionally followed by one trailing initial."""
    if not name:
        return False
    tokens = name.split(" ")
    if tokens[-1:] and len(tokens[-1]) == 1 and len(tokens) >= 3:
        tokens = tokens[:-1]
    return len(tokens) >= 2 and all(len(token) >= 2 for token in tokens)
