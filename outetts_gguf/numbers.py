"""Spell numbers out as English words.

Integers use the short scale (thousand, million, billion, ...) and can be
arbitrarily large; past vigintillion the scale words are composed, e.g.
``10**66`` reads "one thousand vigintillion". A fractional part is read digit
by digit after "point", so leading zeros survive ("1.05" -> "one point zero
five").

Words are space separated, with no hyphens and no "and", so the output of
:func:`number_to_words` is already normalized text.
"""
from __future__ import annotations

import re

ONES = [
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen",
]
TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]
SCALES = [
    "", "thousand", "million", "billion", "trillion", "quadrillion", "quintillion",
    "sextillion", "septillion", "octillion", "nonillion", "decillion", "undecillion",
    "duodecillion", "tredecillion", "quattuordecillion", "quindecillion",
    "sexdecillion", "septendecillion", "octodecillion", "novemdecillion", "vigintillion",
]

_NUMBER_RE = re.compile(r"^(\d+)(?:\.(\d+))?$")
_DIGITS_RE = re.compile(r"\d+")
# Up to _MAX_GROUPS groups each get their own scale word; beyond that "vigintillion" repeats.
_MAX_GROUPS = len(SCALES)
_BLOCK_DIGITS = 3 * (len(SCALES) - 1)


def _below_thousand(n: int) -> list[str]:
    words: list[str] = []
    hundreds, rest = divmod(n, 100)
    if hundreds:
        words += [ONES[hundreds], "hundred"]
    if rest >= 20:
        tens, ones = divmod(rest, 10)
        words.append(TENS[tens])
        if ones:
            words.append(ONES[ones])
    elif rest or not words:
        words.append(ONES[rest])
    return words


def _spell_groups(digits: str) -> list[str]:
    """Spell at most ``3 * len(SCALES)`` digits, reading groups of three from the right."""
    width = -(-len(digits) // 3) * 3
    digits = digits.rjust(width, "0")
    count = width // 3
    words: list[str] = []
    for position in range(count):
        group = int(digits[3 * position:3 * position + 3])
        if group:
            words += _below_thousand(group)
            scale = SCALES[count - 1 - position]
            if scale:
                words.append(scale)
    return words


def digits_to_words(digits: str) -> str:
    """Spell out a run of decimal digits of any length.

    The run is never converted to a single ``int``, so the interpreter's
    integer string conversion limit does not apply.
    """
    if not _DIGITS_RE.fullmatch(digits):
        raise ValueError(f"Not a digit run: {digits!r}")
    digits = digits.lstrip("0")
    if not digits:
        return ONES[0]
    if len(digits) <= 3 * _MAX_GROUPS:
        return " ".join(_spell_groups(digits))

    # n = head * V**k + blocks, V = vigintillion; each block is below V.
    blocks, extra = divmod(len(digits) - 3 * _MAX_GROUPS, _BLOCK_DIGITS)
    if extra:
        blocks += 1
    split = len(digits) - blocks * _BLOCK_DIGITS
    words = _spell_groups(digits[:split])
    for start in range(split, len(digits), _BLOCK_DIGITS):
        words.append(SCALES[-1])
        block = digits[start:start + _BLOCK_DIGITS].lstrip("0")
        if block:
            words += _spell_groups(block)
    return " ".join(words)


def integer_to_words(n: int) -> str:
    """Spell out a non-negative integer."""
    if n < 0:
        raise ValueError(f"Expected a non-negative integer, got {n}")
    return digits_to_words(str(n))


def number_to_words(token: str) -> str:
    """Spell out a digit run with an optional decimal part, e.g. ``"3.14"``."""
    match = _NUMBER_RE.match(token.strip())
    if match is None:
        raise ValueError(f"Not a number: {token!r}")
    integer, fraction = match.groups()
    words = digits_to_words(integer)
    if fraction:
        words += " point " + " ".join(ONES[int(d)] for d in fraction)
    return words
