from __future__ import annotations

import re

from .errors import UnsupportedLanguage
from .numbers import number_to_words

# Languages with default speakers. Only English text can be normalized for now.
LANGUAGES = ("en", "ja", "ko", "zh")
NORMALIZED_LANGUAGES = ("en",)

_NUMBER_RE = re.compile(r"\d+(\.\d+)?")
_SEPARATOR_RE = re.compile(r"[-_/,.\\]")
_NON_LETTER_RE = re.compile(r"[^a-z\s]")


def check_language(language: str) -> str:
    language = language.lower().strip()
    if language not in LANGUAGES:
        raise UnsupportedLanguage(
            f"Language {language} not supported, supported languages are {list(LANGUAGES)}"
        )
    if language not in NORMALIZED_LANGUAGES:
        raise UnsupportedLanguage(
            f"Language {language} is not supported yet for text normalization. "
            f"Supported: {list(NORMALIZED_LANGUAGES)}"
        )
    return language


def normalize(text: str, language: str = "en") -> list[str]:
    """Turn raw text into the word sequence the model was trained on.

    Lowercases, spells out numbers, turns separator punctuation into spaces,
    drops every other non-letter character and splits on whitespace.
    """
    check_language(language)
    text = text.lower()
    text = _NUMBER_RE.sub(lambda m: number_to_words(m.group(0)), text)
    text = _SEPARATOR_RE.sub(" ", text)
    text = _NON_LETTER_RE.sub("", text)
    return text.split()
