"""Mapping between tokenizer ids and WavTokenizer audio codes.

The language model emits audio as special tokens ``<|0|>`` ... ``<|4099|>``.
Each of them must be a single entry of the tokenizer vocabulary; the map is
built once at startup and only read afterwards.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from .errors import VocabularyMismatch
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)

AUDIO_CODE_COUNT = 4100
AUDIO_CODE_FORMAT = "<|{}|>"


class VocabularyMap:
    def __init__(self, token_to_code: dict[int, int], code_to_token: list[int]):
        self._token_to_code = token_to_code
        self._code_to_token = tuple(code_to_token)

    @classmethod
    def build(
        cls,
        tokenizer: Tokenizer,
        size: int = AUDIO_CODE_COUNT,
        fmt: str = AUDIO_CODE_FORMAT,
    ) -> "VocabularyMap":
        token_to_code: dict[int, int] = {}
        code_to_token: list[int] = []
        for code in range(size):
            text = fmt.format(code)
            ids = tokenizer.encode(text)
            if len(ids) != 1:
                raise VocabularyMismatch(
                    f"Audio code token {text!r} encodes to {len(ids)} ids {ids[:8]}; "
                    "the tokenizer does not match the model vocabulary."
                )
            token = ids[0]
            if token in token_to_code:
                raise VocabularyMismatch(
                    f"Audio codes {token_to_code[token]} and {code} both map to token id {token}."
                )
            token_to_code[token] = code
            code_to_token.append(token)
        logger.debug("Built audio vocabulary map with %d codes", size)
        return cls(token_to_code, code_to_token)

    def __len__(self) -> int:
        return len(self._code_to_token)

    def decode(self, token_id: int) -> Optional[int]:
        """Audio code for a token id, or None for text/structural tokens."""
        return self._token_to_code.get(token_id)

    def token_for(self, code: int) -> int:
        if not 0 <= code < len(self._code_to_token):
            raise KeyError(code)
        return self._code_to_token[code]

    def extract(self, ids: Iterable[int]) -> list[int]:
        """Keep only audio tokens, in order, as audio codes."""
        codes = []
        for token in ids:
            code = self._token_to_code.get(token)
            if code is not None:
                codes.append(code)
        return codes
