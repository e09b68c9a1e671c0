from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .config import DEFAULT_TOKENIZER_REPO
from .errors import ModelLoadError, TokenizeError

logger = logging.getLogger(__name__)


class Tokenizer(Protocol):
    def encode(self, text: str) -> list[int]: ...

    def decode(self, ids: Sequence[int]) -> str: ...


class HFTokenizer:
    """Hugging Face tokenizer used for prompt encoding and the audio-code map."""

    def __init__(self, tokenizer):
        self._tokenizer = tokenizer

    @classmethod
    def from_pretrained(cls, repo_or_path: str = DEFAULT_TOKENIZER_REPO) -> "HFTokenizer":
        logger.info("Loading tokenizer from: %s", repo_or_path)
        from transformers import AutoTokenizer

        try:
            tokenizer = AutoTokenizer.from_pretrained(repo_or_path)
        except OSError as e:
            raise ModelLoadError(f"Failed to load tokenizer from '{repo_or_path}': {e}") from e
        return cls(tokenizer)

    def encode(self, text: str) -> list[int]:
        try:
            return list(self._tokenizer.encode(text, add_special_tokens=False))
        except Exception as e:
            raise TokenizeError(f"Failed to tokenize text: {e}") from e

    def decode(self, ids: Sequence[int]) -> str:
        return self._tokenizer.decode(list(ids), skip_special_tokens=False)
