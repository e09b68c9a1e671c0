"""Shared test doubles for the tokenizer, inference engine and audio decoder."""
import json
import re
from typing import Optional, Sequence

import numpy as np
import pytest

from outetts_gguf.config import Settings
from outetts_gguf.interface import TTSContext
from outetts_gguf.speakers import SpeakerRepository
from outetts_gguf.vocabulary import VocabularyMap

AUDIO_TOKEN_BASE = 1000
EOS_ID = 2
_SPECIAL_RE = re.compile(r"(<\|[^|]+\|>)")
_NAMED_SPECIALS = {
    "<|im_start|>": 1,
    "<|im_end|>": EOS_ID,
    "<|text_start|>": 900,
    "<|text_end|>": 901,
    "<|audio_start|>": 902,
    "<|audio_end|>": 903,
    "<|code_start|>": 904,
    "<|code_end|>": 905,
    "<|text_sep|>": 906,
}


class FakeTokenizer:
    """Special tokens map to single ids, any other character to its code point."""

    def __init__(self):
        self.calls = 0

    def encode(self, text: str) -> list[int]:
        self.calls += 1
        ids = []
        for part in _SPECIAL_RE.split(text):
            if not part:
                continue
            if part in _NAMED_SPECIALS:
                ids.append(_NAMED_SPECIALS[part])
            elif re.fullmatch(r"<\|\d+\|>", part):
                ids.append(AUDIO_TOKEN_BASE + int(part[2:-2]))
            elif part.startswith("<|t_"):
                ids.append(907)
            else:
                ids.extend(min(ord(c), 899) + 10_000 for c in part)
        return ids

    def decode(self, ids: Sequence[int]) -> str:
        return " ".join(str(i) for i in ids)


class FakeEngine:
    """Inference engine double that counts calls.

    Emits ``script`` in order and then ``fill`` forever (never EOS unless
    scripted).
    """

    n_ctx = 4096

    def __init__(self, script: Sequence[int] = (), fill: int = AUDIO_TOKEN_BASE + 7, fail_at: Optional[int] = None):
        self.script = list(script)
        self.fill = fill
        self.fail_at = fail_at
        self.prefill_calls: list[list[int]] = []
        self.decode_calls: list[tuple[int, int]] = []
        self.sample_calls = 0
        self.clear_calls = 0

    @property
    def engine_calls(self) -> int:
        return len(self.prefill_calls) + len(self.decode_calls) + self.sample_calls + self.clear_calls

    def prefill(self, tokens):
        self.prefill_calls.append(list(tokens))

    def decode_step(self, token, pos):
        if self.fail_at is not None and len(self.decode_calls) == self.fail_at:
            raise RuntimeError("decode failed")
        self.decode_calls.append((token, pos))

    def sample(self, policy):
        self.sample_calls += 1
        if self.script:
            return self.script.pop(0)
        return self.fill

    def is_end_token(self, token):
        return token == EOS_ID

    def clear_cache(self):
        self.clear_calls += 1


class FakeDecoder:
    sample_rate = 24_000

    def __init__(self, samples_per_code: int = 4):
        self.samples_per_code = samples_per_code
        self.calls: list[np.ndarray] = []

    def decode(self, codes: np.ndarray) -> np.ndarray:
        self.calls.append(codes)
        n = codes.shape[1] * self.samples_per_code
        return np.linspace(-0.5, 0.5, n, dtype=np.float32)[np.newaxis, np.newaxis, :]


def write_profile(root, language: str, name: str) -> dict:
    """Write a small speaker profile as ``{language}_{name}.json`` under ``root``."""
    profile = {
        "name": name,
        "language": language,
        "text": "hello world",
        "words": [
            {"word": "hello", "duration": 0.3, "codes": [11, 12, 13]},
            {"word": "world", "duration": 0.25, "codes": [21, 22]},
        ],
    }
    (root / f"{language}_{name}.json").write_text(json.dumps(profile), encoding="utf-8")
    return profile


@pytest.fixture
def tokenizer() -> FakeTokenizer:
    return FakeTokenizer()


@pytest.fixture
def vocabulary(tokenizer) -> VocabularyMap:
    return VocabularyMap.build(tokenizer)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def speakers_dir(tmp_path):
    root = tmp_path / "speakers"
    root.mkdir()
    write_profile(root, "en", "male_1")
    write_profile(root, "en", "female_1")
    return root


@pytest.fixture
def context(tokenizer, vocabulary, engine, decoder, speakers_dir) -> TTSContext:
    settings = Settings(max_seq_length=4096, speakers_dir=str(speakers_dir))
    return TTSContext(settings, tokenizer, vocabulary, engine, decoder, SpeakerRepository(root=speakers_dir))
