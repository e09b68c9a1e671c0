"""Token sampling policy for the generation loop.

The chain is applied in a fixed order, matching llama.cpp's sampler chain:

1. penalties on ids already seen (repetition, then frequency and presence),
2. temperature scaling, followed by a draw from the softmax distribution.

A temperature of 0 picks the arg-max. Draws use a seeded numpy generator so a
given seed always reproduces the same output for the same logits.
"""
from __future__ import annotations

from collections import Counter, deque
from typing import Optional

import numpy as np

from .config import GenerationConfig


class PenaltyState:
    """Recently emitted ids and how often each appears."""

    def __init__(self, last_n: int = 64):
        self.last_n = last_n
        self._window: deque[int] = deque(maxlen=None if last_n < 0 else last_n)
        self._counts: Counter[int] = Counter()

    def accept(self, token: int) -> None:
        if self.last_n == 0:
            return
        if self._window.maxlen is not None and len(self._window) == self._window.maxlen:
            old = self._window[0]
            self._counts[old] -= 1
            if not self._counts[old]:
                del self._counts[old]
        self._window.append(token)
        self._counts[token] += 1

    def counts(self) -> Counter[int]:
        return self._counts

    def __len__(self) -> int:
        return len(self._window)


def apply_penalties(
    logits: np.ndarray,
    counts: Counter[int],
    repetition_penalty: float = 1.0,
    frequency_penalty: float = 0.0,
    presence_penalty: float = 0.0,
) -> np.ndarray:
    if not counts:
        return logits
    ids = np.fromiter(counts.keys(), dtype=np.int64)
    ids = ids[(ids >= 0) & (ids < logits.shape[-1])]
    if not ids.size:
        return logits
    logits = logits.copy()
    picked = logits[ids]
    if repetition_penalty != 1.0:
        picked = np.where(picked > 0, picked / repetition_penalty, picked * repetition_penalty)
    n = np.array([counts[int(i)] for i in ids], dtype=logits.dtype)
    picked = picked - n * frequency_penalty - (n > 0) * presence_penalty
    logits[ids] = picked
    return logits


def apply_temperature(logits: np.ndarray, temperature: float) -> np.ndarray:
    return logits / temperature


class SamplerChain:
    def __init__(
        self,
        temperature: float = 0.1,
        repetition_penalty: float = 1.1,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
        penalty_last_n: int = 64,
        seed: Optional[int] = 0,
    ):
        self.temperature = temperature
        self.repetition_penalty = repetition_penalty
        self.frequency_penalty = frequency_penalty
        self.presence_penalty = presence_penalty
        self.penalties = PenaltyState(penalty_last_n)
        self.rng = np.random.default_rng(seed)

    @classmethod
    def from_config(cls, config: GenerationConfig) -> "SamplerChain":
        return cls(
            temperature=config.temperature,
            repetition_penalty=config.repetition_penalty,
            frequency_penalty=float(config.get("frequency_penalty", 0.0)),
            presence_penalty=float(config.get("presence_penalty", 0.0)),
            penalty_last_n=int(config.get("penalty_last_n", 64)),
            seed=config.get("seed", 0),
        )

    def accept(self, token: int) -> None:
        self.penalties.accept(token)

    def process(self, logits: np.ndarray) -> np.ndarray:
        """Penalised, temperature-scaled logits (before the draw)."""
        logits = np.asarray(logits, dtype=np.float32).reshape(-1)
        logits = apply_penalties(
            logits,
            self.penalties.counts(),
            self.repetition_penalty,
            self.frequency_penalty,
            self.presence_penalty,
        )
        if self.temperature <= 0:
            return logits
        return apply_temperature(logits, self.temperature)

    def sample(self, logits: np.ndarray) -> int:
        scores = self.process(logits)
        if self.temperature <= 0:
            return int(np.argmax(scores))
        scores = scores.astype(np.float64)
        probs = np.exp(scores - scores.max())
        probs /= probs.sum()
        return int(self.rng.choice(probs.shape[0], p=probs))
