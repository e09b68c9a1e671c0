"""WAV container writer.

Canonical output is 16-bit signed PCM, mono, little-endian, with the standard
44-byte RIFF header. Samples are clipped to [-1, 1] and scaled by 32767 with
round-half-to-even.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)


def to_pcm16(waveform: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    samples = np.clip(np.asarray(waveform, dtype=np.float64).reshape(-1), -1.0, 1.0)
    return np.rint(samples * 32767).astype("<i2")


def encode(waveform: Union[np.ndarray, Sequence[float]], sample_rate: int) -> bytes:
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    buffer = io.BytesIO()
    sf.write(buffer, to_pcm16(waveform), sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


@dataclass
class ModelOutput:
    audio: np.ndarray
    sr: int

    def __len__(self) -> int:
        return int(self.audio.shape[0])

    @property
    def duration(self) -> float:
        return len(self) / self.sr

    def to_wav_bytes(self) -> bytes:
        return encode(self.audio, self.sr)

    def save(self, path: Union[str, Path]) -> None:
        if not len(self):
            logger.warning("Audio is empty, skipping save.")
            return
        Path(path).write_bytes(self.to_wav_bytes())
        logger.info("Saved %.2fs of audio to %s", self.duration, path)
