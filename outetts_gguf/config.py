from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import ConfigError

DEFAULT_MODEL_REPO = "OuteAI/OuteTTS-0.2-500M-GGUF"
DEFAULT_MODEL_FILE = "*FP16.gguf"
DEFAULT_TOKENIZER_REPO = "onnx-community/OuteTTS-0.2-500M"
DEFAULT_DECODER_REPO = "onnx-community/WavTokenizer-large-speech-75token_decode"
DEFAULT_DECODER_FILE = "onnx/model.onnx"


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) in ("1", "true", "True")


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters of a single generation call.

    ``additional`` carries optional sampler settings: ``seed``,
    ``frequency_penalty``, ``presence_penalty``, ``penalty_last_n`` and
    ``cache_clear_interval``.
    """

    temperature: float = 0.1
    repetition_penalty: float = 1.1
    max_length: int = 4096
    additional: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.temperature < 0:
            raise ConfigError(f"temperature must be >= 0, got {self.temperature}")
        if self.repetition_penalty <= 0:
            raise ConfigError(f"repetition_penalty must be > 0, got {self.repetition_penalty}")
        if not isinstance(self.max_length, int) or self.max_length <= 0:
            raise ConfigError(f"max_length must be a positive integer, got {self.max_length!r}")
        object.__setattr__(self, "additional", MappingProxyType(dict(self.additional)))

    def get(self, key: str, default: Any = None) -> Any:
        return self.additional.get(key, default)


@dataclass
class Settings:
    """Process settings, read from ``OUTETTS_*`` environment variables."""

    model: str = DEFAULT_MODEL_REPO
    model_file: str = DEFAULT_MODEL_FILE
    tokenizer: str = DEFAULT_TOKENIZER_REPO
    decoder: str = DEFAULT_DECODER_REPO
    decoder_file: str = DEFAULT_DECODER_FILE
    gpu_layers: int = 0
    max_seq_length: int = 4096
    language: str = "en"
    speakers_dir: Optional[str] = None
    verbose: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        try:
            settings = cls(
                model=os.getenv("OUTETTS_MODEL", DEFAULT_MODEL_REPO),
                model_file=os.getenv("OUTETTS_MODEL_FILE", DEFAULT_MODEL_FILE),
                tokenizer=os.getenv("OUTETTS_TOKENIZER", DEFAULT_TOKENIZER_REPO),
                decoder=os.getenv("OUTETTS_DECODER", DEFAULT_DECODER_REPO),
                decoder_file=os.getenv("OUTETTS_DECODER_FILE", DEFAULT_DECODER_FILE),
                gpu_layers=int(os.getenv("OUTETTS_GPU_LAYERS", "0")),
                max_seq_length=int(os.getenv("OUTETTS_MAX_SEQ_LENGTH", "4096")),
                language=os.getenv("OUTETTS_LANGUAGE", "en").lower().strip(),
                speakers_dir=os.getenv("OUTETTS_SPEAKERS_DIR") or None,
                verbose=_env_bool("OUTETTS_VERBOSE"),
                log_level=os.getenv("OUTETTS_LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid OUTETTS_* environment variable: {e}") from e
        for key, value in overrides.items():
            if value is not None:
                setattr(settings, key, value)
        if settings.max_seq_length <= 0:
            raise ConfigError("max_seq_length must be greater than zero")
        return settings

    def check_max_length(self, max_length: Optional[int]) -> None:
        if max_length is None:
            raise ConfigError("max_length must be specified.")
        if max_length > self.max_seq_length:
            raise ConfigError(
                f"Requested max_length ({max_length}) exceeds the current max_seq_length ({self.max_seq_length})"
            )


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
