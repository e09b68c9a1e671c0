"""Language-model engine used by the generation loop.

The loop only needs a narrow capability set (see :class:`InferenceEngine`);
:class:`LlamaCppEngine` provides it on top of ``llama-cpp-python`` and test
doubles provide it without a model.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence

import numpy as np

from .config import DEFAULT_MODEL_FILE
from .errors import ConfigError, GenerationError, ModelLoadError

logger = logging.getLogger(__name__)

LFS_POINTER_HEADER = b"version https://git-lfs.github.com/spec/v1"


class Sampler(Protocol):
    def sample(self, logits: np.ndarray) -> int: ...


class InferenceEngine(Protocol):
    n_ctx: int

    def prefill(self, tokens: Sequence[int]) -> None: ...

    def decode_step(self, token: int, pos: int) -> None: ...

    def sample(self, policy: Sampler) -> int: ...

    def is_end_token(self, token: int) -> bool: ...

    def clear_cache(self) -> None: ...


def check_model_file(path: Path) -> None:
    """Reject files that are git-LFS pointers instead of real weights."""
    with open(path, "rb") as f:
        head = f.read(len(LFS_POINTER_HEADER))
    if head == LFS_POINTER_HEADER:
        raise ConfigError(f"{path} is a Git LFS pointer, not the model file. Fetch the real file first.")


class LlamaCppEngine:
    """Owns one ``llama_cpp.Llama`` instance and its context."""

    def __init__(self, llama):
        self._llama = llama
        # Set when an empty prompt was primed with BOS; positions shift by one.
        self._offset = 0

    @classmethod
    def load(
        cls,
        model: str,
        n_gpu_layers: int = 0,
        n_ctx: int = 4096,
        model_file: str = DEFAULT_MODEL_FILE,
    ) -> "LlamaCppEngine":
        logger.info("Loading GGUF model from: %s (gpu layers: %d, n_ctx: %d)", model, n_gpu_layers, n_ctx)
        try:
            from llama_cpp import Llama
        except ImportError as e:
            raise ImportError(
                "Failed to import `llama_cpp`. "
                "Please install it with:\n"
                "    pip install llama-cpp-python"
            ) from e

        path = Path(model)
        if path.is_file():
            check_model_file(path)
        try:
            if path.is_file():
                llama = Llama(
                    model_path=str(path),
                    n_gpu_layers=n_gpu_layers,
                    n_ctx=n_ctx,
                    verbose=False,
                )
            else:
                llama = Llama.from_pretrained(
                    repo_id=model,
                    filename=model_file,
                    n_gpu_layers=n_gpu_layers,
                    n_ctx=n_ctx,
                    verbose=False,
                )
        except (OSError, ValueError) as e:
            raise ModelLoadError(f"Failed to load model '{model}': {e}") from e
        return cls(llama)

    @property
    def n_ctx(self) -> int:
        return self._llama.n_ctx()

    def prefill(self, tokens: Sequence[int]) -> None:
        self.clear_cache()
        self._llama.reset()
        tokens = list(tokens)
        self._offset = 0
        if not tokens:
            tokens = [self._llama.token_bos()]
            self._offset = 1
        self._eval(tokens)

    def decode_step(self, token: int, pos: int) -> None:
        # eval() drops cached positions >= n_tokens before decoding.
        self._llama.n_tokens = pos + self._offset
        self._eval([token])

    def _eval(self, tokens: list[int]) -> None:
        try:
            self._llama.eval(tokens)
        except RuntimeError as e:
            raise GenerationError(f"llama.cpp decode failed: {e}") from e

    def logits(self) -> np.ndarray:
        import llama_cpp

        ptr = llama_cpp.llama_get_logits(self._llama.ctx)
        return np.ctypeslib.as_array(ptr, shape=(self._llama.n_vocab(),)).copy()

    def sample(self, policy: Sampler) -> int:
        return policy.sample(self.logits())

    def is_end_token(self, token: int) -> bool:
        return token == self._llama.token_eos()

    def clear_cache(self) -> None:
        import llama_cpp

        llama_cpp.llama_kv_cache_clear(self._llama.ctx)
