"""Autoregressive generation loop.

States: IDLE -> PROMPT_ENCODED -> DECODING <-> SAMPLING -> STOPPED_EOG or
STOPPED_MAX_LENGTH. A call holds the engine lock from prefill to the end, so
concurrent calls against one engine run one after the other.
"""
from __future__ import annotations

import enum
import logging
import threading

from .config import GenerationConfig
from .engine import InferenceEngine
from .errors import GenerationError, OuteTTSError, PromptTooLong
from .sampling import SamplerChain
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)

# Steps between two clears of the engine's attention cache.
CACHE_CLEAR_INTERVAL = 1024


class GenerationState(enum.Enum):
    IDLE = "idle"
    PROMPT_ENCODED = "prompt_encoded"
    DECODING = "decoding"
    SAMPLING = "sampling"
    STOPPED_EOG = "stopped_eog"
    STOPPED_MAX_LENGTH = "stopped_max_length"


class GenerationController:
    def __init__(self, engine: InferenceEngine, tokenizer: Tokenizer):
        self.engine = engine
        self.tokenizer = tokenizer
        self.last_state = GenerationState.IDLE
        self._lock = threading.Lock()

    def generate(self, prompt: str, config: GenerationConfig) -> list[int]:
        """Return the prompt ids followed by the generated ids.

        The result never holds more than ``config.max_length`` ids; the end
        of generation marker itself is not included.
        """
        tokens = list(self.tokenizer.encode(prompt))
        if len(tokens) >= config.max_length:
            raise PromptTooLong(len(tokens), config.max_length)

        interval = int(config.get("cache_clear_interval", CACHE_CLEAR_INTERVAL))
        with self._lock:
            self.last_state = GenerationState.PROMPT_ENCODED
            try:
                return self._run(tokens, config, interval)
            except OuteTTSError:
                self.last_state = GenerationState.IDLE
                raise
            except Exception as e:
                self.last_state = GenerationState.IDLE
                raise GenerationError(f"Generation failed: {e}") from e

    def _run(self, tokens: list[int], config: GenerationConfig, interval: int) -> list[int]:
        n_prompt = len(tokens)
        logger.debug("Prefilling %d prompt tokens", n_prompt)
        self.engine.prefill(tokens)
        cursor = n_prompt
        sampler = SamplerChain.from_config(config)

        steps = 0
        while len(tokens) < config.max_length:
            self.last_state = GenerationState.SAMPLING
            token = self.engine.sample(sampler)
            sampler.accept(token)
            if self.engine.is_end_token(token):
                self.last_state = GenerationState.STOPPED_EOG
                break
            tokens.append(token)
            if len(tokens) >= config.max_length:
                self.last_state = GenerationState.STOPPED_MAX_LENGTH
                break

            self.last_state = GenerationState.DECODING
            self.engine.decode_step(token, cursor)
            cursor += 1
            steps += 1
            if interval > 0 and steps % interval == 0:
                logger.debug("Clearing engine cache after %d steps", steps)
                self.engine.clear_cache()

        logger.debug(
            "Generated %d tokens (%s)", len(tokens) - n_prompt, self.last_state.value
        )
        return tokens
