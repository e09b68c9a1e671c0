"""Application context and the text -> audio pipeline."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .codec import AudioDecoderEngine, AudioSynthesizer, OnnxCodecDecoder
from .config import GenerationConfig, Settings
from .engine import InferenceEngine, LlamaCppEngine
from .generation import GenerationController
from .prompt import PromptBuilder
from .speakers import Speaker, SpeakerRepository
from .tokenizer import HFTokenizer, Tokenizer
from .vocabulary import VocabularyMap
from .wav import ModelOutput

logger = logging.getLogger(__name__)


@dataclass
class TTSContext:
    """Long-lived resources shared by every request of the process."""

    settings: Settings
    tokenizer: Tokenizer
    vocabulary: VocabularyMap
    engine: InferenceEngine
    decoder: AudioDecoderEngine
    speakers: SpeakerRepository

    @classmethod
    def load(cls, settings: Settings) -> "TTSContext":
        tokenizer = HFTokenizer.from_pretrained(settings.tokenizer)
        vocabulary = VocabularyMap.build(tokenizer)
        engine = LlamaCppEngine.load(
            settings.model,
            n_gpu_layers=settings.gpu_layers,
            n_ctx=settings.max_seq_length,
            model_file=settings.model_file,
        )
        decoder = OnnxCodecDecoder.from_pretrained(settings.decoder, settings.decoder_file)
        return cls(settings, tokenizer, vocabulary, engine, decoder, SpeakerRepository(root=settings.speakers_dir))


_context: Optional[TTSContext] = None
_context_lock = threading.Lock()


def get_context(settings: Optional[Settings] = None) -> TTSContext:
    """Process-wide context, loaded on first call only."""
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = TTSContext.load(settings or Settings.from_env())
    return _context


class InterfaceGGUF:
    def __init__(self, context: TTSContext):
        self.context = context
        self.settings = context.settings
        self.prompt_builder = PromptBuilder()
        self.controller = GenerationController(context.engine, context.tokenizer)
        self.synthesizer = AudioSynthesizer(context.decoder)

        if self.settings.verbose:
            for language, names in context.speakers.available().items():
                logger.info("Language '%s' speakers: %s", language, ", ".join(names))

    @property
    def speakers(self) -> SpeakerRepository:
        return self.context.speakers

    def load_speaker(self, path: Union[str, Path]) -> Speaker:
        return self.speakers.load(path)

    def load_default_speaker(self, name: str, language: Optional[str] = None) -> Speaker:
        language = language or self.settings.language
        logger.debug("Loading speaker '%s' for language '%s'", name, language)
        return self.speakers.get(language, name)

    def prepare_prompt(self, text: str, speaker: Optional[Speaker] = None, language: Optional[str] = None) -> str:
        return self.prompt_builder.build(text, language or self.settings.language, speaker)

    def generate(
        self,
        text: str,
        speaker: Optional[Speaker] = None,
        temperature: float = 0.1,
        repetition_penalty: float = 1.1,
        max_length: int = 4096,
        language: Optional[str] = None,
        additional_gen_config: Optional[Mapping[str, Any]] = None,
    ) -> ModelOutput:
        self.settings.check_max_length(max_length)
        config = GenerationConfig(
            temperature=temperature,
            repetition_penalty=repetition_penalty,
            max_length=max_length,
            additional=additional_gen_config or {},
        )
        prompt = self.prepare_prompt(text, speaker, language)
        n_prompt = len(self.context.tokenizer.encode(prompt))
        logger.info("Input tokens: %d", n_prompt)
        logger.info("Generating audio...")

        output = self.controller.generate(prompt, config)
        codes = self.context.vocabulary.extract(output[n_prompt:])
        logger.debug("Extracted %d audio codes from %d generated tokens", len(codes), len(output) - n_prompt)

        audio = self.synthesizer.synthesize(codes)
        logger.info("Audio generation completed (%.2fs)", audio.duration)
        return audio
