from __future__ import annotations

import logging
import warnings
from typing import Optional, Sequence

from .errors import PromptWarning
from .normalizer import normalize
from .speakers import Speaker, Word
from .vocabulary import AUDIO_CODE_FORMAT

logger = logging.getLogger(__name__)

BOS = "<|im_start|>"
TEXT_PROMPT = "{bos}\n{text_start}{words}{text_end}\n{audio_start}\n"

SPECIAL_TOKENS = {
    "audio_code": AUDIO_CODE_FORMAT,
    "text_start": "<|text_start|>",
    "text_end": "<|text_end|>",
    "audio_start": "<|audio_start|>",
    "audio_end": "<|audio_end|>",
    "time": "<|t_{:.2f}|>",
    "code_start": "<|code_start|>",
    "code_end": "<|code_end|>",
    "text_sep": "<|text_sep|>",
}


class PromptBuilder:
    """Fills the OuteTTS completion template.

    The text part lists the normalized words joined by ``<|text_sep|>``. With a
    speaker, its reference words follow the input words and the audio part is
    primed with the speaker's timed codes, one word per line.
    """

    def __init__(self, bos: str = BOS, template: str = TEXT_PROMPT, special_tokens: Optional[dict] = None):
        self.bos = bos
        self.template = template
        self.special_tokens = dict(SPECIAL_TOKENS, **(special_tokens or {}))

    def audio_prompt(self, words: Sequence[Word]) -> str:
        st = self.special_tokens
        lines = []
        for w in words:
            codes = "".join(st["audio_code"].format(c) for c in w.codes)
            lines.append(
                f"{w.word}{st['time'].format(w.duration)}{st['code_start']}{codes}{st['code_end']}"
            )
        return "\n".join(lines)

    def build(self, text: str, language: str, speaker: Optional[Speaker] = None) -> str:
        words = normalize(text, language)

        if speaker is not None:
            if speaker.language != language.lower().strip():
                msg = f"Speaker language {speaker.language} does not match text language {language}"
                logger.warning(msg)
                warnings.warn(msg, PromptWarning, stacklevel=2)
            words += normalize(speaker.text, speaker.language)

        st = self.special_tokens
        prompt = self.template.format(
            bos=self.bos,
            text_start=st["text_start"],
            words=st["text_sep"].join(w.strip() for w in words),
            text_end=st["text_end"],
            audio_start=st["audio_start"],
        )

        if speaker is not None:
            prompt += self.audio_prompt(speaker.words)
        return prompt
