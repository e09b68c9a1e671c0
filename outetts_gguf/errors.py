"""Exception types raised by the OuteTTS GGUF pipeline."""


class OuteTTSError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(OuteTTSError, ValueError):
    """Invalid configuration: language, speaker, generation parameters."""


class UnsupportedLanguage(ConfigError):
    pass


class UnknownLanguage(ConfigError):
    pass


class UnknownSpeaker(ConfigError):
    pass


class PromptWarning(UserWarning):
    """Non-fatal prompt issue, e.g. speaker and text languages differ."""


class TokenizeError(OuteTTSError):
    pass


class VocabularyMismatch(TokenizeError):
    """The tokenizer does not map the audio-code tokens one to one."""


class GenerationError(OuteTTSError):
    pass


class PromptTooLong(GenerationError):
    def __init__(self, n_tokens: int, max_length: int):
        super().__init__(
            f"Prompt is {n_tokens} tokens long which does not fit in max_length={max_length}. "
            "Use a shorter text or increase max_length."
        )
        self.n_tokens = n_tokens
        self.max_length = max_length


class AudioDecodeError(OuteTTSError):
    pass


class SpeakerFileError(OuteTTSError, OSError):
    pass


class ModelLoadError(OuteTTSError, OSError):
    pass
