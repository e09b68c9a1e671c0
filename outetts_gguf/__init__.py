from .config import GenerationConfig, Settings
from .interface import InterfaceGGUF, TTSContext, get_context
from .speakers import Speaker, SpeakerRepository, Word
from .wav import ModelOutput

__all__ = [
    "GenerationConfig",
    "InterfaceGGUF",
    "ModelOutput",
    "Settings",
    "Speaker",
    "SpeakerRepository",
    "TTSContext",
    "Word",
    "get_context",
]
