"""Speaker profiles used to condition the voice of the generated audio.

A profile is a JSON file::

    {"name": ..., "language": ..., "text": ...,
     "words": [{"word": ..., "duration": 0.32, "codes": [1021, 88, ...]}, ...]}

The default speakers are the OuteTTS-0.2 profiles, read from
``$OUTETTS_SPEAKERS_DIR/{language}_{name}.json``.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError, SpeakerFileError, UnknownLanguage, UnknownSpeaker
from .vocabulary import AUDIO_CODE_COUNT

logger = logging.getLogger(__name__)

DEFAULT_SPEAKERS = {
    "en": ("male_1", "male_2", "male_3", "male_4", "female_1", "female_2"),
    "ja": ("male_1", "female_1", "female_2", "female_3"),
    "ko": ("male_1", "male_2", "female_1", "female_2"),
    "zh": ("male_1", "female_1"),
}


@dataclass(frozen=True)
class Word:
    word: str
    duration: float
    codes: tuple[int, ...]


@dataclass(frozen=True)
class Speaker:
    name: str
    language: str
    text: str
    words: tuple[Word, ...]

    @classmethod
    def from_dict(cls, data: dict, name: Optional[str] = None) -> "Speaker":
        try:
            words = []
            for item in data["words"]:
                duration = float(item["duration"])
                codes = tuple(int(c) for c in item["codes"])
                if duration < 0:
                    raise ConfigError(f"Negative duration for word {item['word']!r}")
                bad = [c for c in codes if not 0 <= c < AUDIO_CODE_COUNT]
                if bad:
                    raise ConfigError(f"Audio codes out of range for word {item['word']!r}: {bad[:5]}")
                words.append(Word(str(item["word"]), duration, codes))
            return cls(
                name=str(data.get("name") or name or ""),
                language=str(data["language"]).lower().strip(),
                text=str(data["text"]),
                words=tuple(words),
            )
        except ConfigError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid speaker profile: {e!r}") from e

    def to_dict(self) -> dict:
        data = asdict(self)
        data["words"] = [dict(w, codes=list(w["codes"])) for w in data["words"]]
        return data


def load(path: str | Path) -> Speaker:
    """Read a speaker profile from a JSON file."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpeakerFileError(f"Could not read speaker file {path}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Speaker file {path} is not valid JSON: {e}") from e
    return Speaker.from_dict(data, name=path.stem)


def save(speaker: Speaker, path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(speaker.to_dict(), f, indent=2)


class SpeakerRepository:
    """Read-only registry of the default speakers, keyed by (language, name).

    Profile files are not shipped with the package. They are looked up as
    ``{language}_{name}.json`` under ``root`` (``OUTETTS_SPEAKERS_DIR``),
    parsed on first access and cached.
    """

    def __init__(
        self,
        index: Optional[dict[str, dict[str, Optional[Path]]]] = None,
        root: Optional[str | Path] = None,
    ):
        self._index = index
        self.root = Path(root) if root is not None else None
        self._cache: dict[tuple[str, str], Speaker] = {}
        self._lock = threading.Lock()

    def _default_index(self) -> dict[str, dict[str, Optional[Path]]]:
        return {
            language: {
                name: self.root / f"{language}_{name}.json" if self.root is not None else None
                for name in names
            }
            for language, names in DEFAULT_SPEAKERS.items()
        }

    @property
    def index(self) -> dict[str, dict[str, Optional[Path]]]:
        if self._index is None:
            with self._lock:
                if self._index is None:
                    self._index = self._default_index()
        return self._index

    def available(self) -> dict[str, list[str]]:
        return {language: list(names) for language, names in self.index.items()}

    def validate(self, language: str, name: str) -> bool:
        language = language.lower().strip()
        name = name.lower().strip()
        if language not in self.index:
            raise UnknownLanguage(
                f"Speaker for language {language} not found. "
                f"Available languages: {sorted(self.index)}"
            )
        speakers = self.index[language]
        if name not in speakers:
            raise UnknownSpeaker(
                f"Speaker '{name}' not found for language '{language}'. "
                f"Available speakers: {list(speakers)}"
            )
        return True

    def get(self, language: str, name: str) -> Speaker:
        self.validate(language, name)
        key = (language.lower().strip(), name.lower().strip())
        path = self.index[key[0]][key[1]]
        if path is None:
            raise SpeakerFileError(
                f"No profile file for speaker '{key[1]}' ({key[0]}). Set OUTETTS_SPEAKERS_DIR "
                f"to a directory holding the OuteTTS default speaker profiles "
                f"({key[0]}_{key[1]}.json), or pass a profile file instead."
            )
        with self._lock:
            speaker = self._cache.get(key)
            if speaker is None:
                logger.debug("Loading speaker '%s' for language '%s' from %s", key[1], key[0], path)
                speaker = load(path)
                self._cache[key] = speaker
        return speaker

    def load(self, path: str | Path) -> Speaker:
        return load(path)
