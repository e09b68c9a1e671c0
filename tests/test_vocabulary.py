"""Unit tests for the audio-code vocabulary map."""
import pytest

from outetts_gguf.errors import VocabularyMismatch
from outetts_gguf.vocabulary import AUDIO_CODE_COUNT, VocabularyMap

from conftest import AUDIO_TOKEN_BASE, FakeTokenizer


def test_round_trip_for_every_code(vocabulary):
    assert len(vocabulary) == AUDIO_CODE_COUNT
    for code in range(AUDIO_CODE_COUNT):
        assert vocabulary.decode(vocabulary.token_for(code)) == code


def test_decode_unknown_token_is_none(vocabulary):
    assert vocabulary.decode(1) is None
    assert vocabulary.decode(AUDIO_TOKEN_BASE + AUDIO_CODE_COUNT) is None


def test_token_for_out_of_range(vocabulary):
    with pytest.raises(KeyError):
        vocabulary.token_for(AUDIO_CODE_COUNT)
    with pytest.raises(KeyError):
        vocabulary.token_for(-1)


def test_extract_keeps_order_and_drops_text_tokens(vocabulary):
    ids = [1, AUDIO_TOKEN_BASE + 5, 906, AUDIO_TOKEN_BASE + 3, AUDIO_TOKEN_BASE + 5, 10_050]
    assert vocabulary.extract(ids) == [5, 3, 5]


def test_extract_equals_mapped_subsequence(vocabulary):
    ids = list(range(990, 1010)) + list(range(5090, 5110))
    expected = [i - AUDIO_TOKEN_BASE for i in ids if AUDIO_TOKEN_BASE <= i < AUDIO_TOKEN_BASE + AUDIO_CODE_COUNT]
    assert vocabulary.extract(ids) == expected
    assert vocabulary.extract([]) == []


class SplittingTokenizer(FakeTokenizer):
    """Breaks one audio code into two ids, as a mismatched vocabulary would."""

    def encode(self, text):
        if text == "<|17|>":
            return [60, 17]
        return super().encode(text)


class CollidingTokenizer(FakeTokenizer):
    def encode(self, text):
        if text == "<|9|>":
            return [AUDIO_TOKEN_BASE + 8]
        return super().encode(text)


def test_build_fails_on_multi_id_code():
    with pytest.raises(VocabularyMismatch, match="<\\|17\\|>"):
        VocabularyMap.build(SplittingTokenizer())


def test_build_fails_on_colliding_ids():
    with pytest.raises(VocabularyMismatch, match="both map"):
        VocabularyMap.build(CollidingTokenizer())


def test_build_smaller_range():
    vocab = VocabularyMap.build(FakeTokenizer(), size=10)
    assert len(vocab) == 10
    assert vocab.decode(AUDIO_TOKEN_BASE + 10) is None
