"""Tests for the command line entry point."""
import pytest

from outetts_gguf import __main__ as cli
from outetts_gguf.interface import TTSContext

from conftest import AUDIO_TOKEN_BASE, EOS_ID


def test_list_speakers(capsys):
    assert cli.main(["--list_speakers"]) == 0
    out = capsys.readouterr().out
    assert "en: male_1, male_2" in out


def test_text_required(capsys):
    assert cli.main([]) == 2
    assert "--text is required" in capsys.readouterr().err


def test_unknown_speaker_fails_before_loading(monkeypatch, capsys):
    def boom(settings):
        raise AssertionError("model should not be loaded")

    monkeypatch.setattr(TTSContext, "load", staticmethod(boom))
    assert cli.main(["--text", "hi", "--speaker", "male_9"]) == 2
    assert "male_9" in capsys.readouterr().err


def test_unsupported_language_choice():
    with pytest.raises(SystemExit):
        cli.main(["--text", "hi", "--language", "fr"])


def test_writes_output(monkeypatch, tmp_path, context, engine, capsys):
    engine.script = [AUDIO_TOKEN_BASE + 1, EOS_ID]
    monkeypatch.setattr(TTSContext, "load", staticmethod(lambda settings: context))
    out = tmp_path / "speech.wav"
    code = cli.main(["--text", "Hello", "--speaker", "none", "--output", str(out), "--max_length", "256"])
    assert code == 0
    assert out.read_bytes()[:4] == b"RIFF"
    assert "Audio saved to" in capsys.readouterr().out


def test_model_load_error(monkeypatch, capsys):
    def fail(settings):
        raise OSError("no such model")

    monkeypatch.setattr(TTSContext, "load", staticmethod(fail))
    assert cli.main(["--text", "hi", "--speaker", "none"]) == 1
    assert "no such model" in capsys.readouterr().err


def test_default_is_no_speaker(monkeypatch, tmp_path, context, engine):
    engine.script = [AUDIO_TOKEN_BASE + 1, EOS_ID]
    monkeypatch.setattr(TTSContext, "load", staticmethod(lambda settings: context))
    assert cli.main(["--text", "Hello", "--output", str(tmp_path / "a.wav"), "--max_length", "256"]) == 0
    prompt_ids = engine.prefill_calls[0]
    assert not any(AUDIO_TOKEN_BASE <= i < AUDIO_TOKEN_BASE + 4100 for i in prompt_ids)


def test_speaker_from_speakers_dir(monkeypatch, tmp_path, context, engine, speakers_dir):
    engine.script = [AUDIO_TOKEN_BASE + 1, EOS_ID]
    monkeypatch.setattr(TTSContext, "load", staticmethod(lambda settings: context))
    argv = [
        "--text", "Hello", "--speaker", "male_1", "--speakers_dir", str(speakers_dir),
        "--output", str(tmp_path / "a.wav"), "--max_length", "256",
    ]
    assert cli.main(argv) == 0
    assert AUDIO_TOKEN_BASE + 11 in engine.prefill_calls[0]


def test_speaker_without_profiles(monkeypatch, capsys):
    monkeypatch.delenv("OUTETTS_SPEAKERS_DIR", raising=False)
    monkeypatch.setattr(TTSContext, "load", staticmethod(lambda settings: None))
    assert cli.main(["--text", "hi", "--speaker", "male_1"]) == 1
    assert "OUTETTS_SPEAKERS_DIR" in capsys.readouterr().err


def test_no_audio_produced(monkeypatch, tmp_path, context, engine, capsys):
    engine.script = [10_100, EOS_ID]
    monkeypatch.setattr(TTSContext, "load", staticmethod(lambda settings: context))
    out = tmp_path / "speech.wav"
    assert cli.main(["--text", "Hello", "--output", str(out), "--max_length", "256"]) == 1
    captured = capsys.readouterr()
    assert "no audio was produced" in captured.err
    assert "Audio saved to" not in captured.out
    assert not out.exists()
