import argparse
import sys

from .config import Settings, configure_logging
from .errors import ConfigError, OuteTTSError
from .interface import InterfaceGGUF, TTSContext
from .normalizer import LANGUAGES
from .speakers import SpeakerRepository


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OuteTTS GGUF text to speech")
    parser.add_argument("--model", type=str, default=None, help="Path to a GGUF model file or a Hugging Face repo id")
    parser.add_argument("--model_file", type=str, default=None, help="GGUF filename pattern when --model is a repo id")
    parser.add_argument("--tokenizer", type=str, default=None, help="Tokenizer repo id or directory")
    parser.add_argument("--decoder", type=str, default=None, help="WavTokenizer ONNX decoder path or repo id")
    parser.add_argument("--text", type=str, help="Text to synthesize")
    parser.add_argument("--language", type=str, default="en", choices=LANGUAGES, help="Language for synthesis")
    parser.add_argument("--speaker", type=str, default="none", help="Default speaker voice to use ('none' for no speaker)")
    parser.add_argument("--speaker_file", type=str, default=None, help="Speaker profile JSON; overrides --speaker")
    parser.add_argument("--speakers_dir", type=str, default=None, help="Directory holding the default speaker profiles")
    parser.add_argument("--output", type=str, default="output.wav", help="Output audio file path")
    parser.add_argument("--gpu_layers", type=int, default=0, help="Number of GPU layers to use")
    parser.add_argument("--temperature", type=float, default=0.1, help="Generation temperature")
    parser.add_argument("--max_length", type=int, default=4096, help="Maximum total sequence length")
    parser.add_argument("--repetition_penalty", type=float, default=1.1, help="Repetition penalty")
    parser.add_argument("--seed", type=int, default=0, help="Sampling seed")
    parser.add_argument("--list_speakers", action="store_true", help="List default speakers and exit")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)

    if args.list_speakers:
        for language, names in SpeakerRepository().available().items():
            print(f"{language}: {', '.join(names)}")
        return 0
    if not args.text:
        print("error: --text is required", file=sys.stderr)
        return 2

    try:
        settings = Settings.from_env(
            model=args.model,
            model_file=args.model_file,
            tokenizer=args.tokenizer,
            decoder=args.decoder,
            gpu_layers=args.gpu_layers,
            language=args.language,
            speakers_dir=args.speakers_dir,
            verbose=args.verbose or None,
            max_seq_length=args.max_length,
        )
        speakers = SpeakerRepository(root=settings.speakers_dir)
        if args.speaker_file:
            speaker = speakers.load(args.speaker_file)
        elif args.speaker.lower() != "none":
            speaker = speakers.get(args.language, args.speaker)
        else:
            speaker = None

        interface = InterfaceGGUF(TTSContext.load(settings))
        output = interface.generate(
            args.text,
            speaker=speaker,
            temperature=args.temperature,
            repetition_penalty=args.repetition_penalty,
            max_length=args.max_length,
            additional_gen_config={"seed": args.seed},
        )
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (OuteTTSError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not len(output):
        print("error: no audio was produced, the model emitted no audio codes", file=sys.stderr)
        return 1
    output.save(args.output)
    print(f"Audio saved to: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
