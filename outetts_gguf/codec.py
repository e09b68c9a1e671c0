"""WavTokenizer decoder (ONNX) and the codes -> waveform step."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

import numpy as np

from .config import DEFAULT_DECODER_FILE, DEFAULT_DECODER_REPO
from .errors import AudioDecodeError, ModelLoadError
from .wav import ModelOutput

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24_000


class AudioDecoderEngine(Protocol):
    sample_rate: int

    def decode(self, codes: np.ndarray) -> np.ndarray: ...


@dataclass
class OnnxCodecDecoder:
    model_path: str
    _session: Any
    sample_rate: int = SAMPLE_RATE

    @classmethod
    def from_pretrained(
        cls,
        repo_or_path: str = DEFAULT_DECODER_REPO,
        filename: str = DEFAULT_DECODER_FILE,
        local_dir: Optional[str] = None,
    ) -> "OnnxCodecDecoder":
        logger.info("Loading audio decoder from: %s", repo_or_path)
        if Path(repo_or_path).is_file():
            onnx_path = repo_or_path
        else:
            from huggingface_hub import hf_hub_download

            try:
                onnx_path = hf_hub_download(repo_id=repo_or_path, filename=filename, local_dir=local_dir)
            except Exception as e:
                raise ModelLoadError(f"Failed to fetch decoder '{repo_or_path}/{filename}': {e}") from e

        import onnxruntime as ort

        sess_opts = ort.SessionOptions()
        sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_EXTENDED
        try:
            session = ort.InferenceSession(onnx_path, sess_options=sess_opts, providers=["CPUExecutionProvider"])
        except Exception as e:
            raise ModelLoadError(f"Failed to load ONNX decoder {onnx_path}: {e}") from e
        return cls(model_path=onnx_path, _session=session)

    def decode(self, codes: np.ndarray) -> np.ndarray:
        # Expect codes shape [1, T] int64
        if codes.dtype != np.int64:
            codes = codes.astype(np.int64, copy=False)
        in_name = self._session.get_inputs()[0].name
        out_name = self._session.get_outputs()[0].name
        return self._session.run([out_name], {in_name: codes})[0]


class AudioSynthesizer:
    def __init__(self, decoder: AudioDecoderEngine):
        self.decoder = decoder

    @property
    def sample_rate(self) -> int:
        return self.decoder.sample_rate

    def synthesize(self, codes: Sequence[int]) -> ModelOutput:
        if not len(codes):
            logger.warning("No audio tokens found in the output")
            return ModelOutput(np.zeros(0, dtype=np.float32), self.sample_rate)

        tensor = np.asarray(codes, dtype=np.int64)[np.newaxis, :]
        try:
            wav = self.decoder.decode(tensor)
        except Exception as e:
            raise AudioDecodeError(f"Audio decoder failed on {tensor.shape[1]} codes: {e}") from e
        wav = np.asarray(wav)
        if np.issubdtype(wav.dtype, np.integer):
            wav = wav.astype(np.float32) / 32768.0
        else:
            wav = wav.astype(np.float32, copy=False)
        return ModelOutput(wav.reshape(-1), self.sample_rate)
