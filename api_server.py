"""
FastAPI server for OuteTTS GGUF
Provides endpoints for TTS synthesis, speaker listing, and health checks.
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from outetts_gguf.config import Settings, configure_logging
from outetts_gguf.errors import (
    AudioDecodeError,
    ConfigError,
    GenerationError,
    PromptTooLong,
    SpeakerFileError,
    UnknownLanguage,
    UnknownSpeaker,
)
from outetts_gguf.interface import InterfaceGGUF, get_context

logger = logging.getLogger("api_server")

app = FastAPI(title="OuteTTS GGUF API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global TTS instance
interface: Optional[InterfaceGGUF] = None


class SynthesisRequest(BaseModel):
    text: str
    language: str = "en"
    speaker: Optional[str] = None
    temperature: float = Field(0.1, ge=0)
    repetition_penalty: float = Field(1.1, gt=0)
    max_length: int = Field(4096, gt=0)
    seed: int = 0


@app.on_event("startup")
def startup_event():
    """Load the model on startup"""
    global interface
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.verbose)
    logger.info("Initializing OuteTTS GGUF...")
    interface = InterfaceGGUF(get_context(settings))
    logger.info("OuteTTS GGUF initialized successfully")


def _require_interface() -> InterfaceGGUF:
    if interface is None:
        raise HTTPException(status_code=503, detail="TTS model not initialized")
    return interface


@app.get("/health")
def health_check():
    """Health check endpoint"""
    _require_interface()
    return {"status": "healthy", "model": "OuteTTS GGUF"}


@app.get("/voices")
def list_voices():
    """List default speakers by language"""
    tts = _require_interface()
    return {"voices": tts.speakers.available()}


@app.post("/synthesize")
def synthesize_speech(request: SynthesisRequest):
    """
    Synthesize speech from text, optionally conditioned on a default speaker
    """
    tts = _require_interface()

    input_text = request.text.strip()
    if not input_text:
        raise HTTPException(status_code=400, detail="Input text cannot be empty")

    try:
        speaker = None
        if request.speaker:
            speaker = tts.load_default_speaker(request.speaker, request.language)
        output = tts.generate(
            input_text,
            speaker=speaker,
            temperature=request.temperature,
            repetition_penalty=request.repetition_penalty,
            max_length=request.max_length,
            language=request.language,
            additional_gen_config={"seed": request.seed},
        )
    except (UnknownLanguage, UnknownSpeaker, SpeakerFileError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ConfigError, PromptTooLong) as e:
        raise HTTPException(status_code=400, detail=f"Synthesis failed: {e}")
    except (GenerationError, AudioDecodeError) as e:
        logger.exception("Synthesis failed")
        raise HTTPException(status_code=500, detail=f"Synthesis failed: {e}")

    return Response(
        content=output.to_wav_bytes(),
        media_type="audio/wav",
        headers={"Content-Disposition": "attachment; filename=synthesis.wav"},
    )


@app.get("/")
def root():
    """Root endpoint with API information"""
    return {
        "name": "OuteTTS GGUF API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "synthesize": "/synthesize",
            "voices": "/voices",
        },
    }


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="OuteTTS GGUF API Server")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8011, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    uvicorn.run(
        "api_server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
