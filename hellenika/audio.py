import os
import logging
from elevenlabs.client import ElevenLabs

from hellenika.config import ELEVENLABS_VOICE_ID, ELEVENLABS_MODEL_ID
from hellenika.gemini import to_data_uri

logger = logging.getLogger("audio")

OUTPUT_FORMAT = "mp3_44100_128"


def get_client() -> ElevenLabs:
    api_key = os.getenv("ELEVENLABS_API_KEY")
    if not api_key:
        logger.error("ELEVENLABS_API_KEY not found in environment variables.")
        raise ValueError("ElevenLabs API Key is missing.")
    return ElevenLabs(api_key=api_key)


def synthesize(text: str) -> bytes:
    """Full mp3 bytes for text, read with the multilingual voice."""
    client = get_client()
    try:
        chunks = client.text_to_speech.convert(
            text=text,
            voice_id=ELEVENLABS_VOICE_ID,
            model_id=ELEVENLABS_MODEL_ID,
            output_format=OUTPUT_FORMAT,
        )
        return b"".join(chunks)
    except Exception as e:
        logger.error(f"ElevenLabs generation failed: {e}")
        if hasattr(e, "body"):
            logger.error(f"API Response: {e.body}")
        raise


def generate_audio(text: str) -> str:
    """
    Reads Greek text aloud and returns it as a Base64 mp3 Data URI.
    """
    if not text or not text.strip():
        raise ValueError("Text cannot be empty")
    return to_data_uri("audio/mp3", synthesize(text.strip()))
