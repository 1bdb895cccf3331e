"""Narration synthesis using Gemini text-to-speech.

Gemini TTS returns raw 16-bit mono PCM at 24 kHz; it is wrapped in a WAV
container and handed back as a data URI so the artifact can be stored and
played without touching the filesystem.
"""

import base64
import io
import logging
import wave

from google.genai import types
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tubepilot.services.base import SpeechSynthesizer
from tubepilot.services.vertex_client import first_inline_data, get_vertex_client, location_for_model

logger = logging.getLogger(__name__)

PCM_SAMPLE_RATE = 24000
PCM_SAMPLE_WIDTH = 2
PCM_CHANNELS = 1


def pcm_to_wav_data_uri(pcm: bytes) -> str:
    """Wrap raw PCM in a WAV container and encode it as a data URI."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(PCM_CHANNELS)
        wav.setsampwidth(PCM_SAMPLE_WIDTH)
        wav.setframerate(PCM_SAMPLE_RATE)
        wav.writeframes(pcm)
    return "data:audio/wav;base64," + base64.b64encode(buffer.getvalue()).decode()


class GeminiSpeechSynthesizer(SpeechSynthesizer):
    """SpeechSynthesizer backed by a Gemini TTS model."""

    def __init__(self, model_id: str, voice: str = "Algenib", max_retries: int = 3, client=None) -> None:
        self._model_id = model_id
        self._voice = voice
        self._max_retries = max_retries
        self._client = client

    async def synthesize(self, script: str) -> str:
        @retry(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception_type(Exception),
            reraise=True,
        )
        async def _call() -> bytes:
            client = self._client or get_vertex_client(location=location_for_model(self._model_id))
            response = await client.aio.models.generate_content(
                model=self._model_id,
                contents=script,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self._voice),
                        ),
                    ),
                ),
            )
            audio = first_inline_data(response)
            if audio is None:
                raise ValueError("No audio generated in response")
            return audio.data

        pcm = await _call()
        logger.info(f"Synthesized {len(pcm)} bytes of narration with voice {self._voice}")
        return pcm_to_wav_data_uri(pcm)
