"""
TTS Generation Skill - Gemini TTS for dialogue lines.

Generates one voice clip per dialogue line with:
- The character's assigned prebuilt voice
- A persona prompt so delivery matches the character description
- WAV output (24kHz mono 16-bit) ready for playback
"""

import asyncio
import base64
import logging
from dataclasses import dataclass

from google import genai
from google.genai import types

from config import (
    GOOGLE_API_KEY,
    TTS_MODEL,
    VOICE_SAMPLE_RATE,
    VOICE_CHANNELS,
    DEFAULT_VOICE,
)
from errors import GenerationError
from skills.ai_log import log_ai_interaction
from skills.wav_utils import pcm_to_wav, pcm_duration

logger = logging.getLogger(__name__)


@dataclass
class TTSResult:
    """Result of TTS generation."""
    wav_data: bytes
    duration_seconds: float
    voice_used: str


class TTSGenerator:
    """
    Generate speech audio using Gemini TTS.

    One request per line; the prompt carries the persona, the voice config
    carries the timbre.
    """

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or genai.Client(api_key=GOOGLE_API_KEY)
        self.model = TTS_MODEL

    async def generate_voice(self, prompt: str, voice_name: str = None) -> TTSResult:
        """
        Generate speech for a single line.

        Args:
            prompt: Persona instruction plus the line to speak
            voice_name: Prebuilt voice (falls back to the default voice)

        Returns:
            TTSResult with WAV bytes and duration

        Raises:
            GenerationError: if no audio comes back
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        voice = voice_name or DEFAULT_VOICE
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=voice,
                    )
                )
            ),
        )

        log_ai_interaction("generateDialogueVoice", model=self.model, prompt=prompt, config=config)

        def call_tts():
            return self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )

        response = await asyncio.to_thread(call_tts)

        # Extract audio data
        audio_data = None
        if response.candidates and response.candidates[0].content:
            for part in response.candidates[0].content.parts or []:
                if part.inline_data and part.inline_data.data:
                    audio_data = part.inline_data.data
                    break

        if not audio_data:
            log_ai_interaction("generateDialogueVoice", error="No audio data was returned from the TTS service.")
            raise GenerationError("No audio data was returned from the TTS service.")

        if isinstance(audio_data, str):
            audio_data = base64.b64decode(audio_data)

        duration = pcm_duration(audio_data, VOICE_SAMPLE_RATE, VOICE_CHANNELS)
        log_ai_interaction("generateDialogueVoice", response=f"Voice clip {duration:.2f}s ({voice})")

        return TTSResult(
            wav_data=pcm_to_wav(audio_data, VOICE_SAMPLE_RATE, VOICE_CHANNELS),
            duration_seconds=duration,
            voice_used=voice,
        )
