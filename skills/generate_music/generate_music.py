"""
Music Generation Skill - Lyria realtime background music.

Lyria streams audio indefinitely, so a scene's track is a bounded capture:
connect, prompt, play, collect chunks for a fixed wall-clock window, stop,
and wrap whatever arrived as 48kHz stereo WAV.
https://ai.google.dev/gemini-api/docs/music-generation
"""

import asyncio
import base64
import logging
from dataclasses import dataclass

from google import genai
from google.genai import types

from config import (
    GOOGLE_API_KEY,
    MUSIC_MODEL,
    MUSIC_API_VERSION,
    MUSIC_CAPTURE_SECONDS,
    MUSIC_SAMPLE_RATE,
    MUSIC_CHANNELS,
)
from agent.prompts import Prompts
from errors import GenerationError
from skills.ai_log import log_ai_interaction
from skills.wav_utils import pcm_to_wav, pcm_duration

logger = logging.getLogger(__name__)


@dataclass
class MusicResult:
    """Result of a music capture."""
    wav_data: bytes
    duration_seconds: float


class MusicGenerator:
    """
    Generate scene background music using Lyria realtime.

    The live session is always stopped when the capture window closes,
    whether or not the stream is still producing audio.
    """

    def __init__(self, client: genai.Client = None, capture_seconds: float = MUSIC_CAPTURE_SECONDS):
        """Initialize with a v1alpha Gemini client."""
        self.client = client or genai.Client(
            api_key=GOOGLE_API_KEY,
            http_options={"api_version": MUSIC_API_VERSION},
        )
        self.model = MUSIC_MODEL
        self.capture_seconds = capture_seconds

    @staticmethod
    async def _collect(session, chunks: list[bytes]) -> None:
        """Append every audio chunk the session sends until it ends."""
        async for message in session.receive():
            server_content = getattr(message, "server_content", None)
            if not server_content or not server_content.audio_chunks:
                continue
            data = server_content.audio_chunks[0].data
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            chunks.append(data)

    async def generate_bgm(self, scene_description: str) -> MusicResult:
        """
        Capture background music for a scene.

        Args:
            scene_description: What's happening in the scene

        Returns:
            MusicResult with WAV bytes and duration

        Raises:
            GenerationError: if no audio arrived within the capture window
        """
        prompt = Prompts.GENERATE_SCENE_MUSIC.format(description=scene_description)
        log_ai_interaction("generateSceneMusic", model=self.model, prompt=prompt)

        chunks: list[bytes] = []
        async with self.client.aio.live.music.connect(model=self.model) as session:
            await session.set_weighted_prompts(
                prompts=[types.WeightedPrompt(text=prompt, weight=1.0)]
            )
            await session.play()
            try:
                await asyncio.wait_for(self._collect(session, chunks), timeout=self.capture_seconds)
            except asyncio.TimeoutError:
                pass
            finally:
                await session.stop()

        if not chunks:
            error_msg = "No audio chunks were received from the music generation service."
            log_ai_interaction("generateSceneMusic", error=error_msg)
            raise GenerationError(error_msg)

        pcm = b"".join(chunks)
        duration = pcm_duration(pcm, MUSIC_SAMPLE_RATE, MUSIC_CHANNELS)
        log_ai_interaction(
            "generateSceneMusic",
            response=f"Successfully generated audio track ({len(pcm) / 1024:.2f} KB, {duration:.1f}s).",
        )
        return MusicResult(
            wav_data=pcm_to_wav(pcm, MUSIC_SAMPLE_RATE, MUSIC_CHANNELS),
            duration_seconds=duration,
        )
