"""
WAV wrapping for raw PCM returned by Gemini audio models.

TTS returns 24kHz mono and Lyria returns 48kHz stereo, both as headerless
16-bit little-endian PCM. Players need a container, so we add the minimal
44-byte RIFF header.
"""

import io
import wave

from config import SAMPLE_WIDTH


def pcm_to_wav(pcm_data: bytes, sample_rate: int, channels: int) -> bytes:
    """Wrap 16-bit PCM data in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm_data)
    return buffer.getvalue()


def pcm_duration(pcm_data: bytes, sample_rate: int, channels: int) -> float:
    """Calculate audio duration from PCM data."""
    return len(pcm_data) / (sample_rate * channels * SAMPLE_WIDTH)
