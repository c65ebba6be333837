"""
Configuration for the Gemini Visual Novel player.

Model Selection:
- Flash for structured story planning (concept, scene outlines)
- Flash Lite for free-form scene scripts
- Flash Image for backgrounds, Flash TTS for voices, Lyria for music

API Access:
- Google AI Studio (GOOGLE_API_KEY)
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# =============================================================================
# Model Configuration
# =============================================================================

TEXT_MODEL_FLASH = os.getenv("TEXT_MODEL_FLASH", "gemini-2.5-flash")
TEXT_MODEL_LITE = os.getenv("TEXT_MODEL_LITE", "gemini-flash-lite-latest")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
TTS_MODEL = os.getenv("TTS_MODEL", "gemini-2.5-flash-preview-tts")
# Lyria realtime is only served on the v1alpha API surface
MUSIC_MODEL = os.getenv("MUSIC_MODEL", "models/lyria-realtime-exp")
MUSIC_API_VERSION = "v1alpha"

# =============================================================================
# API Configuration
# =============================================================================

GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")


def get_gemini_client(api_version: str = None):
    """
    Get an AI Studio Gemini client.

    Pass api_version="v1alpha" for the live music client.
    """
    from google import genai

    if not GOOGLE_API_KEY:
        raise ValueError("GOOGLE_API_KEY not set. Add it to your environment or .env file.")
    if api_version:
        return genai.Client(api_key=GOOGLE_API_KEY, http_options={"api_version": api_version})
    return genai.Client(api_key=GOOGLE_API_KEY)


# =============================================================================
# Paths
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.resolve()  # Always absolute
ASSETS_DIR = PROJECT_ROOT / "assets"
# Always resolve OUTPUT_DIR relative to PROJECT_ROOT, not CWD
_output_env = os.getenv("OUTPUT_DIR")
if _output_env:
    OUTPUT_DIR = (PROJECT_ROOT / _output_env).resolve()
else:
    OUTPUT_DIR = ASSETS_DIR / "outputs"
ASSET_URL_PREFIX = "/assets/outputs"

OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# =============================================================================
# Playback Settings
# =============================================================================

# Start generating the next scene once this many lines (or fewer) remain
PREFETCH_LINE_THRESHOLD = int(os.getenv("PREFETCH_LINE_THRESHOLD", "40"))

# Wall-clock window for capturing live music before the session is stopped
MUSIC_CAPTURE_SECONDS = float(os.getenv("MUSIC_CAPTURE_SECONDS", "25"))

# Upper bound on reading a single asset while writing a save archive
ARCHIVE_FETCH_TIMEOUT_SECONDS = float(os.getenv("ARCHIVE_FETCH_TIMEOUT_SECONDS", "30"))

# =============================================================================
# Audio Formats
# =============================================================================

# TTS returns 24kHz mono, Lyria returns 48kHz stereo; both 16-bit PCM
VOICE_SAMPLE_RATE = 24000
VOICE_CHANNELS = 1
MUSIC_SAMPLE_RATE = 48000
MUSIC_CHANNELS = 2
SAMPLE_WIDTH = 2

# =============================================================================
# Voices
# =============================================================================

MALE_VOICES = [
    "Charon", "Fenrir", "Orus", "Enceladus", "Iapetus", "Umbriel", "Algieba", "Algenib",
    "Rasalgethi", "Alnilam", "Schedar", "Gacrux", "Zubenelgenubi", "Sadachbia", "Sadaltager",
]

FEMALE_VOICES = [
    "Zephyr", "Puck", "Kore", "Leda", "Aoede", "Callirrhoe", "Autonoe", "Despina",
    "Erinome", "Sulafat", "Laomedeia", "Achernar", "Pulcherrima", "Achird", "Vindemiatrix",
]

# Used when a speaker can't be matched to a concept character
DEFAULT_VOICE = "Kore"

# =============================================================================
# Title Screen
# =============================================================================

SUGGESTION_PROMPTS = [
    "A yuri high-school romance with a supernatural twist.",
    "A detective story in a cyberpunk city.",
    "A fantasy adventure in a world of floating islands.",
    "A comedy about a group of talking animals trying to run a cafe.",
    "A space opera about a rebellion against a galactic empire.",
]

# =============================================================================
# Logging
# =============================================================================

import logging

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# =============================================================================
# Print Configuration (for debugging)
# =============================================================================


def print_config():
    """Print current configuration for debugging."""
    print(f"""
Visual Novel Configuration
==========================
Story Model: {TEXT_MODEL_FLASH}
Script Model: {TEXT_MODEL_LITE}
Image Model: {IMAGE_MODEL}
Voice Model: {TTS_MODEL}
Music Model: {MUSIC_MODEL} ({MUSIC_CAPTURE_SECONDS:.0f}s capture)
Prefetch Threshold: {PREFETCH_LINE_THRESHOLD} lines
Project Root: {PROJECT_ROOT}
Output Dir: {OUTPUT_DIR}
Log Level: {LOG_LEVEL}
""")


if __name__ == "__main__":
    print_config()
