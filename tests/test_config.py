"""
Test: Configuration Loading

Verifies that:
1. Config module loads correctly
2. Environment variables are read
3. Voice pools are disjoint and the default voice is a real voice
4. Path configuration is correct

Run: python tests/test_config.py
"""

import importlib
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def test_config_loading():
    """Test configuration loading."""

    print("=" * 60)
    print("TEST: Configuration Loading")
    print("=" * 60)
    print()

    import config
    print("✓ Config module imported")

    # Test model configuration
    print()
    print("Model Configuration:")
    print("-" * 40)
    print(f"  TEXT_MODEL_FLASH: {config.TEXT_MODEL_FLASH}")
    print(f"  TEXT_MODEL_LITE: {config.TEXT_MODEL_LITE}")
    print(f"  IMAGE_MODEL: {config.IMAGE_MODEL}")
    print(f"  TTS_MODEL: {config.TTS_MODEL}")
    print(f"  MUSIC_MODEL: {config.MUSIC_MODEL} ({config.MUSIC_API_VERSION})")
    assert config.MUSIC_API_VERSION == "v1alpha"
    print("✓ Model configuration loaded")

    # Test API configuration
    print()
    print("API Configuration:")
    print("-" * 40)
    print(f"  GOOGLE_API_KEY: {'***' + config.GOOGLE_API_KEY[-4:] if config.GOOGLE_API_KEY else 'Not set'}")

    # Test paths
    print()
    print("Path Configuration:")
    print("-" * 40)
    print(f"  PROJECT_ROOT: {config.PROJECT_ROOT}")
    print(f"  OUTPUT_DIR: {config.OUTPUT_DIR}")
    assert config.PROJECT_ROOT.is_absolute()
    assert config.OUTPUT_DIR.exists()
    assert config.ASSET_URL_PREFIX == "/assets/outputs"
    print("✓ Paths resolved")

    # Test voices
    print()
    print("Voices:")
    print("-" * 40)
    assert len(config.MALE_VOICES) == 15
    assert len(config.FEMALE_VOICES) == 15
    assert not set(config.MALE_VOICES) & set(config.FEMALE_VOICES)
    assert config.DEFAULT_VOICE in config.FEMALE_VOICES
    print(f"  {len(config.MALE_VOICES)} male, {len(config.FEMALE_VOICES)} female, default {config.DEFAULT_VOICE}")
    print("✓ Voice pools valid")

    print()
    print("✅ Config loading test passed!")


def test_playback_settings_from_env():
    """Playback tunables come from the environment."""

    print()
    print("=" * 60)
    print("TEST: Playback Settings")
    print("=" * 60)
    print()

    import config

    original = os.environ.get("PREFETCH_LINE_THRESHOLD")
    try:
        os.environ["PREFETCH_LINE_THRESHOLD"] = "12"
        importlib.reload(config)
        print(f"PREFETCH_LINE_THRESHOLD=12 → {config.PREFETCH_LINE_THRESHOLD}")
        assert config.PREFETCH_LINE_THRESHOLD == 12
    finally:
        if original is None:
            os.environ.pop("PREFETCH_LINE_THRESHOLD", None)
        else:
            os.environ["PREFETCH_LINE_THRESHOLD"] = original
        importlib.reload(config)

    assert config.MUSIC_CAPTURE_SECONDS > 0
    assert config.ARCHIVE_FETCH_TIMEOUT_SECONDS > 0
    print("✓ Playback settings loaded")


def test_client_requires_api_key():
    import config

    original = config.GOOGLE_API_KEY
    config.GOOGLE_API_KEY = None
    try:
        config.get_gemini_client()
    except ValueError as e:
        assert "GOOGLE_API_KEY" in str(e)
    else:
        raise AssertionError("Expected ValueError")
    finally:
        config.GOOGLE_API_KEY = original
    print("✓ Missing key reported")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print(" CONFIGURATION TESTS")
    print("=" * 60 + "\n")

    test_config_loading()
    test_playback_settings_from_env()
    test_client_requires_api_key()

    print("\n✅ ALL TESTS PASSED\n")
