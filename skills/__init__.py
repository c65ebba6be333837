"""
Skills - Composable generation capabilities for the visual novel player.

Each skill is a directory containing skill_name.py (implementation) and an
__init__ re-exporting its public surface. ContentGateway wraps them behind
one async interface and stores their media in an AssetStore.
"""

from .parse_dialogue.parse_dialogue import parse_dialogue, next_dialogue_index
from .generate_concept.generate_concept import ConceptGenerator, apply_user_characters, assign_voices
from .generate_scene.generate_scene import SceneWriter, format_scene_history
from .generate_scene_image.generate_scene_image import SceneImageGenerator, ImageResult
from .generate_music.generate_music import MusicGenerator, MusicResult
from .generate_tts.generate_tts import TTSGenerator, TTSResult

from .asset_store import AssetStore
from .gateway import ContentGateway

__all__ = [
    "parse_dialogue",
    "next_dialogue_index",
    "ConceptGenerator",
    "apply_user_characters",
    "assign_voices",
    "SceneWriter",
    "format_scene_history",
    "SceneImageGenerator",
    "ImageResult",
    "MusicGenerator",
    "MusicResult",
    "TTSGenerator",
    "TTSResult",
    "AssetStore",
    "ContentGateway",
]
