"""
Data models for the visual novel player.

These models represent the building blocks of a play session:
- Characters (generated cast + user-seeded characters)
- Concepts (premise + cast)
- Scenes (text, image, music, per-line voices)
- Sessions (concept + scene history, the unit of persistence)
"""

from .character import CharacterProfile, UserCharacter
from .concept import StoryConcept
from .scene import ParsedLine, Scene, SceneOutline
from .session import Session

__all__ = [
    "CharacterProfile",
    "UserCharacter",
    "StoryConcept",
    "ParsedLine",
    "Scene",
    "SceneOutline",
    "Session",
]
