"""
Scene models - one generated narrative beat and its derived lines.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ParsedLine:
    """A single displayable line: attributed dialogue or narration (character=None)."""

    character: Optional[str]
    dialogue: str

    @property
    def is_dialogue(self) -> bool:
        return self.character is not None


@dataclass
class SceneOutline:
    """Seed for a scene: one-sentence description plus who appears in it."""

    description: str
    character_names: list[str] = field(default_factory=list)


@dataclass
class Scene:
    """
    A generated scene in the story history.

    Everything except voice_urls is fixed once the scene enters history.
    voice_urls is sparse: line index -> voice asset reference, filled in as
    lines are voiced.
    """

    description: str
    text: str
    image_url: str
    music_url: str
    voice_urls: dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "text": self.text,
            "imageUrl": self.image_url,
            "musicUrl": self.music_url,
            "voiceUrls": {str(k): v for k, v in sorted(self.voice_urls.items())},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Scene":
        return cls(
            description=data["description"],
            text=data["text"],
            image_url=data["imageUrl"],
            music_url=data["musicUrl"],
            voice_urls={int(k): v for k, v in (data.get("voiceUrls") or {}).items()},
        )
