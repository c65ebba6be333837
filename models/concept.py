"""
StoryConcept model - the definition of a whole story.

Title, setting, plot summary and the cast. Created once per story and only
ever replaced wholesale.
"""

import json
from dataclasses import dataclass, field
from typing import Optional

from .character import CharacterProfile


@dataclass
class StoryConcept:
    """The overall story definition: premise plus character roster."""

    title: str
    setting: str
    plot_summary: str
    characters: list[CharacterProfile] = field(default_factory=list)

    def find_character(self, name: Optional[str]) -> Optional[CharacterProfile]:
        """
        Find a cast member by the name a script line uses.

        Exact case-insensitive match first, then a partial match so that
        "Kenji" resolves to "Kenji Tanaka".
        """
        if not name:
            return None
        lower_name = name.lower()
        for character in self.characters:
            if character.name.lower() == lower_name:
                return character
        for character in self.characters:
            if lower_name in character.name.lower():
                return character
        return None

    def characters_named(self, names: list[str]) -> list[CharacterProfile]:
        """Characters whose name exactly matches (case-insensitive) one of names."""
        wanted = {n.lower() for n in names}
        return [c for c in self.characters if c.name.lower() in wanted]

    def to_prompt_json(self) -> str:
        """Concept as pretty JSON for prompts, without reference image data."""
        return json.dumps(self.to_dict(include_images=False), indent=2)

    def to_dict(self, include_images: bool = True) -> dict:
        """Serialize concept to the raw concept document."""
        return {
            "title": self.title,
            "setting": self.setting,
            "plotSummary": self.plot_summary,
            "characters": [c.to_dict(include_image=include_images) for c in self.characters],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoryConcept":
        """Deserialize concept from the raw concept document."""
        return cls(
            title=data["title"],
            setting=data["setting"],
            plot_summary=data["plotSummary"],
            characters=[CharacterProfile.from_dict(c) for c in data.get("characters", [])],
        )
