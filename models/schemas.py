"""
Pydantic schemas for everything that crosses a trust boundary.

Structured model output (concept, scene outline) and save manifests are
validated here before they become dataclasses. Validation is strict: a
document either matches completely or is rejected.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Structured Generation Output
# =============================================================================

class GeneratedCharacter(BaseModel):
    """A cast member as returned by the concept model."""
    name: str = Field(min_length=1)
    description: str
    gender: str


class GeneratedConcept(BaseModel):
    """Concept JSON as returned by the concept model."""
    title: str
    setting: str
    plotSummary: str
    characters: list[GeneratedCharacter]


class GeneratedSceneOutline(BaseModel):
    """Scene outline JSON as returned by the scene description model."""
    description: str = Field(min_length=1)
    characters: list[str] = []


# =============================================================================
# Raw Concept Document (settings editor + save manifest)
# =============================================================================

class CharacterDocument(BaseModel):
    """A cast member in the editable concept document."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    description: str = ""
    gender: str = "non-binary"
    voice: Optional[str] = None
    imageDataUrl: Optional[str] = None


class ConceptDocument(BaseModel):
    """The editable concept document."""
    model_config = ConfigDict(extra="forbid")

    title: str
    setting: str
    plotSummary: str
    characters: list[CharacterDocument] = []

    @field_validator("characters")
    @classmethod
    def _unique_names(cls, characters: list[CharacterDocument]) -> list[CharacterDocument]:
        seen = set()
        for character in characters:
            key = character.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate character name: {character.name}")
            seen.add(key)
        return characters


# =============================================================================
# Save Manifest
# =============================================================================

MANIFEST_VERSION = 1


class SceneRecord(BaseModel):
    """A scene in the save manifest with archive-relative asset paths."""
    model_config = ConfigDict(extra="forbid")

    description: str
    text: str
    imageUrl: str = Field(min_length=1)
    musicUrl: str = Field(min_length=1)
    # Sparse: only voiced lines appear. Keys are line indices.
    voiceUrls: dict[int, str] = {}

    @field_validator("voiceUrls")
    @classmethod
    def _non_negative_lines(cls, voice_urls: dict[int, str]) -> dict[int, str]:
        for line_index in voice_urls:
            if line_index < 0:
                raise ValueError(f"Negative line index in voiceUrls: {line_index}")
        return voice_urls


class SessionManifest(BaseModel):
    """The session.json document inside a save archive."""
    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = MANIFEST_VERSION
    concept: ConceptDocument
    sceneHistory: list[SceneRecord]
