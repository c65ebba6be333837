"""
Character models - the cast of a visual novel.

A CharacterProfile is a generated (or user-seeded) member of the story's
cast with a fixed TTS voice. A UserCharacter is what the player types in on
the title screen before the concept exists.
"""

import base64
import re
from dataclasses import dataclass
from typing import Literal, Optional

Gender = Literal["male", "female", "non-binary"]
GENDERS = ("male", "female", "non-binary")

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.*)$", re.DOTALL)


def split_data_url(data_url: str) -> tuple[str, bytes]:
    """
    Split a base64 data URL into (mime_type, raw bytes).

    Falls back to image/png when the URL has no usable mime type.
    """
    match = _DATA_URL_RE.match(data_url or "")
    if match:
        return match.group(1), base64.b64decode(match.group(2))
    # Bare base64 without the data: prefix
    payload = data_url.split(",", 1)[-1]
    return "image/png", base64.b64decode(payload)


def normalize_gender(value: Optional[str]) -> str:
    """Map free-form model output onto the three supported genders."""
    gender = (value or "").strip().lower()
    return gender if gender in GENDERS else "non-binary"


@dataclass
class UserCharacter:
    """A character the player provides up front."""

    name: str
    description: str = ""
    image_data_url: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Character must have a name")

    def to_prompt_context(self) -> str:
        return (
            f"Name: {self.name}\n"
            f"Description: {self.description or 'Not specified by user.'}\n"
            f"Image Provided: {'Yes' if self.image_data_url else 'No'}"
        )


@dataclass
class CharacterProfile:
    """
    A member of the story's cast.

    The voice is assigned once when the concept is created and only
    changes if the player edits the concept document.
    """

    name: str
    description: str
    gender: Gender = "non-binary"
    voice: Optional[str] = None
    image_data_url: Optional[str] = None

    def to_dict(self, include_image: bool = True) -> dict:
        data = {
            "name": self.name,
            "description": self.description,
            "gender": self.gender,
            "voice": self.voice,
        }
        if include_image:
            data["imageDataUrl"] = self.image_data_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CharacterProfile":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            gender=normalize_gender(data.get("gender")),
            voice=data.get("voice"),
            image_data_url=data.get("imageDataUrl"),
        )
