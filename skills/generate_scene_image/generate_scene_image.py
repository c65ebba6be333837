"""
Scene Image Skill - Gemini Flash Image background generation.

Generates one anime background per scene with:
- Text descriptions of every character in the scene
- User reference images attached for characters that have one
- The block reason surfaced when the model refuses
"""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass

from google import genai
from google.genai import types

from config import GOOGLE_API_KEY, IMAGE_MODEL
from agent.prompts import Prompts
from errors import GenerationError
from models.character import CharacterProfile, split_data_url
from skills.ai_log import log_ai_interaction

logger = logging.getLogger(__name__)


@dataclass
class ImageResult:
    """Raw image returned by the model."""
    data: bytes
    mime_type: str


def _describe_refusal(response) -> str:
    """Build an error message from the first candidate's finish reason and safety ratings."""
    candidate = response.candidates[0] if getattr(response, "candidates", None) else None
    finish_reason = getattr(candidate, "finish_reason", None) if candidate else None
    safety_ratings = getattr(candidate, "safety_ratings", None) if candidate else None
    if safety_ratings:
        ratings = json.dumps([str(r) for r in safety_ratings])
    else:
        ratings = json.dumps("N/A")
    block_reason = getattr(getattr(response, "prompt_feedback", None), "block_reason", None)
    message = (
        f"No image was generated. Finish reason: {finish_reason or 'N/A'}. "
        f"Safety ratings: {ratings}"
    )
    if block_reason:
        message += f". Block reason: {block_reason}"
    return message


class SceneImageGenerator:
    """
    Generate scene backgrounds using Gemini Flash Image.

    Characters with reference images get them attached after the prompt,
    in the order they appear in the character list.
    """

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or genai.Client(api_key=GOOGLE_API_KEY)
        self.model = IMAGE_MODEL

    def _build_prompt(self, description: str, characters: list[CharacterProfile]) -> str:
        if characters:
            character_descriptions = "The scene features the following characters:\n" + "\n".join(
                f"- {c.name}: {c.description}" for c in characters
            )
        else:
            character_descriptions = "This scene does not feature any specific characters."

        references = "\n".join(
            f"- Use the provided image as a reference for the character {c.name}."
            for c in characters
            if c.image_data_url
        )
        character_references = f"\n**Character References:**\n{references}" if references else ""

        return Prompts.GENERATE_SCENE_IMAGE.format(
            character_descriptions=character_descriptions,
            character_references=character_references,
            description=description,
        )

    async def generate(
        self,
        description: str,
        characters: list[CharacterProfile],
    ) -> ImageResult:
        """
        Generate a background image for a scene.

        Args:
            description: The scene's one-sentence description
            characters: Characters appearing in the scene

        Returns:
            ImageResult with raw bytes and mime type

        Raises:
            GenerationError: if no image comes back (refusal, empty result)
        """
        parts = [types.Part.from_text(text=self._build_prompt(description, characters))]
        for character in characters:
            if character.image_data_url:
                mime_type, data = split_data_url(character.image_data_url)
                parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))

        config = types.GenerateContentConfig(response_modalities=["IMAGE"])
        log_ai_interaction("generateSceneImage", model=self.model, prompt=parts, config=config)

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=parts,
            config=config,
        )

        if response.candidates and response.candidates[0].content:
            for part in response.candidates[0].content.parts or []:
                if part.inline_data and part.inline_data.data:
                    image = part.inline_data.data
                    # Decode if base64
                    if isinstance(image, str):
                        image = base64.b64decode(image)
                    mime_type = part.inline_data.mime_type or "image/png"
                    log_ai_interaction("generateSceneImage", response="Successfully generated image.")
                    return ImageResult(data=image, mime_type=mime_type)

        error_msg = _describe_refusal(response)
        log_ai_interaction("generateSceneImage", error=error_msg, response_body=response)
        raise GenerationError(error_msg)
