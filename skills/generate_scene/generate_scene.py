"""
Scene Writing Skill - outline and script for the next scene.

Two calls per scene:
1. Outline (Flash, structured JSON): one-sentence description + cast list,
   conditioned on every earlier scene description so the story keeps moving
2. Script (Flash Lite, free-form): dialogue and narration lines in the
   "Name: line" / ": narration" format the dialogue parser reads
"""

import asyncio
import logging
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from config import GOOGLE_API_KEY, TEXT_MODEL_FLASH, TEXT_MODEL_LITE
from agent.prompts import Prompts
from errors import GenerationError
from models.concept import StoryConcept
from models.scene import SceneOutline
from models.schemas import GeneratedSceneOutline
from skills.ai_log import log_ai_interaction

logger = logging.getLogger(__name__)


def format_scene_history(descriptions: list[str]) -> str:
    """Render earlier scene descriptions as numbered lines, or N/A."""
    history = "\n".join(f"Scene {i + 1}: {d}" for i, d in enumerate(descriptions))
    return history or "N/A"


class SceneWriter:
    """
    Plan and write scenes using Gemini text models.

    The outline is schema-validated; the script is accepted as-is since the
    parser tolerates format drift.
    """

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or genai.Client(api_key=GOOGLE_API_KEY)
        self.outline_model = TEXT_MODEL_FLASH
        self.script_model = TEXT_MODEL_LITE

    async def generate_description(
        self,
        concept: StoryConcept,
        prior_descriptions: list[str],
    ) -> SceneOutline:
        """
        Generate the outline for the next scene.

        Args:
            concept: The active story concept
            prior_descriptions: Descriptions of every scene so far, in order

        Returns:
            SceneOutline with description and character names

        Raises:
            GenerationError: if the response isn't a valid outline
        """
        contents = Prompts.GENERATE_SCENE_DESCRIPTION.format(
            concept_json=concept.to_prompt_json(),
            history=format_scene_history(prior_descriptions),
        )
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=GeneratedSceneOutline,
        )

        log_ai_interaction("generateSceneDescription", model=self.outline_model, prompt=contents, config=config)

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.outline_model,
            contents=contents,
            config=config,
        )

        json_text = (response.text or "").strip()
        try:
            outline = GeneratedSceneOutline.model_validate_json(json_text)
        except ValidationError as e:
            log_ai_interaction(
                "generateSceneDescription",
                error=f"Failed to parse scene description JSON: {e}",
                response_body=json_text,
            )
            raise GenerationError(
                "The AI returned an invalid scene description structure. Please try again."
            ) from e

        log_ai_interaction("generateSceneDescription", response=outline.description)
        return SceneOutline(description=outline.description, character_names=list(outline.characters))

    async def generate_text(
        self,
        concept: StoryConcept,
        description: str,
        previous_text: Optional[str] = None,
    ) -> str:
        """
        Write the script for a scene.

        Args:
            concept: The active story concept
            description: This scene's one-sentence description
            previous_text: Script of the scene before, or None for the first scene

        Returns:
            Raw scene script
        """
        previous_context = (
            Prompts.PREVIOUS_SCENE_CONTEXT.format(previous_text=previous_text)
            if previous_text
            else Prompts.FIRST_SCENE_CONTEXT
        )
        contents = Prompts.GENERATE_SCENE_TEXT.format(
            concept_json=concept.to_prompt_json(),
            description=description,
            previous_context=previous_context,
        )

        log_ai_interaction("generateSceneText", model=self.script_model, prompt=contents)

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.script_model,
            contents=contents,
        )

        text = (response.text or "").strip()
        if not text:
            logger.warning("[SceneWriter] Empty scene script returned")
        log_ai_interaction("generateSceneText", response=f"{len(text)} chars")
        return text
