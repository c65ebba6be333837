"""
Concept Generation Skill - Gemini structured output for the story premise.

Generates a StoryConcept from a free-text idea and optional user-seeded
characters:
- JSON-schema constrained output, validated strictly before use
- User reference images attached as inline parts
- User images/descriptions overlaid onto the matching generated characters
- One TTS voice per character, unique per gender pool while supplies last
"""

import asyncio
import logging
import random
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from config import (
    GOOGLE_API_KEY,
    TEXT_MODEL_FLASH,
    MALE_VOICES,
    FEMALE_VOICES,
)
from agent.prompts import Prompts
from errors import GenerationError
from models.character import CharacterProfile, UserCharacter, normalize_gender, split_data_url
from models.concept import StoryConcept
from models.schemas import GeneratedConcept
from skills.ai_log import log_ai_interaction

logger = logging.getLogger(__name__)


def apply_user_characters(
    characters: list[CharacterProfile],
    user_characters: list[UserCharacter],
) -> None:
    """
    Overlay user-provided images and descriptions onto generated characters.

    Matching is by case-insensitive name. A user description only replaces
    the generated one when the user actually wrote something.
    """
    by_name = {uc.name.strip().lower(): uc for uc in user_characters}
    for character in characters:
        user_char = by_name.get(character.name.strip().lower())
        if not user_char:
            continue
        if user_char.image_data_url:
            character.image_data_url = user_char.image_data_url
        if user_char.description and user_char.description.strip():
            character.description = user_char.description.strip()


def assign_voices(
    characters: list[CharacterProfile],
    rng: Optional[random.Random] = None,
) -> None:
    """
    Assign a TTS voice to each character.

    Male characters draw from the male pool, everyone else from the female
    pool. Voices are drawn without replacement; once a pool runs dry,
    voices are reused uniformly at random.
    """
    rng = rng or random.Random()
    available = {
        "male": list(MALE_VOICES),
        "female": list(FEMALE_VOICES),
    }
    full_pools = {"male": MALE_VOICES, "female": FEMALE_VOICES}

    for character in characters:
        pool = "male" if character.gender == "male" else "female"
        if available[pool]:
            character.voice = available[pool].pop(rng.randrange(len(available[pool])))
        else:
            character.voice = rng.choice(full_pools[pool])
        logger.info(f"[Concept] Voice for {character.name}: {character.voice} ({character.gender})")


class ConceptGenerator:
    """
    Generate a visual novel concept using Gemini Flash.

    The response is constrained to the GeneratedConcept schema and then
    validated again locally; anything that doesn't validate fails the call.
    """

    def __init__(self, client: genai.Client = None, rng: Optional[random.Random] = None):
        """Initialize with Gemini client."""
        self.client = client or genai.Client(api_key=GOOGLE_API_KEY)
        self.model = TEXT_MODEL_FLASH
        self.rng = rng or random.Random()

    def _build_contents(self, user_prompt: str, user_characters: list[UserCharacter]) -> list:
        """Build prompt text plus one inline image part per user reference image."""
        section = ""
        if user_characters:
            section = Prompts.USER_CHARACTERS_SECTION.format(
                user_characters="\n---\n".join(uc.to_prompt_context() for uc in user_characters),
            )
        prompt = Prompts.GENERATE_CONCEPT.format(
            user_prompt=user_prompt,
            user_characters_section=section,
        )

        parts = [types.Part.from_text(text=prompt)]
        for user_char in user_characters:
            if user_char.image_data_url:
                mime_type, data = split_data_url(user_char.image_data_url)
                parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
        return parts

    async def generate(
        self,
        user_prompt: str,
        user_characters: list[UserCharacter] = None,
    ) -> StoryConcept:
        """
        Generate a story concept.

        Args:
            user_prompt: The player's story idea
            user_characters: Optional characters to build the story around

        Returns:
            StoryConcept with voices assigned and user overlays applied

        Raises:
            GenerationError: if the response isn't a valid concept
        """
        user_characters = user_characters or []
        contents = self._build_contents(user_prompt, user_characters)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=GeneratedConcept,
        )

        log_ai_interaction("generateConcept", model=self.model, prompt=contents, config=config)

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=contents,
            config=config,
        )

        json_text = (response.text or "").strip()
        try:
            generated = GeneratedConcept.model_validate_json(json_text)
        except ValidationError as e:
            log_ai_interaction(
                "generateConcept",
                error=f"Failed to parse concept JSON: {e}",
                response_body=json_text,
            )
            raise GenerationError(
                "The AI returned an invalid concept structure. Please try again."
            ) from e

        characters = []
        seen = set()
        for c in generated.characters:
            name = c.name.strip()
            if name.lower() in seen:
                logger.warning(f"[Concept] Dropping duplicate character: {name}")
                continue
            seen.add(name.lower())
            characters.append(CharacterProfile(
                name=name,
                description=c.description,
                gender=normalize_gender(c.gender),
            ))

        concept = StoryConcept(
            title=generated.title,
            setting=generated.setting,
            plot_summary=generated.plotSummary,
            characters=characters,
        )

        apply_user_characters(concept.characters, user_characters)
        assign_voices(concept.characters, self.rng)

        log_ai_interaction("generateConcept", response=concept.title)
        return concept
