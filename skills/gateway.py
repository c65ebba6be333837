"""
Content Generation Gateway - one async interface over every generation skill.

Six operations, each independently failable with GenerationError:
- generate_concept           (ConceptGenerator)
- generate_scene_description (SceneWriter)
- generate_scene_text        (SceneWriter)
- generate_scene_image       (SceneImageGenerator)  -> image asset reference
- generate_scene_music       (MusicGenerator)       -> audio asset reference
- generate_voice             (TTSGenerator)         -> audio asset reference

Media comes back as AssetStore references. The gateway never retries;
retry policy belongs to the caller.
"""

import asyncio
import logging
import random
from typing import Optional

from google import genai

from config import GOOGLE_API_KEY, MUSIC_API_VERSION, MUSIC_CAPTURE_SECONDS
from errors import GenerationError
from models.character import CharacterProfile, UserCharacter
from models.concept import StoryConcept
from models.scene import SceneOutline
from skills.asset_store import AssetStore
from skills.generate_concept import ConceptGenerator
from skills.generate_music import MusicGenerator
from skills.generate_scene import SceneWriter
from skills.generate_scene_image import SceneImageGenerator
from skills.generate_tts import TTSGenerator

logger = logging.getLogger(__name__)


class ContentGateway:
    """
    Uniform async access to concept, scene, image, music and voice generation.

    Any failure inside a skill (schema violation, empty media, refusal,
    transport error) surfaces as GenerationError with the cause chained.
    """

    def __init__(
        self,
        store: AssetStore,
        client: genai.Client = None,
        music_client: genai.Client = None,
        rng: Optional[random.Random] = None,
        music_capture_seconds: float = MUSIC_CAPTURE_SECONDS,
    ):
        """Initialize skills with shared Gemini clients."""
        self.store = store
        client = client or genai.Client(api_key=GOOGLE_API_KEY)
        music_client = music_client or genai.Client(
            api_key=GOOGLE_API_KEY,
            http_options={"api_version": MUSIC_API_VERSION},
        )
        self.concepts = ConceptGenerator(client=client, rng=rng)
        self.writer = SceneWriter(client=client)
        self.images = SceneImageGenerator(client=client)
        self.music = MusicGenerator(client=music_client, capture_seconds=music_capture_seconds)
        self.tts = TTSGenerator(client=client)

    async def _call(self, service: str, coro):
        """Await a skill call, normalizing every failure to GenerationError."""
        try:
            return await coro
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"[Gateway] {service} failed: {e}")
            raise GenerationError(f"{service} failed: {e}") from e

    async def generate_concept(
        self,
        user_prompt: str,
        user_characters: list[UserCharacter] = None,
    ) -> StoryConcept:
        return await self._call(
            "Concept generation",
            self.concepts.generate(user_prompt, user_characters or []),
        )

    async def generate_scene_description(
        self,
        concept: StoryConcept,
        prior_descriptions: list[str],
    ) -> SceneOutline:
        return await self._call(
            "Scene description generation",
            self.writer.generate_description(concept, prior_descriptions),
        )

    async def generate_scene_text(
        self,
        concept: StoryConcept,
        description: str,
        previous_text: Optional[str],
    ) -> str:
        return await self._call(
            "Scene text generation",
            self.writer.generate_text(concept, description, previous_text),
        )

    async def generate_scene_image(
        self,
        description: str,
        characters: list[CharacterProfile],
    ) -> str:
        service = "Scene image generation"
        result = await self._call(service, self.images.generate(description, characters))
        return await self._call(
            service,
            asyncio.to_thread(self.store.put_typed, result.data, "images", result.mime_type),
        )

    async def generate_scene_music(self, description: str) -> str:
        service = "Scene music generation"
        result = await self._call(service, self.music.generate_bgm(description))
        return await self._call(
            service,
            asyncio.to_thread(self.store.put, result.wav_data, "music", ".wav"),
        )

    async def generate_voice(self, prompt: str, voice_id: str) -> str:
        service = "Voice generation"
        result = await self._call(service, self.tts.generate_voice(prompt, voice_id))
        return await self._call(
            service,
            asyncio.to_thread(self.store.put, result.wav_data, "voices", ".wav"),
        )
