"""
Test doubles: a scripted ContentGateway and a fake Gemini client.

No network access; everything resolves on the running event loop.
"""

import asyncio
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from errors import GenerationError
from models.character import CharacterProfile
from models.concept import StoryConcept
from models.scene import Scene, SceneOutline

SCENE_TEXT = "Aria: Hello there.\n: The wind howls.\nBob: Quiet now."


def make_concept() -> StoryConcept:
    return StoryConcept(
        title="Wind Song",
        setting="A lighthouse on a windswept cliff",
        plot_summary="A sky pirate and a lighthouse keeper guard a secret.",
        characters=[
            CharacterProfile("Aria", "A bold sky pirate", "female", "Zephyr"),
            CharacterProfile("Bob", "A quiet lighthouse keeper", "male", "Puck"),
        ],
    )


def make_scene(n: int, text: str = SCENE_TEXT, voice_urls: dict = None) -> Scene:
    return Scene(
        description=f"Scene {n} description",
        text=text,
        image_url=f"/assets/outputs/images/scene{n}.png",
        music_url=f"/assets/outputs/music/scene{n}.wav",
        voice_urls=dict(voice_urls or {}),
    )


# =============================================================================
# Gateway
# =============================================================================

class FakeGateway:
    """
    Scripted stand-in for ContentGateway.

    - fail: operation names ("concept", "description", "text", "image",
      "music", "voice") that raise GenerationError
    - description_gate / voice_gate / music_gate: when set to an
      asyncio.Event, the call blocks until the event is set
    """

    def __init__(self, store=None, concept: StoryConcept = None, scene_text: str = SCENE_TEXT):
        self.store = store
        self.concept = concept or make_concept()
        self.scene_text = scene_text
        self.fail: set[str] = set()
        self.calls = {name: 0 for name in ("concept", "description", "text", "image", "music", "voice")}
        self.prior_descriptions: list[list[str]] = []
        self.voice_requests: list[tuple[str, str]] = []
        self.music_cancelled = 0
        self._media_count = 0

        self.description_gate: Optional[asyncio.Event] = None
        self.voice_gate: Optional[asyncio.Event] = None
        self.music_gate: Optional[asyncio.Event] = None

    def _media(self, data: bytes, kind: str, suffix: str) -> str:
        if self.store is not None:
            return self.store.put(data, kind, suffix)
        self._media_count += 1
        return f"/assets/outputs/{kind}/fake{self._media_count}{suffix}"

    def _check(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.fail:
            raise GenerationError(f"{name} generation failed")

    async def generate_concept(self, user_prompt, user_characters=None) -> StoryConcept:
        await asyncio.sleep(0)
        self._check("concept")
        return self.concept

    async def generate_scene_description(self, concept, prior_descriptions) -> SceneOutline:
        self.prior_descriptions.append(list(prior_descriptions))
        if self.description_gate is not None:
            await self.description_gate.wait()
        self._check("description")
        return SceneOutline(
            description=f"Scene {len(prior_descriptions) + 1} description",
            character_names=["aria"],
        )

    async def generate_scene_text(self, concept, description, previous_text) -> str:
        await asyncio.sleep(0)
        self._check("text")
        return self.scene_text

    async def generate_scene_image(self, description, characters) -> str:
        await asyncio.sleep(0)
        self._check("image")
        return self._media(b"\x89PNG fake image", "images", ".png")

    async def generate_scene_music(self, description) -> str:
        try:
            if self.music_gate is not None:
                await self.music_gate.wait()
            await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.music_cancelled += 1
            raise
        self._check("music")
        return self._media(b"RIFF fake music", "music", ".wav")

    async def generate_voice(self, prompt, voice_id) -> str:
        self.calls["voice"] += 1
        self.voice_requests.append((prompt, voice_id))
        if self.voice_gate is not None:
            await self.voice_gate.wait()
        if "voice" in self.fail:
            raise GenerationError("voice generation failed")
        return self._media(f"RIFF voice {self.calls['voice']}".encode(), "voices", ".wav")


# =============================================================================
# Gemini client
# =============================================================================

def inline_part(data, mime_type: str = "image/png"):
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)


def content_response(parts=None, text: str = None, finish_reason=None, safety_ratings=None, block_reason=None):
    """Build something shaped like a GenerateContentResponse."""
    candidates = []
    if parts is not None or finish_reason is not None:
        candidates.append(SimpleNamespace(
            content=SimpleNamespace(parts=parts) if parts is not None else None,
            finish_reason=finish_reason,
            safety_ratings=safety_ratings,
        ))
    return SimpleNamespace(
        text=text,
        candidates=candidates,
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
    )


def json_response(payload) -> SimpleNamespace:
    return content_response(text=payload if isinstance(payload, str) else json.dumps(payload))


class FakeModels:
    """client.models with queued responses (or exceptions) per call."""

    def __init__(self, responses: list):
        self.responses = list(responses)
        self.requests: list[dict] = []

    def generate_content(self, model, contents, config=None):
        self.requests.append({"model": model, "contents": contents, "config": config})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeMusicSession:
    """A Lyria session that streams the given chunks, then optionally hangs."""

    def __init__(self, chunks: list[bytes], hang: bool = False):
        self.chunks = chunks
        self.hang = hang
        self.prompts = None
        self.played = False
        self.stopped = False

    async def set_weighted_prompts(self, prompts):
        self.prompts = prompts

    async def play(self):
        self.played = True

    async def stop(self):
        self.stopped = True

    async def receive(self):
        for chunk in self.chunks:
            yield SimpleNamespace(server_content=SimpleNamespace(
                audio_chunks=[SimpleNamespace(data=chunk)]
            ))
        if self.hang:
            await asyncio.Event().wait()


class FakeMusic:
    def __init__(self, session: FakeMusicSession):
        self.session = session
        self.models: list[str] = []

    @asynccontextmanager
    async def connect(self, model):
        self.models.append(model)
        yield self.session


class FakeClient:
    """Minimal genai.Client: .models.generate_content and .aio.live.music.connect."""

    def __init__(self, responses: list = None, music_session: FakeMusicSession = None):
        self.models = FakeModels(responses or [])
        self.aio = SimpleNamespace(live=SimpleNamespace(
            music=FakeMusic(music_session or FakeMusicSession([]))
        ))
