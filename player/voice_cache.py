"""
Voice Synthesis Cache - lazy per-line voice clips for the active scene.

On every cursor change the cache makes sure the current dialogue line and
the next dialogue line after it have a voice clip, or one on the way.
Narration is never voiced. Finished clips are persisted onto the scene via
the state machine so they survive scene changes and saves.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from config import DEFAULT_VOICE
from agent.prompts import Prompts
from models.scene import ParsedLine, Scene
from player.state import CursorChange, GameState
from skills.parse_dialogue import next_dialogue_index

logger = logging.getLogger(__name__)


@dataclass
class VoiceEntry:
    """Synthesis status of one line."""
    url: Optional[str] = None
    in_progress: bool = False
    resolved: bool = False


class VoiceSynthesisCache:
    """
    (scene_index, line_index) -> VoiceEntry for the current session.

    Entries live for the whole session epoch, so a request still running
    for a scene the player has left is still known when they come back.
    Entering a scene seeds entries from the voice references already
    stored on it. A reset or load starts over with no entries.
    """

    def __init__(self, machine, gateway):
        self.machine = machine
        self.gateway = gateway
        self.entries: dict[tuple[int, int], VoiceEntry] = {}
        self._epoch: Optional[int] = None
        self._scene_index: Optional[int] = None
        self._tasks: set[asyncio.Task] = set()

    def clear(self) -> None:
        self.entries = {}
        self._epoch = None
        self._scene_index = None

    def _enter_scene(self, epoch: int, scene_index: int, scene: Scene) -> None:
        if epoch != self._epoch:
            self.entries = {}
            self._epoch = epoch
        self._scene_index = scene_index
        for line_index, url in scene.voice_urls.items():
            self.entries.setdefault((scene_index, line_index), VoiceEntry(url=url, resolved=True))

    def on_cursor_changed(self, change: CursorChange) -> None:
        state = self.machine.state
        if state.status != GameState.DISPLAYING or not state.history:
            return

        self._enter_scene(state.session_epoch, change.scene_index, state.history[change.scene_index])

        self.request(change.line_index)
        lines = self.machine.lines_for(change.scene_index)
        lookahead = next_dialogue_index(lines, change.line_index + 1)
        if lookahead is not None:
            self.request(lookahead)

    def url_for(self, line_index: int) -> Optional[str]:
        """Voice reference for a line of the scene under the cursor."""
        entry = self.entries.get((self._scene_index, line_index))
        return entry.url if entry else None

    # =========================================================================
    # Synthesis
    # =========================================================================

    def request(self, line_index: int) -> bool:
        """
        Start synthesis for a line of the current scene if it needs it.

        Returns:
            True if a new request was issued
        """
        if self._scene_index is None:
            return False
        epoch, scene_index = self._epoch, self._scene_index
        scene = self.machine.state.history[scene_index]
        lines = self.machine.lines_for(scene_index)
        if not 0 <= line_index < len(lines) or not lines[line_index].is_dialogue:
            return False
        if line_index in scene.voice_urls:
            return False

        entry = self.entries.setdefault((scene_index, line_index), VoiceEntry())
        if entry.in_progress or entry.resolved:
            return False

        entry.in_progress = True
        prompt, voice = self._voice_prompt(lines[line_index], scene)
        task = asyncio.create_task(
            self._synthesize(entry, epoch, scene_index, line_index, prompt, voice)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    def _voice_prompt(self, line: ParsedLine, scene: Scene) -> tuple[str, str]:
        """Prompt and voice for a line, in character when the speaker is known."""
        concept = self.machine.state.concept
        character = concept.find_character(line.character) if concept else None
        if character:
            prompt = Prompts.VOICE_KNOWN_CHARACTER.format(
                name=character.name,
                description=character.description,
                dialogue=line.dialogue,
            )
            return prompt, character.voice or DEFAULT_VOICE

        prompt = Prompts.VOICE_UNKNOWN_CHARACTER.format(
            speaker=line.character,
            scene_description=scene.description,
            dialogue=line.dialogue,
        )
        return prompt, DEFAULT_VOICE

    async def _synthesize(
        self,
        entry: VoiceEntry,
        epoch: int,
        scene_index: int,
        line_index: int,
        prompt: str,
        voice: str,
    ) -> None:
        try:
            url = await self.gateway.generate_voice(prompt, voice)
        except Exception as e:
            logger.warning(f"[VoiceCache] Voice for scene {scene_index} line {line_index} failed: {e}")
            entry.in_progress = False
            entry.resolved = True
            return

        entry.url = url
        entry.in_progress = False
        entry.resolved = True

        if epoch == self.machine.state.session_epoch:
            self.machine.record_voice(scene_index, line_index, url)
        else:
            logger.info(f"[VoiceCache] Dropping voice for a previous session (scene {scene_index} line {line_index})")

    async def wait_idle(self) -> None:
        """Wait for every outstanding synthesis request."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
