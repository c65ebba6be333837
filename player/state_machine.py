"""
Playback State Machine - owns the story and the reading cursor.

    INITIAL -> GENERATING_CONCEPT -> GENERATING_SCENE -> DISPLAYING
    DISPLAYING -> INITIAL                 (reset)
    GENERATING_* -> ERROR -> INITIAL      (failure, then acknowledge)

All mutation of SessionState goes through this class. After every cursor
movement a CursorChange is published to subscribers; the prefetch
controller and voice cache subscribe at construction.
"""

import logging
from typing import Callable, Optional

from config import PREFETCH_LINE_THRESHOLD
from errors import LoadError, StateError
from models.character import UserCharacter
from models.concept import StoryConcept
from models.scene import ParsedLine, Scene, SceneOutline
from models.session import Session
from player.prefetch import ScenePrefetchController, build_scene
from player.state import BacklogEntry, CursorChange, GameState, SessionState
from player.voice_cache import VoiceSynthesisCache
from skills.parse_dialogue import parse_dialogue

logger = logging.getLogger(__name__)

WAITING_MESSAGE = "Preparing next scene..."

START_FROM_CHOICES = ("start", "end")


class PlaybackStateMachine:
    """
    The visual novel player.

    Usage:
        machine = PlaybackStateMachine(gateway)
        await machine.start("A detective story in neo-Tokyo")
        machine.advance_line()
    """

    def __init__(self, gateway, threshold: int = PREFETCH_LINE_THRESHOLD):
        self.gateway = gateway
        self.state = SessionState()
        self._listeners: list[Callable[[CursorChange], None]] = []

        self.prefetch = ScenePrefetchController(self, gateway, threshold=threshold)
        self.voices = VoiceSynthesisCache(self, gateway)
        self.subscribe(self.prefetch.on_cursor_changed)
        self.subscribe(self.voices.on_cursor_changed)

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, handler: Callable[[CursorChange], None]) -> None:
        self._listeners.append(handler)

    def _publish(self, scene_changed: bool) -> None:
        change = CursorChange(
            scene_index=self.state.scene_index,
            line_index=self.state.line_index,
            scene_changed=scene_changed,
        )
        for handler in list(self._listeners):
            handler(change)

    def _require_displaying(self, action: str) -> None:
        if self.state.status != GameState.DISPLAYING:
            raise StateError(f"Cannot {action} while {self.state.status.value}")

    # =========================================================================
    # Queries
    # =========================================================================

    def lines_for(self, scene_index: int) -> list[ParsedLine]:
        return parse_dialogue(self.state.history[scene_index].text)

    @property
    def current_scene(self) -> Optional[Scene]:
        if not self.state.history:
            return None
        return self.state.history[self.state.scene_index]

    @property
    def current_lines(self) -> list[ParsedLine]:
        if not self.state.history:
            return []
        return self.lines_for(self.state.scene_index)

    @property
    def current_line(self) -> Optional[ParsedLine]:
        lines = self.current_lines
        if not lines:
            return None
        return lines[self.state.line_index]

    @property
    def is_next_scene_ready(self) -> bool:
        return self.prefetch.buffer is not None

    @property
    def is_waiting_for_next_scene(self) -> bool:
        """True when the player is at the very end with nothing buffered."""
        state = self.state
        if state.status != GameState.DISPLAYING:
            return False
        on_last_scene = state.scene_index == len(state.history) - 1
        on_last_line = state.line_index >= len(self.current_lines) - 1
        return on_last_scene and on_last_line and not self.is_next_scene_ready

    def backlog(self) -> list[BacklogEntry]:
        """Every line from the first scene up to and including the cursor."""
        state = self.state
        entries = []
        for scene_index in range(min(state.scene_index + 1, len(state.history))):
            lines = self.lines_for(scene_index)
            if scene_index == state.scene_index:
                lines = lines[: state.line_index + 1]
            for line_index, line in enumerate(lines):
                entries.append(BacklogEntry(scene_index, line_index, line.character, line.dialogue))
        return entries

    def session(self) -> Session:
        if self.state.concept is None or not self.state.history:
            raise StateError("There is no story to save yet")
        return Session(concept=self.state.concept, history=list(self.state.history))

    def snapshot(self) -> dict:
        """JSON-friendly view of the player for the UI."""
        state = self.state
        line = self.current_line
        scene = self.current_scene
        return {
            "status": state.status.value,
            "error": state.error,
            "notice": state.notice,
            "loading_message": state.loading_message,
            "initial_scene_description": state.initial_scene_description,
            "title": state.concept.title if state.concept else None,
            "scene_index": state.scene_index,
            "line_index": state.line_index,
            "scene_count": len(state.history),
            "line_count": len(self.current_lines),
            "character": line.character if line else None,
            "dialogue": line.dialogue if line else None,
            "image_url": scene.image_url if scene else None,
            "music_url": scene.music_url if scene else None,
            "voice_url": self._current_voice_url(),
            "next_scene_ready": self.is_next_scene_ready,
            "waiting_message": WAITING_MESSAGE if self.is_waiting_for_next_scene else None,
        }

    def _current_voice_url(self) -> Optional[str]:
        scene = self.current_scene
        if scene is None:
            return None
        return scene.voice_urls.get(self.state.line_index) or self.voices.url_for(self.state.line_index)

    # =========================================================================
    # Story start
    # =========================================================================

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self.state.session_epoch

    async def start(self, user_prompt: str, user_characters: list[UserCharacter] = None) -> None:
        """
        Generate the concept and first scene, then start displaying.

        Failures move the machine to ERROR with the message kept on the
        state. A reset or load while this runs makes its results stale.
        """
        if self.state.status != GameState.INITIAL:
            raise StateError(f"Cannot start a story while {self.state.status.value}")

        state = self.state
        epoch = state.session_epoch
        state.status = GameState.GENERATING_CONCEPT
        state.loading_message = "Crafting your story concept..."
        state.error = None
        logger.info(f"[Player] Starting story: {user_prompt[:80]}")

        def on_outline(outline: SceneOutline) -> None:
            if not self._is_stale(epoch):
                state.initial_scene_description = outline.description
                state.loading_message = "Generating scene assets..."

        try:
            concept = await self.gateway.generate_concept(user_prompt, user_characters or [])
            if self._is_stale(epoch):
                logger.info("[Player] Story start superseded; discarding concept")
                return
            state.concept = concept
            state.status = GameState.GENERATING_SCENE
            state.loading_message = "Imagining the first scene..."
            logger.info(f"[Player] Concept ready: {concept.title} ({len(concept.characters)} characters)")

            scene = await build_scene(self.gateway, concept, [], on_outline=on_outline)
        except Exception as e:
            if self._is_stale(epoch):
                logger.info(f"[Player] Story start superseded; ignoring failure: {e}")
                return
            logger.error(f"[Player] Failed to start story: {e}")
            state.status = GameState.ERROR
            state.error = f"Failed to start story: {e}"
            state.loading_message = None
            return

        if self._is_stale(epoch):
            logger.info("[Player] Story start superseded; discarding first scene")
            return

        state.history = [scene]
        state.scene_index = 0
        state.line_index = 0
        state.status = GameState.DISPLAYING
        state.loading_message = None
        logger.info(f"[Player] First scene ready: {scene.description[:60]}")
        self._publish(scene_changed=True)

    # =========================================================================
    # Cursor
    # =========================================================================

    def advance_line(self) -> None:
        """
        Move to the next line, the next scene, or the buffered scene.

        At the very end with nothing buffered this is a no-op, but the
        cursor change is still published so prefetch gets re-evaluated.
        """
        self._require_displaying("advance")
        state = self.state
        scene_changed = False

        if state.line_index < len(self.current_lines) - 1:
            state.line_index += 1
        elif state.scene_index < len(state.history) - 1:
            state.scene_index += 1
            state.line_index = 0
            scene_changed = True
        else:
            scene = self.prefetch.consume()
            if scene is not None:
                state.history.append(scene)
                state.scene_index += 1
                state.line_index = 0
                scene_changed = True
                logger.info(f"[Player] Entered scene {state.scene_index + 1}")

        self._publish(scene_changed)

    def jump_to(self, scene_index: int, line_index: int) -> None:
        """Move the cursor anywhere in history. Always drops the buffered scene."""
        self._require_displaying("jump")
        state = self.state
        if not 0 <= scene_index < len(state.history):
            raise StateError(f"Scene {scene_index} does not exist")
        line_count = len(self.lines_for(scene_index))
        if not 0 <= line_index < max(1, line_count):
            raise StateError(f"Line {line_index} does not exist in scene {scene_index}")

        scene_changed = scene_index != state.scene_index
        state.scene_index = scene_index
        state.line_index = line_index
        self.prefetch.invalidate()
        self._publish(scene_changed)

    # =========================================================================
    # Session edits
    # =========================================================================

    def update_concept(self, concept: StoryConcept) -> None:
        """Replace the concept wholesale. The buffered scene no longer fits it."""
        if self.state.concept is None:
            raise StateError("There is no story concept to edit")
        self.state.concept = concept
        self.prefetch.invalidate()
        logger.info(f"[Player] Concept updated: {concept.title}")

    def record_voice(self, scene_index: int, line_index: int, url: str) -> None:
        """Attach a voice clip to a scene in history. Safe to repeat."""
        if not 0 <= scene_index < len(self.state.history):
            raise StateError(f"Scene {scene_index} does not exist")
        if line_index < 0:
            raise StateError(f"Invalid line index {line_index}")
        self.state.history[scene_index].voice_urls[line_index] = url

    def reset(self) -> None:
        """Back to the title screen. Outstanding work becomes stale."""
        self.state.session_epoch += 1
        self.state.clear()
        self.prefetch.invalidate()
        self.voices.clear()
        logger.info("[Player] Reset")

    def acknowledge_error(self) -> None:
        if self.state.status != GameState.ERROR:
            raise StateError("There is no error to acknowledge")
        self.reset()

    def load_session(self, session: Session, start_from: str = "start") -> None:
        """
        Install a loaded session and start displaying it.

        Args:
            session: Concept plus non-empty history
            start_from: "start" for (0, 0), "end" for the last line of the last scene
        """
        if start_from not in START_FROM_CHOICES:
            raise ValueError(f"start_from must be one of {START_FROM_CHOICES}")
        if not session.history:
            raise LoadError("Save file contains no scenes.")

        state = self.state
        state.session_epoch += 1
        state.clear()
        self.prefetch.invalidate()
        self.voices.clear()

        state.concept = session.concept
        state.history = list(session.history)
        state.status = GameState.DISPLAYING
        if start_from == "end":
            state.scene_index = len(state.history) - 1
            state.line_index = max(0, len(self.lines_for(state.scene_index)) - 1)

        logger.info(
            f"[Player] Loaded '{session.concept.title}' "
            f"({len(state.history)} scenes, cursor {state.scene_index}:{state.line_index})"
        )
        self._publish(scene_changed=True)
