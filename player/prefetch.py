"""
Scene Prefetch Controller - generates the next scene while the player reads.

Watches cursor changes and, when the player gets close enough to the end of
the last scene, starts exactly one background "generate next scene" task.
The finished scene waits in a single-slot buffer until the player runs off
the end of the history, at which point the state machine consumes it.
"""

import asyncio
import logging
from typing import Callable, Optional

from config import PREFETCH_LINE_THRESHOLD
from models.concept import StoryConcept
from models.scene import Scene, SceneOutline
from player.state import CursorChange, GameState

logger = logging.getLogger(__name__)


async def build_scene(
    gateway,
    concept: StoryConcept,
    history: list[Scene],
    on_outline: Optional[Callable[[SceneOutline], None]] = None,
) -> Scene:
    """
    Generate one complete scene continuing the given history.

    The description is seeded with every prior description; text, image and
    music are then generated concurrently and succeed or fail together.

    Args:
        gateway: ContentGateway (or anything with the same async methods)
        concept: The active story concept
        history: Scenes so far (empty for the first scene)
        on_outline: Called with the outline before assets are requested

    Returns:
        A new Scene with an empty voice map

    Raises:
        GenerationError: if any step fails
    """
    outline = await gateway.generate_scene_description(
        concept, [scene.description for scene in history]
    )
    if on_outline:
        on_outline(outline)

    characters = concept.characters_named(outline.character_names)
    previous_text = history[-1].text if history else None

    text_task = asyncio.create_task(
        gateway.generate_scene_text(concept, outline.description, previous_text)
    )
    image_task = asyncio.create_task(
        gateway.generate_scene_image(outline.description, characters)
    )
    music_task = asyncio.create_task(
        gateway.generate_scene_music(outline.description)
    )
    tasks = [text_task, image_task, music_task]

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    # Retrieve every exception so none is reported as unhandled
    errors = [task.exception() for task in done if not task.cancelled() and task.exception()]
    if errors:
        raise errors[0]

    return Scene(
        description=outline.description,
        text=text_task.result(),
        image_url=image_task.result(),
        music_url=music_task.result(),
        voice_urls={},
    )


class ScenePrefetchController:
    """
    Single-slot lookahead for the next scene.

    Each launched task is tagged with (epoch, history length) at launch.
    invalidate() bumps the epoch, and consuming the buffer grows the
    history, so a result computed against an older state is discarded
    instead of being buffered.
    """

    def __init__(self, machine, gateway, threshold: int = PREFETCH_LINE_THRESHOLD):
        self.machine = machine
        self.gateway = gateway
        self.threshold = threshold

        self.buffer: Optional[Scene] = None
        self.in_flight = False
        self._epoch = 0
        self._tasks: set[asyncio.Task] = set()

    # =========================================================================
    # Trigger
    # =========================================================================

    def should_prefetch(self) -> bool:
        """True when a new next-scene request should start right now."""
        state = self.machine.state
        if state.status != GameState.DISPLAYING or not state.history:
            return False
        if state.scene_index != len(state.history) - 1:
            return False
        if self.buffer is not None or self.in_flight:
            return False
        total_lines = len(self.machine.current_lines)
        return state.line_index >= max(0, total_lines - self.threshold)

    def on_cursor_changed(self, change: CursorChange) -> None:
        if self.should_prefetch():
            self._launch()

    def _launch(self) -> None:
        state = self.machine.state
        tag = (self._epoch, len(state.history))
        self.in_flight = True
        logger.info(f"[Prefetch] Generating scene {len(state.history) + 1} ahead of the player")

        task = asyncio.create_task(
            self._run(tag, state.concept, list(state.history))
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, tag: tuple[int, int]) -> bool:
        return tag == (self._epoch, len(self.machine.state.history))

    async def _run(self, tag: tuple[int, int], concept: StoryConcept, history: list[Scene]) -> None:
        try:
            scene = await build_scene(self.gateway, concept, history)
        except Exception as e:
            logger.error(f"[Prefetch] Failed to generate next scene: {e}")
            if self._is_current(tag):
                self.machine.state.notice = f"Failed to generate next scene: {e}"
                return
            scene = None
        finally:
            self.in_flight = False

        if not self._is_current(tag):
            if scene is not None:
                logger.info(f"[Prefetch] Discarding stale scene (requested at {tag})")
            # The cursor may already sit where a fresh request is due
            if self.should_prefetch():
                self._launch()
            return

        self.buffer = scene
        self.machine.state.notice = None
        logger.info(f"[Prefetch] Next scene ready: {scene.description[:60]}")

    # =========================================================================
    # Buffer
    # =========================================================================

    def invalidate(self) -> None:
        """Clear the buffer; any in-flight result becomes stale."""
        if self.buffer is not None:
            logger.info("[Prefetch] Buffered scene invalidated")
        self.buffer = None
        self._epoch += 1

    def consume(self) -> Optional[Scene]:
        """Hand over the buffered scene (if any) and clear the slot."""
        scene, self.buffer = self.buffer, None
        return scene

    async def wait_idle(self) -> None:
        """Wait for every launched task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
