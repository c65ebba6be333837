"""
Session state - everything the playback state machine owns.

One SessionState object holds the concept, the scene history, the cursor
and the top-level application status. Only PlaybackStateMachine mutates it;
every other component reads it through the machine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from models.concept import StoryConcept
from models.scene import Scene


class GameState(str, Enum):
    """Top-level application state."""
    INITIAL = "initial"
    GENERATING_CONCEPT = "generating_concept"
    GENERATING_SCENE = "generating_scene"
    DISPLAYING = "displaying"
    ERROR = "error"


@dataclass(frozen=True)
class CursorChange:
    """Notification published after every cursor movement."""
    scene_index: int
    line_index: int
    scene_changed: bool


@dataclass(frozen=True)
class BacklogEntry:
    """A line the player has already seen."""
    scene_index: int
    line_index: int
    character: Optional[str]
    dialogue: str

    def to_dict(self) -> dict:
        return {
            "scene_index": self.scene_index,
            "line_index": self.line_index,
            "character": self.character,
            "dialogue": self.dialogue,
        }


@dataclass
class SessionState:
    """
    Mutable playback state.

    session_epoch increases on every reset or load, so work issued against
    an earlier session can tell its result is stale.
    """

    status: GameState = GameState.INITIAL
    concept: Optional[StoryConcept] = None
    history: list[Scene] = field(default_factory=list)
    scene_index: int = 0
    line_index: int = 0

    error: Optional[str] = None
    notice: Optional[str] = None  # transient, non-fatal (prefetch failures)
    loading_message: Optional[str] = None
    initial_scene_description: Optional[str] = None

    session_epoch: int = 0

    def clear(self) -> None:
        """Drop everything except the epoch counter."""
        self.status = GameState.INITIAL
        self.concept = None
        self.history = []
        self.scene_index = 0
        self.line_index = 0
        self.error = None
        self.notice = None
        self.loading_message = None
        self.initial_scene_description = None
