"""
Player - playback state, lookahead generation, voices and save files.
"""

from .state import GameState, SessionState, CursorChange, BacklogEntry
from .prefetch import ScenePrefetchController, build_scene
from .voice_cache import VoiceSynthesisCache, VoiceEntry
from .state_machine import PlaybackStateMachine
from .archiver import SessionArchiver, archive_filename, image_extension

__all__ = [
    "GameState",
    "SessionState",
    "CursorChange",
    "BacklogEntry",
    "ScenePrefetchController",
    "build_scene",
    "VoiceSynthesisCache",
    "VoiceEntry",
    "PlaybackStateMachine",
    "SessionArchiver",
    "archive_filename",
    "image_extension",
]
