"""
Error taxonomy for the visual novel player.

- GenerationError: a generation call produced no usable output
  (malformed structured data, empty media, safety refusal, transport failure)
- LoadError: a save archive is missing or has an unusable manifest
- StateError: an operation would break a playback invariant
- SaveError: a session could not be written to an archive
"""


class PlayerError(Exception):
    """Base class for all player errors."""


class GenerationError(PlayerError):
    """A content generation call could not produce usable output."""


class LoadError(PlayerError):
    """A save archive could not be loaded."""


class StateError(PlayerError):
    """An operation addressed state that doesn't exist or isn't valid now."""


class SaveError(PlayerError):
    """A session could not be saved."""
