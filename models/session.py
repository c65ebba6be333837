"""
Session model - the unit of persistence: a concept plus its scene history.
"""

from dataclasses import dataclass, field

from .concept import StoryConcept
from .scene import Scene


@dataclass
class Session:
    """A complete play session."""

    concept: StoryConcept
    history: list[Scene] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "concept": self.concept.to_dict(),
            "sceneHistory": [s.to_dict() for s in self.history],
        }
