from .generate_music import MusicGenerator, MusicResult

__all__ = ["MusicGenerator", "MusicResult"]
