from .generate_tts import TTSGenerator, TTSResult

__all__ = ["TTSGenerator", "TTSResult"]
