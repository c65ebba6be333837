from .generate_scene import SceneWriter, format_scene_history

__all__ = ["SceneWriter", "format_scene_history"]
