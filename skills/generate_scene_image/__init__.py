from .generate_scene_image import SceneImageGenerator, ImageResult

__all__ = ["SceneImageGenerator", "ImageResult"]
