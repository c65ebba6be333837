from .generate_concept import ConceptGenerator, apply_user_characters, assign_voices

__all__ = ["ConceptGenerator", "apply_user_characters", "assign_voices"]
