from .parse_dialogue import parse_dialogue, next_dialogue_index

__all__ = ["parse_dialogue", "next_dialogue_index"]
