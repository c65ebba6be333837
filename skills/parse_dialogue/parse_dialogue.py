"""
Dialogue Parsing Skill - scene script -> ordered display lines.

Scene scripts use one beat per line:
- "Name: spoken words"   -> dialogue attributed to Name
- ": narration"          -> narration
- "plain text"           -> narration

Lines that end up with nothing to display are dropped, so a line's index
in the result is the stable address used by voices, jumps and the backlog.
"""

from typing import Optional

from models.scene import ParsedLine


def parse_dialogue(text: Optional[str]) -> list[ParsedLine]:
    """
    Parse a scene script into display lines.

    Pure and deterministic: identical input always yields an identical list.
    """
    if not text:
        return []

    lines = []
    for raw in text.split("\n"):
        speaker, sep, rest = raw.partition(":")
        if sep and speaker.strip():
            line = ParsedLine(character=speaker.strip(), dialogue=rest.strip())
        else:
            line = ParsedLine(character=None, dialogue=raw.replace(":", "", 1).strip())
        if line.dialogue:
            lines.append(line)
    return lines


def next_dialogue_index(lines: list[ParsedLine], start: int) -> Optional[int]:
    """Index of the first attributed line at or after start, or None."""
    for index in range(max(start, 0), len(lines)):
        if lines[index].is_dialogue:
            return index
    return None
