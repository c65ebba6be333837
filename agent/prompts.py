"""
Prompt templates for Gemini interactions.

These prompts are designed to:
1. Plan the story (concept, next-scene outlines)
2. Write scene scripts in a strict, parseable line format
3. Generate prompts for downstream models (image, TTS, Lyria)

Philosophy:
- Scripts must stay machine-readable: one line per beat, "Name: words" or ": narration"
- Each scene should move the plot forward, never repeat earlier beats
- Only a few characters per scene keeps scenes focused
"""


class Prompts:
    """Collection of prompt templates for story generation."""

    # =========================================================================
    # STORY PLANNING PROMPTS
    # =========================================================================

    GENERATE_CONCEPT = """Generate a structured concept for a visual novel based on this user idea: "{user_prompt}". {user_characters_section} The concept should include a title, a setting, a plot summary, and a list of 5-6 main characters in total (including any user-defined ones). For each character, their description must include details on their personality, physical appearance (e.g., hair color, eye color, style of dress), and their gender ('male', 'female', or 'non-binary'). If a user-defined character was provided, use their details and especially their image as a strong reference for the full description you generate."""

    USER_CHARACTERS_SECTION = """
Please incorporate the following user-defined characters as the primary protagonists. You must include them in the final character list. You can build the story and other characters around them. For any characters with provided images, use that image as a strong visual reference when generating their detailed description.
---
{user_characters}
---
"""

    GENERATE_SCENE_DESCRIPTION = """
Visual Novel Concept:
{concept_json}

Existing Scene Descriptions:
{history}

Based on the concept and the story so far, generate a brief, one-sentence description for the *next* scene and list the names of the characters who appear in it. Continue the story logically. Keep it original and avoid repeating previous scenes. Important: Not all characters must appear in every scene; select only the 1-3 characters most relevant to the developing plot for this specific scene.
"""

    # =========================================================================
    # SCRIPT PROMPTS
    # =========================================================================

    GENERATE_SCENE_TEXT = """
Visual Novel Concept:
{concept_json}

Current Scene Description: {description}
{previous_context}

Write the dialogue and narration for this scene. Adhere strictly to the following format:
- For dialogue, use "Character Name: The line they say.". Dialogue lines MUST contain only spoken words.
- For narration, actions, or descriptive prose, use lines that start with a colon, like ": The sun sets over the city.". These lines must NOT contain any spoken dialogue.
- Each line must be on a new line.
- Write a complete, engaging scene with a clear beginning, middle, and end.
"""

    PREVIOUS_SCENE_CONTEXT = """The previous scene ended with:
---
{previous_text}
---"""

    FIRST_SCENE_CONTEXT = "This is the first scene."

    # =========================================================================
    # MEDIA PROMPTS
    # =========================================================================

    GENERATE_SCENE_IMAGE = """
{character_descriptions}
{character_references}

Generate a beautiful anime visual novel background image for this scene: "{description}".
The image should accurately depict the characters based on their descriptions and any provided reference images.
Style: vibrant, detailed, high-quality anime art, beautiful lighting.
"""

    GENERATE_SCENE_MUSIC = "instrumental, atmospheric, looping background music for a visual novel scene. Scene: {description}"

    VOICE_KNOWN_CHARACTER = 'Speak this line as {name}, who is described as: "{description}". The line is: "{dialogue}"'

    VOICE_UNKNOWN_CHARACTER = 'Speak this line as the character "{speaker}". Scene context: "{scene_description}". The line is: "{dialogue}"'
