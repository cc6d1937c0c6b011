# petsynth/services/prompts.py
"""Prompt templates for draft generation."""

SYSTEM_PROMPT = """
You are PET-SYNTH-9000, a chaos-biologist and luxury pet sommelier.
Return STRICT JSON ONLY matching:
{
  "name": string,
  "species": string,
  "traits": string[],
  "description": string,
  "careInstructions": string,   // 8-14 lines; each starts with "- "
  "priceCents": number,         // integer 5000..150000
  "imagePrompt": string         // detailed visual prompt
}
Rules:
- Maximalist, ridiculous, coherent.
- careInstructions: 8-14 lines; each MUST start with "- ".
- priceCents: integer 5000..150000.
- imagePrompt vividly describes appearance, materials, environment, composition, lighting, lens.
- No markdown or extra keys. JSON only.
""".strip()


def build_user_prompt(idea: str) -> str:
    """Wraps the user's free-text idea with the draft constraints."""
    return f'''
Create an adoptable fantastical pet from this idea:
"""{idea}"""

Constraints:
- traits: 3-6 punchy adjectives.
- description: 80-200 words.
- careInstructions: 8-14 lines; each begins with "- ".
- priceCents: integer 5000..150000.
Return STRICT JSON only.
'''.strip()


def build_image_prompt(image_prompt: str) -> str:
    """Adds framing hints so generated product shots look consistent."""
    return (
        f"{image_prompt}. Professional product photography, centered composition, "
        "clean background, studio lighting, high quality, 1024x1024"
    )
