"""Prompt builders for spark refinement."""

_EDITOR_RULES = (
    "- Fix grammar, spelling, and punctuation errors\n"
    "- DO NOT change the core meaning or intent\n"
    "- DO NOT add new concepts or ideas\n"
    "- Preserve the user's voice and perspective"
)


def refine_title_prompt(title: str, initial_thoughts: str | None = None) -> str:
    """System prompt that tightens a spark title into a concise headline."""
    sections = [
        "You are a writing editor focused on clarity and brevity.",
        "Your task is to refine the user's title by improving clarity, grammar, and impact "
        "while preserving their original meaning and intent.",
        f"**Current Title:**\n{title}",
    ]
    if initial_thoughts:
        sections.append(f"**Context (Initial Thoughts):**\n{initial_thoughts}")
    sections.append(
        "**Instructions:**\n"
        "- Improve clarity and readability\n"
        "- Make it more concise if possible\n"
        "- Ensure it accurately represents the content\n"
        f"{_EDITOR_RULES}"
    )
    sections.append("Respond with the refined title only, on a single line, without quotes.")
    return "\n\n".join(sections)


def refine_thoughts_prompt(title: str, initial_thoughts: str) -> str:
    """System prompt that cleans up a spark's initial thoughts without adding ideas."""
    return "\n\n".join(
        [
            "You are a writing editor focused on clarity and structure.",
            "Your task is to refine the user's initial thoughts by improving formatting, grammar, "
            "and clarity while preserving their original meaning and ideas.",
            f"**Spark Title:**\n{title}",
            f"**Initial Thoughts:**\n{initial_thoughts}",
            "**Instructions:**\n"
            "- Improve sentence structure and flow\n"
            "- Organize thoughts into clear paragraphs\n"
            "- Remove redundancy while keeping all original ideas\n"
            f"{_EDITOR_RULES}",
            "Respond with the refined thoughts only, as clean, well-formatted text.",
        ]
    )
