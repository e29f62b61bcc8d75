"""Prompt builders for artifact generation."""

IMAGE_STORY_EXCERPT_CHARS = 600


def linkedin_post_system_prompt(story: str, feedback: str | None = None, reference: str | None = None) -> str:
    """System prompt that turns a story into a ready-to-publish LinkedIn post."""
    sections = [
        "You are an expert LinkedIn content strategist specializing in professional "
        "storytelling and engagement optimization.",
        "Your task is to transform the provided story into a compelling LinkedIn post "
        "that drives meaningful professional engagement.",
        f"**Source Story:**\n{story}",
    ]

    if reference:
        sections.append(
            f"**Reference Material:**\n{reference}\n\n"
            "Use this reference to inform tone, style, or structural elements, but create original content."
        )

    if feedback:
        sections.append(
            f"**Previous Feedback to Address:**\n{feedback}\n\n"
            "Incorporate this feedback to improve the post quality and effectiveness."
        )

    sections.append(
        "**LinkedIn Post Requirements:**\n"
        "- Start with a hook that captures attention within the first 2 lines\n"
        "- Use short paragraphs (1-3 sentences) for mobile readability\n"
        "- End with a clear call-to-action or thought-provoking question\n"
        "- Professional yet authentic tone; focus on insights and lessons learned\n"
        "- Target length: 150-300 words\n"
        "- Use 3-5 relevant hashtags\n"
        "- Avoid overly salesy or promotional language"
    )
    sections.append("Respond with the post text only, ready to publish.")

    return "\n\n".join(sections)


def image_prompt(story: str, feedback: str | None = None) -> str:
    """Text-to-image prompt for an illustration that accompanies the story."""
    excerpt = story.strip()[:IMAGE_STORY_EXCERPT_CHARS]
    prompt = (
        "A clean, modern editorial illustration suitable for a professional social media post. "
        "No text or lettering in the image. "
        f"Theme drawn from this story: {excerpt}"
    )
    if feedback:
        prompt += f" Adjustments requested: {feedback}"
    return prompt
