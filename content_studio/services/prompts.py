"""Prompt templates for content and title generation.

A ``PromptPayload`` carries the thread's content type, earlier
prompt/response pairs and the current request; ``build_ai_prompt`` turns it
into the opaque texts the AI gateway sends to a provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from content_studio.llm.models import AIPrompt
from content_studio.models import ContentType, SentimentType

# ==============================================================================
# Type instructions
# ==============================================================================

BASE_INSTRUCTIONS: dict[ContentType, str] = {
    ContentType.BLOG_POST: "Write a comprehensive blog post",
    ContentType.PRODUCT_DESCRIPTION: "Write a compelling product description",
    ContentType.SOCIAL_MEDIA_CAPTION: "Write an engaging social media caption",
    ContentType.ARTICLE: "Write a detailed article",
    ContentType.OTHER: "Generate content",
}

TYPE_INSTRUCTIONS: dict[ContentType, str] = {
    ContentType.BLOG_POST: """Generate a complete blog post with clear headings and paragraphs.
Use a friendly and readable style.
Make sure the content flows logically from introduction to conclusion.
Include engaging subheadings and well-structured sections.""",
    ContentType.ARTICLE: """Generate a comprehensive article with clear headings and paragraphs.
Use a professional and informative style.
Make sure the content flows logically from introduction to conclusion.
Include detailed explanations and supporting information.""",
    ContentType.PRODUCT_DESCRIPTION: """Generate a concise, persuasive product description.
Highlight key features, benefits, and use cases.
Keep it skimmable, with short paragraphs or bullet points if helpful.
Make it compelling and easy to understand.""",
    ContentType.SOCIAL_MEDIA_CAPTION: """Generate a short social media caption (1-3 sentences).
Match the requested tone.
Optionally add 3-5 relevant hashtags at the end.
Avoid long paragraphs. Keep it engaging and concise.""",
    ContentType.OTHER: """Generate helpful, clear content based on the user's request.
Follow the user's instructions carefully.
Ensure the content is relevant and well-structured.""",
}

EXPECTED_RESPONSE_FORMAT = '{"content": "<the generated content>", "title": "<a short title>"}'

NO_HISTORY_TEXT = "No previous context provided."


@dataclass
class HistoryItem:
    """An earlier prompt and the response it produced."""

    prompt: str
    response: str


@dataclass
class CurrentRequest:
    prompt: str
    tone: str | None = None
    language: str | None = None
    sentiment: SentimentType | None = None
    extra_instructions: str | None = None


@dataclass
class PromptPayload:
    type: ContentType
    current: CurrentRequest
    history: list[HistoryItem] = field(default_factory=list)


def _format_history(history: list[HistoryItem]) -> str:
    if not history:
        return NO_HISTORY_TEXT
    return "\n\n".join(
        f"#{idx} Previous Prompt:\n{item.prompt}\nPrevious Response:\n{item.response}"
        for idx, item in enumerate(history, start=1)
    )


def _format_context_list(history: list[HistoryItem]) -> str:
    if not history:
        return ""
    lines = "".join(f"{idx}. {item.prompt}\n" for idx, item in enumerate(history, start=1))
    return (
        "\n\nPrevious context:\n"
        f"{lines}"
        "\nPlease consider the above context when generating the new content."
    )


def build_content_prompt(payload: PromptPayload) -> str:
    """Build the content-generation prompt.

    Args:
        payload: Content type, history and current request.

    Returns:
        Formatted prompt string.
    """
    current = payload.current
    tone = current.tone or "neutral"
    language = current.language or "en"
    extra = current.extra_instructions or "None."
    base = BASE_INSTRUCTIONS.get(payload.type, "Generate content")

    sentiment_line = ""
    if current.sentiment:
        sentiment_line = f"\nSentiment: {current.sentiment.value}"

    return f"""You are an AI content generator.

{base} based on the following: {current.prompt}{_format_context_list(payload.history)}

### Content Type
{payload.type.value}

### Previous Context (Detailed)
{_format_history(payload.history)}

### Current Request Details
Tone: {tone}
Language: {language}{sentiment_line}
Extra Instructions: {extra}

### Task
{TYPE_INSTRUCTIONS.get(payload.type, TYPE_INSTRUCTIONS[ContentType.OTHER])}
Use the previous context only as reference. Do NOT repeat earlier responses.
Return only the final content, without explanations about what you are doing."""


def build_title_prompt(payload: PromptPayload) -> str:
    current = payload.current
    return f"""You are an expert title generator.

### Context
We are generating a new piece of content with the following details:

Content Type: {payload.type.value}
Tone: {current.tone or "neutral"}
Language: {current.language or "en"}

Previous Context (if any):
{_format_history(payload.history)}

Current Prompt:
{current.prompt}

### Task
Generate a short, catchy, human-friendly title for this content thread.
- Maximum 8-10 words.
- No quotes around the title.
- Make it relevant and clear for the overall topic."""


def build_ai_prompt(payload: PromptPayload) -> AIPrompt:
    """Build the content and title prompts plus the JSON reply shape."""
    return AIPrompt(
        content_prompt=build_content_prompt(payload),
        title_prompt=build_title_prompt(payload),
        expected_response_format=EXPECTED_RESPONSE_FORMAT,
    )
