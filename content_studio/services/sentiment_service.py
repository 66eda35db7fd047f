"""Sentiment classification of user text through the AI gateway."""

import logging

from content_studio.llm import AIGateway, AIPrompt
from content_studio.models import AnalyzeSentimentRequest, SentimentType

from .orchestrator import ContentOrchestrator

logger = logging.getLogger(__name__)

SENTIMENT_PROMPT = (
    "Analyze the sentiment of the following text and respond with only one word: "
    '"positive", "negative", or "neutral".\n\nText: {text}'
)


def extract_sentiment(reply: str) -> SentimentType:
    """Map a free-text classifier reply onto a sentiment label."""
    normalized = (reply or "").lower().strip()
    if "positive" in normalized:
        return SentimentType.POSITIVE
    if "negative" in normalized:
        return SentimentType.NEGATIVE
    return SentimentType.NEUTRAL


class SentimentService:
    def __init__(self, orchestrator: ContentOrchestrator, gateway: AIGateway):
        self.orchestrator = orchestrator
        self.gateway = gateway

    async def analyze(self, user_id: str, request: AnalyzeSentimentRequest) -> SentimentType:
        """Classify ``request.prompt`` and store the label on the content.

        Raises:
            ContentNotFoundError: If the content is not the caller's.
        """
        await self.orchestrator.get_content(request.contentId, user_id)

        outcome = await self.gateway.generate(
            AIPrompt(content_prompt=SENTIMENT_PROMPT.format(text=request.prompt)),
            correlation_id=request.contentId,
        )
        sentiment = extract_sentiment(outcome.content)
        if not outcome.succeeded:
            logger.warning(
                "Sentiment analysis failed, defaulting to neutral",
                extra={"content_id": request.contentId},
            )

        await self.orchestrator.update_sentiment(request.contentId, user_id, sentiment)
        return sentiment
