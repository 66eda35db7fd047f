"""Sentiment analysis endpoint."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from content_studio.api.dependencies import get_current_user_id, get_services, parse_body
from content_studio.api.response import success_response
from content_studio.container import Services
from content_studio.models import AnalyzeSentimentRequest

router = APIRouter(prefix="/sentiment", tags=["Sentiment"])


@router.post("/analyze")
async def analyze_sentiment(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Classify text and store the label on the caller's content."""
    analyze_request = await parse_body(request, AnalyzeSentimentRequest)
    sentiment = await services.sentiment.analyze(user_id, analyze_request)
    return JSONResponse(content=success_response({"sentiment": sentiment.value}))
