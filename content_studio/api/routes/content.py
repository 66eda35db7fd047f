"""Content generation endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from content_studio.api.dependencies import get_current_user_id, get_services, parse_body
from content_studio.api.response import success_response
from content_studio.container import Services
from content_studio.models import GenerateContentRequest, UpdateContentRequest

router = APIRouter(prefix="/content", tags=["Content"])


@router.post("/generate", status_code=201)
async def generate_content(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Queue a generation and return the thread with the pending content."""
    generate_request = await parse_body(request, GenerateContentRequest)
    thread = await services.orchestrator.submit_generation(user_id, generate_request)
    return JSONResponse(
        status_code=201,
        content=success_response(thread.model_dump(mode="json")),
    )


@router.get("/{content_id}")
async def get_content(
    content_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    content = await services.orchestrator.get_content(content_id, user_id)
    return JSONResponse(content=success_response(content.model_dump(mode="json")))


@router.patch("/{content_id}")
async def update_content(
    content_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Update a content's sentiment, the only user-writable field."""
    update_request = await parse_body(request, UpdateContentRequest)
    content = await services.orchestrator.update_sentiment(content_id, user_id, update_request.sentiment)
    return JSONResponse(content=success_response(content.model_dump(mode="json")))
