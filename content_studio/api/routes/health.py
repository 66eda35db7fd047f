"""Health check endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from content_studio.api.dependencies import get_services
from content_studio.api.response import success_response
from content_studio.container import Services

router = APIRouter(tags=["System"])


@router.get("/health")
async def health_check(services: Services = Depends(get_services)) -> JSONResponse:
    """Report API status and job queue depth."""
    stats = await services.queue.stats()
    return JSONResponse(content=success_response({"status": "ok", "queue": stats.model_dump()}))
