"""Thread CRUD endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from content_studio.api.dependencies import get_current_user_id, get_services, parse_body
from content_studio.api.exceptions import ValidationError
from content_studio.api.response import success_response
from content_studio.container import Services
from content_studio.models import CreateThreadRequest, ThreadQuery, UpdateThreadRequest

router = APIRouter(prefix="/threads", tags=["Threads"])


@router.get("")
async def list_threads(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """List the caller's threads with pagination and filters."""
    try:
        query = ThreadQuery(**dict(request.query_params))
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e

    page = await services.threads.list_threads(user_id, query)
    return JSONResponse(content=success_response(page.model_dump(mode="json")))


@router.get("/summary")
async def get_summary(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Thread counts by type and content counts by status."""
    summary = await services.threads.get_summary(user_id)
    return JSONResponse(content=success_response(summary.model_dump(mode="json")))


@router.post("", status_code=201)
async def create_thread(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    create_request = await parse_body(request, CreateThreadRequest)
    thread = await services.threads.create_thread(user_id, create_request)
    return JSONResponse(
        status_code=201,
        content=success_response(thread.model_dump(mode="json")),
    )


@router.get("/{thread_id}")
async def get_thread(
    thread_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Get a thread with its contents."""
    thread = await services.threads.get_thread(thread_id, user_id)
    return JSONResponse(content=success_response(thread.model_dump(mode="json")))


@router.put("/{thread_id}")
async def update_thread(
    thread_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    update_request = await parse_body(request, UpdateThreadRequest)
    thread = await services.threads.update_thread(thread_id, user_id, update_request)
    return JSONResponse(content=success_response(thread.model_dump(mode="json")))


@router.delete("/{thread_id}")
async def delete_thread(
    thread_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> JSONResponse:
    await services.threads.delete_thread(thread_id, user_id)
    return JSONResponse(content=success_response({"deleted": True}))
