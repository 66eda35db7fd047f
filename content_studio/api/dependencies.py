"""Request-scoped helpers shared by the route modules."""

from typing import TypeVar

from fastapi import Header, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from content_studio.api.exceptions import UnauthorizedError, ValidationError
from content_studio.container import Services

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_services(request: Request) -> Services:
    """Get the service container attached to the app."""
    return request.app.state.services


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity, set by the upstream auth gateway."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("Missing X-User-Id header")
    return x_user_id.strip()


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """Parse a JSON body into ``model``.

    Raises:
        ValidationError: If the body is not JSON or does not match the model.
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model(**body)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e
