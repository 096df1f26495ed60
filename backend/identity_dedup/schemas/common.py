"""Shared API envelope and error schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope wrapping every successful admin response."""

    data: T


class ErrorDetail(BaseModel):
    """Body FastAPI returns for an ``HTTPException``."""

    detail: str


ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorDetail, "description": "Invalid request, e.g. merging a user into itself"},
    404: {"model": ErrorDetail, "description": "Unknown user id"},
    500: {"model": ErrorDetail, "description": "Merge transaction rolled back"},
}
