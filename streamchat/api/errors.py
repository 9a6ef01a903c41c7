"""Structured error responses for non-streaming routes."""

from fastapi import Request
from fastapi.responses import JSONResponse

from streamchat.models.schemas import ErrorCategory, ErrorResponse


class ApiError(Exception):
    """An HTTP failure with a stable category and human-readable detail."""

    def __init__(self, status_code: int, category: ErrorCategory, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.category = category
        self.detail = detail


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render an ApiError as an ErrorResponse body."""
    body = ErrorResponse(error=exc.category, detail=exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))
