"""
Response envelopes for the alt text endpoint.

Every outcome of the pipeline maps to exactly one JSON body and status:

  success            200  {"altText": ...}
  ValidationError    400  {"error": ..., "details"?: ...}
  InferenceError     500  {"error": ..., "details": ...}
  anything else      500  {"error": "An unexpected error occurred", "details": ...}
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse

from app.models.alt_text import AltTextResponse, ErrorResponse
from app.services.inference import InferenceError
from app.services.upload_validator import ValidationError

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


def _error(status_code: int, error: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def success_response(alt_text: str) -> JSONResponse:
    body = AltTextResponse(alt_text=alt_text)
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))


def validation_error_response(error: ValidationError) -> JSONResponse:
    return _error(400, error.message, error.details)


def inference_error_response(error: InferenceError) -> JSONResponse:
    return _error(500, error.message, error.details or "")


def unexpected_error_response(exc: BaseException) -> JSONResponse:
    """Generic 500. Only the exception's message reaches the client."""
    return _error(500, UNEXPECTED_ERROR_MESSAGE, str(exc) or "Unknown error")


def error_response(exc: Exception) -> JSONResponse:
    """Map any exception raised by the pipeline to its envelope."""
    if isinstance(exc, ValidationError):
        return validation_error_response(exc)
    if isinstance(exc, InferenceError):
        return inference_error_response(exc)
    return unexpected_error_response(exc)
