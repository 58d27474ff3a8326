"""
Upload validator.

Turns an inbound multipart request into an UploadedImage, or rejects it
with a typed ValidationError before any inference is attempted.

Public API:
  read_form(request)      -> dict[str, FormField]
  validate_upload(form)   -> UploadedImage   (raises ValidationError)

Checks run in order and stop at the first failure:
  1. presence   — the form has an ``image`` field
  2. shape      — the field is a file part, not a text value
  3. media type — the declared content type is on the allow-list
  4. size       — the file is at most MAX_FILE_SIZE bytes

The declared content type is trusted as sent; bytes are never sniffed.
"""

import logging
from typing import Callable, Optional

from starlette.datastructures import UploadFile

from app.config import ACCEPTED_IMAGE_TYPES, IMAGE_FIELD, MAX_FILE_SIZE
from app.models.alt_text import FileValue, FormField, TextValue, UploadedImage, UploadMetadata

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when an upload is rejected. Always a client error (400)."""
    error_code = "validation_failed"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class MissingFieldError(ValidationError):
    error_code = "missing_field"

    def __init__(self, field_name: str = IMAGE_FIELD):
        super().__init__("Missing image field in form data")
        self.field_name = field_name


class WrongFieldTypeError(ValidationError):
    error_code = "wrong_field_type"

    def __init__(self):
        super().__init__("Image field must be a file")


class UnsupportedTypeError(ValidationError):
    error_code = "unsupported_type"

    def __init__(self, actual: str):
        super().__init__(
            "Only JPEG, PNG, and WebP formats are supported",
            details=f"Received content type {actual!r}",
        )
        self.actual = actual


class TooLargeError(ValidationError):
    error_code = "file_too_large"

    def __init__(self, actual: int, limit: int = MAX_FILE_SIZE):
        super().__init__(
            "File size must be less than 5MB",
            details=f"Received {actual} bytes; limit is {limit} bytes",
        )
        self.actual = actual
        self.limit = limit


class MalformedBodyError(ValidationError):
    error_code = "malformed_body"

    def __init__(self, reason: str):
        super().__init__("Failed to parse request body as form data", details=reason)
        self.reason = reason


# ---------------------------------------------------------------------------
# Form parsing
# ---------------------------------------------------------------------------

def tag_form_value(value) -> FormField:
    """Wrap a raw parser value as TextValue or FileValue."""
    if isinstance(value, UploadFile):
        return FileValue(
            upload=value,
            media_type=value.content_type or "",
            size=value.size,
            filename=value.filename,
        )
    return TextValue(value=str(value))


async def read_form(request) -> dict:
    """
    Parse the request body into a mapping of field name -> FormField.

    Only the first value of a repeated field is kept. Any failure to frame
    the body (wrong content type, broken multipart boundaries, truncated
    stream) raises MalformedBodyError.
    """
    content_type = (request.headers.get("content-type") or "").lower()
    if not content_type.startswith(_FORM_CONTENT_TYPES):
        raise _reject(MalformedBodyError(
            f"Expected multipart/form-data, got {content_type or 'no content type'!r}"
        ))

    try:
        form = await request.form()
    except Exception as e:
        # Starlette reports multipart framing errors as HTTPException(400).
        reason = getattr(e, "detail", None) or str(e) or type(e).__name__
        raise _reject(MalformedBodyError(str(reason)))

    fields: dict = {}
    for name, value in form.multi_items():
        if name not in fields:
            fields[name] = tag_form_value(value)
    return fields


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def check_presence(form: dict) -> FormField:
    field = form.get(IMAGE_FIELD)
    if field is None:
        raise _reject(MissingFieldError())
    return field


def check_shape(field: FormField) -> FileValue:
    if isinstance(field, FileValue):
        return field
    raise _reject(WrongFieldTypeError())


def check_media_type(upload: UploadMetadata) -> Optional[ValidationError]:
    if upload.declared_media_type not in ACCEPTED_IMAGE_TYPES:
        return UnsupportedTypeError(upload.declared_media_type)
    return None


def check_size(upload: UploadMetadata) -> Optional[ValidationError]:
    # Size is unknown until read when the parser did not record it.
    if upload.byte_length is not None and upload.byte_length > MAX_FILE_SIZE:
        return TooLargeError(upload.byte_length)
    return None


CONTENT_CHECKS: tuple[Callable[[UploadMetadata], Optional[ValidationError]], ...] = (
    check_media_type,
    check_size,
)


def _run_content_checks(upload: UploadMetadata) -> None:
    for check in CONTENT_CHECKS:
        error = check(upload)
        if error is not None:
            raise _reject(error)


async def _read_bytes(file: FileValue) -> bytes:
    try:
        return await file.upload.read()
    except Exception as e:
        raise _reject(MalformedBodyError(f"Failed to read file data: {e}"))


async def validate_upload(form: dict) -> UploadedImage:
    """
    Run every check against a parsed form and return the accepted image.

    The metadata checks run before the body is read. Size is checked again
    against the bytes actually read, in case the parser did not report it.

    Raises:
        ValidationError: the first check that failed.
    """
    file = check_shape(check_presence(form))
    _run_content_checks(file.metadata)

    data = await _read_bytes(file)
    image = UploadedImage(
        data=data,
        declared_media_type=file.media_type,
        filename=file.filename,
    )
    _run_content_checks(image.metadata)

    logger.info(
        f"Upload accepted — filename={image.filename!r}, "
        f"content_type={image.declared_media_type!r}, bytes={image.byte_length}"
    )
    return image


def _reject(error: ValidationError) -> ValidationError:
    details = f" ({error.details})" if error.details else ""
    logger.warning(f"Upload rejected [{error.error_code}]: {error.message}{details}")
    return error
