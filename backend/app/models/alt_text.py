"""
Models for the alt text pipeline.

Response bodies are Pydantic models; the request-local values that flow
between the validator and the relay are plain dataclasses.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class AltTextResponse(BaseModel):
    """Success body returned by POST /api/get-alt."""
    alt_text: str = Field(serialization_alias="altText")


class ErrorResponse(BaseModel):
    """Failure body. ``details`` is left out of the JSON when not set."""
    error: str
    details: Optional[Any] = None


# ---------------------------------------------------------------------------
# Form fields, tagged at the parsing boundary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextValue:
    """A plain text form field."""
    value: str


@dataclass(frozen=True)
class UploadMetadata:
    """What the content checks look at. ``byte_length`` is None until known."""
    declared_media_type: str
    byte_length: Optional[int] = None


@dataclass
class FileValue:
    """
    A file part as delivered by the multipart parser.

    ``upload`` is the parser's file object; its bytes are only read once the
    metadata checks pass.
    """
    upload: Any
    media_type: str
    size: Optional[int] = None
    filename: Optional[str] = None

    @property
    def metadata(self) -> UploadMetadata:
        return UploadMetadata(declared_media_type=self.media_type, byte_length=self.size)


FormField = Union[TextValue, FileValue]


@dataclass(frozen=True)
class UploadedImage:
    """An accepted image, fully read into memory for the current request."""
    data: bytes
    declared_media_type: str
    filename: Optional[str] = None

    @property
    def byte_length(self) -> int:
        return len(self.data)

    @property
    def metadata(self) -> UploadMetadata:
        return UploadMetadata(declared_media_type=self.declared_media_type, byte_length=self.byte_length)
