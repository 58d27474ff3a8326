"""
Inference relay.

Owns the single call to the vision-language model for an accepted upload:
builds the model input, awaits one response, and classifies the outcome.

There is no retry and no fallback model. The browser decides whether to
resubmit.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from app.config import AI_GATEWAY_ID, ALT_TEXT_MODEL, ALT_TEXT_PROMPT
from app.models.alt_text import UploadedImage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class InferenceError(Exception):
    """Raised when the model call cannot produce alt text. Always a 500."""
    error_code = "inference_failed"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvocationFailedError(InferenceError):
    """The call itself failed: raised, timed out, or the remote was unreachable."""
    error_code = "invocation_failed"

    def __init__(self, message: str):
        super().__init__("Failed to process image with AI model", details=message)


class MalformedResponseError(InferenceError):
    """The call returned, but without a usable text field."""
    error_code = "malformed_response"

    def __init__(self, raw_dump: str):
        super().__init__(
            "Received unexpected response format from AI model",
            details=raw_dump,
        )
        self.raw_dump = raw_dump


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------

class ImageToText(ABC):
    """Abstract image-to-text backend."""

    @abstractmethod
    async def run(
        self,
        model: str,
        inputs: dict,
        gateway_id: str,
        media_type: Optional[str] = None,
    ) -> Any:
        """
        Send one inference request and return the raw result record.

        ``inputs`` carries ``prompt``, ``image`` (a list of byte values) and
        ``stream``. ``media_type`` is the declared type of the image, for
        backends that need it. Raises on transport or service failure.
        """
        ...


def build_model_inputs(image: UploadedImage) -> dict:
    """Model input for one image: the fixed prompt plus the bytes as ints."""
    return {
        "prompt": ALT_TEXT_PROMPT,
        "image": list(image.data),
        "stream": False,
    }


def extract_alt_text(raw: Any) -> str:
    """
    Pull the ``response`` text out of a raw model result.

    Raises:
        MalformedResponseError: the result is empty, not a record, or its
            ``response`` is missing, not a string, or blank.
    """
    text = raw.get("response") if isinstance(raw, dict) else None
    if not isinstance(text, str) or not text.strip():
        raw_dump = _dump(raw)
        logger.error(f"Invalid AI response format: {raw_dump}")
        raise MalformedResponseError(raw_dump)
    return text


async def generate_alt_text(
    image: UploadedImage,
    client: ImageToText,
    model: str = ALT_TEXT_MODEL,
    gateway_id: str = AI_GATEWAY_ID,
) -> str:
    """
    Describe an accepted image with exactly one call to ``client``.

    Returns:
        The model's alt text, unchanged.

    Raises:
        InvocationFailedError: the call raised.
        MalformedResponseError: the call returned an unusable value.
    """
    inputs = build_model_inputs(image)

    logger.info(
        f"Requesting alt text — model={model!r}, gateway={gateway_id!r}, "
        f"bytes={image.byte_length}"
    )

    try:
        raw = await client.run(
            model, inputs, gateway_id, media_type=image.declared_media_type
        )
    except InferenceError as e:
        logger.error(f"AI processing error: {e.details or e.message}", exc_info=True)
        raise
    except Exception as e:
        message = str(e) or type(e).__name__
        logger.error(f"AI processing error: {message}", exc_info=True)
        raise InvocationFailedError(message) from e

    return extract_alt_text(raw)


def _dump(raw: Any) -> str:
    try:
        return json.dumps(raw, default=str)
    except (TypeError, ValueError):
        return repr(raw)
