"""
Alt text router.

Endpoints:
  POST /get-alt  — multipart upload with one ``image`` file part; returns
                   {"altText": ...} or an {"error", "details"} envelope
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.services.envelope import error_response, success_response, unexpected_error_response
from app.services.inference import ImageToText, InferenceError, generate_alt_text
from app.services.upload_validator import ValidationError, read_form, validate_upload
from app.services.vision_clients import get_image_to_text_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/get-alt")
async def get_alt_text(
    request: Request,
    client: ImageToText = Depends(get_image_to_text_client),
) -> JSONResponse:
    """
    Validate an uploaded image and describe it with the vision model.

    Validation failures return 400 before the model is called. Model
    failures and anything unexpected return 500. Exactly one envelope is
    returned per request.
    """
    try:
        form = await read_form(request)
        image = await validate_upload(form)
        alt_text = await generate_alt_text(image, client)
        return success_response(alt_text)
    except (ValidationError, InferenceError) as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Unhandled exception in alt text handler: {e}")
        return unexpected_error_response(e)
    finally:
        await request.close()
