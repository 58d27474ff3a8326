"""
Concrete image-to-text backends.

WorkersAIClient   — Cloudflare Workers AI, routed through an AI Gateway (httpx)
ClaudeVisionClient — Anthropic Claude vision (anthropic SDK)

Both return a record shaped like ``{"response": "<text>"}`` so the relay
classifies them the same way. Credentials are checked when a call is made,
not when the client is built.
"""

import base64
import logging
from typing import Any, Optional

import anthropic
import httpx

from app import config
from app.services.inference import ImageToText, InvocationFailedError

logger = logging.getLogger(__name__)

GATEWAY_BASE_URL = "https://gateway.ai.cloudflare.com/v1"
CLAUDE_MAX_TOKENS = 1024


class WorkersAIClient(ImageToText):
    """Runs a Workers AI model through the AI Gateway REST endpoint."""

    def __init__(
        self,
        account_id: Optional[str],
        api_token: Optional[str],
        timeout: float = config.INFERENCE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._account_id = account_id
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    def gateway_url(self, model: str, gateway_id: str) -> str:
        return f"{GATEWAY_BASE_URL}/{self._account_id}/{gateway_id}/workers-ai/{model}"

    async def run(
        self,
        model: str,
        inputs: dict,
        gateway_id: str,
        media_type: Optional[str] = None,
    ) -> Any:
        if not self._account_id or not self._api_token:
            raise InvocationFailedError(
                "CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN must be set"
            )

        url = self.gateway_url(model, gateway_id)
        headers = {"Authorization": f"Bearer {self._api_token}"}

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=inputs)

        if response.is_error:
            raise InvocationFailedError(
                f"Workers AI returned HTTP {response.status_code}: {_cloudflare_error(response)}"
            )

        try:
            body = response.json()
        except ValueError:
            # Not JSON; hand the text back so the relay reports it as malformed.
            return response.text

        if isinstance(body, dict) and "result" in body:
            return body["result"]
        return body


class ClaudeVisionClient(ImageToText):
    """Sends the image and prompt to Claude as a single user message."""

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = config.INFERENCE_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout

    async def run(
        self,
        model: str,
        inputs: dict,
        gateway_id: str,
        media_type: Optional[str] = None,
    ) -> Any:
        if not self._api_key:
            raise InvocationFailedError("ANTHROPIC_API_KEY must be set")

        image_data = base64.standard_b64encode(bytes(inputs["image"])).decode()
        async with anthropic.AsyncAnthropic(api_key=self._api_key, timeout=self._timeout) as client:
            message = await client.messages.create(
                model=model,
                max_tokens=CLAUDE_MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": _claude_media_type(media_type),
                                    "data": image_data,
                                },
                            },
                            {"type": "text", "text": inputs["prompt"]},
                        ],
                    }
                ],
            )

        texts = [block.text for block in message.content if getattr(block, "type", None) == "text"]
        if not texts:
            return None
        return {"response": texts[0]}


def get_image_to_text_client() -> ImageToText:
    """FastAPI dependency: the backend named by ALT_TEXT_PROVIDER."""
    if config.ALT_TEXT_PROVIDER == config.PROVIDER_ANTHROPIC:
        return ClaudeVisionClient(api_key=config.ANTHROPIC_API_KEY)
    return WorkersAIClient(
        account_id=config.CLOUDFLARE_ACCOUNT_ID,
        api_token=config.CLOUDFLARE_API_TOKEN,
    )


def _claude_media_type(media_type: Optional[str]) -> str:
    # Claude only knows the registered spelling.
    if media_type in (None, "", "image/jpg"):
        return "image/jpeg"
    return media_type


def _cloudflare_error(response: httpx.Response) -> str:
    """Best-effort message from a Cloudflare error body."""
    try:
        errors = response.json().get("errors") or []
        if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return errors[0]["message"]
    except (ValueError, AttributeError):
        pass
    return response.reason_phrase or "request failed"
