"""
Runtime configuration.
Values are read from the environment (and a local .env file) once at import.

Credentials are optional here: a missing key only fails when the inference
client is actually used, so the app and its tests can start without them.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Upload contract
# ---------------------------------------------------------------------------

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB

# image/jpg is not a registered type but browsers still send it; both stay.
ACCEPTED_IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
)

IMAGE_FIELD = "image"

# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------

ALT_TEXT_PROMPT = (
    "Create alt text for this image. Use simple language and try to describe "
    "the image in detail. Keep it under 1000 characters."
)

PROVIDER_WORKERS_AI = "workers-ai"
PROVIDER_ANTHROPIC = "anthropic"

DEFAULT_MODELS = {
    PROVIDER_WORKERS_AI: "@cf/meta/llama-3.2-11b-vision-instruct",
    PROVIDER_ANTHROPIC: "claude-sonnet-4-5-20250929",
}

ALT_TEXT_PROVIDER: str = os.getenv("ALT_TEXT_PROVIDER", PROVIDER_WORKERS_AI).strip().lower()

if ALT_TEXT_PROVIDER not in DEFAULT_MODELS:
    raise ValueError(
        f"ALT_TEXT_PROVIDER must be one of {sorted(DEFAULT_MODELS)}, got {ALT_TEXT_PROVIDER!r}"
    )

ALT_TEXT_MODEL: str = os.getenv("ALT_TEXT_MODEL") or DEFAULT_MODELS[ALT_TEXT_PROVIDER]
AI_GATEWAY_ID: str = os.getenv("AI_GATEWAY_ID", "alt-text-generator")

CLOUDFLARE_ACCOUNT_ID: Optional[str] = os.getenv("CLOUDFLARE_ACCOUNT_ID") or None
CLOUDFLARE_API_TOKEN: Optional[str] = os.getenv("CLOUDFLARE_API_TOKEN") or None
ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY") or None

INFERENCE_TIMEOUT_SECONDS: float = float(os.getenv("INFERENCE_TIMEOUT_SECONDS", "60"))

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

BASE_CORS_ORIGINS = [
    "https://alt.flashblaze.dev",
    "https://dev.alt.flashblaze.dev",
    "http://localhost:5173",
]

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes the production, preview and Vite dev server origins.
    Additional origins are read from the CORS_ORIGINS environment variable
    as a comma-separated list, e.g.:
        CORS_ORIGINS=https://staging.alt.flashblaze.dev,http://localhost:4173

    Duplicates are removed while preserving order.
    """
    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    seen: set = set()
    origins: List[str] = []
    for origin in BASE_CORS_ORIGINS + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins
