"""
Alt Text Generator API
FastAPI application that turns uploaded images into accessibility alt text.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import config
from app.routers import alt_text

# Configure logging to output to console
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Alt Text Generator API",
    description="Generates alt text for uploaded images with a vision-language model",
    version="0.1.0",
)

# CORS configuration — origins outside the allow-list never reach the router
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(alt_text.router, prefix="/api", tags=["alt-text"])


@app.on_event("startup")
async def log_startup_config() -> None:
    """Log which backend and model requests will be sent to."""
    logger.info(
        "Alt Text Generator API ready:\n"
        "  Provider: %s\n"
        "  Model:    %s\n"
        "  Gateway:  %s\n"
        "  Origins:  %s",
        config.ALT_TEXT_PROVIDER,
        config.ALT_TEXT_MODEL,
        config.AI_GATEWAY_ID,
        ", ".join(config.get_cors_origins()),
    )


@app.get("/")
async def root():
    return {"message": "Alt Text Generator API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
