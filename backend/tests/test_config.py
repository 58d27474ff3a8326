"""
Unit tests for configuration helpers.
"""

import os

os.environ.setdefault("ALT_TEXT_PROVIDER", "workers-ai")

from app import config
from app.config import get_cors_origins


class TestGetCorsOrigins:

    def test_base_origins_without_env(self, monkeypatch):
        monkeypatch.delenv("CORS_ORIGINS", raising=False)
        assert get_cors_origins() == [
            "https://alt.flashblaze.dev",
            "https://dev.alt.flashblaze.dev",
            "http://localhost:5173",
        ]

    def test_extra_origins_appended(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://staging.example.com, http://localhost:4173")
        origins = get_cors_origins()
        assert origins[-2:] == ["https://staging.example.com", "http://localhost:4173"]
        assert len(origins) == 5

    def test_duplicates_and_blanks_removed(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173,,  ,https://alt.flashblaze.dev")
        assert get_cors_origins() == config.BASE_CORS_ORIGINS


class TestConstants:

    def test_upload_limits(self):
        assert config.MAX_FILE_SIZE == 5_242_880
        assert config.ACCEPTED_IMAGE_TYPES == ("image/jpeg", "image/jpg", "image/png", "image/webp")

    def test_default_model_follows_provider(self):
        assert config.DEFAULT_MODELS[config.PROVIDER_WORKERS_AI] == "@cf/meta/llama-3.2-11b-vision-instruct"
        assert config.DEFAULT_MODELS[config.PROVIDER_ANTHROPIC].startswith("claude-")
