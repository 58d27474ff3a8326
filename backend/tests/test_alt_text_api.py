"""
Integration tests for POST /api/get-alt.

Tests full request/response cycles through the FastAPI app using TestClient.
The image-to-text backend is replaced through dependency_overrides with a
stub that counts calls, so no model is contacted.

Flows tested:
  A. Valid 2 MB JPEG → model text → 200 {"altText"}
  B. 6 MB PNG → 400 size error, model never called
  C. Model raises → 500 {"error", "details"}
  D. Wrong field name → 400 missing field
  plus malformed bodies, malformed model output, the catch-all, and CORS.
"""

import logging
import os
import pytest

os.environ.setdefault("ALT_TEXT_PROVIDER", "workers-ai")

from fastapi.testclient import TestClient

from app.main import app
from app.services.inference import ImageToText
from app.services.vision_clients import get_image_to_text_client

ENDPOINT = "/api/get-alt"
MB = 1024 * 1024


class CountingImageToText(ImageToText):
    """Stub backend: returns a canned result or raises, and counts calls."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def run(self, model, inputs, gateway_id, media_type=None):
        self.calls.append({"model": model, "inputs": inputs, "gateway_id": gateway_id})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def stub():
    backend = CountingImageToText(result={"response": "A cat sitting on a windowsill."})
    app.dependency_overrides[get_image_to_text_client] = lambda: backend
    yield backend
    app.dependency_overrides.pop(get_image_to_text_client, None)


@pytest.fixture()
def client(stub):
    return TestClient(app)


def _jpeg(size: int) -> bytes:
    return b"\xff\xd8\xff\xe0" + b"\x00" * (size - 4)


def _post_image(client, data: bytes, content_type: str = "image/jpeg", field: str = "image", filename="photo.jpg"):
    return client.post(ENDPOINT, files={field: (filename, data, content_type)})


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------

class TestScenarios:

    def test_a_valid_jpeg_returns_alt_text(self, client, stub):
        data = _jpeg(2 * MB)
        response = _post_image(client, data)

        assert response.status_code == 200
        assert response.json() == {"altText": "A cat sitting on a windowsill."}
        assert len(stub.calls) == 1
        assert stub.calls[0]["inputs"]["image"][:4] == [0xFF, 0xD8, 0xFF, 0xE0]
        assert len(stub.calls[0]["inputs"]["image"]) == 2 * MB

    def test_b_oversized_png_rejected_without_model_call(self, client, stub):
        response = _post_image(client, b"\x00" * (6 * MB), "image/png", filename="big.png")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "File size must be less than 5MB"
        assert "altText" not in body
        assert stub.calls == []

    def test_c_model_failure_returns_500(self, client, stub):
        stub.error = RuntimeError("rate limit exceeded")
        response = _post_image(client, _jpeg(1024))

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to process image with AI model",
            "details": "rate limit exceeded",
        }
        assert len(stub.calls) == 1

    def test_d_wrong_field_name_is_missing_field(self, client, stub):
        response = _post_image(client, _jpeg(1024), field="photo")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing image field in form data"}
        assert stub.calls == []


# ---------------------------------------------------------------------------
# Validation failures
# ---------------------------------------------------------------------------

class TestValidationFailures:

    @pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png", "image/webp"])
    def test_allowed_types_accepted(self, client, stub, content_type):
        response = _post_image(client, b"\x01\x02\x03", content_type)
        assert response.status_code == 200

    @pytest.mark.parametrize("content_type", ["image/gif", "image/bmp", "application/pdf"])
    def test_unsupported_type(self, client, stub, content_type):
        response = _post_image(client, b"\x01\x02\x03", content_type)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Only JPEG, PNG, and WebP formats are supported"
        assert content_type in body["details"]
        assert stub.calls == []

    def test_exactly_at_limit_accepted(self, client, stub):
        response = _post_image(client, _jpeg(5 * MB))
        assert response.status_code == 200

    def test_one_byte_over_limit_rejected(self, client, stub):
        response = _post_image(client, _jpeg(5 * MB + 1))

        assert response.status_code == 400
        assert response.json()["details"] == "Received 5242881 bytes; limit is 5242880 bytes"

    def test_text_field_named_image(self, client, stub):
        response = client.post(
            ENDPOINT,
            data={"image": "cat.jpg"},
            files={"other": ("x.txt", b"x", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Image field must be a file"}
        assert stub.calls == []

    def test_urlencoded_text_field_named_image(self, client, stub):
        response = client.post(ENDPOINT, data={"image": "cat.jpg"})
        assert response.status_code == 400
        assert response.json()["error"] == "Image field must be a file"

    def test_json_body_is_malformed(self, client, stub):
        response = client.post(ENDPOINT, json={"image": "base64..."})

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to parse request body as form data"
        assert stub.calls == []

    def test_multipart_without_boundary_is_malformed(self, client, stub):
        response = client.post(
            ENDPOINT,
            content=b"not really multipart",
            headers={"content-type": "multipart/form-data"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to parse request body as form data"
        assert stub.calls == []


# ---------------------------------------------------------------------------
# Model failures
# ---------------------------------------------------------------------------

class TestModelFailures:

    @pytest.mark.parametrize(
        "result, details",
        [
            (None, "null"),
            ({}, "{}"),
            ({"text": "wrong field"}, '{"text": "wrong field"}'),
            ({"response": ""}, '{"response": ""}'),
        ],
    )
    def test_malformed_response(self, client, stub, result, details):
        stub.result = result
        response = _post_image(client, _jpeg(1024))

        assert response.status_code == 500
        assert response.json() == {
            "error": "Received unexpected response format from AI model",
            "details": details,
        }
        assert len(stub.calls) == 1

    def test_failure_body_never_contains_alt_text(self, client, stub):
        stub.error = ConnectionError("gateway unreachable")
        response = _post_image(client, _jpeg(1024))

        assert response.status_code == 500
        assert "altText" not in response.json()

    def test_one_call_per_request(self, client, stub):
        stub.error = TimeoutError("timed out")
        _post_image(client, _jpeg(1024))
        _post_image(client, _jpeg(1024))

        assert len(stub.calls) == 2


# ---------------------------------------------------------------------------
# Catch-all
# ---------------------------------------------------------------------------

class TestUnhandledExceptions:

    def test_envelope_failure_returns_generic_500(self, client, stub, mocker):
        mocker.patch(
            "app.routers.alt_text.success_response",
            side_effect=RuntimeError("serialization failed"),
        )
        response = _post_image(client, _jpeg(1024))

        assert response.status_code == 500
        assert response.json() == {
            "error": "An unexpected error occurred",
            "details": "serialization failed",
        }

    def test_stack_trace_not_sent_to_client(self, client, stub, mocker):
        mocker.patch(
            "app.routers.alt_text.validate_upload",
            side_effect=KeyError("boom"),
        )
        response = _post_image(client, _jpeg(1024))

        assert response.status_code == 500
        assert "Traceback" not in response.text
        assert stub.calls == []

    def test_unexpected_exception_logged_with_stack(self, client, stub, mocker, caplog):
        caplog.set_level(logging.ERROR, logger="app.routers.alt_text")
        mocker.patch(
            "app.routers.alt_text.success_response",
            side_effect=RuntimeError("serialization failed"),
        )
        _post_image(client, _jpeg(1024))

        records = [r for r in caplog.records if r.name == "app.routers.alt_text"]
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
        assert records[0].exc_info is not None
        assert "serialization failed" in records[0].getMessage()

    def test_model_failure_not_logged_by_catch_all(self, client, stub, caplog):
        caplog.set_level(logging.ERROR, logger="app.routers.alt_text")
        stub.error = RuntimeError("rate limit exceeded")

        response = _post_image(client, _jpeg(1024))

        assert response.status_code == 500
        assert [r for r in caplog.records if r.name == "app.routers.alt_text"] == []


# ---------------------------------------------------------------------------
# App surface
# ---------------------------------------------------------------------------

class TestAppSurface:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Alt Text Generator API"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_get_not_allowed(self, client):
        assert client.get(ENDPOINT).status_code == 405

    def test_cors_allowed_origin(self, client):
        response = client.options(
            ENDPOINT,
            headers={
                "Origin": "https://alt.flashblaze.dev",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://alt.flashblaze.dev"

    def test_cors_disallowed_origin(self, client):
        response = client.options(
            ENDPOINT,
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers
