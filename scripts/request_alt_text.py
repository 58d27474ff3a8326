#!/usr/bin/env python3
"""
Dev helper: send an image to the local alt text backend.

Posts the file as the ``image`` multipart field to /api/get-alt, the same
way the web UI does, and prints the JSON envelope that comes back.

Usage
-----
# Basic — targeting localhost:8000
python scripts/request_alt_text.py path/to/photo.jpg

# Override the declared content type (e.g. to exercise the allow-list)
python scripts/request_alt_text.py path/to/anim.gif --content-type image/gif

# Target a different backend URL
python scripts/request_alt_text.py photo.png --url http://staging.example.com

Exit status is 0 on HTTP 200, 1 otherwise.
"""

import argparse
import json
import mimetypes
import sys
from pathlib import Path

import httpx

ENDPOINT_PATH = "/api/get-alt"


def _guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"


def _print_response(response: httpx.Response) -> None:
    ok = response.status_code == 200
    symbol = "OK" if ok else "FAIL"
    print(f"\n[{symbol}] HTTP {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Request alt text for a local image from the backend.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("image", type=Path, help="Path to the image file")
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--content-type",
        default=None,
        help="Declared content type (default: guessed from the file extension)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Request timeout in seconds (default: 120)",
    )
    args = parser.parse_args()

    if not args.image.is_file():
        print(f"ERROR: File not found: {args.image}", file=sys.stderr)
        return 1

    content = args.image.read_bytes()
    content_type = args.content_type or _guess_content_type(args.image)
    endpoint = args.url.rstrip("/") + ENDPOINT_PATH

    print(f"Endpoint    : {endpoint}")
    print(f"Image       : {args.image} ({len(content):,} bytes)")
    print(f"Content type: {content_type}")

    try:
        response = httpx.post(
            endpoint,
            files={"image": (args.image.name, content, content_type)},
            timeout=args.timeout,
        )
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
