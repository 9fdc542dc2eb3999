"""
Command-Line Interface for media-proxy.

This module inspects captured multipart/form-data bodies without running
the HTTP server, and can start the server itself. It is the quickest way
to see what the decoder makes of a browser upload.

Usage Examples:
    # Decode a captured body, boundary taken from the Content-Type header
    media-proxy --file body.bin --content-type "multipart/form-data; boundary=----X"

    # Boundary given directly, JSON output
    media-proxy --file body.bin --boundary=----X --json

    # Validate the body as a speech-to-speech request (no upstream call)
    media-proxy --file body.bin --boundary=----X --dry-run

    # Run the HTTP server
    media-proxy --serve --host 0.0.0.0 --port 8000

Exit Codes:
    0  decoded (and, with --dry-run, valid)
    1  body decoded but is not a valid speech-to-speech request
    2  missing or unusable boundary

Environment Variables:
    MEDIA_PROXY_SETTINGS: Settings file (default config/settings.yaml)
    MEDIA_PROXY_LOG_LEVEL: Log level 1-4
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from media_proxy.core.config import Settings, load_settings
from media_proxy.core.logging import configure_logging, get_logger, info, set_request_id, warn
from media_proxy.multipart import MultipartBoundaryError, decode, describe_fields, extract_boundary
from media_proxy.services.validators import ValidationError, validate_sts_fields


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="media-proxy CLI (multipart inspection)")

    # Input
    parser.add_argument("--file", help="File holding a raw multipart/form-data body")
    parser.add_argument("--content-type", help="Content-Type header the body was sent with")
    # Values starting with "-" need the --boundary=TOKEN form
    parser.add_argument("--boundary", help="Boundary token, given as --boundary=TOKEN (overrides --content-type)")
    parser.add_argument("--settings", help="Settings file path")

    # Execution modes
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate as a speech-to-speech request without calling upstream")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON summary")

    # Server
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _load_settings(path: Optional[str]) -> Settings:
    """Settings from the given path, the environment, or defaults."""
    path = path or os.getenv("MEDIA_PROXY_SETTINGS", "config/settings.yaml")
    if Path(path).exists():
        return load_settings(path)
    return Settings(raw={})


def _resolve_boundary(args: argparse.Namespace) -> Optional[str]:
    if args.boundary is not None:
        return args.boundary
    return extract_boundary(args.content_type)


def _print(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = _parse_args(argv)

    if args.serve:
        import uvicorn
        uvicorn.run("media_proxy.main:app", host=args.host, port=args.port)
        return 0

    if not args.file:
        raise SystemExit("Provide --file (or --serve).")

    configure_logging()
    log = get_logger("media-proxy.cli")
    set_request_id(str(uuid4())[:12])

    body = Path(args.file).read_bytes()
    boundary = _resolve_boundary(args)
    if boundary is None:
        warn(log, "no_boundary", content_type=args.content_type)
        _print({"ok": False, "error": "no multipart boundary"}, args.json)
        return 2

    try:
        fields = decode(body, boundary)
    except MultipartBoundaryError as e:
        _print({"ok": False, "error": str(e)}, args.json)
        return 2

    summary = describe_fields(fields)
    info(log, "decoded", body_bytes=len(body), fields=len(fields))

    if not args.dry_run:
        _print({"ok": True, "fields": summary}, args.json)
        print("DECODE_OK")
        return 0

    settings = _load_settings(args.settings)
    try:
        req = validate_sts_fields(fields, settings.sts_model_id)
    except ValidationError as e:
        _print({"ok": False, "fields": summary, "error": e.message, "code": e.code}, args.json)
        return 1

    payload = {
        "ok": True,
        "dry_run": True,
        "fields": summary,
        "sts": {
            "voice_id": req.voice_id,
            "model_id": req.model_id,
            "remove_background_noise": req.remove_background_noise,
            "audio": summary["audio"],
        },
    }
    _print(payload, args.json)
    print("DRY_RUN_OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
