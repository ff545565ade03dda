"""Utility helpers for the try-on router."""

from typing import Any, Dict

from fastapi.responses import JSONResponse, PlainTextResponse

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Max-Age": "86400",
}


def preflight_response() -> PlainTextResponse:
    return PlainTextResponse("OK", status_code=200, headers=CORS_HEADERS)


def json_response(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    """JSON response carrying the CORS headers."""
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)
