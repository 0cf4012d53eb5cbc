"""Shared HTTP utilities for the chat Cloud Functions.

CORS handling echoes the caller's origin and allows credentials, since the
web client sends Firebase ID tokens in the Authorization header.
"""
from flask import jsonify
from typing import Any, Dict, Optional, Tuple

from .config import CORS_MAX_AGE

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization"


def cors_headers(origin: Optional[str] = None) -> Dict[str, str]:
    """Return CORS headers for regular responses.

    Args:
        origin: Value of the request's Origin header, if any

    Returns:
        Dictionary of Access-Control-* headers
    """
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Allow-Credentials": "true",
    }


def handle_cors_preflight(
    origin: Optional[str] = None
) -> Tuple[str, int, Dict[str, str]]:
    """Handle CORS preflight OPTIONS request.

    Returns:
        Empty response tuple with 204 status and full CORS headers
    """
    headers = cors_headers(origin)
    headers["Access-Control-Max-Age"] = CORS_MAX_AGE
    return ("", 204, headers)


def json_response(
    data: Dict[str, Any],
    status: int = 200,
    origin: Optional[str] = None,
) -> Tuple[Any, int, Dict[str, str]]:
    """Create a JSON response with CORS headers.

    Args:
        data: Dictionary to serialize as JSON
        status: HTTP status code (default: 200)
        origin: Request origin to echo

    Returns:
        Tuple of (JSON response, status, headers)
    """
    return (jsonify(data), status, cors_headers(origin))


def error_response(
    message: str,
    status: int = 400,
    origin: Optional[str] = None,
) -> Tuple[Any, int, Dict[str, str]]:
    """Create an error JSON response with CORS headers.

    Returns:
        Tuple of (JSON error response, status, headers)
    """
    return (jsonify({"error": message}), status, cors_headers(origin))
