"""Firebase ID token verification for HTTP functions."""
from typing import Optional

import google.auth
from google.auth.transport.requests import Request
from google.oauth2 import id_token

from .config import PROJECT_ID

BEARER_PREFIX = "Bearer "
ISSUER_PREFIX = "https://securetoken.google.com/"


class AuthenticationError(Exception):
    """The caller could not be authenticated."""


def extract_bearer_token(header: Optional[str]) -> str:
    """Return the token from an 'Authorization: Bearer <token>' header.

    Raises:
        AuthenticationError: If the header is missing or malformed
    """
    if not header or not header.startswith(BEARER_PREFIX):
        raise AuthenticationError("Not authenticated")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Not authenticated")
    return token


class IdTokenVerifier:
    """Verifies Firebase Auth ID tokens against Google's public keys.

    Tokens must be issued for this project: both ``aud`` and ``iss`` are
    checked against it. Without a project ID nothing verifies.
    """

    def __init__(self, project_id: str = PROJECT_ID, request: Optional[Request] = None):
        self.project_id = project_id
        self.request = request or Request()

    def get_project_id(self) -> str:
        """Return the configured project, falling back to application default credentials.

        Raises:
            RuntimeError: If no project ID can be determined
        """
        if not self.project_id:
            _, project = google.auth.default()
            self.project_id = project or ""
        if not self.project_id:
            raise RuntimeError("Firebase project ID is not configured")
        return self.project_id

    def verify(self, token: str) -> str:
        """Verify an ID token and return the caller's uid.

        Transport failures while fetching signing keys propagate.

        Raises:
            AuthenticationError: If the token is invalid, expired, issued for
                another project, or has no subject
            RuntimeError: If the project ID is unknown
        """
        project_id = self.get_project_id()
        try:
            claims = id_token.verify_firebase_token(
                token, self.request, audience=project_id)
        except ValueError as e:
            raise AuthenticationError(str(e)) from e

        claims = claims or {}
        if claims.get("iss") != ISSUER_PREFIX + project_id:
            raise AuthenticationError("Token has wrong issuer")

        uid = claims.get("sub")
        if not uid:
            raise AuthenticationError("Token has no subject")
        return uid


_verifier = None


def get_verifier() -> IdTokenVerifier:
    """Lazy-load and cache the ID token verifier."""
    global _verifier
    if _verifier is None:
        _verifier = IdTokenVerifier()
    return _verifier


def reset_verifier():
    """Clear the cached verifier (for testing)."""
    global _verifier
    _verifier = None
