"""FCM HTTP v1 client for the chat Cloud Functions.

Sends single-token messages with an OAuth2 access token obtained from
application default credentials, and classifies send failures so callers
can purge dead registration tokens.
"""
from typing import Any, Dict, Optional

import google.auth
import requests
from google.auth.transport.requests import Request

from .config import FCM_API_URL, FCM_SCOPES, FCM_TIMEOUT_SECONDS, PROJECT_ID

FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"

# FCM v1 error codes for tokens that will never work again
UNREGISTERED = "UNREGISTERED"
INVALID_ARGUMENT = "INVALID_ARGUMENT"


class MessagingError(Exception):
    """A push message could not be delivered.

    Attributes:
        code: FCM error code (e.g. 'UNREGISTERED'), RPC status, or 'HTTP <n>'
        status_code: HTTP status of the FCM response, if one was received
    """

    def __init__(self, code: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    @property
    def is_token_unregistered(self) -> bool:
        return self.code == UNREGISTERED

    @property
    def is_token_invalid(self) -> bool:
        # INVALID_ARGUMENT also covers malformed payloads; only the
        # registration-token variant means the token is dead
        return (self.code == INVALID_ARGUMENT
                and "registration token" in (self.message or "").lower())

    @property
    def is_permanent_token_failure(self) -> bool:
        return self.is_token_unregistered or self.is_token_invalid

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def parse_fcm_error(response) -> MessagingError:
    """Build a MessagingError from a non-200 FCM response."""
    status_code = response.status_code
    try:
        error = (response.json() if response.content else {}).get("error") or {}
    except (ValueError, TypeError, AttributeError):
        error = {}

    code = None
    for detail in error.get("details") or []:
        if detail.get("@type") == FCM_ERROR_TYPE and detail.get("errorCode"):
            code = detail["errorCode"]
            break

    return MessagingError(
        code or error.get("status") or f"HTTP {status_code}",
        error.get("message") or getattr(response, "text", "") or "",
        status_code,
    )


class FcmClient:
    """Minimal FCM HTTP v1 sender.

    Example:
        client = FcmClient("my-project")
        client.send({"token": token, "notification": {"title": "Hi"}})
    """

    def __init__(
        self,
        project_id: str = PROJECT_ID,
        session: Optional[requests.Session] = None,
        timeout: float = FCM_TIMEOUT_SECONDS,
        credentials=None,
    ):
        self.project_id = project_id
        self.session = session or requests.Session()
        self.timeout = timeout
        self._credentials = credentials

    @property
    def url(self) -> str:
        return FCM_API_URL.format(project_id=self.project_id)

    def get_access_token(self) -> str:
        """Return a valid OAuth2 access token, refreshing when expired."""
        if self._credentials is None:
            credentials, project = google.auth.default(scopes=FCM_SCOPES)
            self._credentials = credentials
            if not self.project_id and project:
                self.project_id = project
        if not self._credentials.valid:
            self._credentials.refresh(Request())
        return self._credentials.token

    def send(self, message: Dict[str, Any]) -> str:
        """Send one message.

        Args:
            message: FCM v1 Message resource (must include 'token')

        Returns:
            The message name assigned by FCM

        Raises:
            MessagingError: On any delivery failure
        """
        headers = {
            'Authorization': f'Bearer {self.get_access_token()}',
            'Content-Type': 'application/json; UTF-8',
        }
        try:
            response = self.session.post(
                self.url, headers=headers, json={'message': message},
                timeout=self.timeout)
        except requests.RequestException as e:
            raise MessagingError("UNAVAILABLE", str(e)) from e

        if response.status_code != 200:
            raise parse_fcm_error(response)

        try:
            return response.json().get("name", "")
        except ValueError:
            return ""


_messaging = None


def get_messaging() -> FcmClient:
    """Lazy-load and cache the FCM client."""
    global _messaging
    if _messaging is None:
        _messaging = FcmClient()
    return _messaging


def reset_messaging():
    """Clear the cached FCM client (for testing)."""
    global _messaging
    _messaging = None
