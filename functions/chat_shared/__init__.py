"""Shared infrastructure and chat reactions for the chat Cloud Functions."""
from .logging_config import CloudFunctionLogger
from .http_utils import cors_headers, handle_cors_preflight, json_response, error_response
from .validation import ThreadValidator
from .firestore_utils import DocumentEvent, get_db, reset_db
from .auth import AuthenticationError, extract_bearer_token, get_verifier, reset_verifier
from .fcm_utils import FcmClient, MessagingError, get_messaging, reset_messaging
from .notifications import NotificationSender, build_deep_link
from .reactors import (
    ConversationInitializer,
    GroupMessageReactor,
    MessageReactor,
    ReadReceipts,
    UserCleanup,
)

__all__ = [
    "CloudFunctionLogger",
    "cors_headers",
    "handle_cors_preflight",
    "json_response",
    "error_response",
    "ThreadValidator",
    "DocumentEvent",
    "get_db",
    "reset_db",
    "AuthenticationError",
    "extract_bearer_token",
    "get_verifier",
    "reset_verifier",
    "FcmClient",
    "MessagingError",
    "get_messaging",
    "reset_messaging",
    "NotificationSender",
    "build_deep_link",
    "ConversationInitializer",
    "GroupMessageReactor",
    "MessageReactor",
    "ReadReceipts",
    "UserCleanup",
]
