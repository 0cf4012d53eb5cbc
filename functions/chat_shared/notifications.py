"""Push notification fan-out for new chat messages.

Delivery is best effort: one attempt per recipient, no retries. Tokens
that FCM reports as unregistered or invalid are removed from the
recipient's user document so they are not tried again.
"""
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from google.cloud import firestore

from .config import (
    DEFAULT_NOTIFICATION_TITLE,
    NOTIFICATION_BODY_MAX_LENGTH,
    USERS_COLLECTION,
    WEB_APP_URL,
)
from .logging_config import CloudFunctionLogger
from .models import UserRecord

NEW_MESSAGE = "new_message"
GROUP_MESSAGE = "group_message"
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


def build_title(sender_name: Optional[str], is_group: bool = False,
                group_name: Optional[str] = None) -> str:
    if is_group and group_name:
        return f"{sender_name or DEFAULT_NOTIFICATION_TITLE} in {group_name}"
    return sender_name or DEFAULT_NOTIFICATION_TITLE


def build_body(content: Optional[str],
               max_length: int = NOTIFICATION_BODY_MAX_LENGTH) -> str:
    """Truncate message content for display, marking cut text with '...'."""
    if not content:
        return ""
    if len(content) > max_length:
        return content[:max_length] + "..."
    return content


def build_deep_link(base_url: str, thread_id: str,
                    message_id: Optional[str] = None, reply: bool = False) -> str:
    """Build the web client URL that opens a conversation.

    Returns:
        '{base}/?conversation=..&message=..', or '&focus=input' for replies
    """
    params = {"conversation": thread_id}
    if reply:
        params["focus"] = "input"
    elif message_id:
        params["message"] = message_id
    return f"{base_url.rstrip('/')}/?{urlencode(params)}"


def build_message(token: str, title: str, body: str, data: Dict[str, str],
                  link: Optional[str] = None) -> Dict[str, Any]:
    """Assemble an FCM v1 Message with Android, APNs and web push hints."""
    message = {
        "token": token,
        "notification": {
            "title": title,
            "body": body,
        },
        "data": data,
        "android": {
            "priority": "HIGH",
        },
        "apns": {
            "payload": {
                "aps": {
                    "sound": "default",
                    "badge": 1,
                },
            },
        },
    }
    if link:
        message["webpush"] = {"fcm_options": {"link": link}}
    return message


class NotificationSender:
    """Sends a new-message notification to one user.

    Args:
        db: Firestore client
        messaging: Object with ``send(message) -> str`` raising
            ``MessagingError`` (see fcm_utils.FcmClient)
        logger: Structured logger
        web_app_url: Base URL for web push deep links; empty disables them
    """

    def __init__(self, db, messaging, logger: Optional[CloudFunctionLogger] = None,
                 web_app_url: str = WEB_APP_URL):
        self.db = db
        self.messaging = messaging
        self.logger = logger or CloudFunctionLogger("chat-notifications")
        self.web_app_url = web_app_url

    def send(
        self,
        recipient_id: str,
        sender_id: Optional[str],
        sender_name: Optional[str],
        content: Optional[str],
        thread_id: str,
        message_id: str,
        is_group: bool = False,
        group_name: Optional[str] = None,
    ) -> bool:
        """Attempt delivery to one recipient.

        Missing users, users who disabled notifications, and users without
        a token are skipped silently. Send failures are logged, never raised.

        Returns:
            True if FCM accepted the message
        """
        user_ref = self.db.collection(USERS_COLLECTION).document(recipient_id)
        snapshot = user_ref.get()
        if not snapshot.exists:
            self.logger.info("Recipient not found", recipient_id=recipient_id)
            return False

        user = UserRecord.from_dict(recipient_id, snapshot.to_dict())
        if not user.notifications_enabled:
            self.logger.info("Notifications disabled", recipient_id=recipient_id)
            return False
        if not user.fcm_token:
            self.logger.info("Recipient has no FCM token", recipient_id=recipient_id)
            return False

        data = {
            "type": GROUP_MESSAGE if is_group else NEW_MESSAGE,
            "conversationId": thread_id,
            "messageId": message_id,
            "senderId": sender_id or "",
            "senderName": sender_name or "",
            "click_action": CLICK_ACTION,
        }
        if is_group and group_name:
            data["groupName"] = group_name

        link = None
        if self.web_app_url:
            link = build_deep_link(self.web_app_url, thread_id, message_id)

        message = build_message(
            user.fcm_token,
            build_title(sender_name, is_group, group_name),
            build_body(content),
            data,
            link,
        )

        try:
            self.messaging.send(message)
        except Exception as e:
            self.logger.error("Failed to send notification",
                              recipient_id=recipient_id, error=str(e),
                              code=getattr(e, "code", None))
            if getattr(e, "is_permanent_token_failure", False):
                self._remove_token(user_ref, recipient_id)
            return False

        self.logger.info("Notification sent", recipient_id=recipient_id,
                         thread_id=thread_id)
        return True

    def _remove_token(self, user_ref, recipient_id: str) -> None:
        try:
            user_ref.update({"fcmToken": firestore.DELETE_FIELD})
            self.logger.info("Removed dead FCM token", recipient_id=recipient_id)
        except Exception as e:
            self.logger.error("Failed to remove FCM token",
                              recipient_id=recipient_id, error=str(e))
