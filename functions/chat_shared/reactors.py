"""Reactions to chat document and account events.

Trigger reactors never raise: failures are logged and the reaction ends
normally.
"""
from typing import Any, Dict, List, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.field_path import FieldPath

from .config import (
    CONVERSATIONS_COLLECTION,
    DEFAULT_GROUP_NAME,
    GROUPS_COLLECTION,
    USERS_COLLECTION,
)
from .logging_config import CloudFunctionLogger
from .models import ConversationRecord, GroupRecord, MessageRecord
from .notifications import NotificationSender
from .validation import ThreadValidator


def unread_field(uid: str) -> str:
    """Field path of one user's counter; quotes IDs that are not simple names."""
    return FieldPath("unreadCounts", uid).to_api_repr()


def _recipients(participants: List[str], sender_id: Optional[str]) -> List[str]:
    """Participants minus the sender, de-duplicated, order kept."""
    seen = set()
    recipients = []
    for uid in participants:
        if uid == sender_id or uid in seen:
            continue
        seen.add(uid)
        recipients.append(uid)
    return recipients


class MessageReactor:
    """Handles a new message in ``conversations/{id}/messages``.

    Notifies every other participant, then commits unread counter
    increments and the last-message summary in one batch.
    """

    def __init__(self, db, sender: NotificationSender,
                 logger: Optional[CloudFunctionLogger] = None):
        self.db = db
        self.sender = sender
        self.logger = logger or CloudFunctionLogger("message-reactor")

    def resolve_participants(self, thread_id: str, conversation) -> List[str]:
        """Participants from a direct-chat ID, else from the stored record."""
        pair = ThreadValidator.split_direct_thread_id(thread_id)
        if pair:
            return list(pair)
        if conversation.exists:
            record = ConversationRecord.from_dict(thread_id, conversation.to_dict())
            return record.participant_ids
        return []

    def handle(self, thread_id: str, message_id: str,
               data: Optional[Dict[str, Any]]) -> List[str]:
        """React to a created message.

        Returns:
            The recipients that were processed (empty on skip or failure)
        """
        logger = self.logger.bind(thread_id=thread_id, message_id=message_id)
        try:
            message = MessageRecord.from_dict(message_id, data)
            if message.is_deleted:
                logger.info("Skipping deleted message")
                return []

            conversation_ref = self.db.collection(
                CONVERSATIONS_COLLECTION).document(thread_id)
            conversation = conversation_ref.get()

            recipients = _recipients(
                self.resolve_participants(thread_id, conversation),
                message.sender_id)
            logger.info("New message", recipient_count=len(recipients),
                        conversation_exists=conversation.exists)

            batch = self.db.batch()
            for recipient_id in recipients:
                self.sender.send(
                    recipient_id,
                    message.sender_id,
                    message.sender_name,
                    message.content,
                    thread_id,
                    message_id,
                    False,
                )
                if conversation.exists:
                    batch.update(conversation_ref, {
                        unread_field(recipient_id): firestore.Increment(1),
                    })

            if conversation.exists:
                batch.update(conversation_ref, {
                    "lastMessage": message.content or "",
                    "lastMessageTime": firestore.SERVER_TIMESTAMP,
                    "lastSenderId": message.sender_id,
                })
                batch.commit()

            logger.info("Message processed")
            return recipients

        except Exception:
            logger.exception("Error in message reactor")
            return []


class GroupMessageReactor:
    """Handles a new message in ``groups/{id}/messages``.

    Group threads have no unread counters; only notifications are sent.
    """

    def __init__(self, db, sender: NotificationSender,
                 logger: Optional[CloudFunctionLogger] = None):
        self.db = db
        self.sender = sender
        self.logger = logger or CloudFunctionLogger("group-message-reactor")

    def handle(self, group_id: str, message_id: str,
               data: Optional[Dict[str, Any]]) -> List[str]:
        logger = self.logger.bind(group_id=group_id, message_id=message_id)
        try:
            message = MessageRecord.from_dict(message_id, data)
            if message.is_deleted:
                logger.info("Skipping deleted message")
                return []

            snapshot = self.db.collection(GROUPS_COLLECTION).document(group_id).get()
            if not snapshot.exists:
                logger.warning("Group not found")
                return []

            group = GroupRecord.from_dict(group_id, snapshot.to_dict())
            group_name = group.name or DEFAULT_GROUP_NAME
            recipients = _recipients(group.member_ids, message.sender_id)
            logger.info("Sending group notifications", recipient_count=len(recipients))

            for recipient_id in recipients:
                self.sender.send(
                    recipient_id,
                    message.sender_id,
                    message.sender_name,
                    message.content,
                    group_id,
                    message_id,
                    True,
                    group_name,
                )

            logger.info("Group message processed")
            return recipients

        except Exception:
            logger.exception("Error in group message reactor")
            return []


class ConversationInitializer:
    """Seeds ``unreadCounts`` with a zero for each participant of a new conversation."""

    def __init__(self, db, logger: Optional[CloudFunctionLogger] = None):
        self.db = db
        self.logger = logger or CloudFunctionLogger("conversation-initializer")

    def handle(self, conversation_id: str,
               data: Optional[Dict[str, Any]]) -> Optional[Dict[str, int]]:
        """Returns the written counters, or None when nothing was written."""
        try:
            conversation = ConversationRecord.from_dict(conversation_id, data)
            if not conversation.participant_ids or conversation.unread_counts is not None:
                return None

            unread_counts = {uid: 0 for uid in conversation.participant_ids}
            self.db.collection(CONVERSATIONS_COLLECTION).document(
                conversation_id).update({"unreadCounts": unread_counts})

            self.logger.info("Initialized unread counts",
                             conversation_id=conversation_id,
                             participant_count=len(unread_counts))
            return unread_counts

        except Exception:
            self.logger.exception("Error initializing conversation",
                                  conversation_id=conversation_id)
            return None


class ReadReceipts:
    """Resets a user's unread counter for a conversation."""

    def __init__(self, db, logger: Optional[CloudFunctionLogger] = None):
        self.db = db
        self.logger = logger or CloudFunctionLogger("read-receipts")

    def mark_as_read(self, user_id: str, conversation_id: str,
                     is_group: bool = False) -> bool:
        """Zero the caller's counter with a merge write.

        The conversation document is created if it does not exist; other
        fields and other users' counters are left untouched. Errors
        propagate to the caller.

        Returns:
            True if a counter was written, False for groups (not tracked)
        """
        if is_group:
            self.logger.info("Marked group as read",
                             user_id=user_id, group_id=conversation_id)
            return False

        self.db.collection(CONVERSATIONS_COLLECTION).document(conversation_id).set(
            {"unreadCounts": {user_id: 0}}, merge=True)
        self.logger.info("Marked conversation as read",
                         user_id=user_id, conversation_id=conversation_id)
        return True


class UserCleanup:
    """Removes a deleted account's profile document."""

    def __init__(self, db, logger: Optional[CloudFunctionLogger] = None):
        self.db = db
        self.logger = logger or CloudFunctionLogger("user-cleanup")

    def handle(self, uid: Optional[str]) -> bool:
        if not uid:
            self.logger.warning("User deletion event without uid")
            return False
        try:
            self.db.collection(USERS_COLLECTION).document(uid).delete()
            self.logger.info("Deleted user data", user_id=uid)
            return True
        except Exception:
            self.logger.exception("Error deleting user data", user_id=uid)
            return False
