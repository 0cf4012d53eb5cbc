"""Firestore record types used by the chat functions.

Every ``from_dict`` accepts ``None`` (missing document) or partially
populated data and falls back to defaults, so callers never need to
guard individual field reads.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _str_list(value) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str) and item]


@dataclass
class UserRecord:
    uid: str
    fcm_token: Optional[str] = None
    notifications_enabled: bool = True

    @classmethod
    def from_dict(cls, uid: str, data: Optional[Dict[str, Any]]) -> "UserRecord":
        data = data or {}
        token = data.get("fcmToken")
        return cls(
            uid=uid,
            fcm_token=token if isinstance(token, str) and token else None,
            # Only an explicit False opts out
            notifications_enabled=data.get("notificationsEnabled") is not False,
        )


@dataclass
class ConversationRecord:
    id: str
    participant_ids: List[str] = field(default_factory=list)
    unread_counts: Optional[Dict[str, int]] = None
    last_message: Optional[str] = None
    last_sender_id: Optional[str] = None

    @classmethod
    def from_dict(cls, conversation_id: str, data: Optional[Dict[str, Any]]) -> "ConversationRecord":
        data = data or {}
        counts = data.get("unreadCounts")
        return cls(
            id=conversation_id,
            participant_ids=_str_list(data.get("participantIds")),
            unread_counts=dict(counts) if isinstance(counts, dict) else None,
            last_message=data.get("lastMessage"),
            last_sender_id=data.get("lastSenderId"),
        )


@dataclass
class MessageRecord:
    id: str
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    content: Optional[str] = None
    is_deleted_for_everyone: bool = False
    # Unfiltered: any entry marks the message deleted
    deleted_for_users: List[Any] = field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        """True when deleted for everyone or for at least one user."""
        return self.is_deleted_for_everyone or bool(self.deleted_for_users)

    @classmethod
    def from_dict(cls, message_id: str, data: Optional[Dict[str, Any]]) -> "MessageRecord":
        data = data or {}
        content = data.get("content")
        deleted = data.get("deletedForUsers")
        return cls(
            id=message_id,
            sender_id=data.get("senderId"),
            sender_name=data.get("senderName"),
            content=content if isinstance(content, str) else None,
            is_deleted_for_everyone=bool(data.get("isDeletedForEveryone")),
            deleted_for_users=list(deleted) if isinstance(deleted, (list, tuple)) else [],
        )


@dataclass
class GroupRecord:
    id: str
    name: Optional[str] = None
    member_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, group_id: str, data: Optional[Dict[str, Any]]) -> "GroupRecord":
        data = data or {}
        return cls(
            id=group_id,
            name=data.get("name") or None,
            member_ids=_str_list(data.get("memberIds")),
        )
