"""Shared validation utilities for the chat Cloud Functions."""
from typing import Optional, Tuple

from .config import DIRECT_THREAD_SEPARATOR


class ThreadValidator:
    """Validator for conversation and group identifiers."""

    # Firestore document IDs are limited to 1500 bytes
    MAX_ID_BYTES = 1500

    @classmethod
    def is_valid_thread_id(cls, thread_id) -> bool:
        """Check that a thread ID is usable as a Firestore document ID.

        Args:
            thread_id: Candidate conversation or group ID

        Returns:
            True if the ID can address a single document
        """
        if not thread_id or not isinstance(thread_id, str):
            return False
        if "/" in thread_id or thread_id in (".", ".."):
            return False
        if len(thread_id.encode("utf-8")) > cls.MAX_ID_BYTES:
            return False
        return True

    @classmethod
    def split_direct_thread_id(
        cls,
        thread_id: Optional[str],
        separator: str = DIRECT_THREAD_SEPARATOR,
    ) -> Optional[Tuple[str, str]]:
        """Return both participants of a direct-chat ID, or None.

        A direct chat ID is two user IDs joined by the separator, e.g.
        "alice_bob". Anything that does not split into exactly two
        non-empty parts is not a direct chat ID.
        """
        if not thread_id or not isinstance(thread_id, str):
            return None
        parts = thread_id.split(separator)
        if len(parts) != 2 or not all(parts):
            return None
        return parts[0], parts[1]
