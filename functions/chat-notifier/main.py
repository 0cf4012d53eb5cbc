"""
Chat Notifier Cloud Functions

Handles:
1. Push notifications for new direct and group messages
2. Unread counter upkeep (increment on new message, reset via HTTP)
3. Unread counter initialization for new conversations
4. Profile cleanup when an account is deleted

Firestore triggers must be deployed with JSON event data
(--event-data-content-type=application/json).
"""
import functions_framework
from flask import Request

from chat_shared import (
    AuthenticationError,
    CloudFunctionLogger,
    ConversationInitializer,
    DocumentEvent,
    GroupMessageReactor,
    MessageReactor,
    NotificationSender,
    ReadReceipts,
    ThreadValidator,
    UserCleanup,
    error_response,
    extract_bearer_token,
    get_db,
    get_messaging,
    get_verifier,
    handle_cors_preflight,
    json_response,
)
from chat_shared.config import (
    CONVERSATIONS_COLLECTION,
    GROUPS_COLLECTION,
    MESSAGES_COLLECTION,
)

logger = CloudFunctionLogger("chat-notifier")


def _document_event(cloud_event, collection: str, depth: int):
    """Decode a Firestore event, or log and return None if it is not for us.

    Args:
        collection: Expected top-level collection
        depth: Expected number of path segments (2 for top-level documents,
            4 for subcollection documents)
    """
    try:
        event = DocumentEvent.from_cloud_event(cloud_event)
    except ValueError as e:
        logger.error("Unreadable Firestore event", error=str(e))
        return None

    expected = len(event.path) == depth and event.path[0] == collection
    if depth == 4:
        expected = expected and event.path[2] == MESSAGES_COLLECTION
    if not expected:
        logger.warning("Unexpected document path", path="/".join(event.path),
                       event_id=event.event_id)
        return None
    return event


def _sender(db) -> NotificationSender:
    return NotificationSender(db, get_messaging(), logger=logger)


@functions_framework.cloud_event
def on_message_created(cloud_event):
    """Notify participants of a direct message and bump unread counters.

    Trigger: document.create on conversations/{conversationId}/messages/{messageId}
    """
    event = _document_event(cloud_event, CONVERSATIONS_COLLECTION, 4)
    if event is None:
        return

    db = get_db()
    reactor = MessageReactor(
        db, _sender(db), logger=logger.bind(event_id=event.event_id))
    reactor.handle(event.parent_id, event.document_id, event.fields)


@functions_framework.cloud_event
def on_group_message_created(cloud_event):
    """Notify group members of a new message.

    Trigger: document.create on groups/{groupId}/messages/{messageId}
    """
    event = _document_event(cloud_event, GROUPS_COLLECTION, 4)
    if event is None:
        return

    db = get_db()
    reactor = GroupMessageReactor(
        db, _sender(db), logger=logger.bind(event_id=event.event_id))
    reactor.handle(event.parent_id, event.document_id, event.fields)


@functions_framework.cloud_event
def on_conversation_created(cloud_event):
    """Initialize unread counters for a new conversation.

    Trigger: document.create on conversations/{conversationId}
    """
    event = _document_event(cloud_event, CONVERSATIONS_COLLECTION, 2)
    if event is None:
        return

    initializer = ConversationInitializer(
        get_db(), logger=logger.bind(event_id=event.event_id))
    initializer.handle(event.document_id, event.fields)


@functions_framework.cloud_event
def on_user_deleted(cloud_event):
    """Delete the profile document of a deleted account.

    Trigger: providers/firebase.auth/eventTypes/user.delete
    """
    data = cloud_event.data if isinstance(cloud_event.data, dict) else {}
    cleanup = UserCleanup(get_db(), logger=logger.bind(event_id=cloud_event.get("id")))
    cleanup.handle(data.get("uid"))


@functions_framework.http
def mark_as_read(request: Request):
    """
    HTTP endpoint to reset the caller's unread counter.

    POST /mark-as-read
    Headers: Authorization: Bearer <Firebase ID token>
    Body: {
        "conversationId": "uid1_uid2",
        "isGroup": false (optional)
    }
    The body may also be wrapped as {"data": {...}} (callable format).

    Returns:
        200: {"result": {"success": true}}
        400: {"error": "conversationId missing"}
        401: {"error": "Not authenticated"}
        500: {"error": "<message>"}
    """
    origin = request.headers.get("Origin")

    if request.method == "OPTIONS":
        return handle_cors_preflight(origin)

    try:
        try:
            token = extract_bearer_token(request.headers.get("Authorization"))
            user_id = get_verifier().verify(token)
        except AuthenticationError as e:
            logger.warning("Rejected unauthenticated request", error=str(e))
            return error_response(str(e), 401, origin)

        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        payload = body.get("data") if isinstance(body.get("data"), dict) else body

        conversation_id = payload.get("conversationId")
        if not conversation_id:
            return error_response("conversationId missing", 400, origin)
        if not ThreadValidator.is_valid_thread_id(conversation_id):
            return error_response("Invalid conversationId", 400, origin)

        ReadReceipts(get_db(), logger=logger).mark_as_read(
            user_id, conversation_id, bool(payload.get("isGroup")))

        return json_response({"result": {"success": True}}, 200, origin)

    except Exception as e:
        logger.exception("Error in mark_as_read", error=str(e))
        return error_response(str(e), 500, origin)
