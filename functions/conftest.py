"""Shared pytest fixtures for the chat Cloud Functions tests."""
import copy

import pytest
from unittest.mock import MagicMock
from google.api_core.exceptions import NotFound


def _merge(target, changes):
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class FakeCloudEvent:
    """Stand-in for cloudevents.http.CloudEvent (attribute lookup + data)."""

    def __init__(self, data, **attributes):
        self.data = data
        self._attributes = {"id": "event-1", "type": "test", "source": "test"}
        self._attributes.update(attributes)

    def __getitem__(self, key):
        return self._attributes[key]

    def get(self, key, default=None):
        return self._attributes.get(key, default)


def encode_value(value):
    """Encode a Python value as a Firestore JSON typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    return {"stringValue": value}


def encode_fields(data):
    return {key: encode_value(value) for key, value in data.items()}


@pytest.fixture
def mock_firestore():
    """MagicMock Firestore client backed by an in-memory document dict.

    Seed documents with ``db.documents["users/u1"] = {...}``. Document
    references are cached per path so call assertions work across lookups.
    """
    db = MagicMock()
    db.documents = {}
    refs = {}

    def make_snapshot(path, doc_id):
        data = db.documents.get(path)
        snapshot = MagicMock()
        snapshot.id = doc_id
        snapshot.exists = data is not None
        snapshot.to_dict.return_value = copy.deepcopy(data)
        return snapshot

    def document(collection, doc_id):
        path = f"{collection}/{doc_id}"
        if path in refs:
            return refs[path]

        ref = MagicMock(name=path)
        ref.id = doc_id
        ref.path = path

        def set_(data, merge=False):
            if merge and path in db.documents:
                _merge(db.documents[path], data)
            else:
                db.documents[path] = copy.deepcopy(data)

        def update(data):
            if path not in db.documents:
                raise NotFound(f"No document to update: {path}")
            db.documents[path].update(copy.deepcopy(data))

        def delete():
            db.documents.pop(path, None)

        ref.get.side_effect = lambda: make_snapshot(path, doc_id)
        ref.set.side_effect = set_
        ref.update.side_effect = update
        ref.delete.side_effect = delete
        refs[path] = ref
        return ref

    def collection(name):
        coll = MagicMock(name=name)
        coll.document.side_effect = lambda doc_id: document(name, doc_id)
        return coll

    db.collection.side_effect = collection
    db.ref = document
    return db


@pytest.fixture
def mock_messaging():
    """Messaging client that accepts every message."""
    messaging = MagicMock()
    messaging.send.return_value = "projects/test/messages/1"
    return messaging


@pytest.fixture
def make_document_event():
    """Factory for Firestore document.create CloudEvents with JSON data."""
    def factory(path, data, event_id="event-1"):
        name = f"projects/test/databases/(default)/documents/{path}"
        return FakeCloudEvent(
            {"value": {"name": name, "fields": encode_fields(data)}},
            id=event_id,
            subject=f"documents/{path}",
        )
    return factory


@pytest.fixture
def make_cloud_event():
    def factory(data, **attributes):
        return FakeCloudEvent(data, **attributes)
    return factory
