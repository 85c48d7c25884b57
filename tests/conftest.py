# tests/conftest.py

import copy
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from medassist.core.jwt import create_jwt_token
from medassist.main import app
from medassist.services.chat_session_service import ChatSessionService


class FakeCollection:
    """In-memory stand-in for the few motor collection calls the service makes."""

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    def _find(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return doc
        return None

    @staticmethod
    def _apply(doc, update, inserting):
        for key, value in update.get("$set", {}).items():
            doc[key] = copy.deepcopy(value)
        if inserting:
            for key, value in update.get("$setOnInsert", {}).items():
                doc[key] = copy.deepcopy(value)
        for key, value in update.get("$push", {}).items():
            items = doc.setdefault(key, [])
            if isinstance(value, dict) and "$each" in value:
                items.extend(copy.deepcopy(value["$each"]))
                if "$slice" in value:
                    limit = value["$slice"]
                    doc[key] = items[limit:] if limit < 0 else items[:limit]
            else:
                items.append(copy.deepcopy(value))

    def _upsert(self, query, update, upsert):
        doc = self._find(query)
        if doc is not None:
            self._apply(doc, update, inserting=False)
            return doc
        if not upsert:
            return None
        doc = dict(query)
        self._apply(doc, update, inserting=True)
        self.docs.append(doc)
        return doc

    async def find_one(self, query):
        return copy.deepcopy(self._find(query))

    async def update_one(self, query, update, upsert=False):
        self._upsert(query, update, upsert)

    async def find_one_and_update(self, query, update, upsert=False, return_document=False):
        before = copy.deepcopy(self._find(query))
        doc = self._upsert(query, update, upsert)
        return copy.deepcopy(doc) if return_document else before

    async def delete_one(self, query):
        doc = self._find(query)
        if doc is None:
            return SimpleNamespace(deleted_count=0)
        self.docs.remove(doc)
        return SimpleNamespace(deleted_count=1)


def _auth_headers(user_id="user-1", role="patient"):
    token = create_jwt_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def session_service():
    return ChatSessionService(sessions=FakeCollection(), histories=FakeCollection(), user_history_limit=100)


@pytest.fixture
def client(monkeypatch, session_service):
    # Patch the service where the routers look it up
    monkeypatch.setattr("medassist.routers.assistant.chat_session_service", session_service)
    monkeypatch.setattr("medassist.routers.admin.chat_session_service", session_service)
    return TestClient(app)
