"""Test fixtures: mock Supabase client, fake vendors and shared test data."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from brand_forge.config import Settings
from brand_forge.db.client import SupabaseClient
from brand_forge.llm.openai_chat import ChatChunk
from brand_forge.storage.objects import ObjectStorage


class MockSupabaseClient(SupabaseClient):
    """In-memory mock of the Supabase client for testing."""

    def __init__(self):
        self._tables: dict[str, list[dict[str, Any]]] = {
            "users": [],
            "sessions": [],
            "brand_profiles": [],
            "brand_field_versions": [],
            "onboarding_messages": [],
            "ai_generations": [],
            "file_archive": [],
            "kv_store": [],
        }

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        record = {
            "id": str(uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        self._tables.setdefault(table, []).append(record)
        return record

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = self._tables.get(table, [])
        if filters:
            for key, value in filters.items():
                rows = [r for r in rows if r.get(key) == value]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by, 0), reverse=not ascending)
        if limit:
            rows = rows[:limit]
        return rows

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        for row in self._tables.get(table, []):
            if row["id"] == id:
                row.update(data)
                row["updated_at"] = datetime.now(timezone.utc).isoformat()
                return row
        raise ValueError(f"Row {id} not found in {table}")

    def delete(self, table: str, id: str) -> None:
        self._tables[table] = [r for r in self._tables.get(table, []) if r["id"] != id]

    def reset(self):
        for table in self._tables:
            self._tables[table] = []


class FakeObjectStorage(ObjectStorage):
    """Dict-backed object storage."""

    def __init__(self):
        super().__init__(client=None, bucket="test-bucket")
        self.objects: dict[str, tuple[bytes, str | None]] = {}
        self.fail_puts = False

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        if self.fail_puts:
            raise RuntimeError("bucket unavailable")
        self.objects[key] = (data, content_type)

    async def get(self, key: str) -> tuple[bytes, str | None] | None:
        return self.objects.get(key)

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


class FakeVendor:
    """Routes httpx requests to canned handlers keyed by (method, URL path suffix)."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response] | httpx.Response):
        if isinstance(handler, httpx.Response):
            response = handler
            handler = lambda request: response  # noqa: E731
        self.routes[(method.upper(), path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for (method, path), handler in self.routes.items():
            if request.method == method and request.url.path.endswith(path):
                return handler(request)
        return httpx.Response(404, json={"error": {"message": f"no route for {request.url.path}"}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


class FakeChatClient:
    """Scripted stand-in for the OpenAI chat client."""

    def __init__(
        self,
        stream_chunks: list[str] | None = None,
        extraction: str = "{}",
        usage: tuple[int, int] = (100, 50),
        stream_error: Exception | None = None,
        completion_error: Exception | None = None,
    ):
        self.stream_chunks = stream_chunks if stream_chunks is not None else ["Hello ", "there!"]
        self.extraction = extraction
        self.usage = usage
        self.stream_error = stream_error
        self.completion_error = completion_error
        self.stream_calls: list[dict[str, Any]] = []
        self.completion_calls: list[dict[str, Any]] = []

    async def stream_chat_completion(self, api_key, messages, model="gpt-4o", temperature=0.8, max_tokens=1500):
        self.stream_calls.append(
            {"api_key": api_key, "messages": messages, "model": model, "max_tokens": max_tokens}
        )
        for chunk in self.stream_chunks:
            yield ChatChunk(type="content", content=chunk)
        if self.stream_error:
            raise self.stream_error
        yield ChatChunk(
            type="usage", prompt_tokens=self.usage[0], completion_tokens=self.usage[1], model=model
        )

    async def chat_completion(
        self, api_key, messages, model="gpt-4o-mini", temperature=0.1, max_tokens=1024, json_mode=False
    ):
        self.completion_calls.append(
            {"messages": messages, "model": model, "max_tokens": max_tokens, "json_mode": json_mode}
        )
        if self.completion_error:
            raise self.completion_error
        return self.extraction


def parse_sse(body: str) -> list[Any]:
    """Decode ``data:`` frames; ``[DONE]`` is returned as the string."""
    events = []
    for frame in body.split("\n\n"):
        if not frame.startswith("data: "):
            continue
        payload = frame[len("data: "):]
        events.append(payload if payload == "[DONE]" else json.loads(payload))
    return events


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """Fresh mock database for each test."""
    return MockSupabaseClient()


@pytest.fixture
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def vendor() -> FakeVendor:
    return FakeVendor()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, openai_api_key="", r2_bucket="", session_cookie_name="session")


@pytest.fixture
def user(mock_db) -> dict[str, Any]:
    return mock_db.insert("users", {"name": "Ada", "email": "ada@example.com", "is_admin": False})


@pytest.fixture
def other_user(mock_db) -> dict[str, Any]:
    return mock_db.insert("users", {"name": "Grace", "email": "grace@example.com", "is_admin": False})


@pytest.fixture
def session_token(mock_db, user) -> str:
    token = uuid4().hex
    expires = datetime.now(timezone.utc) + timedelta(days=1)
    mock_db.insert("sessions", {"token": token, "user_id": user["id"], "expires_at": expires.isoformat()})
    return token


@pytest.fixture
def services(mock_db, storage, vendor, chat_client):
    """Service objects wired to the mock database and fakes."""
    from brand_forge.core.archive import FileArchive
    from brand_forge.core.profiles import BrandProfileRegistry
    from brand_forge.core.versions import FieldVersionControl
    from brand_forge.media.generation import MediaGenerationService
    from brand_forge.onboarding.conversation import OnboardingConversation
    from brand_forge.storage.kv import KeyValueStore

    registry = BrandProfileRegistry(mock_db)
    versions = FieldVersionControl(mock_db)
    archive = FileArchive(mock_db)
    return {
        "registry": registry,
        "versions": versions,
        "archive": archive,
        "kv": KeyValueStore(mock_db),
        "media": MediaGenerationService(mock_db, storage, transport=vendor.transport),
        "conversation": OnboardingConversation(mock_db, registry, versions, chat_client, archive),
    }


@pytest.fixture
def app(mock_db, storage, settings, services):
    """FastAPI test app with mocked dependencies."""
    from brand_forge.config import get_settings
    from brand_forge.core.archive import get_file_archive
    from brand_forge.core.profiles import get_profile_registry
    from brand_forge.core.versions import get_field_versions
    from brand_forge.db.client import get_supabase_client
    from brand_forge.main import app as _app
    from brand_forge.media.generation import get_media_service
    from brand_forge.onboarding.conversation import get_conversation
    from brand_forge.storage.kv import get_kv_store
    from brand_forge.storage.objects import get_object_storage

    _app.dependency_overrides[get_supabase_client] = lambda: mock_db
    _app.dependency_overrides[get_settings] = lambda: settings
    _app.dependency_overrides[get_object_storage] = lambda: storage
    _app.dependency_overrides[get_profile_registry] = lambda: services["registry"]
    _app.dependency_overrides[get_field_versions] = lambda: services["versions"]
    _app.dependency_overrides[get_file_archive] = lambda: services["archive"]
    _app.dependency_overrides[get_kv_store] = lambda: services["kv"]
    _app.dependency_overrides[get_media_service] = lambda: services["media"]
    _app.dependency_overrides[get_conversation] = lambda: services["conversation"]

    yield _app

    _app.dependency_overrides.clear()


@pytest.fixture
def client(app, session_token) -> TestClient:
    """HTTP test client signed in as ``user``."""
    return TestClient(app, headers={"Authorization": f"Bearer {session_token}"})


@pytest.fixture
def anon_client(app) -> TestClient:
    return TestClient(app)
