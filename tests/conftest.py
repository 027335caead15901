"""
Shared fixtures: an in-memory stand-in for the hosted backend, served to the real
BackendClient through httpx.MockTransport.
"""

import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

import httpx
import pytest

from studymaster.api.client import BackendClient
from studymaster.auth.state import AuthState
from studymaster.core.config import DEFAULT_SYSTEM_PROMPT, settings
from studymaster.models.user import AuthSession, AuthUser
from studymaster.views.notifications import Notifier

BASE_URL = "http://backend.test"
ANON_KEY = "anon-key"
ACCESS_TOKEN = "token-abc"
USER_ID = "11111111-1111-1111-1111-111111111111"
USER_EMAIL = "student@example.com"
PASSWORD = "correct-horse"

CHAT_PATH = f"/functions/v1/{settings.CHAT_FUNCTION_NAME}"
TRANSCRIBE_PATH = f"/functions/v1/{settings.TRANSCRIBE_FUNCTION_NAME}"


class FakeBackend:
    """Just enough of the auth, REST and functions APIs to drive the client."""

    def __init__(self):
        self.sessions: List[Dict[str, Any]] = []
        self.messages: List[Dict[str, Any]] = []
        self.requests: List[Tuple[str, str, Any]] = []
        self.failures: Set[Tuple[str, str]] = set()
        self.chat_reply: Union[str, Callable[[Dict[str, Any]], Any]] = "AI reply"
        self.transcript = "transcribed text"
        self.logged_out = False
        self.in_flight_chats = 0
        self.max_in_flight_chats = 0
        self._clock = datetime.now(timezone.utc) - timedelta(hours=1)

    # --- helpers ---

    def now(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def fail(self, method: str, path: str) -> None:
        self.failures.add((method, path))

    def calls(self, method: str, path: str) -> List[Any]:
        return [body for m, p, body in self.requests if m == method and p == path]

    def add_session(self, name: str, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> Dict[str, Any]:
        stamp = self.now()
        row = {
            "id": str(uuid.uuid4()),
            "user_id": USER_ID,
            "name": name,
            "system_prompt": system_prompt,
            "created_at": stamp,
            "updated_at": stamp,
        }
        self.sessions.append(row)
        return row

    # --- transport ---

    async def handle(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, body))

        if (method, path) in self.failures:
            return httpx.Response(500, json={"message": "simulated failure"})

        if path.startswith("/auth/v1/"):
            return self._auth(method, path, request, body)
        if path.startswith("/rest/v1/"):
            return self._rest(method, path, request, body)
        if path == CHAT_PATH:
            return await self._chat(body)
        if path == TRANSCRIBE_PATH:
            return httpx.Response(200, json={"text": self.transcript})
        return httpx.Response(404, json={"message": "not found"})

    def _auth(self, method, path, request, body) -> httpx.Response:
        session_body = {
            "access_token": ACCESS_TOKEN,
            "token_type": "bearer",
            "refresh_token": "refresh-abc",
            "user": {"id": USER_ID, "email": USER_EMAIL},
        }
        if path == "/auth/v1/token":
            if body.get("password") != PASSWORD:
                return httpx.Response(400, json={"error_description": "Invalid login credentials"})
            return httpx.Response(200, json=session_body)
        if path == "/auth/v1/signup":
            return httpx.Response(200, json=session_body)
        if path == "/auth/v1/user":
            if request.headers.get("Authorization") != f"Bearer {ACCESS_TOKEN}":
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json={"id": USER_ID, "email": USER_EMAIL, "aud": "authenticated"})
        if path == "/auth/v1/logout":
            self.logged_out = True
            return httpx.Response(204)
        return httpx.Response(404)

    def _rest(self, method, path, request, body) -> httpx.Response:
        params = request.url.params
        table = path.rsplit("/", 1)[-1]
        if table == "sessions":
            if method == "GET" and "id" in params:
                session_id = params["id"].removeprefix("eq.")
                row = next((s for s in self.sessions if s["id"] == session_id), None)
                if row is None:
                    return httpx.Response(406, json={"message": "JSON object requested, multiple (or no) rows returned"})
                return httpx.Response(200, json={"name": row["name"], "system_prompt": row["system_prompt"]})
            if method == "GET":
                rows = sorted(self.sessions, key=lambda s: s["updated_at"], reverse=True)
                return httpx.Response(200, json=rows)
            if method == "POST":
                row = self.add_session(body[0]["name"], body[0]["system_prompt"])
                row["user_id"] = body[0]["user_id"]
                return httpx.Response(201, json=[row])
            if method == "PATCH":
                session_id = params["id"].removeprefix("eq.")
                for row in self.sessions:
                    if row["id"] == session_id:
                        # the updated_at trigger stamps server time
                        row["updated_at"] = self.now()
                return httpx.Response(204)
        if table == "chat_messages":
            if method == "GET":
                session_id = params["session_id"].removeprefix("eq.")
                rows = [m for m in self.messages if m["session_id"] == session_id]
                return httpx.Response(200, json=sorted(rows, key=lambda m: m["created_at"]))
            if method == "POST":
                row = dict(body[0], id=str(uuid.uuid4()), image_url=None, created_at=self.now())
                self.messages.append(row)
                return httpx.Response(201, json=[row])
        return httpx.Response(404)

    async def _chat(self, body) -> httpx.Response:
        self.in_flight_chats += 1
        self.max_in_flight_chats = max(self.max_in_flight_chats, self.in_flight_chats)
        try:
            # yield to the loop so overlapping sends would be observable
            for _ in range(3):
                await asyncio.sleep(0)
            reply = self.chat_reply(body) if callable(self.chat_reply) else self.chat_reply
        finally:
            self.in_flight_chats -= 1
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json={"response": reply})


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(fake_backend: FakeBackend) -> BackendClient:
    return BackendClient(
        base_url=BASE_URL,
        anon_key=ANON_KEY,
        transport=httpx.MockTransport(fake_backend.handle),
    )


@pytest.fixture
def auth_session() -> AuthSession:
    return AuthSession(
        access_token=ACCESS_TOKEN,
        refresh_token="refresh-abc",
        user=AuthUser(id=USER_ID, email=USER_EMAIL),
    )


@pytest.fixture
def signed_in_auth(client: BackendClient, auth_session: AuthSession) -> AuthState:
    return AuthState(client, session=auth_session)


@pytest.fixture
def signed_out_auth(client: BackendClient) -> AuthState:
    return AuthState(client)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()
