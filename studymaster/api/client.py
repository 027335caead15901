# studymaster/api/client.py
"""
Thin async client for the hosted backend: identity provider, REST tables and edge functions.

Each call opens its own httpx.AsyncClient, so a BackendClient can be shared across
event loops (Streamlit drives every interaction with a fresh asyncio.run).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from studymaster.core.config import settings
from studymaster.core.errors import BackendError, MalformedResponseError, NotAuthenticatedError
from studymaster.core.logging import get_logger
from studymaster.models.chat import (
    AIChatRequest, AIChatResponse, ChatMessageCreate, ChatMessageRead,
    TranscriptionRequest, TranscriptionResponse,
)
from studymaster.models.session import SessionCreate, SessionMetadata, StudySession
from studymaster.models.user import AuthCredentials, AuthSession, AuthUser

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate an untyped response body into `model`, or raise MalformedResponseError."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected {model.__name__} payload: {e.error_count()} error(s)") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return str(body)


class BackendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.access_token: Optional[str] = None
        self._transport = transport

    # --- plumbing ---

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(transport=self._transport, timeout=timeout or settings.REQUEST_TIMEOUT) as client:
            try:
                response = await client.request(method, url, params=params, json=json, headers=self._headers(headers))
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise BackendError(
                    f"{method} {path} failed: {e.response.status_code} - {_error_detail(e.response)}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                raise BackendError(f"{method} {path} failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{method} {path} returned non-JSON body", status_code=response.status_code) from e

    # --- auth ---

    def use_session(self, session: Optional[AuthSession]) -> None:
        self.access_token = session.access_token if session else None

    async def sign_in(self, credentials: AuthCredentials) -> AuthSession:
        payload = await self._request(
            "POST", "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": credentials.email, "password": credentials.password},
        )
        return parse_payload(AuthSession, payload)

    async def sign_up(self, credentials: AuthCredentials) -> Optional[AuthSession]:
        """Returns a session, or None when the provider requires email confirmation first."""
        payload = await self._request(
            "POST", "/auth/v1/signup",
            json={"email": credentials.email, "password": credentials.password},
        )
        if isinstance(payload, dict) and payload.get("access_token"):
            return parse_payload(AuthSession, payload)
        return None

    async def get_user(self) -> AuthUser:
        if not self.access_token:
            raise NotAuthenticatedError()
        try:
            payload = await self._request("GET", "/auth/v1/user")
        except BackendError as e:
            if e.status_code in (401, 403):
                raise NotAuthenticatedError() from e
            raise
        return parse_payload(AuthUser, payload)

    async def sign_out(self) -> None:
        if self.access_token:
            await self._request("POST", "/auth/v1/logout")
        self.access_token = None

    # --- sessions ---

    async def list_sessions(self) -> List[StudySession]:
        # Row-level security restricts the result to the caller's own sessions
        payload = await self._request(
            "GET", "/rest/v1/sessions",
            params={"select": "*", "order": "updated_at.desc"},
        )
        if not isinstance(payload, list):
            raise MalformedResponseError("Session list is not an array")
        return [parse_payload(StudySession, row) for row in payload]

    async def create_session(self, session_in: SessionCreate, user_id: str) -> StudySession:
        payload = await self._request(
            "POST", "/rest/v1/sessions",
            json=[session_in.to_row(user_id)],
            headers={"Prefer": "return=representation"},
        )
        return parse_payload(StudySession, _single_row(payload))

    async def get_session_metadata(self, session_id: str) -> SessionMetadata:
        payload = await self._request(
            "GET", "/rest/v1/sessions",
            params={"select": "name,system_prompt", "id": f"eq.{session_id}"},
            headers={"Accept": "application/vnd.pgrst.object+json"},
        )
        return parse_payload(SessionMetadata, payload)

    async def touch_session(self, session_id: str) -> None:
        await self._request(
            "PATCH", "/rest/v1/sessions",
            params={"id": f"eq.{session_id}"},
            json={"updated_at": datetime.now(timezone.utc).isoformat()},
        )

    # --- messages ---

    async def list_messages(self, session_id: str) -> List[ChatMessageRead]:
        payload = await self._request(
            "GET", "/rest/v1/chat_messages",
            params={"select": "*", "session_id": f"eq.{session_id}", "order": "created_at.asc"},
        )
        if not isinstance(payload, list):
            raise MalformedResponseError("Message list is not an array")
        return [parse_payload(ChatMessageRead, row) for row in payload]

    async def create_message(self, message_in: ChatMessageCreate) -> ChatMessageRead:
        payload = await self._request(
            "POST", "/rest/v1/chat_messages",
            json=[message_in.model_dump()],
            headers={"Prefer": "return=representation"},
        )
        return parse_payload(ChatMessageRead, _single_row(payload))

    # --- edge functions ---

    async def invoke_function(self, name: str, body: Dict[str, Any]) -> Any:
        return await self._request(
            "POST", f"/functions/v1/{name}",
            json=body,
            timeout=settings.AI_REQUEST_TIMEOUT,
        )

    async def chat(self, request: AIChatRequest) -> AIChatResponse:
        logger.info(
            "Invoking %s for session %s (%s)",
            settings.CHAT_FUNCTION_NAME, request.session_id, request.message_type,
        )
        payload = await self.invoke_function(settings.CHAT_FUNCTION_NAME, request.to_payload())
        return parse_payload(AIChatResponse, payload)

    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResponse:
        payload = await self.invoke_function(settings.TRANSCRIBE_FUNCTION_NAME, request.model_dump())
        return parse_payload(TranscriptionResponse, payload)


def _single_row(payload: Any) -> Any:
    # return=representation answers inserts with an array of the inserted rows
    if isinstance(payload, list):
        if len(payload) != 1:
            raise MalformedResponseError(f"Expected one inserted row, got {len(payload)}")
        return payload[0]
    return payload
