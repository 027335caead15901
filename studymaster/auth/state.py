# studymaster/auth/state.py
"""
Process-wide authentication state.

Holds the current AuthSession, keeps the BackendClient's bearer token in step with
it, and pushes every change to subscribers.
"""
from typing import Callable, List, Optional

from studymaster.api.client import BackendClient
from studymaster.core.errors import NotAuthenticatedError, StudyAssistantError
from studymaster.core.logging import get_logger
from studymaster.models.user import AuthCredentials, AuthSession, AuthUser

logger = get_logger(__name__)

AuthListener = Callable[[str, Optional[AuthSession]], None]

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
INITIAL_SESSION = "INITIAL_SESSION"


class Subscription:
    def __init__(self, state: "AuthState", listener: AuthListener):
        self._state = state
        self._listener = listener

    def unsubscribe(self) -> None:
        self._state._remove_listener(self._listener)


class AuthState:
    def __init__(self, client: BackendClient, session: Optional[AuthSession] = None):
        self.client = client
        self._session = session
        self._listeners: List[AuthListener] = []
        self.client.use_session(session)

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def user(self) -> Optional[AuthUser]:
        return self._session.user if self._session else None

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _set(self, event: str, session: Optional[AuthSession]) -> None:
        self._session = session
        self.client.use_session(session)
        for listener in list(self._listeners):
            listener(event, session)

    async def get_session(self) -> Optional[AuthSession]:
        """Validate the stored session against the identity provider; clears it when rejected."""
        if self._session is None:
            return None
        try:
            user = await self.client.get_user()
        except NotAuthenticatedError:
            logger.info("Stored session was rejected by the identity provider.")
            self._set(SIGNED_OUT, None)
            return None
        self._session = self._session.model_copy(update={"user": user})
        return self._session

    async def get_user(self) -> AuthUser:
        """The current user, or NotAuthenticatedError."""
        session = await self.get_session()
        if session is None:
            raise NotAuthenticatedError()
        return session.user

    async def sign_in(self, credentials: AuthCredentials) -> AuthSession:
        session = await self.client.sign_in(credentials)
        self._set(SIGNED_IN, session)
        return session

    async def sign_up(self, credentials: AuthCredentials) -> Optional[AuthSession]:
        session = await self.client.sign_up(credentials)
        if session is not None:
            self._set(SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        try:
            await self.client.sign_out()
        except StudyAssistantError as e:
            # The local session is dropped regardless; the token simply expires server-side
            logger.warning("Sign-out request failed: %s", e)
        self._set(SIGNED_OUT, None)
