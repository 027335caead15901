# studymaster/views/router.py
"""
Top-level navigation: gates the app behind authentication and holds the selected session id.
"""
from enum import Enum
from typing import Optional

from pydantic import ValidationError

from studymaster.auth.state import AuthState, Subscription
from studymaster.core.errors import StudyAssistantError
from studymaster.core.logging import get_logger
from studymaster.models.user import AuthCredentials, AuthSession, AuthUser
from studymaster.views.notifications import Notifier

logger = get_logger(__name__)


class RouterView(str, Enum):
    LOADING = "loading"
    AUTH = "auth"
    DIRECTORY = "directory"
    CONVERSATION = "conversation"


class SessionRouter:
    def __init__(self, auth: AuthState, notifier: Optional[Notifier] = None):
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.user: Optional[AuthUser] = None
        self.session: Optional[AuthSession] = None
        self.loading = True
        self.selected_session_id: Optional[str] = None
        self._subscription: Optional[Subscription] = None

    # --- lifecycle ---

    def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        self._apply(session)

    def _apply(self, session: Optional[AuthSession]) -> None:
        self.session = session
        self.user = session.user if session else None
        self.loading = False
        if session is None:
            self.selected_session_id = None

    async def mount(self) -> None:
        """Subscribe to auth changes first, then resolve the current session."""
        if self._subscription is None:
            self._subscription = self.auth.on_auth_state_change(self._on_auth_change)
        try:
            session = await self.auth.get_session()
        except StudyAssistantError as e:
            # Identity provider unreachable: keep whatever session we already hold
            logger.error("Error checking current session: %s", e)
            session = self.auth.session
        self._apply(session)

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    # --- navigation ---

    @property
    def current_view(self) -> RouterView:
        if self.loading:
            return RouterView.LOADING
        if self.user is None or self.session is None:
            return RouterView.AUTH
        if self.selected_session_id:
            return RouterView.CONVERSATION
        return RouterView.DIRECTORY

    def select_session(self, session_id: str) -> None:
        self.selected_session_id = session_id

    def go_back(self) -> None:
        self.selected_session_id = None

    # --- identity provider entry ---

    def _credentials(self, email: str, password: str) -> Optional[AuthCredentials]:
        try:
            return AuthCredentials(email=email, password=password)
        except ValidationError:
            self.notifier.error("Invalid credentials", "Please enter a valid email address and password")
            return None

    async def sign_in(self, email: str, password: str) -> bool:
        credentials = self._credentials(email, password)
        if credentials is None:
            return False
        try:
            await self.auth.sign_in(credentials)
        except StudyAssistantError as e:
            logger.error("Error signing in: %s", e)
            self.notifier.error("Sign in failed", "Check your email and password")
            return False
        return True

    async def sign_up(self, email: str, password: str) -> bool:
        credentials = self._credentials(email, password)
        if credentials is None:
            return False
        try:
            session = await self.auth.sign_up(credentials)
        except StudyAssistantError as e:
            logger.error("Error signing up: %s", e)
            self.notifier.error("Sign up failed", "Could not create your account")
            return False
        if session is None:
            self.notifier.info("Check your email", "Confirm your address, then sign in")
        return True

    async def sign_out(self) -> None:
        await self.auth.sign_out()
        self._apply(None)
