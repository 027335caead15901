# studymaster/views/directory.py
from typing import Callable, List, Optional

from studymaster.api.client import BackendClient
from studymaster.auth.state import AuthState
from studymaster.core.config import DEFAULT_SYSTEM_PROMPT
from studymaster.core.errors import StudyAssistantError
from studymaster.core.logging import get_logger
from studymaster.models.session import SessionCreate, StudySession
from studymaster.views.notifications import Notifier

logger = get_logger(__name__)

PREVIEW_LENGTH = 120


class SessionDirectory:
    """Lists the user's study sessions and creates new ones."""

    def __init__(
        self,
        client: BackendClient,
        auth: AuthState,
        on_select: Callable[[str], None],
        notifier: Optional[Notifier] = None,
    ):
        self.client = client
        self.auth = auth
        self.on_select = on_select
        self.notifier = notifier or Notifier()

        self.sessions: List[StudySession] = []
        self.loading = True
        self.creating = False

        # Creation dialog fields
        self.dialog_open = False
        self.session_name = ""
        self.system_prompt = DEFAULT_SYSTEM_PROMPT

    @property
    def is_empty(self) -> bool:
        return not self.sessions

    async def list_sessions(self) -> List[StudySession]:
        """Fetch the user's sessions, most recently active first."""
        try:
            self.sessions = await self.client.list_sessions()
        except StudyAssistantError as e:
            logger.error("Error fetching sessions: %s", e)
            self.sessions = []
            self.notifier.error("Error", "Failed to load sessions")
        finally:
            self.loading = False
        return self.sessions

    def open_dialog(self) -> None:
        self.dialog_open = True

    def close_dialog(self) -> None:
        self.dialog_open = False

    async def create_session(self) -> Optional[StudySession]:
        if not self.session_name.strip():
            self.notifier.error("Session name required", "Please enter a name for your study session")
            return None

        self.creating = True
        try:
            user = await self.auth.get_user()
            session_in = SessionCreate(name=self.session_name, system_prompt=self.system_prompt)
            created = await self.client.create_session(session_in, user_id=user.id)
        except StudyAssistantError as e:
            logger.error("Error creating session: %s", e)
            self.notifier.error("Error", "Failed to create session")
            return None
        finally:
            self.creating = False

        logger.info("Created session %s for user %s", created.id, user.id)
        self.notifier.info("Session created", f"{created.name} is ready for studying")
        self.session_name = ""
        self.system_prompt = DEFAULT_SYSTEM_PROMPT
        self.dialog_open = False
        await self.list_sessions()
        return created

    def select(self, session_id: str) -> None:
        self.on_select(session_id)

    @staticmethod
    def preview(session: StudySession, length: int = PREVIEW_LENGTH) -> str:
        text = " ".join((session.system_prompt or "").split())
        if len(text) <= length:
            return text
        return text[: length - 1].rstrip() + "…"
