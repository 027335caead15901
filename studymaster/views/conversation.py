# studymaster/views/conversation.py
"""
Conversation view controller: history, the send loop, voice and image input.

Sends are funnelled through a single-slot FIFO. Whichever coroutine finds the view
idle drains the queue; anything enqueued meanwhile (e.g. several pasted images) is
delivered in order by that same drain, so at most one AI call is in flight per view.
"""
import base64
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, List, Optional, Tuple

from studymaster.api.client import BackendClient
from studymaster.auth.state import AuthState
from studymaster.core.errors import MicrophonePermissionError, StudyAssistantError
from studymaster.core.logging import get_logger
from studymaster.models.chat import (
    IMAGE_PLACEHOLDER, AIChatRequest, ChatMessageCreate, ChatMessageRead,
    MessageType, TranscriptionRequest,
)
from studymaster.views.notifications import Notifier
from studymaster.views.recorder import AudioRecorder

logger = get_logger(__name__)

MESSAGE_BADGES = {
    MessageType.IMAGE: "📷 Image",
    MessageType.VOICE: "🎙️ Voice",
}


def message_badge(message_type: MessageType) -> Optional[str]:
    return MESSAGE_BADGES.get(MessageType(message_type))


def encode_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@dataclass(frozen=True)
class PastedItem:
    """One clipboard entry: its MIME type and raw bytes."""
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class _SendRequest:
    content: str
    message_type: MessageType
    image_data: Optional[str] = None


class ConversationView:
    def __init__(
        self,
        session_id: str,
        client: BackendClient,
        auth: AuthState,
        on_back=None,
        notifier: Optional[Notifier] = None,
        recorder: Optional[AudioRecorder] = None,
    ):
        self.session_id = session_id
        self.client = client
        self.auth = auth
        self.on_back = on_back
        self.notifier = notifier or Notifier()
        self.recorder = recorder or AudioRecorder()

        self.messages: List[ChatMessageRead] = []
        self.session_name = ""
        self.system_prompt = ""
        self.current_message = ""
        self.busy = False
        self.recording = False

        self._pending: Deque[_SendRequest] = deque()

    # --- loading ---

    async def open(self) -> None:
        await self.load_session_metadata()
        await self.load_messages()

    async def load_session_metadata(self) -> None:
        try:
            metadata = await self.client.get_session_metadata(self.session_id)
        except StudyAssistantError as e:
            # Blank metadata still renders; the AI call just gets no instructions
            logger.error("Error fetching session %s: %s", self.session_id, e)
            return
        self.session_name = metadata.name
        self.system_prompt = metadata.system_prompt or ""

    async def load_messages(self) -> List[ChatMessageRead]:
        try:
            self.messages = await self.client.list_messages(self.session_id)
        except StudyAssistantError as e:
            logger.error("Error fetching messages for session %s: %s", self.session_id, e)
        return self.messages

    def go_back(self) -> None:
        if self.on_back is not None:
            self.on_back()

    # --- sending ---

    async def send(
        self,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        image_data: Optional[str] = None,
    ) -> Optional[ChatMessageRead]:
        """Send one turn; a blank submit or a submit while busy is ignored."""
        if (not content.strip() and not image_data) or self.busy:
            return None
        self._pending.append(_SendRequest(content, MessageType(message_type), image_data))
        delivered = await self._drain()
        return delivered[0] if delivered else None

    async def send_images(self, images: Iterable[bytes]) -> List[Optional[ChatMessageRead]]:
        """Queue each image as its own turn, in order."""
        for data in images:
            if data:
                self._pending.append(_SendRequest("", MessageType.IMAGE, encode_bytes(data)))
        return await self._drain()

    async def _drain(self) -> List[Optional[ChatMessageRead]]:
        if self.busy:
            # The drain already running will pick up whatever was just queued
            return []
        self.busy = True
        delivered = []
        try:
            while self._pending:
                delivered.append(await self._deliver(self._pending.popleft()))
        finally:
            # an unexpected error abandons the rest of the queue
            self._pending.clear()
            self.busy = False
        return delivered

    async def _deliver(self, request: _SendRequest) -> Optional[ChatMessageRead]:
        try:
            user = await self.auth.get_user()
            reply = await self.client.chat(
                AIChatRequest(
                    message=request.content,
                    session_id=self.session_id,
                    message_type=request.message_type,
                    image_data=request.image_data,
                    system_prompt=self.system_prompt,
                )
            )
            stored = await self.client.create_message(
                ChatMessageCreate(
                    session_id=self.session_id,
                    user_id=user.id,
                    content=request.content or IMAGE_PLACEHOLDER,
                    message_type=request.message_type,
                    ai_response=reply.response,
                )
            )
        except StudyAssistantError as e:
            logger.error("Error sending message in session %s: %s", self.session_id, e)
            self.notifier.error("Error", "Failed to send message")
            return None

        try:
            await self.client.touch_session(self.session_id)
        except StudyAssistantError as e:
            # Only affects directory ordering
            logger.warning("Could not update timestamp of session %s: %s", self.session_id, e)

        self.current_message = ""
        await self.load_messages()
        self.notifier.info("Message sent", "AI response generated successfully")
        return stored

    async def submit_current(self) -> Optional[ChatMessageRead]:
        return await self.send(self.current_message, MessageType.TEXT)

    # --- images ---

    async def upload_image(self, data: bytes) -> Optional[ChatMessageRead]:
        if not data:
            return None
        delivered = await self.send_images([data])
        return delivered[0] if delivered else None

    async def paste_images(self, items: Iterable[PastedItem]) -> List[Optional[ChatMessageRead]]:
        images = [item.data for item in items if item.mime_type.startswith("image/")]
        if not images:
            return []
        return await self.send_images(images)

    # --- voice ---

    async def toggle_recording(self) -> Optional[ChatMessageRead]:
        if self.recording:
            return await self.stop_recording()
        self.start_recording()
        return None

    def start_recording(self) -> bool:
        try:
            self.recorder.start()
        except MicrophonePermissionError as e:
            logger.error("Error starting recording: %s", e)
            self.notifier.error("Error", "Microphone access denied")
            return False
        self.recording = True
        self.notifier.info("Recording started", "Speak now, tap again to stop")
        return True

    async def stop_recording(self) -> Optional[ChatMessageRead]:
        audio = self.recorder.stop()
        self.recording = False
        if not audio:
            self.notifier.error("No audio recorded", "Record a clip before stopping")
            return None
        try:
            transcription = await self.client.transcribe(TranscriptionRequest(audio=encode_bytes(audio)))
        except StudyAssistantError as e:
            logger.error("Error transcribing audio: %s", e)
            self.notifier.error("Error", "Failed to transcribe audio")
            return None
        return await self.send(transcription.text, MessageType.VOICE)

    # --- rendering ---

    def transcript(self) -> Iterator[Tuple[ChatMessageRead, str, Optional[str]]]:
        """Yield (message, ai_text, badge) for each stored turn, oldest first."""
        for message in self.messages:
            yield message, message.ai_response or "", message_badge(message.message_type)
