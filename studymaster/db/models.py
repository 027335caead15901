from sqlalchemy import Column, String, ForeignKey, DateTime, Text, CheckConstraint, Uuid, func
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime, timezone
import uuid

from studymaster.core.config import DEFAULT_SYSTEM_PROMPT

Base = declarative_base()

MESSAGE_TYPES = ("text", "image", "voice")

def _utcnow():
    return datetime.now(timezone.utc)

class StudySessionRow(Base):
    __tablename__ = 'sessions'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Owner id comes from the identity provider; there is no local users table
    user_id = Column(Uuid, nullable=False, index=True)
    name = Column(Text, nullable=False)
    system_prompt = Column(Text, default=DEFAULT_SYSTEM_PROMPT, server_default=DEFAULT_SYSTEM_PROMPT)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())

    messages = relationship("ChatMessageRow", back_populates="session", cascade="all, delete-orphan", passive_deletes=True)

class ChatMessageRow(Base):
    __tablename__ = 'chat_messages'
    __table_args__ = (
        CheckConstraint(
            "message_type IN ('text', 'image', 'voice')",
            name="chat_messages_message_type_check",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, ForeignKey('sessions.id', ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String, nullable=False)
    ai_response = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now())

    session = relationship("StudySessionRow", back_populates="messages")
