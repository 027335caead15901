# studymaster/models/chat.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

# Stored as content when an image turn carries no caption
IMAGE_PLACEHOLDER = "Image uploaded"

class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VOICE = "voice"

# Insert payload for chat_messages; one row holds the user input and the AI reply
class ChatMessageCreate(BaseModel):
    session_id: str
    user_id: str
    content: str
    message_type: MessageType
    ai_response: str

    model_config = ConfigDict(use_enum_values=True)

# A chat_messages row as returned by the store
class ChatMessageRead(BaseModel):
    id: str
    session_id: str
    user_id: Optional[str] = None
    content: str
    message_type: MessageType
    ai_response: Optional[str] = None
    image_url: Optional[str] = None  # present in the schema, never written by the send flow
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

# Body for the chat edge function (camelCase on the wire)
class AIChatRequest(BaseModel):
    message: str
    session_id: str = Field(serialization_alias="sessionId")
    message_type: MessageType = Field(serialization_alias="messageType")
    image_data: Optional[str] = Field(default=None, serialization_alias="imageData")
    system_prompt: str = Field(default="", serialization_alias="systemPrompt")

    model_config = ConfigDict(use_enum_values=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

class AIChatResponse(BaseModel):
    response: str

class TranscriptionRequest(BaseModel):
    audio: str  # base64

class TranscriptionResponse(BaseModel):
    text: str
