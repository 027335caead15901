# studymaster/models/session.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from studymaster.core.config import DEFAULT_SYSTEM_PROMPT

# Payload for inserting a new session row
class SessionCreate(BaseModel):
    name: str
    system_prompt: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Session name is required")
        return value

    @field_validator("system_prompt")
    @classmethod
    def default_prompt_when_blank(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            return DEFAULT_SYSTEM_PROMPT
        return value

    def to_row(self, user_id: str) -> dict:
        return {"name": self.name, "system_prompt": self.system_prompt, "user_id": user_id}

# A session row as returned by the store
class StudySession(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

# Partial row fetched by the conversation view
class SessionMetadata(BaseModel):
    name: str = ""
    system_prompt: Optional[str] = ""

