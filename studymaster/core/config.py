# studymaster/core/config.py
import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path

# .env lives in the project root, two levels up from studymaster/core/
env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful study assistant. Analyze the content provided "
    "and give clear, educational explanations."
)

class Settings(BaseSettings):
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "http://localhost:54321")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/studymaster.db")
    CHAT_FUNCTION_NAME: str = os.getenv("CHAT_FUNCTION_NAME", "gemini-chat")
    TRANSCRIBE_FUNCTION_NAME: str = os.getenv("TRANSCRIBE_FUNCTION_NAME", "transcribe-audio")
    IMAGE_BUCKET: str = os.getenv("IMAGE_BUCKET", "session-images")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", 30.0))
    AI_REQUEST_TIMEOUT: float = float(os.getenv("AI_REQUEST_TIMEOUT", 120.0))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        case_sensitive = True

settings = Settings()
