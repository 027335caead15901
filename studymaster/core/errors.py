# studymaster/core/errors.py
from typing import Optional


class StudyAssistantError(Exception):
    """Base class for every failure the client reports to the user."""


class NotAuthenticatedError(StudyAssistantError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class BackendError(StudyAssistantError):
    """A call to the backend failed (network, HTTP status, or PostgREST error body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(BackendError):
    """The backend answered, but not with the shape we expect."""


class MicrophonePermissionError(StudyAssistantError):
    def __init__(self, message: str = "Microphone access denied"):
        super().__init__(message)
