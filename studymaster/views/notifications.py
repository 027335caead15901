# studymaster/views/notifications.py
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    variant: str = "default"  # "default" or "destructive"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


class Notifier:
    """Queue of toast notifications; the UI drains it once per render."""

    def __init__(self):
        self._pending: List[Notification] = []

    def info(self, title: str, description: str = "") -> None:
        self._pending.append(Notification(title, description))

    def error(self, title: str, description: str = "") -> None:
        self._pending.append(Notification(title, description, variant="destructive"))

    def peek(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        pending, self._pending = self._pending, []
        return pending
