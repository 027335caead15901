# studymaster/views/recorder.py
"""
Microphone capture seam for the conversation view.

The browser owns the microphone; the Streamlit widget hands back finished clips,
which are fed into the recorder between start() and stop().
"""
from typing import List, Optional

from studymaster.core.errors import MicrophonePermissionError


class AudioRecorder:
    """Buffers audio chunks for one recording session at a time."""

    def __init__(self, microphone_available: bool = True):
        self.microphone_available = microphone_available
        self._chunks: Optional[List[bytes]] = None

    @property
    def is_recording(self) -> bool:
        return self._chunks is not None

    def start(self) -> None:
        if not self.microphone_available:
            raise MicrophonePermissionError()
        self._chunks = []

    def feed(self, chunk: bytes) -> None:
        if self._chunks is None:
            raise RuntimeError("Recorder is not started")
        if chunk:
            self._chunks.append(chunk)

    def stop(self) -> bytes:
        """Finalize the buffer and return the captured audio."""
        chunks, self._chunks = self._chunks or [], None
        return b"".join(chunks)
