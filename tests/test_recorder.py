"""
Tests for the microphone buffer and the notification queue.
"""

import pytest

from studymaster.core.errors import MicrophonePermissionError
from studymaster.views.notifications import Notifier
from studymaster.views.recorder import AudioRecorder


class TestAudioRecorder:
    def test_buffers_chunks_between_start_and_stop(self) -> None:
        recorder = AudioRecorder()
        recorder.start()
        recorder.feed(b"abc")
        recorder.feed(b"")
        recorder.feed(b"def")

        assert recorder.is_recording
        assert recorder.stop() == b"abcdef"
        assert not recorder.is_recording

    def test_restart_discards_previous_buffer(self) -> None:
        recorder = AudioRecorder()
        recorder.start()
        recorder.feed(b"old")
        recorder.stop()
        recorder.start()

        assert recorder.stop() == b""

    def test_denied_microphone(self) -> None:
        recorder = AudioRecorder(microphone_available=False)
        with pytest.raises(MicrophonePermissionError):
            recorder.start()
        assert not recorder.is_recording

    def test_feed_without_start(self) -> None:
        with pytest.raises(RuntimeError):
            AudioRecorder().feed(b"abc")


class TestNotifier:
    def test_drain_returns_in_order_and_empties(self) -> None:
        notifier = Notifier()
        notifier.info("Message sent", "AI response generated successfully")
        notifier.error("Error", "Failed to send message")

        notes = notifier.drain()

        assert [n.title for n in notes] == ["Message sent", "Error"]
        assert [n.is_error for n in notes] == [False, True]
        assert notifier.drain() == []
