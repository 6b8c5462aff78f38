from __future__ import annotations

from pathlib import Path

import pytest

from marketplace_notifier.repositories import NotificationBuffer
from marketplace_notifier.services.notifier import NotificationGate

from fakes import FixedClock, RecordingNotifier


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(12)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def buffer(tmp_path: Path) -> NotificationBuffer:
    return NotificationBuffer(tmp_path / "bufferedMessages.txt")


@pytest.fixture
def gate(notifier: RecordingNotifier, buffer: NotificationBuffer, clock: FixedClock) -> NotificationGate:
    return NotificationGate(
        notifier=notifier,
        buffer=buffer,
        sender="bot@example.com",
        recipients=["a@example.com", "b@example.com"],
        active_start=8,
        active_end=22,
        html=True,
        clock=clock,
    )
