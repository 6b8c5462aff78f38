from __future__ import annotations

from pathlib import Path

import pytest

from marketplace_notifier.models import ListingRecord
from marketplace_notifier.repositories import NotificationBuffer
from marketplace_notifier.services.notifier import NotificationGate, render_html, subject_for

from fakes import FixedClock, RecordingNotifier


def items(n: int = 1) -> list[ListingRecord]:
    return [
        ListingRecord(id=str(i), title=f"Bike {i}", price=f"${i * 10}", estimate=f"${i * 5}.00")
        for i in range(1, n + 1)
    ]


def test_subject_pluralization() -> None:
    assert subject_for("phone", 1) == '1 new result for "phone"'
    assert subject_for("phone", 3) == '3 new results for "phone"'


def test_empty_items_is_noop(gate: NotificationGate, notifier: RecordingNotifier, buffer: NotificationBuffer) -> None:
    res = gate.notify("phone", [])
    assert not res.buffered and res.delivered == {}
    assert notifier.sent == []
    assert buffer.read() == ""


def test_in_window_sends_to_every_recipient(gate: NotificationGate, notifier: RecordingNotifier) -> None:
    res = gate.notify("bike", items(2))
    assert res.delivered == {"a@example.com": True, "b@example.com": True}
    assert sorted(m.to for m in notifier.sent) == ["a@example.com", "b@example.com"]
    msg = notifier.sent[0]
    assert msg.sender == "bot@example.com"
    assert msg.subject == '2 new results for "bike"'
    assert msg.text == (
        "Bike 1 – $10\nhttps://www.facebook.com/marketplace/item/1\n\n"
        "Bike 2 – $20\nhttps://www.facebook.com/marketplace/item/2"
    )
    assert msg.html is not None and "Estimated resale value: $5.00" in msg.html


@pytest.mark.parametrize("hour", [8, 22])
def test_window_bounds_are_inclusive(gate: NotificationGate, clock: FixedClock, notifier: RecordingNotifier, hour: int) -> None:
    clock.hour = hour
    gate.notify("bike", items())
    assert len(notifier.sent) == 2


def test_out_of_window_buffers_then_flushes(
    gate: NotificationGate, clock: FixedClock, notifier: RecordingNotifier, buffer: NotificationBuffer
) -> None:
    clock.hour = 23
    res = gate.notify("bike", items(2))
    assert res.buffered
    assert notifier.sent == []
    buffered = buffer.read()
    assert '[2024-05-01 23:30:00] 2 new results for "bike"' in buffered
    assert "Bike 1 - $10 - https://www.facebook.com/marketplace/item/1" in buffered

    clock.hour = 9
    gate.notify("lamp", [ListingRecord(id="77", title="Lamp", price="$15")])
    assert len(notifier.sent) == 2
    for msg in notifier.sent:
        assert msg.subject == '1 new result for "lamp"'
        assert msg.text.startswith("Previous notifications:\n")
        assert "Bike 2 - $20" in msg.text
        assert msg.text.endswith("Lamp – $15\nhttps://www.facebook.com/marketplace/item/77")
    assert buffer.read() == ""


def test_one_failing_recipient_does_not_block_others(buffer: NotificationBuffer, clock: FixedClock) -> None:
    notifier = RecordingNotifier(fail_for=("a@example.com",))
    gate = NotificationGate(notifier, buffer, "bot@example.com", ["a@example.com", "b@example.com"], 8, 22, clock=clock)
    res = gate.notify("bike", items())
    assert res.delivered == {"a@example.com": False, "b@example.com": True}
    assert [m.to for m in notifier.sent] == ["b@example.com"]
    # Failed deliveries are not re-buffered
    assert buffer.read() == ""


def test_html_omitted_without_enrichment(buffer: NotificationBuffer, clock: FixedClock) -> None:
    notifier = RecordingNotifier()
    gate = NotificationGate(notifier, buffer, "bot@example.com", ["a@example.com"], 8, 22, html=False, clock=clock)
    gate.notify("bike", items())
    assert notifier.sent[0].html is None


def test_no_recipients_keeps_buffer(buffer: NotificationBuffer, clock: FixedClock) -> None:
    buffer.append("\n\nold block")
    gate = NotificationGate(RecordingNotifier(), buffer, "bot@example.com", [], 8, 22, clock=clock)
    gate.notify("bike", items())
    assert buffer.read() == "\n\nold block"


def test_render_html_escapes_and_breaks_lines() -> None:
    item = ListingRecord(
        id="5",
        title="<b>Desk</b>",
        price="$40",
        image="https://example.com/desk.jpg",
        description="Solid oak\nPickup only",
    )
    html = render_html([item])
    assert '<img src="https://example.com/desk.jpg"' in html
    assert "&lt;b&gt;Desk&lt;/b&gt;" in html
    assert "Solid oak<br>Pickup only<br>" in html
    assert '<a href="https://www.facebook.com/marketplace/item/5">' in html
    assert "Estimated resale value" not in html


def test_failed_buffer_append_is_not_reported_as_buffered(
    tmp_path: Path, clock: FixedClock, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level("INFO")
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    notifier = RecordingNotifier()
    gate = NotificationGate(notifier, NotificationBuffer(blocker / "buffer.txt"), "bot@example.com", ["a@example.com"], 8, 22, clock=clock)
    clock.hour = 23
    res = gate.notify("bike", items())
    assert res.buffered is False
    assert notifier.sent == []
    assert "Failed to append to buffer file" in caplog.text
    assert "Buffered 1 items" not in caplog.text


def test_unreadable_buffer_does_not_block_delivery(
    gate: NotificationGate, notifier: RecordingNotifier, buffer: NotificationBuffer, caplog: pytest.LogCaptureFixture
) -> None:
    buffer.path.write_bytes(b"\n\nold \xff\xfe block")
    res = gate.notify("bike", items())
    assert res.delivered == {"a@example.com": True, "b@example.com": True}
    assert not notifier.sent[0].text.startswith("Previous notifications:")
    assert "Failed to drain buffer file" in caplog.text
