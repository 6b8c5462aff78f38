"""Email delivery with an active-hours gate.

Outside the configured hours new results are appended to a buffer file
instead of being mailed. The next in-window notification carries the
buffered text ahead of its own results and empties the buffer.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from marketplace_notifier.config import ActiveHours
from marketplace_notifier.models import ListingRecord
from marketplace_notifier.repositories import NotificationBuffer

logger = logging.getLogger(__name__)

_env = Environment(
    loader=PackageLoader("marketplace_notifier", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class OutgoingMessage:
    sender: str
    to: str
    subject: str
    text: str
    html: Optional[str] = None


class Notifier(Protocol):
    def send(self, message: OutgoingMessage) -> None:
        """Deliver one message; raise on failure."""
        ...


class SmtpNotifier:
    """Sends each message over its own SMTP connection."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def send(self, message: OutgoingMessage) -> None:
        msg = EmailMessage()
        msg["From"] = message.sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.set_content(message.text)
        if message.html:
            msg.add_alternative(message.html, subtype="html")
        context = ssl.create_default_context()
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as server:
                self._login(server)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=context)
                self._login(server)
                server.send_message(msg)

    def _login(self, server: smtplib.SMTP) -> None:
        if self.username and self.password:
            server.login(self.username, self.password)


def subject_for(term: str, count: int) -> str:
    return f'{count} new result{"s" if count > 1 else ""} for "{term}"'


def render_text(items: Sequence[ListingRecord]) -> str:
    return "\n\n".join(f"{it.title} – {it.price}\n{it.link}" for it in items)


def render_html(items: Sequence[ListingRecord]) -> str:
    return _env.get_template("email.html").render(items=items)


def render_buffer_block(term: str, items: Sequence[ListingRecord], when: datetime) -> str:
    header = f"\n\n[{when.strftime('%Y-%m-%d %H:%M:%S')}] {subject_for(term, len(items))}\n"
    return header + "\n".join(f"{it.title} - {it.price} - {it.link}" for it in items)


@dataclass
class NotifyResult:
    buffered: bool = False
    delivered: Dict[str, bool] = field(default_factory=dict)


class NotificationGate:
    def __init__(
        self,
        notifier: Notifier,
        buffer: NotificationBuffer,
        sender: str,
        recipients: Sequence[str],
        active_start: int,
        active_end: int,
        html: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.notifier = notifier
        self.buffer = buffer
        self.sender = sender
        self.recipients: List[str] = list(recipients)
        self.active_hours = ActiveHours(start=active_start, end=active_end)
        self.html = html
        self.clock = clock

    def within_window(self, now: Optional[datetime] = None) -> bool:
        hour = (now or self.clock()).hour
        return self.active_hours.contains(hour)

    def notify(self, term: str, items: Sequence[ListingRecord]) -> NotifyResult:
        if not items:
            return NotifyResult()
        now = self.clock()
        if not self.within_window(now):
            if not self.buffer.append(render_buffer_block(term, items, now)):
                logger.warning('Could not buffer %d items for term "%s"', len(items), term)
                return NotifyResult()
            logger.info('Buffered %d items for term "%s"', len(items), term)
            return NotifyResult(buffered=True)

        if not self.recipients:
            logger.warning('No recipients configured; dropping %d results for "%s"', len(items), term)
            return NotifyResult()
        body = render_text(items)
        previous = self.buffer.drain()
        if previous.strip():
            body = f"Previous notifications:\n{previous}\n\n{body}"
        subject = subject_for(term, len(items))
        html = render_html(items) if self.html else None
        messages = [OutgoingMessage(self.sender, r, subject, body, html) for r in self.recipients]
        return NotifyResult(delivered=self._deliver(messages))

    def _deliver(self, messages: List[OutgoingMessage]) -> Dict[str, bool]:
        # One task per recipient; every outcome is collected before returning
        with ThreadPoolExecutor(max_workers=len(messages)) as pool:
            futures = {m.to: pool.submit(self._send_one, m) for m in messages}
            return {to: fut.result() for to, fut in futures.items()}

    def _send_one(self, message: OutgoingMessage) -> bool:
        try:
            self.notifier.send(message)
        except Exception as e:
            logger.error("Error sending email to %s: %s", message.to, e)
            return False
        logger.info("Sent email to %s", message.to)
        return True
