"""
notifier
========

SMTP delivery of HTML notifications.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpSettings:
    """SMTP connection and addressing parameters."""

    server: str
    from_address: str
    to_addresses: List[str] = field(default_factory=list)
    port: int = 25
    ssl: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    subject: Optional[str] = None
    timeout: float = 30.0


def build_message(from_address: str, to_addresses: Sequence[str], subject: str, html_body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = from_address
    msg["To"] = ", ".join(to_addresses)
    msg["Subject"] = subject
    msg.set_content("This notification requires an HTML capable mail client.")
    msg.add_alternative(html_body, subtype="html")
    return msg


class EmailNotifier:
    """Send notifications through an SMTP relay."""

    def __init__(self, settings: SmtpSettings) -> None:
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.ssl:
            return smtplib.SMTP_SSL(s.server, s.port, timeout=s.timeout)
        return smtplib.SMTP(s.server, s.port, timeout=s.timeout)

    def send(self, to_addresses: Sequence[str], subject: str, html_body: str) -> bool:
        """Deliver *html_body* to *to_addresses*.

        Returns
        -------
        bool
            True on success. Failures are logged and reported as False; they are
            never retried.
        """
        logger.info("Sending email with subject '%s' to %s", subject, ", ".join(to_addresses))
        msg = build_message(self.settings.from_address, to_addresses, subject, html_body)
        try:
            with self._connect() as smtp:
                if self.settings.username:
                    smtp.login(self.settings.username, self.settings.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending email to %s: %s", ", ".join(to_addresses), e)
            return False
        return True
