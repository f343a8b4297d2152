# slothunter/notification.py
"""
Best-effort delivery of hunter notifications to mail and webhooks.

Every message is the JSON object `{"object": payload, "addition": text}`.
Slack incoming webhooks only accept `{"text": ...}`, so they receive that
object serialized into the text field.  Delivery failures are logged and
never reach the caller.
"""
from __future__ import annotations

import json
import smtplib
from email.message import EmailMessage
from typing import Any, Callable, Dict, Optional

import requests

from slothunter.config import HTTP_TIMEOUT_SECONDS, MAIL_SUBJECT, SLACK_WEBHOOK_PREFIX
from slothunter.configuration import Mail, Notification
from slothunter.utils.async_substrate import maybe_async
from slothunter.utils.colors import ColoredLogger as clog

SMTPS_PORT = 465


def envelope(payload: Any, text: str) -> Dict[str, Any]:
    return {"object": payload, "addition": text}


def webhook_body(url: str, body: Dict[str, Any]) -> Dict[str, Any]:
    if url.startswith(SLACK_WEBHOOK_PREFIX):
        return {"text": json.dumps(body)}
    return body


def smtp_host_port(smtp: str) -> tuple[str, int]:
    host, _, port = smtp.partition(":")
    return host, int(port) if port else SMTPS_PORT


class Notifier:
    def __init__(
        self,
        notification: Notification,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP_SSL,
    ):
        self.notification = notification
        self.timeout = timeout
        self.session = session or requests.Session()
        self._smtp_factory = smtp_factory

    async def notify(self, payload: Any, text: str, mail: bool = True) -> None:
        body = envelope(payload, text)
        if mail and self.notification.mail is not None:
            await maybe_async(self.send_mail, self.notification.mail, body)
        for url in self.notification.webhooks:
            await maybe_async(self.post_webhook, url, body)

    # ---------------------- transports (blocking) ----------------------

    def post_webhook(self, url: str, body: Dict[str, Any]) -> bool:
        try:
            r = self.session.post(url, json=webhook_body(url, body), timeout=self.timeout)
            r.raise_for_status()
            return True
        except requests.RequestException as e:
            clog.warning(f"[notification] webhook {url} failed: {e}")
            return False

    def send_mail(self, mail: Mail, body: Dict[str, Any]) -> int:
        """Send *body* to every receiver; returns how many were delivered."""
        content = json.dumps(body)
        host, port = smtp_host_port(mail.sender.smtp)
        delivered = 0
        try:
            with self._smtp_factory(host, port, timeout=self.timeout) as smtp:
                smtp.login(mail.sender.email, mail.sender.password)
                for to in mail.receivers:
                    msg = EmailMessage()
                    msg["From"] = mail.sender.username
                    msg["To"] = to
                    msg["Subject"] = MAIL_SUBJECT
                    msg.set_content(content)
                    try:
                        smtp.send_message(msg)
                        delivered += 1
                    except smtplib.SMTPException as e:
                        clog.warning(f"[notification] mail to {to} failed: {e}")
        except (smtplib.SMTPException, OSError) as e:
            clog.warning(f"[notification] smtp {mail.sender.smtp} failed: {e}")
        return delivered
