"""
Transactional email notifications.

Welcome and cancellation mails are best-effort: a delivery failure is
logged and dropped, never surfaced to the HTTP caller and never retried.
With ``MAIL_BACKGROUND`` enabled delivery runs on a daemon thread so the
request does not wait on the SMTP server.
"""

from __future__ import annotations

import logging
import smtplib
import threading
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any

from flask import current_app

logger = logging.getLogger(__name__)

MAIL_SETTING_KEYS = (
    "MAIL_SERVER",
    "MAIL_PORT",
    "MAIL_USERNAME",
    "MAIL_PASSWORD",
    "MAIL_USE_TLS",
    "MAIL_SENDER",
    "MAIL_TIMEOUT_SECONDS",
    "MAIL_SUPPRESS_SEND",
    "MAIL_BACKGROUND",
)


def build_message(sender: str, to: str, subject: str, text: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    message["Message-ID"] = make_msgid(domain="task-manager.local")
    message.set_content(text)
    return message


def deliver(message: EmailMessage, settings: dict[str, Any]) -> bool:
    """
    Send *message* over SMTP.

    Returns:
        ``True`` when the server accepted the message, ``False`` when
        delivery failed.  Failures are logged, never raised.
    """
    try:
        with smtplib.SMTP(
            settings["MAIL_SERVER"],
            int(settings["MAIL_PORT"]),
            timeout=settings.get("MAIL_TIMEOUT_SECONDS", 10),
        ) as smtp:
            if settings.get("MAIL_USE_TLS"):
                smtp.starttls()
            if settings.get("MAIL_USERNAME"):
                smtp.login(settings["MAIL_USERNAME"], settings["MAIL_PASSWORD"])
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send '%s' to %s", message["Subject"], message["To"])
        return False

    logger.info("Message sent: %s", message["Message-ID"])
    return True


def send_mail(to: str, subject: str, text: str) -> None:
    """
    Queue or send one notification according to the app's mail settings.

    Must be called inside an application context; the settings are copied
    so a background thread never touches ``current_app``.
    """
    settings = {key: current_app.config.get(key) for key in MAIL_SETTING_KEYS}
    message = build_message(settings["MAIL_SENDER"], to, subject, text)

    if settings["MAIL_SUPPRESS_SEND"]:
        logger.info("Mail delivery suppressed: '%s' to %s", subject, to)
        return

    if settings["MAIL_BACKGROUND"]:
        threading.Thread(target=deliver, args=(message, settings), daemon=True).start()
    else:
        deliver(message, settings)


def send_welcome_email(email: str, name: str) -> None:
    send_mail(
        email,
        "Thanks for joining in!",
        f"Welcome to the task-manager app, {name}. Let us know how you get along with the app.",
    )


def send_cancellation_email(email: str, name: str) -> None:
    send_mail(
        email,
        "Account Removal",
        f"Goodbye, {name}. Let us know why you deleted your account.",
    )
