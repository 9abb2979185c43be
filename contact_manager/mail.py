"""Outgoing email."""

import logging

from fastapi import BackgroundTasks
from fastapi_mail import FastMail, MessageSchema

from .core import get_settings, get_mail_config

logger = logging.getLogger(__name__)


def verification_link(token: str) -> str:
    """Build the link a user follows to verify their email."""
    return f"{get_settings().BASE_URL}/auth/verify-email?token={token}"


class EmailService:
    """Queues emails on the request's background tasks.

    Delivery happens after the response is sent, so a failing SMTP
    server is logged instead of failing the request that triggered it.
    """

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Schedule sending of an email.

        Args:
            to (str): Recipient email address.
            subject (str): Subject line.
            body (str): Plain text body.
        """
        self.background_tasks.add_task(send_email_task, to, subject, body)


async def send_email_task(to: str, subject: str, body: str):
    """
    Send an email asynchronously.

    Args:
        to (str): Recipient email address.
        subject (str): Subject line.
        body (str): Plain text body.
    """
    message = MessageSchema(
        subject=subject,
        recipients=[to],
        body=body,
        subtype="plain",
    )
    fm = FastMail(get_mail_config())
    try:
        await fm.send_message(message)
    except Exception:
        logger.exception("Failed to send email '%s' to %s", subject, to)
        return
    logger.info("Sent email '%s' to %s", subject, to)


def get_email_service(background_tasks: BackgroundTasks) -> EmailService:
    """FastAPI dependency returning the email service for the request."""
    return EmailService(background_tasks)
