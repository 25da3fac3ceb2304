"""Sends storefront email through an SMTP service."""

from email.message import EmailMessage
import logging
import smtplib

log = logging.getLogger(__name__)


class MailSession(object):
    """Connection details for an SMTP service.

    A new connection is opened for each message.
    """

    def __init__(self, host: str = "", port: int = 0,
                 sender: str = "no-reply@localhost") -> None:
        self._host = host
        self._port = port
        self.sender = sender

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(
            host=self._host,
            port=self._port
        )

    def send_message(self, message: EmailMessage) -> None:
        if not message["From"]:
            message["From"] = self.sender
        with self._new_connection() as conn:
            conn.send_message(message)
        log.info("sent '%s' to %s", message["Subject"], str(message["To"])[:10])


def password_reset_message(to: str, link: str) -> EmailMessage:
    message = EmailMessage()
    message["To"] = to
    message["Subject"] = "Reset your storefront password"
    message.set_content(
        "Someone asked to reset the password of your storefront account.\n\n"
        f"Follow this link to choose a new password:\n\n    {link}\n\n"
        "If you did not ask for this, you can ignore this email.\n"
    )
    return message
