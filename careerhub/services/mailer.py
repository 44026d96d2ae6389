"""
SMTP mail sender, created once per process by the app lifespan
"""
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from careerhub.utils.exceptions import ConfigurationError
from careerhub.utils.logging_config import get_logger
from careerhub.utils.settings import Settings

logger = get_logger(__name__)


class Mailer:
    def __init__(self, host: str, port: int, user: str = None, password: str = None,
                 sender: str = None, sender_name: str = "CareerHub"):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.sender_name = sender_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.port and self.user and self.password and self.sender)

    def send(self, to_email: str, subject: str, body: str) -> None:
        """Blocking send; call from an executor inside async code."""
        if not self.configured:
            raise ConfigurationError(
                "SMTP is not configured. Set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD.",
                config_key="SMTP_USER",
            )

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.sender))
        msg["To"] = to_email
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port) as server:
            server.starttls()
            server.login(self.user, self.password)
            server.send_message(msg)
        logger.info(f"Email sent to {to_email}: {subject}")
