"""
Email delivery of verification codes over SMTP.
"""
import logging
import smtplib
from email.mime.text import MIMEText

from parley.core.config import settings

logger = logging.getLogger(__name__)


class EmailSender:
    """Sends identification codes; logs them when SMTP is not configured."""

    def __init__(
        self,
        host: str = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        user: str = settings.SMTP_USER,
        password: str = settings.SMTP_PASSWORD,
        sender: str = settings.SMTP_FROM,
        timeout: float = settings.SMTP_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def send(self, to_address: str, code: str) -> None:
        """Send ``code`` to ``to_address``. Raises on SMTP failure."""
        if not self.enabled:
            logger.info(f"SMTP not configured; verification code for {to_address}: {code}")
            return

        msg = MIMEText(f"Your identification code is: {code}")
        msg["Subject"] = "Identification"
        msg["From"] = f"Auth Service <{self.sender}>"
        msg["To"] = to_address

        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with server:
            if self.port != 465:
                server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(msg)
        logger.info(f"Verification email sent to {to_address}")


def send_code_quietly(mailer: EmailSender, to_address: str, code: str) -> bool:
    """Deliver a code without letting delivery failures escape."""
    try:
        mailer.send(to_address, code)
        return True
    except Exception as e:
        logger.warning(f"Failed to send verification email to {to_address}: {e}", exc_info=True)
        return False


def get_mailer() -> EmailSender:
    """Dependency for the email sender."""
    return EmailSender()
