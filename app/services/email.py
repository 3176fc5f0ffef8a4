"""
Outgoing email for the authentication flows.

Messages are sent over SMTP. When no SMTP host is configured the service
logs what it would have sent and returns, which keeps local development and
tests free of a mail server.
"""

import smtplib
from email.message import EmailMessage
from typing import Optional
from app.core.config import settings
from app.core.logging_config import logger


class EmailService:
    """Sends welcome and password reset emails."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = "no-reply@kyc-platform.local",
        frontend_url: str = "http://localhost:3000",
        use_tls: bool = True,
        timeout: float = 10.0
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.frontend_url = frontend_url.rstrip("/")
        self.use_tls = use_tls
        self.timeout = timeout
        if not self.host:
            logger.warning("SMTP_HOST not configured - outgoing email disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def send_password_reset_email(self, email: str, reset_token: str) -> None:
        """
        Email a password reset link.

        Raises:
            smtplib.SMTPException / OSError: If the SMTP server rejects or is unreachable
        """
        reset_url = f"{self.frontend_url}/reset-password?token={reset_token}"
        body = (
            "We received a request to reset the password for your KYC Platform account.\n\n"
            f"Open this link to choose a new password:\n{reset_url}\n\n"
            "The link expires in one hour. If you did not request a reset, ignore this email."
        )
        self._send(email, "Password Reset Request - KYC Platform", body)

    def send_welcome_email(self, email: str, admin_name: str) -> None:
        """Email the bootstrap admin of a newly registered tenant."""
        login_url = f"{self.frontend_url}/login"
        body = (
            f"Hello {admin_name},\n\n"
            "Your organization is now registered on the KYC Platform and your admin "
            "account is active.\n\n"
            f"Sign in here: {login_url}\n"
        )
        self._send(email, f"Welcome to the KYC Platform, {admin_name}!", body)

    def _send(self, recipient: str, subject: str, body: str) -> None:
        if not self.enabled:
            logger.info(f"Email disabled, not sending '{subject}' to {recipient}")
            return

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
        logger.info(f"Email '{subject}' sent to {recipient}")


email_service = EmailService(
    host=settings.SMTP_HOST,
    port=settings.SMTP_PORT,
    username=settings.SMTP_USER,
    password=settings.SMTP_PASSWORD,
    sender=settings.EMAIL_FROM,
    frontend_url=settings.FRONTEND_URL,
    use_tls=settings.SMTP_USE_TLS,
)
