"""Email providers for sending transactional emails.

Supports:
- gmail / outlook / yahoo / zoho: well-known SMTP services, selected by name
- smtp: any SMTP server configured with SMTP_HOST / SMTP_PORT
- console: logs emails instead of sending them (development)

Providers report failure by returning False and log the reason; they never
raise, so a provider problem cannot turn into an unhandled server error.
"""

import re
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from loguru import logger

from models.config import Settings


@dataclass(frozen=True)
class SMTPServer:
    """Connection details of an SMTP service."""

    host: str
    port: int
    use_ssl: bool = False
    use_tls: bool = False


# Well-known services, addressed by EMAIL_SERVICE
WELL_KNOWN_SERVICES: dict[str, SMTPServer] = {
    "gmail": SMTPServer("smtp.gmail.com", 465, use_ssl=True),
    "outlook": SMTPServer("smtp-mail.outlook.com", 587, use_tls=True),
    "hotmail": SMTPServer("smtp-mail.outlook.com", 587, use_tls=True),
    "yahoo": SMTPServer("smtp.mail.yahoo.com", 465, use_ssl=True),
    "zoho": SMTPServer("smtp.zoho.com", 465, use_ssl=True),
}


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @abstractmethod
    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
        reply_to: str | None = None,
    ) -> bool:
        """Send an email. Returns True on success."""
        pass


class SMTPProvider(EmailProvider):
    """SMTP email provider."""

    def __init__(self, server: SMTPServer, settings: Settings) -> None:
        self.host = server.host
        self.port = server.port
        self.use_ssl = server.use_ssl
        self.use_tls = server.use_tls
        self.user = settings.EMAIL_USER
        self.password = settings.EMAIL_PASS
        self.from_email = settings.EMAIL_USER
        self.from_name = settings.OWNER_NAME
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS

    def _build_message(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
        reply_to: str | None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        # A line break in a header value would start a new header
        msg["Subject"] = " ".join(subject.split())
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        if reply_to:
            msg["Reply-To"] = " ".join(reply_to.split())

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            # Implicit SSL (port 465) - connection is encrypted from start
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_tls:
            # STARTTLS (port 587) - upgrade to TLS after connection
            server.starttls()
        return server

    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
        reply_to: str | None = None,
    ) -> bool:
        """Send email via SMTP with a bounded timeout."""
        if not self.user or not self.password:
            logger.error("SMTP: EMAIL_USER / EMAIL_PASS not configured, cannot send")
            return False

        try:
            logger.info(
                f"SMTP: Connecting to {self.host}:{self.port} "
                f"(SSL={self.use_ssl}, TLS={self.use_tls})"
            )
            msg = self._build_message(to_email, subject, html_body, text_body, reply_to)

            with self._connect() as server:
                server.login(self.user, self.password)
                refused = server.sendmail(self.from_email, [to_email], msg.as_string())

            if refused:
                logger.error(f"SMTP: Recipients refused - {refused}")
                return False

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"SMTP: Recipients refused - {e.recipients}")
            return False
        except smtplib.SMTPSenderRefused as e:
            logger.error(f"SMTP: Sender refused - {e.smtp_code}: {e.smtp_error}")
            return False
        except smtplib.SMTPDataError as e:
            logger.error(f"SMTP: Data error - {e.smtp_code}: {e.smtp_error}")
            return False
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP: Authentication failed - {e.smtp_code}: {e.smtp_error}")
            return False
        except TimeoutError:
            logger.error(
                f"SMTP: Timed out after {self.timeout}s sending to {to_email}"
            )
            return False
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e!r}")
            return False


class ConsoleProvider(EmailProvider):
    """Console email provider for development/testing."""

    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
        reply_to: str | None = None,
    ) -> bool:
        """Log email to console."""
        clean_html = re.sub(r"<[^>]+>", "", html_body)[:500]
        logger.info(
            f"\n{'=' * 60}\n"
            f"EMAIL (Console Provider - Development Mode)\n"
            f"{'=' * 60}\n"
            f"To: {to_email}\n"
            f"Reply-To: {reply_to or '-'}\n"
            f"Subject: {subject}\n"
            f"{'-' * 60}\n"
            f"PLAIN TEXT:\n{text_body}\n"
            f"{'-' * 60}\n"
            f"HTML (preview):\n{clean_html}\n"
            f"{'=' * 60}\n"
        )
        return True


def resolve_smtp_server(settings: Settings) -> SMTPServer:
    """Connection details for the configured EMAIL_SERVICE."""
    service = settings.EMAIL_SERVICE
    if service in WELL_KNOWN_SERVICES:
        return WELL_KNOWN_SERVICES[service]
    if service != "smtp":
        logger.warning(
            f"Unknown email service '{service}', using SMTP_HOST={settings.SMTP_HOST}"
        )
    return SMTPServer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        use_ssl=settings.SMTP_USE_SSL,
        use_tls=settings.SMTP_USE_TLS and not settings.SMTP_USE_SSL,
    )


def get_email_provider(settings: Settings) -> EmailProvider:
    """Get the configured email provider."""
    if settings.EMAIL_SERVICE == "console":
        return ConsoleProvider()
    return SMTPProvider(resolve_smtp_server(settings), settings)
