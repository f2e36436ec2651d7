"""
Welcome email for new waitlist members.

Only the "console" provider exists: the message is rendered and logged.
Runs as a background task after the join response, so it never decides
whether a signup succeeds.
"""

from dataclasses import dataclass
from urllib.parse import quote

from marketing_api.core.config import Settings
from marketing_api.core.logging import get_logger
from marketing_api.core.metrics import record_welcome_email

logger = get_logger(__name__)

CONSOLE_PROVIDER = "console"


@dataclass
class WelcomeEmail:
    to: str
    subject: str
    template: str
    name: str
    position: int
    unsubscribe_url: str


class WelcomeNotifier:

    def __init__(
        self,
        app_name: str,
        app_url: str,
        enabled: bool = False,
        provider: str = CONSOLE_PROVIDER,
    ):
        self.app_name = app_name
        self.app_url = app_url.rstrip("/")
        self.enabled = enabled
        self.provider = provider

    @classmethod
    def from_settings(cls, settings: Settings) -> "WelcomeNotifier":
        return cls(
            app_name=settings.APP_NAME,
            app_url=settings.APP_URL,
            enabled=settings.EMAIL_ENABLED,
            provider=settings.EMAIL_PROVIDER,
        )

    def render_welcome(self, name: str, email: str, position: int) -> WelcomeEmail:
        return WelcomeEmail(
            to=email,
            subject=f"Welcome to {self.app_name}! You're #{position} on our waitlist",
            template="welcome",
            name=name,
            position=position,
            unsubscribe_url=f"{self.app_url}/unsubscribe?email={quote(email, safe='')}",
        )

    async def send_welcome_email(self, name: str, email: str, position: int) -> bool:
        """Returns True when the email was handed to the provider (or skipped by config)."""
        if not self.enabled:
            logger.info("welcome_email_skipped", email=email, reason="email_disabled")
            record_welcome_email("skipped")
            return True

        if self.provider != CONSOLE_PROVIDER:
            logger.warning("welcome_email_unsupported_provider", provider=self.provider, email=email)
            record_welcome_email("unsupported")
            return False

        message = self.render_welcome(name, email, position)
        logger.info(
            "welcome_email_sent",
            provider=self.provider,
            to=message.to,
            subject=message.subject,
            template=message.template,
            position=message.position,
        )
        record_welcome_email("sent")
        return True
