"""Email delivery of schedules and reminders.

Every member with at least one task gets one message listing their tasks,
with an .ics attachment so the tasks can be added to a calendar. In test
mode every message goes to a single test address instead.
"""

import html
import logging
import os
import smtplib
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Iterable, Optional, Sequence

from dutyroster.domain.models import Member, Schedule, Slot
from dutyroster.output.ics_generator import (
    ORGANIZATION,
    CalendarTask,
    generate_ics,
    ics_filename,
    member_tasks,
)

logger = logging.getLogger(__name__)

NO_ADDRESS = "Pas de courriel"


@dataclass
class EmailConfig:
    """Configuration for outgoing email.

    Attributes:
        sender: From header.
        reply_to: Reply-To header, if any.
        organization: Name shown in message footers and calendars.
        test_mode: If True, every message goes to test_address.
        test_address: Destination used in test mode.
        smtp_host: SMTP server host.
        smtp_port: SMTP server port.
        smtp_username: Login, if the server requires one.
        smtp_password: Password for smtp_username.
        use_tls: Whether to upgrade the connection with STARTTLS.
        send_delay_seconds: Pause between messages outside test mode.
    """

    sender: str = "Comité d'entretien <entretien@localhost>"
    reply_to: Optional[str] = None
    organization: str = ORGANIZATION
    test_mode: bool = False
    test_address: str = "test@localhost"
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    use_tls: bool = False
    send_delay_seconds: float = 0.1

    @classmethod
    def from_env(cls, test_mode: bool = False) -> "EmailConfig":
        """Build a config from DUTYROSTER_* environment variables.

        Raises:
            ValueError: If DUTYROSTER_SMTP_PORT is not an integer.
        """
        env = os.environ
        defaults = cls()
        port = env.get("DUTYROSTER_SMTP_PORT", str(defaults.smtp_port))
        try:
            smtp_port = int(port)
        except ValueError:
            raise ValueError(f"DUTYROSTER_SMTP_PORT must be an integer, got {port!r}") from None
        return cls(
            sender=env.get("DUTYROSTER_SENDER", defaults.sender),
            reply_to=env.get("DUTYROSTER_REPLY_TO") or None,
            test_mode=test_mode,
            test_address=env.get("DUTYROSTER_TEST_ADDRESS", defaults.test_address),
            smtp_host=env.get("DUTYROSTER_SMTP_HOST", defaults.smtp_host),
            smtp_port=smtp_port,
            smtp_username=env.get("DUTYROSTER_SMTP_USERNAME") or None,
            smtp_password=env.get("DUTYROSTER_SMTP_PASSWORD") or None,
            use_tls=env.get("DUTYROSTER_SMTP_TLS", "").lower() in ("1", "true", "yes"),
        )


class EmailTransport(ABC):
    """Abstract base class for sending a prepared message."""

    @abstractmethod
    def send(self, message: EmailMessage) -> None:
        """Send a message; raise on failure."""
        pass


class SmtpTransport(EmailTransport):
    """Sends messages through an SMTP server, one connection per message."""

    def __init__(self, config: EmailConfig):
        self.config = config

    def send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password or "")
            smtp.send_message(message)


@dataclass
class DeliveryResult:
    """Outcome of sending to one member."""

    member_name: str
    success: bool
    recipient: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DispatchReport:
    """Outcome of a whole batch."""

    results: list[DeliveryResult] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


class EmailDispatcher:
    """Sends schedules and reminders to members.

    Example:
        >>> config = EmailConfig.from_env(test_mode=True)
        >>> dispatcher = EmailDispatcher(config, SmtpTransport(config))
        >>> report = dispatcher.send_schedule(schedule, members)
        >>> print(f"{report.sent} sent, {report.failed} failed")
    """

    def __init__(
        self,
        config: EmailConfig,
        transport: Optional[EmailTransport] = None,
        slots: Optional[Sequence[Slot]] = None,
    ):
        self.config = config
        self.transport = transport or SmtpTransport(config)
        self.slots = slots

    def recipient_for(self, member: Member) -> Optional[str]:
        """Address a member's mail goes to, honoring test mode."""
        if not member.email:
            return None
        return self.config.test_address if self.config.test_mode else member.email

    def send_schedule(
        self,
        schedule: Schedule,
        members: Iterable[Member],
        custom_message: str = "",
        year: Optional[int] = None,
    ) -> DispatchReport:
        """Send every member their tasks from a schedule.

        Members without tasks are skipped. Members without an address and
        failed deliveries are reported, and never stop the batch.
        """
        report = DispatchReport()

        for member in members:
            tasks = member_tasks(member.name, schedule.weeks, year, self.slots)
            if not tasks:
                continue

            recipient = self.recipient_for(member)
            if recipient is None:
                report.results.append(DeliveryResult(member.name, False, error=NO_ADDRESS))
                continue

            message = self._build_schedule_message(
                schedule.title, member.name, recipient, tasks, custom_message
            )
            report.results.append(self._deliver(member.name, recipient, message))

            if not self.config.test_mode and self.config.send_delay_seconds > 0:
                time.sleep(self.config.send_delay_seconds)

        logger.info(
            "Schedule %r mailed: %d sent, %d failed", schedule.title, report.sent, report.failed
        )
        return report

    def send_reminder(self, member: Member, task: CalendarTask) -> DeliveryResult:
        """Send a one-task reminder to a member."""
        recipient = self.recipient_for(member)
        if recipient is None:
            return DeliveryResult(member.name, False, error=NO_ADDRESS)

        message = self._new_message(
            recipient, f"Rappel: Ménage le {task.date_label}"
        )
        body = (
            "<h2 style=\"color: #f97316;\">Rappel de ménage</h2>"
            f"<p>Bonjour {html.escape(member.name)},</p>"
            "<p>Ceci est un rappel que vous êtes assigné(e) au ménage le "
            f"<strong>{html.escape(task.date_label)}</strong>.</p>"
            "<p><strong>Votre tâche:</strong> "
            f"{html.escape(task.task)}</p>"
        )
        message.set_content(f"{task.date_label}: {task.task}")
        message.add_alternative(self._wrap(body), subtype="html")
        return self._deliver(member.name, recipient, message)

    def _deliver(self, member_name: str, recipient: str, message: EmailMessage) -> DeliveryResult:
        try:
            self.transport.send(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Could not send to %s (%s): %s", member_name, recipient, exc)
            return DeliveryResult(member_name, False, recipient, str(exc))
        logger.debug("Sent to %s (%s)", member_name, recipient)
        return DeliveryResult(member_name, True, recipient)

    def _new_message(self, recipient: str, subject: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender
        message["To"] = recipient
        message["Subject"] = subject
        if self.config.reply_to:
            message["Reply-To"] = self.config.reply_to
        return message

    def _build_schedule_message(
        self,
        title: str,
        member_name: str,
        recipient: str,
        tasks: list[CalendarTask],
        custom_message: str,
    ) -> EmailMessage:
        message = self._new_message(recipient, f"Horaire de ménage - {title}")

        items = "".join(
            f"<li><strong>{html.escape(t.date_label)}</strong>: {html.escape(t.task)}</li>"
            for t in tasks
        )
        body = f"<h2 style=\"color: #f97316;\">Horaire de ménage - {html.escape(title)}</h2>"
        body += f"<p>Bonjour {html.escape(member_name)},</p>"
        if custom_message:
            body += f"<p>{html.escape(custom_message).replace(chr(10), '<br>')}</p>"
        body += (
            "<p><strong>Vos tâches pour cette période:</strong></p>"
            f"<ul>{items}</ul>"
            "<p>Ouvrez le fichier .ics joint pour ajouter vos tâches à votre calendrier.</p>"
        )

        message.set_content(
            "\n".join(f"{t.date_label}: {t.task}" for t in tasks)
        )
        message.add_alternative(self._wrap(body), subtype="html")
        message.add_attachment(
            generate_ics(member_name, tasks, self.config.organization).encode("utf-8"),
            maintype="text",
            subtype="calendar",
            filename=ics_filename(member_name),
        )
        return message

    def _wrap(self, body: str) -> str:
        """Add the common container, footer and test-mode notice."""
        footer = (
            "<p>Merci de votre collaboration!</p>"
            "<hr style=\"border: none; border-top: 1px solid #e5e5e5;\" />"
            f"<p style=\"color: #666; font-size: 12px;\">"
            f"{html.escape(self.config.organization)} - Comité d'entretien</p>"
        )
        if self.config.test_mode:
            footer += (
                "<p style=\"color: #f97316; font-size: 12px;\"><strong>MODE TEST</strong>"
                " - Ce courriel a été envoyé à l'adresse de test.</p>"
            )
        return (
            "<div style=\"font-family: sans-serif; max-width: 600px; margin: 0 auto;\">"
            f"{body}{footer}</div>"
        )
