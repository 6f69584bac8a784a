"""Tests for schedule and reminder emails."""

import smtplib
from datetime import date

import pytest

from dutyroster.domain.models import UNFILLED, Member, Schedule, WeekAssignment
from dutyroster.output.email_dispatcher import (
    NO_ADDRESS,
    EmailConfig,
    EmailDispatcher,
    EmailTransport,
)
from dutyroster.output.ics_generator import CalendarTask


class FakeTransport(EmailTransport):
    """Collects messages instead of sending them."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, message):
        if message["To"] in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"no such user")})
        self.sent.append(message)


@pytest.fixture
def schedule():
    week = WeekAssignment(
        date_label="3 janvier",
        slots={
            "sweep_basement": "Louise",
            "sweep_ground": "Sarah",
            "sweep_first": "Octavio",
            "front_mop": "Richard C.",
            "back_mop": UNFILLED,
        },
        week_date=date(2026, 1, 3),
    )
    return Schedule(id="s1", title="Janvier - Mars 2026", weeks=(week,))


@pytest.fixture
def members():
    return [
        Member(id="M1", name="Louise", email="louise@example.com"),
        Member(id="M2", name="Sarah", email="sarah@example.com"),
        Member(id="M3", name="Octavio"),
        Member(id="M4", name="Richard C.", email="richard@example.com"),
        Member(id="M5", name="Jade", email="jade@example.com"),
    ]


@pytest.fixture
def config():
    return EmailConfig(sender="entretien@example.com", send_delay_seconds=0)


class TestSendSchedule:
    """Tests for EmailDispatcher.send_schedule."""

    def test_one_message_per_member_with_tasks(self, config, schedule, members):
        transport = FakeTransport()
        report = EmailDispatcher(config, transport).send_schedule(schedule, members)

        assert report.sent == 3
        assert report.failed == 1
        assert sorted(m["To"] for m in transport.sent) == [
            "louise@example.com",
            "richard@example.com",
            "sarah@example.com",
        ]

    def test_member_without_email_reported(self, config, schedule, members):
        report = EmailDispatcher(config, FakeTransport()).send_schedule(schedule, members)
        failed = [r for r in report.results if not r.success]
        assert [(r.member_name, r.error) for r in failed] == [("Octavio", NO_ADDRESS)]

    def test_member_without_tasks_skipped(self, config, schedule, members):
        report = EmailDispatcher(config, FakeTransport()).send_schedule(schedule, members)
        assert "Jade" not in [r.member_name for r in report.results]

    def test_message_content(self, config, schedule, members):
        transport = FakeTransport()
        EmailDispatcher(config, transport).send_schedule(
            schedule, members[:1], custom_message="Merci!"
        )
        message = transport.sent[0]

        assert message["Subject"] == "Horaire de ménage - Janvier - Mars 2026"
        assert message["From"] == "entretien@example.com"
        assert "3 janvier: Balayeuse - Sous-sol" in message.get_body(("plain",)).get_content()
        assert "Merci!" in message.get_body(("html",)).get_content()

        attachments = list(message.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "horaire-menage-louise.ics"
        assert attachments[0].get_content_type() == "text/calendar"

    def test_test_mode_redirects_everything(self, schedule, members):
        config = EmailConfig(test_mode=True, test_address="qa@example.com")
        transport = FakeTransport()
        report = EmailDispatcher(config, transport).send_schedule(schedule, members)

        assert report.sent == 3
        assert {m["To"] for m in transport.sent} == {"qa@example.com"}
        assert "MODE TEST" in transport.sent[0].get_body(("html",)).get_content()

    def test_transport_error_does_not_stop_batch(self, config, schedule, members):
        transport = FakeTransport(fail_for={"louise@example.com"})
        report = EmailDispatcher(config, transport).send_schedule(schedule, members)

        assert report.sent == 2
        louise = next(r for r in report.results if r.member_name == "Louise")
        assert louise.success is False
        assert louise.recipient == "louise@example.com"


class TestSendReminder:
    """Tests for EmailDispatcher.send_reminder."""

    def test_reminder(self, config, members):
        transport = FakeTransport()
        task = CalendarTask("3 janvier", "Balayeuse - Sous-sol", 2026)
        result = EmailDispatcher(config, transport).send_reminder(members[0], task)

        assert result.success
        assert transport.sent[0]["Subject"] == "Rappel: Ménage le 3 janvier"
        assert "Balayeuse - Sous-sol" in transport.sent[0].get_body(("html",)).get_content()

    def test_reminder_without_email(self, config, members):
        task = CalendarTask("3 janvier", "Balayeuse - Sous-sol", 2026)
        result = EmailDispatcher(config, FakeTransport()).send_reminder(members[2], task)
        assert result.success is False
        assert result.error == NO_ADDRESS


class TestEmailConfig:
    """Tests for EmailConfig.from_env."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DUTYROSTER_SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("DUTYROSTER_SMTP_PORT", "587")
        monkeypatch.setenv("DUTYROSTER_SMTP_TLS", "true")
        monkeypatch.setenv("DUTYROSTER_REPLY_TO", "comite@example.com")

        config = EmailConfig.from_env(test_mode=True)
        assert config.smtp_host == "smtp.example.com"
        assert config.smtp_port == 587
        assert config.use_tls is True
        assert config.reply_to == "comite@example.com"
        assert config.test_mode is True

    def test_defaults(self, monkeypatch):
        for name in ("DUTYROSTER_SMTP_HOST", "DUTYROSTER_SMTP_PORT", "DUTYROSTER_SMTP_TLS"):
            monkeypatch.delenv(name, raising=False)
        config = EmailConfig.from_env()
        assert config.smtp_host == "localhost"
        assert config.smtp_port == 25
        assert config.use_tls is False

    def test_non_integer_port_rejected(self, monkeypatch):
        monkeypatch.setenv("DUTYROSTER_SMTP_PORT", "abc")
        with pytest.raises(ValueError, match="DUTYROSTER_SMTP_PORT"):
            EmailConfig.from_env()
