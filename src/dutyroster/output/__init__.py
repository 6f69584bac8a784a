"""Output generation for schedules (PDF, calendar files, email)."""

from dutyroster.output.email_dispatcher import (
    DeliveryResult,
    DispatchReport,
    EmailConfig,
    EmailDispatcher,
    EmailTransport,
    SmtpTransport,
)
from dutyroster.output.ics_generator import CalendarTask, generate_ics, member_tasks
from dutyroster.output.pdf_generator import PDFGenerator

__all__ = [
    "CalendarTask",
    "DeliveryResult",
    "DispatchReport",
    "EmailConfig",
    "EmailDispatcher",
    "EmailTransport",
    "PDFGenerator",
    "SmtpTransport",
    "generate_ics",
    "member_tasks",
]
