import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from sitemonitor.services.report import Report, ReportRenderer

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, report: Report) -> bool: ...


class NullNotifier:
    def notify(self, report: Report) -> bool:
        return False


class SmtpNotifier:
    """Mails the rendered report; a report without recipient is not sent."""

    def __init__(self, host: str, port: int = 25, renderer: ReportRenderer = None, smtp_factory=smtplib.SMTP):
        self.host = host
        self.port = port
        self.renderer = renderer or ReportRenderer()
        self.smtp_factory = smtp_factory

    def build_message(self, report: Report) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = report.subject
        msg["From"] = report.mail_from
        msg["To"] = report.mail_to
        msg.set_content(self.renderer.render_text(report))
        msg.add_alternative(self.renderer.render_html(report), subtype="html")
        return msg

    def notify(self, report: Report) -> bool:
        if not report.mail_to:
            return False
        if not self.host:
            logger.warning("SMTP_HOST not set; report for %s not mailed", report.log_id)
            return False
        try:
            with self.smtp_factory(self.host, self.port) as smtp:
                smtp.send_message(self.build_message(report))
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to mail report for %s", report.log_id)
            return False
        logger.info("Report for %s mailed to %s", report.log_id, report.mail_to)
        return True
