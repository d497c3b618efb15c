from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from sitemonitor.domain.diff import DiffEntry
from sitemonitor.domain.log import LogLevel, LogRecord, RunLog
from sitemonitor.services.baseline_diff import to_string, to_table

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


@dataclass
class Report:
    """Everything the notifier needs about a finished run."""

    site_url: str
    log_id: str
    records: List[LogRecord] = field(default_factory=list)
    diffs: List[DiffEntry] = field(default_factory=list)
    email_level: LogLevel = LogLevel.INFO
    mail_from: str = ""
    mail_to: str = ""

    @property
    def subject(self) -> str:
        return f"Report on {self.site_url} monitoring."

    def visible_records(self) -> List[LogRecord]:
        return RunLog(self.records).records_at_least(self.email_level)


class ReportRenderer:
    def __init__(self, template_dir: Optional[Union[Path, str]] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
        )

    def render_html(self, report: Report) -> str:
        template = self.env.get_template("report.html.j2")
        return template.render(
            records=report.visible_records(),
            diffs=report.diffs,
            diff_table=to_table(report.diffs),
        )

    def render_text(self, report: Report) -> str:
        lines = [r.message for r in report.visible_records()]
        text = "\n".join(lines)
        if report.diffs:
            text += "\n\nDifferences with base links file:\n" + to_string(report.diffs)
        return text
