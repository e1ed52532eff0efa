"""
Report delivery for integrity runs.

A report exists only when the pass produced diagnostics. It is always
written to the report file (and optionally a JSON export beside it); then
either emailed, when this machine is a configured emailing machine (build
servers), or printed for the developer running the build by hand.
"""

import logging
import smtplib
import socket
from email.mime.text import MIMEText
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from reconciliation.diagnostics import DiagnosticLog
    from shared.settings import IntegritySettings
    from shared_lib.git_client import GitClient
    from validation.config import IntegrityConfig

logger = logging.getLogger('InstallerIntegrity.reporting')

EMAIL_SUBJECT = "Automatic Installer Integrity Report from Installer Build"


def remove_stale_report(settings: "IntegritySettings") -> None:
    """Delete report artifacts left by a previous run.

    Needs only the settings, so it can run before any input document is read.
    """
    for path in (settings.report_path, settings.report_json_path):
        try:
            path.unlink()
            logger.debug(f"Removed stale report {path}")
        except FileNotFoundError:
            pass


class ReportDelivery:
    """Writes, mails or prints the integrity report.

    Args:
        settings: Run settings (report paths, SMTP, silent flag)
        config: InstallerConfig.xml content (emailing machines, recipients)
        machine_name: Name of this machine (default: socket.gethostname())
        smtp_factory: Callable returning an smtplib.SMTP-like connection
        output: Callable used to show the report (default: print)
    """

    def __init__(
        self,
        settings: "IntegritySettings",
        config: "IntegrityConfig",
        machine_name: Optional[str] = None,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
        output: Callable[[str], None] = print,
    ):
        self.settings = settings
        self.config = config
        self.machine_name = machine_name if machine_name is not None else socket.gethostname()
        self._smtp_factory = smtp_factory
        self._output = output

    @property
    def report_path(self) -> Path:
        return self.settings.report_path

    def remove_stale_report(self) -> None:
        remove_stale_report(self.settings)

    def build_header(self, git_client: Optional["GitClient"], project_root: Path) -> str:
        """
        Build-identification text placed at the top of the report.

        Returns:
            "Current source control branch: X\\n", or '' if the branch is unknown
        """
        if git_client is None:
            return ""
        from shared_lib.git_client import GitQueryError
        try:
            branch = git_client.current_branch(project_root)
        except GitQueryError as e:
            logger.warning(f"Could not determine source control branch: {e}")
            return ""
        if not branch:
            return ""
        return f"Current source control branch: {branch}\n"

    def deliver(self, log: "DiagnosticLog", header: str = "") -> Optional[Path]:
        """
        Write the report and send or show it.

        Args:
            log: Diagnostics from the integrity pass
            header: Build-identification text

        Returns:
            Path of the written report, or None when there was nothing to report
        """
        if log.is_empty:
            logger.info("No integrity problems found; no report written")
            return None

        report = log.render(header=header)
        path = self.settings.report_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report, encoding='utf-8')
        logger.info(f"Integrity report written to {path} ({len(log)} entries)")

        if self.settings.report_json:
            json_path = self.settings.report_json_path
            json_path.write_text(log.to_json(header=header), encoding='utf-8')
            logger.info(f"JSON report written to {json_path}")

        if self.config.is_emailing_machine(self.machine_name):
            self.send_email(report)
        elif not self.settings.silent:
            self._output(report)
        return path

    def send_email(self, body: str) -> bool:
        """
        Mail the report to the configured recipients.

        Failures are logged and never raised: the report file has already
        been written.

        Returns:
            True if the message was handed to the SMTP server
        """
        recipients = self.config.email_recipients
        if not recipients:
            logger.warning("This is an emailing machine but no recipients are configured")
            return False
        if not self.settings.smtp_host:
            logger.warning("This is an emailing machine but INTEGRITY_SMTP_HOST is not set")
            return False

        sender = self.settings.smtp_sender or f"installer-integrity@{self.machine_name}"
        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = sender
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = EMAIL_SUBJECT

        try:
            server = self._smtp_factory(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout,
            )
            try:
                server.sendmail(sender, recipients, msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to email integrity report: {e}")
            return False

        logger.info(f"Integrity report emailed to {', '.join(recipients)}")
        return True

