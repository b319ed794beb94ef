import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from fleet_diagnostics.storage.interface import ReportSinkInterface
from shared.domain.report import ClusterReport


logger = logging.getLogger(__name__)


class FileReportSink(ReportSinkInterface):
    """Writes the report as JSON and stamps the status page"""

    def __init__(self, report_path: str, status_page_path: str | None = None):
        self.report_path = Path(report_path)
        self.status_page_path = Path(status_page_path) if status_page_path else None

    def persist(self, report: ClusterReport, completed_at: datetime) -> None:
        self.write_report(report)
        if self.status_page_path:
            self.append_status_marker(completed_at)

    def write_report(self, report: ClusterReport) -> None:
        """Replace the report file atomically"""
        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.report_path.parent, prefix=f".{self.report_path.name}."
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(report, f, indent=2)
            os.replace(tmp_path, self.report_path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.info(f"Report for {len(report)} clusters written to {self.report_path}")

    def append_status_marker(self, completed_at: datetime) -> None:
        self.status_page_path.parent.mkdir(parents=True, exist_ok=True)
        with self.status_page_path.open("a", encoding="utf-8") as f:
            f.write(f"\nUpdated at: {completed_at.isoformat()}\n")
        logger.info(f"Status page {self.status_page_path} stamped")
