from abc import ABC, abstractmethod
from datetime import datetime

from shared.domain.report import ClusterReport


class ReportSinkInterface(ABC):
    """
    Abstract interface for report persistence.

    A sink receives the full cluster report of one scan and replaces whatever
    it stored for the previous scan.
    """

    @abstractmethod
    def persist(self, report: ClusterReport, completed_at: datetime) -> None:
        """
        Store the report of a completed scan.

        Args:
            report: Mapping of cluster id to its healthy endpoint urls
            completed_at: Wall-clock time the scan finished
        """
        pass
