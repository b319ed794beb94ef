from dataclasses import dataclass, field
from datetime import datetime, timezone


ClusterReport = dict[str, list[str]]


@dataclass
class ScanSummary:
    """Result of one completed scan"""

    report: ClusterReport
    reference_height: int
    healthy_count: int = 0
    unhealthy_count: int = 0
    not_found_count: int = 0
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_workers(self) -> int:
        return self.healthy_count + self.unhealthy_count + self.not_found_count
