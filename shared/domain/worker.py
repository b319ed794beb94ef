from dataclasses import dataclass
from enum import Enum


class WorkerStatus(Enum):
    """Outcome of a worker in a single scan"""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class WorkerEndpoint:
    """Endpoint a worker claims to be reachable at"""

    worker_id: str  # hex, as rendered by the registry
    endpoint_url: str


@dataclass(frozen=True)
class ProbeInfo:
    """Self-reported state returned by a probed endpoint"""

    reported_identity: str | bytes
    progress_height: int


@dataclass(frozen=True)
class Verdict:
    """Health classification of one (worker, endpoint) pair"""

    worker_id: str
    endpoint_url: str
    healthy: bool
    reason: str | None = None

    def __post_init__(self):
        if self.healthy != (self.reason is None):
            raise ValueError("reason must be set exactly when verdict is unhealthy")

    @classmethod
    def ok(cls, worker_id: str, endpoint_url: str) -> "Verdict":
        return cls(worker_id=worker_id, endpoint_url=endpoint_url, healthy=True)

    @classmethod
    def failed(cls, worker_id: str, endpoint_url: str, reason: str) -> "Verdict":
        return cls(
            worker_id=worker_id,
            endpoint_url=endpoint_url,
            healthy=False,
            reason=reason,
        )
