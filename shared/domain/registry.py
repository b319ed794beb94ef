from dataclasses import dataclass, field

from shared.domain.worker import WorkerEndpoint


@dataclass
class RegistrySnapshot:
    """Cluster membership, endpoint directory and reference height of one scan"""

    cluster_workers: dict[str, list[str]] = field(default_factory=dict)
    endpoints: dict[str, str] = field(default_factory=dict)
    reference_height: int = 0

    def endpoint_pairs(self) -> list[WorkerEndpoint]:
        return [
            WorkerEndpoint(worker_id=worker_id, endpoint_url=endpoint_url)
            for worker_id, endpoint_url in self.endpoints.items()
        ]

    @property
    def total_workers(self) -> int:
        return sum(len(workers) for workers in self.cluster_workers.values())
