import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from shared.domain.report import ClusterReport
from shared.domain.worker import Verdict, WorkerStatus
from shared.utils.identity import normalize_identity


logger = logging.getLogger(__name__)
report_logger = logging.getLogger("fleet_diagnostics.report")


HEALTHY_GLYPH = "✅"
UNHEALTHY_GLYPH = "❌"


@dataclass(frozen=True)
class WorkerOutcome:
    """What a single cluster member looked like in the scan"""

    cluster_id: str
    worker_id: str
    status: WorkerStatus
    verdict: Verdict | None = None


def index_verdicts(verdicts: Iterable[Verdict]) -> dict[str, Verdict]:
    """Key verdicts by normalized worker identity, first verdict wins"""
    by_worker: dict[str, Verdict] = {}
    for verdict in verdicts:
        by_worker.setdefault(normalize_identity(verdict.worker_id), verdict)
    return by_worker


def _cluster_outcomes(
    cluster_id: str, worker_ids: Sequence[str], by_worker: Mapping[str, Verdict]
) -> list[WorkerOutcome]:
    outcomes = []
    for worker_id in worker_ids:
        verdict = by_worker.get(normalize_identity(worker_id))
        if verdict is None:
            status = WorkerStatus.NOT_FOUND
        elif verdict.healthy:
            status = WorkerStatus.HEALTHY
        else:
            status = WorkerStatus.UNHEALTHY
        outcomes.append(
            WorkerOutcome(
                cluster_id=cluster_id,
                worker_id=worker_id,
                status=status,
                verdict=verdict,
            )
        )
    return outcomes


def classify_workers(
    cluster_workers: Mapping[str, Sequence[str]], verdicts: Iterable[Verdict]
) -> list[WorkerOutcome]:
    """One outcome per cluster member, in membership order"""
    by_worker = index_verdicts(verdicts)
    outcomes = []
    for cluster_id, worker_ids in cluster_workers.items():
        outcomes.extend(_cluster_outcomes(cluster_id, worker_ids, by_worker))
    return outcomes


def format_outcome(outcome: WorkerOutcome) -> str:
    if outcome.status is WorkerStatus.NOT_FOUND:
        return f"  {UNHEALTHY_GLYPH} {outcome.worker_id} Worker not found."
    verdict = outcome.verdict
    if outcome.status is WorkerStatus.HEALTHY:
        return f"  {HEALTHY_GLYPH} {outcome.worker_id} {verdict.endpoint_url}"
    return f"  {UNHEALTHY_GLYPH} {outcome.worker_id} {verdict.endpoint_url} {verdict.reason}"


def aggregate(
    cluster_workers: Mapping[str, Sequence[str]],
    verdicts: Iterable[Verdict],
    emit: Callable[[str], None] | None = None,
) -> ClusterReport:
    """
    Join verdicts against cluster membership.

    Every cluster gets a key, healthy endpoints are listed in membership order.
    A human-readable line per cluster and per member goes to `emit`
    (the report logger by default); nothing else is touched.
    """
    emit = emit or report_logger.info
    by_worker = index_verdicts(verdicts)

    report: ClusterReport = {}
    for cluster_id, worker_ids in cluster_workers.items():
        emit(f"cluster={cluster_id}")
        endpoints = report.setdefault(cluster_id, [])
        for outcome in _cluster_outcomes(cluster_id, worker_ids, by_worker):
            emit(format_outcome(outcome))
            if outcome.status is WorkerStatus.HEALTHY:
                endpoints.append(outcome.verdict.endpoint_url)

    logger.debug(f"Aggregated {len(report)} clusters")
    return report
