import logging
import math
from typing import Iterable

from fleet_diagnostics.services.diagnoser import EndpointDiagnoser
from shared.domain.worker import Verdict, WorkerEndpoint
from shared.utils.concurrency import gather_bounded
from shared.utils.identity import normalize_identity


logger = logging.getLogger(__name__)


class FleetScanner:
    """Diagnoses every registered endpoint concurrently"""

    def __init__(self, diagnoser: EndpointDiagnoser, max_in_flight: int | None = None):
        self.diagnoser = diagnoser
        self.max_in_flight = max_in_flight

    async def scan(
        self,
        pairs: Iterable[WorkerEndpoint | tuple[str, str]],
        reference_height: int,
    ) -> list[Verdict]:
        """
        Probe all (worker, endpoint) pairs and return one verdict per worker.

        A worker listed more than once is probed for its first endpoint only.
        The order of the returned list is not meaningful.

        Without max_in_flight the scan takes about one probe timeout whatever
        the fleet size. With a cap smaller than the fleet, probes queue up and
        the worst case becomes ceil(endpoints / max_in_flight) timeouts.
        """
        endpoints = self._unique_endpoints(pairs)
        if self.max_in_flight is not None and len(endpoints) > self.max_in_flight:
            logger.warning(
                f"{len(endpoints)} endpoints with max_in_flight={self.max_in_flight}: "
                f"scan may take up to {math.ceil(len(endpoints) / self.max_in_flight)} "
                f"probe timeouts"
            )
        logger.info(
            f"Checking {len(endpoints)} endpoints against reference height {reference_height}"
        )

        verdicts = await gather_bounded(
            (
                self.diagnoser.diagnose(
                    worker_id=endpoint.worker_id,
                    endpoint_url=endpoint.endpoint_url,
                    reference_height=reference_height,
                )
                for endpoint in endpoints
            ),
            max_in_flight=self.max_in_flight,
        )

        healthy_count = sum(1 for verdict in verdicts if verdict.healthy)
        logger.info(f"Scan finished: {healthy_count}/{len(verdicts)} endpoints healthy")
        return verdicts

    @staticmethod
    def _unique_endpoints(
        pairs: Iterable[WorkerEndpoint | tuple[str, str]],
    ) -> list[WorkerEndpoint]:
        endpoints: list[WorkerEndpoint] = []
        seen: set[str] = set()
        for pair in pairs:
            endpoint = pair if isinstance(pair, WorkerEndpoint) else WorkerEndpoint(*pair)
            key = normalize_identity(endpoint.worker_id)
            if key in seen:
                logger.warning(
                    f"Worker {endpoint.worker_id} listed twice, ignoring {endpoint.endpoint_url}"
                )
                continue
            seen.add(key)
            endpoints.append(endpoint)
        return endpoints
