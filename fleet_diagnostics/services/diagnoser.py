import asyncio
import logging

from fleet_diagnostics.config import DEFAULT_MAX_TOLERATED_LAG, DEFAULT_PROBE_TIMEOUT
from fleet_diagnostics.transport.interface import ProbeClientInterface
from shared.domain.worker import ProbeInfo, Verdict
from shared.utils.identity import identities_match


logger = logging.getLogger(__name__)


TIMEOUT_REASON = "timeout; endpoint may be offline"
IDENTITY_MISMATCH_REASON = "reported identity does not match registered identity"


def lag_reason(diff: int) -> str:
    return f"lagging by {diff} units"


class EndpointDiagnoser:
    """
    Runs one time-boxed probe against a registered endpoint and classifies it.

    The probe runs as its own task raced against the timeout budget. When the
    budget runs out the task is cancelled but not awaited: the verdict is a
    timeout no matter how the abandoned probe ends. Every outcome, including
    transport errors, comes back as a Verdict.
    """

    def __init__(
        self,
        probe_client: ProbeClientInterface,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        max_tolerated_lag: int = DEFAULT_MAX_TOLERATED_LAG,
    ):
        self.probe_client = probe_client
        self.timeout = timeout
        self.max_tolerated_lag = max_tolerated_lag
        self._abandoned_probes: set[asyncio.Task] = set()

    async def diagnose(
        self, worker_id: str, endpoint_url: str, reference_height: int
    ) -> Verdict:
        probe = asyncio.create_task(self.probe_client.get_info(endpoint_url))
        try:
            done, _ = await asyncio.wait({probe}, timeout=self.timeout)
        except asyncio.CancelledError:
            probe.cancel()
            raise

        if probe not in done:
            self._abandon(probe)
            logger.info(
                f"Probe of worker {worker_id} at {endpoint_url} exceeded {self.timeout:g}s budget"
            )
            verdict = Verdict.failed(worker_id, endpoint_url, reason=TIMEOUT_REASON)
        else:
            try:
                verdict = self.evaluate(
                    worker_id=worker_id,
                    endpoint_url=endpoint_url,
                    info=probe.result(),
                    reference_height=reference_height,
                )
            except Exception as e:
                verdict = Verdict.failed(
                    worker_id, endpoint_url, reason=str(e) or type(e).__name__
                )

        if verdict.healthy:
            logger.debug(f"Worker {worker_id} at {endpoint_url} is healthy")
        else:
            logger.warning(
                f"Health check failed for worker {worker_id} at {endpoint_url}: {verdict.reason}"
            )
        return verdict

    def _abandon(self, probe: asyncio.Task):
        """
        Cancel a probe that lost the race without waiting for it.

        The task is referenced until it finishes so it is not garbage collected
        mid-flight, and its outcome is retrieved so no "exception was never
        retrieved" warning is logged.
        """
        self._abandoned_probes.add(probe)

        def cleanup(t: asyncio.Task):
            self._abandoned_probes.discard(t)
            if not t.cancelled():
                t.exception()

        probe.add_done_callback(cleanup)
        probe.cancel()

    def evaluate(
        self,
        worker_id: str,
        endpoint_url: str,
        info: ProbeInfo,
        reference_height: int,
    ) -> Verdict:
        """Classify a successful probe response"""
        if not identities_match(info.reported_identity, worker_id):
            return Verdict.failed(
                worker_id, endpoint_url, reason=IDENTITY_MISMATCH_REASON
            )

        diff = reference_height - info.progress_height
        if diff > self.max_tolerated_lag:
            return Verdict.failed(worker_id, endpoint_url, reason=lag_reason(diff))

        return Verdict.ok(worker_id, endpoint_url)
