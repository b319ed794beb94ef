import logging

from fleet_diagnostics.config import ScanSettings
from fleet_diagnostics.services.cluster_aggregator import aggregate, classify_workers
from fleet_diagnostics.services.diagnoser import EndpointDiagnoser
from fleet_diagnostics.services.fleet_scanner import FleetScanner
from fleet_diagnostics.storage.file_registry import JsonFileRegistry, is_file_address
from fleet_diagnostics.storage.file_report_sink import FileReportSink
from fleet_diagnostics.storage.interface import ReportSinkInterface
from fleet_diagnostics.transport.grpc_probe import GrpcProbeClient
from fleet_diagnostics.transport.grpc_registry import GrpcRegistryClient
from fleet_diagnostics.transport.interface import (
    ProbeClientInterface,
    RegistryInterface,
)
from shared.domain.report import ScanSummary
from shared.domain.worker import WorkerStatus


logger = logging.getLogger(__name__)


GRPC_SCHEME = "grpc://"


class ScanRunner:
    """Runs one full diagnostic pass: registry -> probes -> report"""

    def __init__(
        self,
        registry: RegistryInterface,
        scanner: FleetScanner,
        sink: ReportSinkInterface,
    ):
        self.registry = registry
        self.scanner = scanner
        self.sink = sink

    async def run(self) -> ScanSummary:
        """
        Execute a scan and persist its report.

        Registry failures propagate to the caller and nothing is written.
        Per-worker failures only show up in the report lines and counts.
        """
        logger.info("Getting registry snapshot...")
        snapshot = await self.registry.fetch_snapshot()
        logger.info(
            f"Registry lists {len(snapshot.cluster_workers)} clusters, "
            f"{snapshot.total_workers} workers and {len(snapshot.endpoints)} endpoints "
            f"(reference height {snapshot.reference_height})"
        )

        verdicts = await self.scanner.scan(
            snapshot.endpoint_pairs(), snapshot.reference_height
        )
        report = aggregate(snapshot.cluster_workers, verdicts)

        outcomes = classify_workers(snapshot.cluster_workers, verdicts)
        summary = ScanSummary(
            report=report,
            reference_height=snapshot.reference_height,
            healthy_count=sum(o.status is WorkerStatus.HEALTHY for o in outcomes),
            unhealthy_count=sum(o.status is WorkerStatus.UNHEALTHY for o in outcomes),
            not_found_count=sum(o.status is WorkerStatus.NOT_FOUND for o in outcomes),
        )

        self.sink.persist(report, completed_at=summary.completed_at)
        logger.info(
            f"Scan complete: {summary.healthy_count} healthy, "
            f"{summary.unhealthy_count} unhealthy, {summary.not_found_count} not found "
            f"across {len(report)} clusters"
        )
        return summary


def build_registry(settings: ScanSettings) -> RegistryInterface:
    address = settings.registry_address
    if is_file_address(address):
        return JsonFileRegistry(address)
    if address.startswith(GRPC_SCHEME):
        address = address[len(GRPC_SCHEME):]
    return GrpcRegistryClient(address, timeout=settings.registry_timeout)


def build_scan_runner(
    settings: ScanSettings,
    probe_client: ProbeClientInterface | None = None,
    registry: RegistryInterface | None = None,
    sink: ReportSinkInterface | None = None,
) -> ScanRunner:
    """Wire a runner from settings, collaborators can be swapped in"""
    diagnoser = EndpointDiagnoser(
        probe_client=probe_client or GrpcProbeClient(),
        timeout=settings.probe_timeout,
        max_tolerated_lag=settings.max_tolerated_lag,
    )
    return ScanRunner(
        registry=registry or build_registry(settings),
        scanner=FleetScanner(diagnoser, max_in_flight=settings.max_in_flight),
        sink=sink
        or FileReportSink(
            report_path=settings.report_path,
            status_page_path=settings.status_page_path,
        ),
    )
