"""
Shared pytest fixtures for diagnostics tests
"""

import asyncio
import logging

import grpc
import pytest
from google.protobuf import empty_pb2, struct_pb2
from grpc import aio

from shared.domain.worker import ProbeInfo


logger = logging.getLogger(__name__)


HANG = object()


class FakeProbeClient:
    """Probe client answering from a url -> response table.

    A response can be a ProbeInfo, an exception instance to raise, or HANG to
    block until cancelled. With cancel_linger set, a cancelled call keeps
    running for that long and then answers anyway.
    """

    def __init__(self, responses: dict, delay: float = 0.0, cancel_linger: float = 0.0):
        self.responses = responses
        self.delay = delay
        self.cancel_linger = cancel_linger
        self.completed: list[str] = []
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def get_info(self, endpoint_url: str) -> ProbeInfo:
        self.calls.append(endpoint_url)
        response = self.responses[endpoint_url]
        try:
            if response is HANG:
                await asyncio.sleep(3600)
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(endpoint_url)
            if not self.cancel_linger:
                raise
            # Ignores cancellation and answers late
            await asyncio.sleep(self.cancel_linger)
        self.completed.append(endpoint_url)
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def probe_client_factory():
    def _factory(
        responses: dict, delay: float = 0.0, cancel_linger: float = 0.0
    ) -> FakeProbeClient:
        return FakeProbeClient(responses, delay=delay, cancel_linger=cancel_linger)

    return _factory


@pytest.fixture
def hang():
    return HANG


def _struct(payload: dict) -> struct_pb2.Struct:
    message = struct_pb2.Struct()
    message.update(payload)
    return message


def _unary_handler(behaviour):
    return grpc.unary_unary_rpc_method_handler(
        behaviour,
        request_deserializer=empty_pb2.Empty.FromString,
        response_serializer=struct_pb2.Struct.SerializeToString,
    )


async def _start_server(service: str, method: str, behaviour):
    server = aio.server()
    server.add_generic_rpc_handlers(
        (
            grpc.method_handlers_generic_handler(
                service, {method: _unary_handler(behaviour)}
            ),
        )
    )
    port = server.add_insecure_port("127.0.0.1:0")
    await server.start()
    logger.info(f"Test {service} server started on port {port}")
    return server, port


@pytest.fixture
async def worker_info_server():
    """
    In-process worker answering GetInfo with whatever the test stored in `state`.
    Yields (port, state).
    """
    state = {"payload": {"identity": "0xabc", "height": 100}, "delay": 0.0}

    async def get_info(request, context):
        if state["delay"]:
            await asyncio.sleep(state["delay"])
        return _struct(state["payload"])

    server, port = await _start_server("fleet.WorkerInfo", "GetInfo", get_info)
    yield port, state
    await server.stop(0)


@pytest.fixture
async def registry_server():
    """
    In-process registry answering GetSnapshot. Yields (port, state); the
    metadata of the last call lands in state["metadata"].
    """
    state = {"payload": {}, "metadata": None}

    async def get_snapshot(request, context):
        state["metadata"] = dict(context.invocation_metadata())
        return _struct(state["payload"])

    server, port = await _start_server("fleet.Registry", "GetSnapshot", get_snapshot)
    yield port, state
    await server.stop(0)


@pytest.fixture
def scan_env(monkeypatch):
    """Clear diagnostics environment so tests start from defaults"""
    for name in (
        "REGISTRY_ADDRESS",
        "REGISTRY_AUTH_TOKEN",
        "REGISTRY_TIMEOUT",
        "PROBE_TIMEOUT",
        "MAX_TOLERATED_LAG",
        "MAX_IN_FLIGHT",
        "REPORT_PATH",
        "STATUS_PAGE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
