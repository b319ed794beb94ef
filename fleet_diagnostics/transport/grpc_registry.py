import asyncio
import logging

from google.protobuf import empty_pb2, json_format, struct_pb2
from grpc import aio

from fleet_diagnostics.transport.grpc_probe import CHANNEL_OPTIONS
from fleet_diagnostics.transport.interface import RegistryInterface
from shared.domain.registry import RegistrySnapshot
from shared.exceptions import RegistryUnavailableError
from shared.security.auth import auth_metadata
from shared.services.snapshot_parser import parse_snapshot


logger = logging.getLogger(__name__)


GET_SNAPSHOT_METHOD = "/fleet.Registry/GetSnapshot"


class GrpcRegistryClient(RegistryInterface):
    """Fetches the registry snapshot from a remote registry service"""

    def __init__(self, address: str, timeout: float = 30.0):
        self.address = address
        self.timeout = timeout

    async def fetch_snapshot(self) -> RegistrySnapshot:
        logger.info(f"Fetching registry snapshot from {self.address}")
        try:
            async with aio.insecure_channel(
                self.address, options=CHANNEL_OPTIONS
            ) as channel:
                get_snapshot = channel.unary_unary(
                    GET_SNAPSHOT_METHOD,
                    request_serializer=empty_pb2.Empty.SerializeToString,
                    response_deserializer=struct_pb2.Struct.FromString,
                )
                response = await asyncio.wait_for(
                    get_snapshot(empty_pb2.Empty(), metadata=auth_metadata()),
                    timeout=self.timeout,
                )
        except asyncio.TimeoutError:
            raise RegistryUnavailableError(
                f"Registry {self.address} did not answer within {self.timeout}s"
            ) from None
        except aio.AioRpcError as e:
            raise RegistryUnavailableError(
                f"Registry {self.address} unreachable: {e.details()} (code: {e.code()})"
            ) from e

        return parse_snapshot(json_format.MessageToDict(response))
