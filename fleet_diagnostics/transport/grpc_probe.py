import logging
from urllib.parse import urlsplit

import grpc
from google.protobuf import empty_pb2, json_format, struct_pb2
from grpc import aio

from fleet_diagnostics.transport.interface import ProbeClientInterface
from shared.domain.worker import ProbeInfo
from shared.exceptions import ProbeError


logger = logging.getLogger(__name__)


GET_INFO_METHOD = "/fleet.WorkerInfo/GetInfo"
SECURE_SCHEMES = ("https", "grpcs", "wss")
CHANNEL_OPTIONS = [("grpc.enable_http_proxy", 0)]


def endpoint_target(endpoint_url: str) -> tuple[str, bool]:
    """Turn a registered endpoint URL into a gRPC target and a TLS flag"""
    url = endpoint_url.strip()
    if "://" not in url:
        url = f"grpc://{url}"
    parsed = urlsplit(url)
    if not parsed.hostname:
        raise ProbeError(f"Malformed endpoint url: {endpoint_url!r}")

    secure = parsed.scheme in SECURE_SCHEMES
    try:
        port = parsed.port
    except ValueError:
        raise ProbeError(f"Malformed endpoint port: {endpoint_url!r}") from None
    if port is None:
        port = 443 if secure else 80
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}", secure


def parse_info_response(response: struct_pb2.Struct) -> ProbeInfo:
    payload = json_format.MessageToDict(response)
    identity = payload.get("identity")
    height = payload.get("height")
    if not isinstance(identity, str) or not identity:
        raise ProbeError("Info response is missing the worker identity")
    if isinstance(height, bool) or not isinstance(height, (int, float)):
        raise ProbeError("Info response is missing the progress height")
    return ProbeInfo(reported_identity=identity, progress_height=int(height))


class GrpcProbeClient(ProbeClientInterface):
    """Asks a worker for its info over a short-lived gRPC channel"""

    def __init__(self, rpc_timeout: float | None = None):
        self.rpc_timeout = rpc_timeout

    def _open_channel(self, target: str, secure: bool) -> aio.Channel:
        if secure:
            return aio.secure_channel(
                target, grpc.ssl_channel_credentials(), options=CHANNEL_OPTIONS
            )
        return aio.insecure_channel(target, options=CHANNEL_OPTIONS)

    async def get_info(self, endpoint_url: str) -> ProbeInfo:
        target, secure = endpoint_target(endpoint_url)
        logger.debug(f"Probing {endpoint_url} (target={target}, secure={secure})")

        # Closing the channel on cancellation drops the in-flight call
        async with self._open_channel(target, secure) as channel:
            get_info = channel.unary_unary(
                GET_INFO_METHOD,
                request_serializer=empty_pb2.Empty.SerializeToString,
                response_deserializer=struct_pb2.Struct.FromString,
            )
            response = await get_info(empty_pb2.Empty(), timeout=self.rpc_timeout)

        return parse_info_response(response)
