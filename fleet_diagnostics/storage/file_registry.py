import asyncio
import json
import logging
from pathlib import Path

from fleet_diagnostics.transport.interface import RegistryInterface
from shared.domain.registry import RegistrySnapshot
from shared.exceptions import RegistryUnavailableError
from shared.services.snapshot_parser import parse_snapshot


logger = logging.getLogger(__name__)


FILE_SCHEME = "file://"


def is_file_address(address: str) -> bool:
    return address.startswith(FILE_SCHEME) or address.endswith(".json")


class JsonFileRegistry(RegistryInterface):
    """Registry snapshot exported to a JSON document"""

    def __init__(self, address: str):
        path = address[len(FILE_SCHEME):] if address.startswith(FILE_SCHEME) else address
        self.path = Path(path)

    async def fetch_snapshot(self) -> RegistrySnapshot:
        logger.info(f"Loading registry snapshot from {self.path}")
        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except OSError as e:
            raise RegistryUnavailableError(
                f"Cannot read registry snapshot {self.path}: {e}"
            ) from e
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RegistryUnavailableError(
                f"Registry snapshot {self.path} is not valid JSON: {e}"
            ) from e
        return parse_snapshot(payload)
