from abc import ABC, abstractmethod

from shared.domain.registry import RegistrySnapshot
from shared.domain.worker import ProbeInfo


class ProbeClientInterface(ABC):
    """Interface for contacting a single worker endpoint (gRPC, HTTP, etc.)"""

    @abstractmethod
    async def get_info(self, endpoint_url: str) -> ProbeInfo:
        """Fetch the endpoint's self-reported identity and progress height

        Args:
            endpoint_url: Address the worker registered

        Returns:
            ProbeInfo reported by the endpoint

        Raises:
            Any transport level error; callers turn it into a verdict
        """
        pass


class RegistryInterface(ABC):
    """Interface for the authoritative source of membership and endpoints"""

    @abstractmethod
    async def fetch_snapshot(self) -> RegistrySnapshot:
        """Return cluster membership, endpoint directory and reference height

        Raises:
            RegistryUnavailableError: registry cannot be reached or parsed
        """
        pass
