import logging
from typing import Any

from shared.domain.registry import RegistrySnapshot
from shared.exceptions import RegistryUnavailableError
from shared.utils.identity import normalize_identity, render_identity


logger = logging.getLogger(__name__)


def parse_snapshot(payload: dict[str, Any]) -> RegistrySnapshot:
    """
    Build a RegistrySnapshot from a registry document.

    Expected shape:
        {
            "reference_height": 1234,
            "cluster_workers": {"<cluster id>": ["<worker id>", ...]},
            "endpoints": {"<worker id>": "<endpoint url>"}
        }

    Endpoint values may also come in the registry's versioned form
    ({"V1": ["<url>", ...]}), the first url is used. Entries that cannot be
    read are skipped, only an unusable reference height or a non-mapping
    document is fatal.
    """
    if not isinstance(payload, dict):
        raise RegistryUnavailableError("Registry snapshot must be a mapping")

    return RegistrySnapshot(
        cluster_workers=_parse_cluster_workers(payload.get("cluster_workers") or {}),
        endpoints=_parse_endpoints(payload.get("endpoints") or {}),
        reference_height=_parse_reference_height(payload.get("reference_height")),
    )


def _parse_reference_height(value: Any) -> int:
    if isinstance(value, bool):
        raise RegistryUnavailableError(f"Invalid reference height: {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise RegistryUnavailableError(f"Invalid reference height: {value!r}")


def _parse_cluster_workers(raw: Any) -> dict[str, list[str]]:
    if not isinstance(raw, dict):
        raise RegistryUnavailableError("cluster_workers must be a mapping")

    cluster_workers: dict[str, list[str]] = {}
    for cluster_id, workers in raw.items():
        if not isinstance(workers, list):
            logger.warning(f"Skipping cluster {cluster_id}: member list is malformed")
            cluster_workers[str(cluster_id)] = []
            continue
        members = []
        for worker_id in workers:
            if not isinstance(worker_id, str) or not worker_id.strip():
                logger.warning(f"Skipping malformed worker id in cluster {cluster_id}")
                continue
            members.append(render_identity(worker_id))
        cluster_workers[str(cluster_id)] = members
    return cluster_workers


def _endpoint_url(value: Any) -> str | None:
    if isinstance(value, dict):
        versioned = value.get("V1")
        value = versioned[0] if isinstance(versioned, list) and versioned else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_endpoints(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        raise RegistryUnavailableError("endpoints must be a mapping")

    endpoints: dict[str, str] = {}
    seen: set[str] = set()
    for worker_id, value in raw.items():
        endpoint_url = _endpoint_url(value)
        if endpoint_url is None:
            logger.warning(f"Skipping worker {worker_id}: endpoint entry is malformed")
            continue
        key = normalize_identity(worker_id)
        if key in seen:
            logger.warning(f"Skipping duplicated endpoint entry for worker {worker_id}")
            continue
        seen.add(key)
        endpoints[render_identity(worker_id)] = endpoint_url
    return endpoints
