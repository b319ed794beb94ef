"""
Tests for registry snapshot parsing and identity helpers
"""

import json

import pytest

from fleet_diagnostics.storage.file_registry import JsonFileRegistry, is_file_address
from shared.exceptions import RegistryUnavailableError
from shared.services.snapshot_parser import parse_snapshot
from shared.utils.identity import identities_match, normalize_identity, render_identity


def test_parse_full_snapshot():
    snapshot = parse_snapshot(
        {
            "reference_height": 1234,
            "cluster_workers": {"0xc1": ["0xaa", "0xbb"]},
            "endpoints": {"0xaa": "http://a:8000", "0xbb": {"V1": ["http://b:8000"]}},
        }
    )

    assert snapshot.reference_height == 1234
    assert snapshot.cluster_workers == {"0xc1": ["0xaa", "0xbb"]}
    assert snapshot.endpoints == {"0xaa": "http://a:8000", "0xbb": "http://b:8000"}
    assert snapshot.total_workers == 2
    assert [(p.worker_id, p.endpoint_url) for p in snapshot.endpoint_pairs()] == [
        ("0xaa", "http://a:8000"),
        ("0xbb", "http://b:8000"),
    ]


def test_malformed_endpoints_are_skipped():
    snapshot = parse_snapshot(
        {
            "reference_height": 1,
            "endpoints": {
                "0xaa": "",
                "0xbb": None,
                "0xcc": {"V1": []},
                "0xdd": 42,
                "0xee": " http://e:8000 ",
            },
        }
    )

    assert snapshot.endpoints == {"0xee": "http://e:8000"}


def test_duplicate_endpoint_identity_keeps_first():
    snapshot = parse_snapshot(
        {"reference_height": 1, "endpoints": {"0xAA": "http://1", "aa": "http://2"}}
    )

    assert snapshot.endpoints == {"0xAA": "http://1"}


def test_malformed_members_are_skipped():
    snapshot = parse_snapshot(
        {
            "reference_height": 1,
            "cluster_workers": {"c1": ["aa", "", 7], "c2": "not a list"},
        }
    )

    assert snapshot.cluster_workers == {"c1": ["0xaa"], "c2": []}


@pytest.mark.parametrize("height, expected", [(10, 10), (10.0, 10), ("0x10", 16), ("42", 42)])
def test_reference_height_forms(height, expected):
    assert parse_snapshot({"reference_height": height}).reference_height == expected


@pytest.mark.parametrize("height", [None, True, "tall", 1.5])
def test_invalid_reference_height_is_fatal(height):
    with pytest.raises(RegistryUnavailableError):
        parse_snapshot({"reference_height": height})


def test_non_mapping_document_is_fatal():
    with pytest.raises(RegistryUnavailableError):
        parse_snapshot(["not", "a", "mapping"])


def test_identity_helpers():
    assert render_identity(b"\x01\xab") == "0x01ab"
    assert render_identity("01AB") == "0x01AB"
    assert normalize_identity("0x01AB") == "01ab"
    assert identities_match(b"\x01\xab", "0X01Ab")
    assert not identities_match("0x01", "0x02")


def test_is_file_address():
    assert is_file_address("file:///tmp/snapshot")
    assert is_file_address("snapshot.json")
    assert not is_file_address("registry:50051")


async def test_file_registry_reads_snapshot(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(
            {
                "reference_height": 5,
                "cluster_workers": {"c1": ["0xaa"]},
                "endpoints": {"0xaa": "http://a"},
            }
        )
    )

    snapshot = await JsonFileRegistry(f"file://{path}").fetch_snapshot()

    assert snapshot.reference_height == 5
    assert snapshot.endpoints == {"0xaa": "http://a"}


async def test_file_registry_missing_file(tmp_path):
    with pytest.raises(RegistryUnavailableError):
        await JsonFileRegistry(str(tmp_path / "missing.json")).fetch_snapshot()


async def test_file_registry_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(RegistryUnavailableError):
        await JsonFileRegistry(str(path)).fetch_snapshot()
