"""Tests for core.publisher."""

import json
import os
import threading
from unittest.mock import patch, MagicMock

import pytest
import redis

from config import ConnectorSettings
from core.errors import ConfigurationError, PublishError
from core.output_manager import OutputManager
from core.publisher import JsonFilePublisher, RedisQueuePublisher, build_publisher, encode_payload
from core.response_converter import ContractParty


def _payload(function="ContractPartyData"):
    return {
        "message": [ContractParty(party_id="1001", role_code="1001", main_indicator=True)],
        "function": function,
    }


# ---------------------------------------------------------------------------
# encode_payload
# ---------------------------------------------------------------------------

def test_encode_payload_serializes_records_as_dicts():
    decoded = json.loads(encode_payload(_payload()))
    assert decoded["function"] == "ContractPartyData"
    assert decoded["message"][0]["party_id"] == "1001"
    assert decoded["message"][0]["main_indicator"] is True
    assert decoded["message"][0]["party_name"] is None


# ---------------------------------------------------------------------------
# RedisQueuePublisher
# ---------------------------------------------------------------------------

def test_redis_publisher_pushes_json_onto_queue():
    mock_client = MagicMock()
    with patch("core.publisher.redis.from_url", return_value=mock_client) as mock_from_url:
        publisher = RedisQueuePublisher("redis://localhost:6379/0")
        publisher.send("contract-reads-out", _payload())

    mock_from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
    queue, body = mock_client.rpush.call_args[0]
    assert queue == "contract-reads-out"
    assert json.loads(body)["function"] == "ContractPartyData"
    assert publisher.sent_count == 1


def test_redis_publisher_wraps_redis_errors():
    mock_client = MagicMock()
    mock_client.rpush.side_effect = redis.ConnectionError("connection refused")
    with patch("core.publisher.redis.from_url", return_value=mock_client):
        publisher = RedisQueuePublisher("redis://localhost:6379/0")
        with pytest.raises(PublishError, match="contract-reads-out"):
            publisher.send("contract-reads-out", _payload())
    assert publisher.sent_count == 0


def test_redis_publisher_ping():
    mock_client = MagicMock()
    mock_client.ping.side_effect = redis.ConnectionError("down")
    with patch("core.publisher.redis.from_url", return_value=mock_client):
        assert RedisQueuePublisher("redis://localhost:6379/0").ping() is False
    mock_client.ping.side_effect = None
    mock_client.ping.return_value = True
    with patch("core.publisher.redis.from_url", return_value=mock_client):
        assert RedisQueuePublisher("redis://localhost:6379/0").ping() is True


# ---------------------------------------------------------------------------
# JsonFilePublisher
# ---------------------------------------------------------------------------

def test_file_publisher_writes_numbered_files(tmp_path):
    manager = OutputManager(str(tmp_path), "SAP_Contract_Reads")
    publisher = JsonFilePublisher(manager)

    publisher.send("contract-reads-out", _payload("ContractCollectionData"))
    publisher.send("contract-reads-out", _payload("ContractPartyData"))

    queue_dir = os.path.join(manager.current_dir, "contract-reads-out")
    assert sorted(os.listdir(queue_dir)) == [
        "0001_ContractCollectionData.json",
        "0002_ContractPartyData.json",
    ]
    with open(os.path.join(queue_dir, "0002_ContractPartyData.json")) as f:
        assert json.load(f)["message"][0]["party_id"] == "1001"
    assert publisher.sent_count == 2


def test_file_publisher_numbers_uniquely_across_threads(tmp_path):
    manager = OutputManager(str(tmp_path), "SAP_Contract_Reads")
    publisher = JsonFilePublisher(manager)

    threads = [
        threading.Thread(target=publisher.send, args=("q", _payload(f"Fn{i}")))
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    files = os.listdir(os.path.join(manager.current_dir, "q"))
    assert len(files) == 20
    assert len({name.split("_")[0] for name in files}) == 20


def test_file_publisher_wraps_os_errors(tmp_path):
    manager = OutputManager(str(tmp_path), "SAP_Contract_Reads")
    publisher = JsonFilePublisher(manager)
    with patch("builtins.open", side_effect=PermissionError("read-only")):
        with pytest.raises(PublishError, match="read-only"):
            publisher.send("q", _payload())
    assert publisher.sent_count == 0


# ---------------------------------------------------------------------------
# build_publisher
# ---------------------------------------------------------------------------

def test_build_publisher_dry_run(tmp_path):
    settings = ConnectorSettings(dry_run=True, output_dir=str(tmp_path), retention_days=7)
    publisher = build_publisher(settings)
    assert isinstance(publisher, JsonFilePublisher)
    assert publisher.output_manager.retention_days == 7


def test_build_publisher_live():
    settings = ConnectorSettings(dry_run=False, redis_url="redis://broker:6379/1")
    with patch("core.publisher.redis.from_url", return_value=MagicMock()):
        assert isinstance(build_publisher(settings), RedisQueuePublisher)


def test_build_publisher_live_without_redis_url():
    with pytest.raises(ConfigurationError):
        build_publisher(ConnectorSettings(dry_run=False))


def test_file_publisher_keeps_queue_inside_run_folder(tmp_path):
    manager = OutputManager(str(tmp_path / "output"), "SAP_Contract_Reads")
    publisher = JsonFilePublisher(manager)

    publisher.send("../../escaped/queue", _payload())

    assert os.listdir(manager.current_dir) == ["______escaped_queue"]
    assert not (tmp_path / "escaped").exists()
