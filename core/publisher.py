"""
Publishers - Deliver converted records to the outbound queue.

Every publisher implements one method:

    send(queue: str, payload: dict) -> None

where payload always has the shape {"message": [records...], "function": "<Tag>"}.
Records are dataclasses and are serialized with dataclasses.asdict().

Two implementations are provided:

  RedisQueuePublisher   Live mode. RPUSHes the JSON payload onto a Redis list
                        named after the queue; consumers BLPOP from it.
  JsonFilePublisher     Dry-run mode. Writes each payload as a numbered JSON
                        file under the current run's output folder.

Both are safe to share between the aspect handlers running concurrently: the
redis-py client is backed by a thread-safe connection pool and the file
publisher numbers its files under a lock.

Failures are raised as PublishError so the calling handler can stop its
remaining steps.
"""

import dataclasses
import json
import logging
import threading
from typing import Any, Dict

import redis

from .errors import ConfigurationError, PublishError
from .output_manager import OutputManager, safe_name

logger = logging.getLogger(__name__)


def _encode_default(value: Any):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return str(value)


def encode_payload(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, default=_encode_default)


class _CountingPublisher:
    """Keeps a thread-safe count of delivered messages."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sent = 0

    @property
    def sent_count(self) -> int:
        with self._lock:
            return self._sent

    def _next_sequence(self) -> int:
        with self._lock:
            self._sent += 1
            return self._sent


class RedisQueuePublisher(_CountingPublisher):
    """Publishes payloads onto Redis lists."""

    def __init__(self, url: str):
        super().__init__()
        self.url = url
        self._client = redis.from_url(url, decode_responses=True)

    def send(self, queue: str, payload: Dict[str, Any]) -> None:
        body = encode_payload(payload)
        try:
            self._client.rpush(queue, body)
        except redis.RedisError as e:
            raise PublishError(f"publish to {queue} failed: {e}") from e
        self._next_sequence()

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False


class JsonFilePublisher(_CountingPublisher):
    """Writes payloads to {run folder}/{queue}/{NNNN}_{function}.json.

    Queue and function names are reduced to single path segments with
    safe_name(), so a queue such as "../x" stays inside the run folder.
    """

    def __init__(self, output_manager: OutputManager):
        super().__init__()
        self.output_manager = output_manager

    def send(self, queue: str, payload: Dict[str, Any]) -> None:
        body = encode_payload(payload)
        with self._lock:
            sequence = self._sent + 1
            filename = f"{sequence:04d}_{safe_name(payload.get('function', 'message'))}.json"
            try:
                if not self.output_manager.current_dir:
                    self.output_manager.create_timestamped_dir()
                path = self.output_manager.get_output_path(safe_name(queue), filename)
                with open(path, "w") as f:
                    f.write(body)
            except OSError as e:
                raise PublishError(f"publish to {queue} failed: {e}") from e
            self._sent = sequence
        logger.debug("Wrote %s", path)


def build_publisher(settings):
    """Pick the publisher for the configured mode.

    Raises:
        ConfigurationError: If live mode is requested without REDIS_URL.
    """
    if settings.dry_run:
        output_manager = OutputManager(
            settings.output_dir, settings.connector_name, settings.retention_days
        )
        return JsonFilePublisher(output_manager)
    if not settings.redis_url:
        raise ConfigurationError("REDIS_URL is required when DRY_RUN is false")
    return RedisQueuePublisher(settings.redis_url)
