"""
Contract Orchestrator - Fans a work request out to concurrent aspect handlers.

dispatch(primary_id, item_id, name, aspects) is the single entry point:

  1. The requested aspect names are resolved against ASPECTS (aliases such
     as "by id" are accepted). Unknown names are dropped, and a name
     requested twice runs once.
  2. One AspectHandler per remaining aspect is submitted to a thread pool
     sized to the number of aspects, each with the key its aspect filters
     on (primary_id, item_id or name).
  3. dispatch() blocks until every handler has finished.

Nothing is returned and nothing is raised for handler failures: each handler
logs its own errors and stops only its own steps, so partial results across
aspects are normal. All publishing happens inside the handlers.

Configuration:
    Everything comes from an explicit ConnectorSettings instance (see
    config/settings.py). ContractOrchestrator.from_env() builds one from
    the environment / .env file.

Typical usage:
    orchestrator = ContractOrchestrator.from_env("./.env")
    if orchestrator.validate_config():
        orchestrator.dispatch("C100", "I200", "Acme", ["ContractCollection"])
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from config import PROXY_ENV_VARS, ConnectorSettings

from .aspect_handlers import ASPECTS, AspectHandler, resolve_aspect
from .publisher import build_publisher
from .sap_client import SAPAPIClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkRequest:
    primary_id: str
    item_id: str
    name: str
    aspects: Tuple[str, ...]

    @classmethod
    def build(cls, primary_id: str, item_id: str, name: str, aspects: Iterable[str]) -> "WorkRequest":
        return cls(primary_id, item_id, name, tuple(dict.fromkeys(aspects)))


class ContractOrchestrator:
    """Coordinates the concurrent aspect handlers for one connector.

    Attributes:
        settings: Connector configuration.
        publisher: Outbound publisher (built from settings on first use).
        client: SAP API client (built from settings on first use).
    """

    def __init__(self, settings: ConnectorSettings, publisher=None, client=None):
        self.settings = settings
        self._publisher = publisher
        self._client = client
        self._handlers: Optional[Dict[str, AspectHandler]] = None

    @classmethod
    def from_env(cls, env_file: str = "./.env") -> "ContractOrchestrator":
        return cls(ConnectorSettings.from_env(env_file))

    @property
    def publisher(self):
        if self._publisher is None:
            self._publisher = build_publisher(self.settings)
        return self._publisher

    @property
    def client(self):
        if self._client is None:
            self._client = SAPAPIClient(
                self.settings.base_url, self.settings.api_key, self.settings.request_timeout
            )
        return self._client

    @property
    def handlers(self) -> Dict[str, AspectHandler]:
        """One handler per defined aspect, keyed by aspect name."""
        if self._handlers is None:
            self._handlers = {
                name: AspectHandler(definition, self.client, self.publisher, self.settings.output_queue)
                for name, definition in ASPECTS.items()
            }
        return self._handlers

    def validate_config(self) -> bool:
        """Print every configuration error and return False if there are any."""
        errors = self.settings.validate()
        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def check_publisher(self) -> bool:
        """Print an error and return False if the live broker does not answer."""
        ping = getattr(self.publisher, "ping", None)
        if ping is not None and not ping():
            print(f"\nCannot reach broker at {self.settings.redis_url}")
            return False
        return True

    def dispatch(self, primary_id: str, item_id: str, name: str, aspects: Iterable[str]) -> None:
        """Run every requested aspect concurrently and wait for all of them."""
        self.dispatch_request(WorkRequest.build(primary_id, item_id, name, aspects))

    def dispatch_request(self, request: WorkRequest) -> None:
        jobs = {}
        for aspect in request.aspects:
            definition = resolve_aspect(aspect)
            if definition is None:
                logger.debug("Ignoring unknown aspect %r", aspect)
                continue
            jobs.setdefault(definition.name, getattr(request, definition.key_field))

        if not jobs:
            return

        with ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="aspect") as executor:
            futures = {
                executor.submit(self.handlers[aspect].execute, key): aspect
                for aspect, key in jobs.items()
            }
            wait(futures)

        for future, aspect in futures.items():
            exc = future.exception()
            if exc is not None:
                logger.error("Aspect %s failed unexpectedly: %s", aspect, exc, exc_info=exc)

    def print_proxy_status(self):
        """Print proxy configuration status (credentials masked)."""
        proxy_config = {}
        for var in PROXY_ENV_VARS:
            value = os.getenv(var)
            if value:
                if '@' in value:
                    value = f"***@{value.split('@')[-1]}"
                proxy_config[var] = value

        if proxy_config:
            print("Proxy configuration:")
            for var, value in proxy_config.items():
                print(f"  {var}={value}")
        elif self.settings.debug:
            print("Proxy: Not configured (direct connection)")
