"""
Settings - Default configuration values for the SAP contract reads connector.

DEFAULT_SETTINGS provides the fallback values used when environment variables
are not set. The actual configuration is loaded from .env at runtime by
ConnectorSettings.from_env(); these defaults let the connector run a dry run
out of the box.

Configuration precedence (highest to lowest):
  1. CLI flags (--dry-run, --push, --debug)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  SAP_BASE_URL            OData service root, e.g. "https://my000000.crm.ondemand.com/sap/c4c/odata/v1"
  SAP_API_KEY             API key sent in the APIKey header
  SAP_API_KEY_FILE        File holding the API key (used when SAP_API_KEY is empty)
  OUTPUT_QUEUES           Comma-separated outbound queues; the first one receives every message
  REDIS_URL               Broker used for live publishing (not needed in dry-run mode)
  DRY_RUN                 Write messages to timestamped JSON files instead of the broker
  OUTPUT_DIR              Root directory for dry-run output (default: ./output)
  OUTPUT_RETENTION_DAYS   How many days to keep old output folders (0 = keep forever)
  CONNECTOR_NAME          Label used in output folder naming
  REQUEST_TIMEOUT         Seconds to wait on SAP before giving up (0 = wait forever)
  DEBUG                   Verbose logging
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

CONNECTOR_NAME = "SAP_Contract_Reads"

DEFAULT_SETTINGS = {
    "CONNECTOR_NAME": CONNECTOR_NAME,
    "OUTPUT_QUEUES": "sap-api-integrations-contract-reads-queue",
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "DRY_RUN": True,
    "DEBUG": False,
    "REQUEST_TIMEOUT": 0,
}

PROXY_ENV_VARS = [
    "HTTP_PROXY", "HTTPS_PROXY", "http_proxy", "https_proxy",
    "NO_PROXY", "no_proxy",
]


def _env_bool(name: str) -> bool:
    return os.getenv(name, str(DEFAULT_SETTINGS[name])).lower() == "true"


def _env_number(name: str, cast):
    raw = os.getenv(name, "").strip()
    return cast(raw) if raw else cast(DEFAULT_SETTINGS[name])


def _split_queues(raw: str) -> List[str]:
    return [q.strip() for q in raw.split(",") if q.strip()]


def get_api_key(api_key: str = "", api_key_file: str = "") -> str:
    """Resolve the SAP API key.

    An inline key wins. Otherwise the key is read from api_key_file, with
    surrounding whitespace stripped. Returns "" when neither is available.
    """
    if api_key:
        return api_key
    if api_key_file:
        path = Path(api_key_file)
        if path.exists():
            return path.read_text().strip()
    return ""


@dataclass
class ConnectorSettings:
    """Explicit configuration handed to the orchestrator and its collaborators.

    Attributes:
        base_url: SAP OData service root (trailing slash stripped).
        api_key: Value of the APIKey header.
        output_queues: Outbound queue names; only the first is used.
        redis_url: Broker URL for live publishing.
        dry_run: Publish to JSON files instead of the broker.
        output_dir: Root directory for dry-run output.
        retention_days: Days to keep old output folders (0 = forever).
        connector_name: Label used in output folder naming.
        request_timeout: Seconds before an SAP call is abandoned (None = no timeout).
        debug: Verbose logging.
    """

    base_url: str = ""
    api_key: str = ""
    output_queues: List[str] = field(default_factory=list)
    redis_url: str = ""
    dry_run: bool = True
    output_dir: str = DEFAULT_SETTINGS["OUTPUT_DIR"]
    retention_days: int = DEFAULT_SETTINGS["OUTPUT_RETENTION_DAYS"]
    connector_name: str = CONNECTOR_NAME
    request_timeout: Optional[float] = None
    debug: bool = False

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls, env_file: str = "./.env") -> "ConnectorSettings":
        """Build settings from the environment, loading env_file first if it exists.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        timeout = _env_number("REQUEST_TIMEOUT", float)

        return cls(
            base_url=os.getenv("SAP_BASE_URL", ""),
            api_key=get_api_key(os.getenv("SAP_API_KEY", ""), os.getenv("SAP_API_KEY_FILE", "")),
            output_queues=_split_queues(os.getenv("OUTPUT_QUEUES", DEFAULT_SETTINGS["OUTPUT_QUEUES"])),
            redis_url=os.getenv("REDIS_URL", ""),
            dry_run=_env_bool("DRY_RUN"),
            output_dir=os.getenv("OUTPUT_DIR", DEFAULT_SETTINGS["OUTPUT_DIR"]),
            retention_days=_env_number("OUTPUT_RETENTION_DAYS", int),
            connector_name=os.getenv("CONNECTOR_NAME", DEFAULT_SETTINGS["CONNECTOR_NAME"]),
            request_timeout=timeout if timeout > 0 else None,
            debug=_env_bool("DEBUG"),
        )

    @property
    def output_queue(self) -> str:
        """The queue every message is sent to."""
        return self.output_queues[0] if self.output_queues else ""

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty when valid)."""
        errors = []
        if not self.base_url:
            errors.append("SAP_BASE_URL is required")
        if not self.api_key:
            errors.append("SAP_API_KEY (or a readable SAP_API_KEY_FILE) is required")
        if not self.output_queues:
            errors.append("OUTPUT_QUEUES must name at least one queue")
        if not self.dry_run and not self.redis_url:
            errors.append("REDIS_URL is required when DRY_RUN is false")
        return errors
