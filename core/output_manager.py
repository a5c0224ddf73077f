"""
Output Manager - Timestamped run folders for dry-run publishing.

In dry-run mode every published message is written to disk instead of the
broker. Each run gets its own folder under the base output directory named
YYYYMMDD_HHMM_{connector_name} (e.g., "20261018_0930_SAP_Contract_Reads"),
with one sub-folder per outbound queue:

    output/
      20261018_0930_SAP_Contract_Reads/
        sap-api-integrations-contract-reads-queue/
          0001_ContractCollectionData.json
          0002_ContractExternalPriceComponentData.json

Folders older than retention_days are removed by cleanup_old_folders(), which
run.py calls before dispatching. retention_days=0 keeps everything.
"""

import logging
import os
import re
import shutil
from datetime import datetime, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

FOLDER_PATTERN = re.compile(r'^(\d{8})_(\d{4})_.*$')


def safe_name(value: str) -> str:
    """Reduce value to a single path segment of alphanumerics, '-' and '_'."""
    return "".join(c if c.isalnum() or c in '-_' else '_' for c in value)


class OutputManager:
    """Creates the per-run output folder and prunes old ones.

    Attributes:
        base_dir: Root output directory (default: ./output).
        connector_name: Used in folder naming (sanitized to alphanumeric, '-' and '_').
        retention_days: Delete folders older than this many days (0 = keep forever).
        current_dir: Path to the current run's folder (None until created).
    """

    def __init__(self, base_dir: str, connector_name: str, retention_days: int = 30):
        self.base_dir = base_dir
        self.connector_name = connector_name
        self.retention_days = retention_days
        self.current_dir: Optional[str] = None
        self._run_timestamp = datetime.now()

    def create_timestamped_dir(self) -> str:
        """Create (if needed) and return this run's output folder."""
        timestamp = self._run_timestamp.strftime("%Y%m%d_%H%M")
        self.current_dir = os.path.join(self.base_dir, f"{timestamp}_{safe_name(self.connector_name)}")
        os.makedirs(self.current_dir, exist_ok=True)
        return self.current_dir

    def cleanup_old_folders(self) -> int:
        """Remove run folders older than retention_days.

        Only folders matching the YYYYMMDD_HHMM_* pattern are considered.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0 or not os.path.isdir(self.base_dir):
            return 0

        deleted_count = 0
        cutoff_date = datetime.now() - timedelta(days=self.retention_days)

        for folder_name in os.listdir(self.base_dir):
            folder_path = os.path.join(self.base_dir, folder_name)
            match = FOLDER_PATTERN.match(folder_name)
            if not match or not os.path.isdir(folder_path):
                continue

            try:
                folder_datetime = datetime.strptime(
                    f"{match.group(1)}_{match.group(2)}", "%Y%m%d_%H%M"
                )
                if folder_datetime < cutoff_date:
                    shutil.rmtree(folder_path)
                    deleted_count += 1
                    logger.debug("Deleted old output folder: %s", folder_name)
            except (ValueError, OSError) as e:
                logger.warning("Could not process output folder %s: %s", folder_name, e)

        return deleted_count

    def get_output_path(self, *parts: str) -> str:
        """Resolve a path inside the current run folder, creating parent folders.

        Raises:
            RuntimeError: If create_timestamped_dir() has not been called yet.
        """
        if not self.current_dir:
            raise RuntimeError("Output directory not created. Call create_timestamped_dir() first.")
        path = os.path.join(self.current_dir, *parts)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        return path
