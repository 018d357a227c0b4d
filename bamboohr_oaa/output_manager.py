"""
Output Manager - Per-run output folders for BambooHR extractions.

Each run writes into one folder named after the run start time, the provider
and the BambooHR namespace:

    {OUTPUT_DIR}/20261019_0930_BambooHR_acme/
        oaa_payload.json         OAA application payload (SAVE_JSON=true)
        extraction_results.json  Run metadata, entity counts, warnings, errors

Folders for this provider older than OUTPUT_RETENTION_DAYS are removed by
run.py before a new run starts. retention_days=0 keeps everything. Folders
belonging to other providers sharing OUTPUT_DIR are left alone.
"""

import json
import re
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from .settings import sanitize_name

PAYLOAD_FILE = "oaa_payload.json"
RESULTS_FILE = "extraction_results.json"

RUN_TIMESTAMP_FORMAT = "%Y%m%d_%H%M"
RUN_DIR_PATTERN = re.compile(r"^(\d{8}_\d{4})_(.+)$")


class OutputManager:
    """Owns the output folder of one extraction run.

    Attributes:
        base_dir: OUTPUT_DIR.
        provider_name: Sanitized provider name used in folder names.
        retention_days: Age in days after which run folders are deleted.
        run_dir: This run's folder, or None until start_run() is called.
    """

    def __init__(self, base_dir: str, provider_name: str, retention_days: int = 30):
        self.base_dir = Path(base_dir)
        self.provider_name = sanitize_name(provider_name)
        self.retention_days = retention_days
        self.run_dir: Optional[Path] = None
        self._started = datetime.now()

    def start_run(self, namespace: str) -> Path:
        """Create the folder for this run of the given namespace."""
        folder = f"{self._started.strftime(RUN_TIMESTAMP_FORMAT)}_{self.provider_name}_{sanitize_name(namespace)}"
        self.run_dir = self.base_dir / folder
        self.run_dir.mkdir(parents=True, exist_ok=True)
        return self.run_dir

    def save_payload(self, payload: Dict[str, Any]) -> str:
        return self._write_json(PAYLOAD_FILE, payload)

    def save_results(self, results: Dict[str, Any]) -> str:
        return self._write_json(RESULTS_FILE, results)

    def _write_json(self, filename: str, data: Dict[str, Any]) -> str:
        if self.run_dir is None:
            raise RuntimeError("No run folder yet. Call start_run() first.")
        path = self.run_dir / filename
        with open(path, "w") as f:
            json.dump(data, f, indent=2, default=str)
        return str(path)

    def cleanup_old_runs(self, debug: bool = False) -> int:
        """Delete this provider's run folders older than retention_days.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0 or not self.base_dir.is_dir():
            return 0

        cutoff = datetime.now() - timedelta(days=self.retention_days)
        deleted = 0

        for path in sorted(self.base_dir.iterdir()):
            started = self._run_started_at(path.name)
            if started is None or started >= cutoff or not path.is_dir():
                continue
            try:
                shutil.rmtree(path)
            except OSError as e:
                print(f"  Warning: Could not delete output folder {path.name}: {e}")
                continue
            deleted += 1
            if debug:
                print(f"  Deleted old output folder: {path.name}")

        return deleted

    def _run_started_at(self, folder_name: str) -> Optional[datetime]:
        match = RUN_DIR_PATTERN.match(folder_name)
        if not match or not match.group(2).startswith(f"{self.provider_name}_"):
            return None
        try:
            return datetime.strptime(match.group(1), RUN_TIMESTAMP_FORMAT)
        except ValueError:
            return None
