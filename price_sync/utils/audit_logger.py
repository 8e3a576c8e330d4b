"""Audit Logger for Price Transmissions

Keeps stage records for every transmitted price feed and a summary line per
sync run, as JSON lines files rolled daily.
"""

import json
from datetime import datetime
from typing import Dict, List, Optional, Any
from pathlib import Path
import threading

from ..core.models import StageMessage


class PricingAuditLogger:
    """Manages audit records for price feed transmissions"""

    def __init__(self, log_directory: str = "pricing_logs"):
        """Initialize audit logger with log directory"""
        self.log_directory = Path(log_directory)
        self.log_directory.mkdir(parents=True, exist_ok=True)

        self.stages_dir = self.log_directory / "stages"
        self.stages_dir.mkdir(exist_ok=True)

        self._lock = threading.Lock()

    def _stage_log(self, when: Optional[datetime] = None) -> Path:
        day = (when or datetime.now()).strftime("%Y-%m-%d")
        return self.stages_dir / f"stages_{day}.jsonl"

    def _append(self, path: Path, entry: Dict[str, Any]):
        with self._lock:
            with open(path, 'a') as f:
                f.write(json.dumps(entry, default=str) + '\n')

    def log_stage(self, stage: StageMessage) -> str:
        """Log a stage record, returning its log id"""
        log_entry = {
            'log_id': self._generate_log_id('STAGE'),
            'timestamp': datetime.now().isoformat(),
            'version': '1.0',
            **stage.to_dict()
        }
        self._append(self._stage_log(), log_entry)
        return log_entry['log_id']

    def log_success(self, stage: StageMessage, blob_uri: str) -> str:
        stage.data = blob_uri
        stage.status = "COMPLETED"
        stage.overall_status = "IN_PROGRESS"
        stage.error = None
        stage.ended_at = datetime.now()
        return self.log_stage(stage)

    def log_error(self, stage: StageMessage, error: Exception) -> str:
        stage.status = "FAILED"
        stage.overall_status = "FAILED"
        stage.error = f"{type(error).__name__}: {error}"
        stage.ended_at = datetime.now()
        return self.log_stage(stage)

    def log_batch_run(self, run_id: str, summary: Dict):
        """Log summary of a sync run"""
        batch_log = self.log_directory / "batch_runs.jsonl"

        entry = {
            'run_id': run_id,
            'timestamp': datetime.now().isoformat(),
            'summary': summary
        }
        self._append(batch_log, entry)

    def _generate_log_id(self, prefix: str = 'STAGE') -> str:
        """Generate unique log ID"""
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        return f"{prefix}_{timestamp}"

    def query_stages(self,
                     transaction_id: Optional[str] = None,
                     date: Optional[datetime] = None) -> List[Dict]:
        """Stage records of one day, optionally for one transaction"""
        log_file = self._stage_log(date)
        results = []

        if not log_file.exists():
            return results

        with open(log_file, 'r') as f:
            for line in f:
                entry = json.loads(line)
                if transaction_id and entry.get('Transaction_Id') != transaction_id:
                    continue
                results.append(entry)

        return results
