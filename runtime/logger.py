"""State logger writing one JSONL record per engine update."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from state.types import Snapshot, StateCore, UpdateResult


class StateLogger:
    """Logger that appends update records to a JSONL file."""
    
    def __init__(self, log_dir: str = "logs", filename: str = "state.jsonl") -> None:
        """Initialize logger and create the log directory if needed.
        
        Args:
            log_dir: Directory for the log file.
            filename: Log file name inside log_dir.
        """
        logs_dir = Path(log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        
        self.log_file = logs_dir / filename
        self._file = open(self.log_file, "a", encoding="utf-8")
        self._next_step = 0
    
    def log_update(
        self,
        step_id: int,
        result: UpdateResult,
        snapshot: Snapshot,
        meta: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log a single update.
        
        Args:
            step_id: Step identifier.
            result: Result returned by the engine update.
            snapshot: Snapshot taken after the update.
            meta: Extra metadata (latencies, event text, backend).
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "step_id": step_id,
            "event_type": "UPDATE",
            "result": self._serialize(result),
            "snapshot": self._serialize(snapshot),
            "meta": self._serialize(meta or {})
        }
        
        self._file.write(json.dumps(log_entry, ensure_ascii=False) + "\n")
        self._file.flush()
        self._next_step = step_id + 1
    
    def attach(self, core: StateCore, clock: Callable[[], float]) -> Callable[[], None]:
        """Log every update of core, snapshotting at clock().
        
        Returns:
            Disposer that detaches the logger.
        """
        def on_update(result: UpdateResult) -> None:
            self.log_update(self._next_step, result, core.snapshot(clock()))
        
        return core.subscribe(on_update)
    
    def _serialize(self, obj: Any) -> Any:
        """Convert results, snapshots, paths and datetimes to JSON types."""
        if isinstance(obj, (UpdateResult, Snapshot)):
            return obj.to_dict()
        elif isinstance(obj, (Path, datetime)):
            return str(obj)
        elif isinstance(obj, dict):
            return {k: self._serialize(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._serialize(item) for item in obj]
        else:
            return obj
    
    def close(self) -> None:
        if self._file and not self._file.closed:
            self._file.close()
    
    def __del__(self) -> None:
        """Close file on deletion."""
        if hasattr(self, "_file"):
            self.close()
