"""Tests for the JSONL state logger."""

import json

from runtime.logger import StateLogger
from runtime.schema_loader import load_state_record_validator, validate_or_error
from state.engine import StateEngine


def _read_lines(path):
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def test_log_update_writes_record(tmp_path):
    """Test one JSON line per logged update."""
    engine = StateEngine(alpha=0.5, drift_threshold=0.75)
    result = engine.update([1.0, 0.0], 1000.0)
    snapshot = engine.snapshot(1000.0)
    
    logger = StateLogger(log_dir=str(tmp_path / "logs"))
    logger.log_update(0, result, snapshot, {"event_text": "opened page", "path": tmp_path})
    logger.close()
    
    records = _read_lines(tmp_path / "logs" / "state.jsonl")
    assert len(records) == 1
    record = records[0]
    assert record["step_id"] == 0
    assert record["event_type"] == "UPDATE"
    assert record["timestamp"].endswith("Z")
    assert record["result"] == {"driftDetected": False, "driftScore": 0.0, "vector": [1.0, 0.0]}
    assert record["snapshot"]["semanticSummary"] == "stable"
    assert record["meta"]["path"] == str(tmp_path)
    
    is_valid, error = validate_or_error(load_state_record_validator(), record)
    assert is_valid, error


def test_attach_logs_every_update(tmp_path):
    """Test the logger can follow an engine as a subscriber."""
    engine = StateEngine(alpha=0.5, drift_threshold=0.75)
    logger = StateLogger(log_dir=str(tmp_path), filename="attached.jsonl")
    detach = logger.attach(engine, clock=lambda: 2000.0)
    
    engine.update([1.0, 0.0], 1000.0)
    engine.update([0.0, 1.0], 1500.0)
    detach()
    engine.update([0.0, 1.0], 1600.0)
    logger.close()
    
    records = _read_lines(tmp_path / "attached.jsonl")
    assert [r["step_id"] for r in records] == [0, 1]
    assert records[1]["result"]["driftDetected"] is True
    assert records[1]["snapshot"]["timestamp"] == 1500.0


def test_appends_across_instances(tmp_path):
    """Test the log file is appended, not truncated."""
    engine = StateEngine(alpha=0.5, drift_threshold=0.75)
    result = engine.update([1.0], 0.0)
    
    for _ in range(2):
        logger = StateLogger(log_dir=str(tmp_path))
        logger.log_update(0, result, engine.snapshot(0.0))
        logger.close()
    
    assert len(_read_lines(tmp_path / "state.jsonl")) == 2
