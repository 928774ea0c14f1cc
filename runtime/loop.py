"""Runtime loop feeding an event stream through the semantic state engine."""

import argparse
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from runtime.logger import StateLogger
from runtime.schema_loader import load_state_record_validator, validate_or_error
from runtime.tracker import SemanticStateTracker
from runtime.worker import DETERMINISTIC_PREFIX
from runtime.worker_manager import WorkerManager
from state import config
from state.engine import Float32StateEngine, StateEngine
from state.errors import DimensionMismatchError, EmbeddingProviderError

DEMO_EVENTS = [
    "opened checkout page",
    "entered shipping address",
    "selected express shipping",
    "entered payment card",
    "opened help center",
    "searched refund policy",
    "opened chat with support",
    "returned to checkout page",
]


class SteppingClock:
    """Simulated millisecond clock advancing a fixed interval per tick."""
    
    def __init__(self, start_ms: float = 0.0, interval_ms: float = 250.0) -> None:
        self.now_ms = start_ms
        self.interval_ms = interval_ms
    
    def __call__(self) -> float:
        return self.now_ms
    
    def tick(self) -> float:
        self.now_ms += self.interval_ms
        return self.now_ms


def build_engine(kernel: str, alpha: float, drift_threshold: float) -> StateEngine:
    """Create an engine for the named numeric kernel ("python" or "float32")."""
    if kernel == "float32":
        return Float32StateEngine(alpha=alpha, drift_threshold=drift_threshold)
    return StateEngine(alpha=alpha, drift_threshold=drift_threshold)


def load_events(path: Optional[str]) -> List[str]:
    """Read one event per non-blank line, or return the demo events."""
    if path is None:
        return list(DEMO_EVENTS)
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def run_self_check() -> None:
    """Run self-check of engine behavior on both kernels.
    
    Tests:
    - First update fuses against zero and never reports drift
    - Orthogonal second update is detected as drift with score ~1
    - Identical second update is not drift
    - Health decays with age alone
    - Wrong dimensions are rejected without mutating state
    """
    print("Running self-check...")
    
    for kernel in ("python", "float32"):
        # Scenario 1: baseline then orthogonal update
        engine = build_engine(kernel, alpha=0.5, drift_threshold=0.75)
        first = engine.update([1.0, 0.0, 0.0, 0.0], 1000.0)
        assert not first.drift_detected, "Baseline must not report drift"
        assert first.drift_score == 0.0, "Baseline drift score must be 0"
        assert abs(engine.snapshot(1000.0).vector[0] - 0.5) < config.PARITY_TOLERANCE
        
        second = engine.update([0.0, 1.0, 0.0, 0.0], 1000.0)
        expected = [0.25, 0.5, 0.0, 0.0]
        actual = engine.snapshot(1000.0).vector
        assert second.drift_detected, "Orthogonal update must report drift"
        assert abs(second.drift_score - 1.0) < config.PARITY_TOLERANCE
        assert all(abs(a - e) < config.PARITY_TOLERANCE for a, e in zip(actual, expected)), \
            f"EMA state incorrect: {actual}"
        print(f"[PASS] {kernel}: baseline and orthogonal drift")
        
        # Scenario 2: identical update
        engine = build_engine(kernel, alpha=0.5, drift_threshold=0.75)
        engine.update([1.0, 0.0, 0.0, 0.0], 1000.0)
        same = engine.update([1.0, 0.0, 0.0, 0.0], 1000.0)
        assert not same.drift_detected, "Identical update must not report drift"
        assert abs(same.drift_score) < config.PARITY_TOLERANCE
        print(f"[PASS] {kernel}: identical update is stable")
        
        # Scenario 3: age decay
        engine = build_engine(kernel, alpha=0.5, drift_threshold=0.75)
        engine.update([1.0, 0.0, 0.0, 0.0], 1000.0)
        assert engine.snapshot(6000.0).health_score < engine.snapshot(1000.0).health_score, \
            "Health must decay with age"
        print(f"[PASS] {kernel}: health decays with age")
        
        # Scenario 4: dimension guard
        before = engine.snapshot(1000.0)
        try:
            engine.update([1.0, 0.0], 2000.0)
        except DimensionMismatchError:
            pass
        else:
            raise AssertionError("2-dim update after 4-dim baseline must fail")
        assert engine.snapshot(1000.0) == before, "Failed update must not mutate state"
        print(f"[PASS] {kernel}: dimension guard")
    
    print("All self-checks passed!")


def main() -> None:
    """Main runtime loop."""
    parser = argparse.ArgumentParser(description="Semantic state estimation over an event stream")
    parser.add_argument("--events", type=str, default=None, help="File with one event text per line")
    parser.add_argument("--alpha", type=float, default=config.DEFAULT_ALPHA, help="EMA factor in (0, 1]")
    parser.add_argument("--drift-threshold", type=float, default=config.DEFAULT_DRIFT_THRESHOLD,
                        help="Cosine similarity below which drift is reported")
    parser.add_argument("--backend", choices=["deterministic", "ollama"], default="deterministic",
                        help="Embedding backend")
    parser.add_argument("--model", type=str, default=config.DEFAULT_EMBEDDING_MODEL,
                        help="Ollama embedding model (ollama backend only)")
    parser.add_argument("--kernel", choices=["python", "float32"], default="python",
                        help="Numeric kernel for the state engine")
    parser.add_argument("--interval-ms", type=float, default=250.0,
                        help="Simulated milliseconds between events")
    parser.add_argument("--log-dir", type=str, default="logs", help="Directory for state.jsonl")
    parser.add_argument("--self-check", action="store_true", help="Run self-check tests and exit")
    args = parser.parse_args()
    
    if args.self_check:
        run_self_check()
        return
    
    events = load_events(args.events)
    model_name = DETERMINISTIC_PREFIX if args.backend == "deterministic" else args.model
    
    # Initialize components
    validator = load_state_record_validator()
    engine = build_engine(args.kernel, args.alpha, args.drift_threshold)
    clock = SteppingClock(start_ms=time.time() * 1000.0, interval_ms=args.interval_ms)
    manager = WorkerManager(model_name=model_name)
    if not manager.wait_until_ready(timeout=60.0):
        manager.close()
        raise RuntimeError(f"Embedding worker failed to load model {model_name!r}")
    
    failures: List[EmbeddingProviderError] = []
    tracker = SemanticStateTracker(engine, manager, on_error=failures.append, clock=clock)
    logger = StateLogger(log_dir=args.log_dir)
    
    try:
        for step_id, text in enumerate(events):
            clock.tick()
            embed_start = time.perf_counter()
            result = tracker.update(text)
            meta: Dict[str, Any] = {
                "event_text": text,
                "backend": args.backend,
                "kernel": args.kernel,
                "latency_ms": (time.perf_counter() - embed_start) * 1000
            }
            
            if result is None:
                print(f"Step {step_id}: EMBED_FAIL | {failures[-1]}")
                continue
            
            snapshot = tracker.snapshot()
            record = {"result": result.to_dict(), "snapshot": snapshot.to_dict()}
            is_valid, error = validate_or_error(validator, record)
            if not is_valid:
                raise RuntimeError(f"State record is invalid: {error}")
            
            logger.log_update(step_id, result, snapshot, meta)
            
            drift_flag = "DRIFT" if result.drift_detected else "ok"
            print(f"Step {step_id}: drift={result.drift_score:.3f} ({drift_flag}) | "
                  f"health={snapshot.health_score:.3f} | State={snapshot.semantic_summary}")
    finally:
        logger.close()
        manager.close()
    
    print(f"Logged {len(events) - len(failures)} updates to {Path(logger.log_file)}")


if __name__ == "__main__":
    main()
