"""Async facade over the embedding worker.

Requests carry a uuid correlation id; responses are matched by id, not
by send order. Requests made before the worker reports "ready" are
rejected immediately instead of queued.
"""

import threading
import uuid
from concurrent.futures import Future, InvalidStateError
from typing import Any, Callable, Dict, Optional

from runtime.worker import STATUS_FAILED, STATUS_READY, EmbeddingWorker, Message
from state import config
from state.errors import EmbeddingProviderError

WorkerFactory = Callable[[Callable[[Message], None]], Any]


class WorkerManager:
    """Owns one worker and the futures of its pending requests."""
    
    def __init__(
        self,
        model_name: str = config.DEFAULT_EMBEDDING_MODEL,
        worker_factory: Optional[WorkerFactory] = None
    ) -> None:
        """Start a worker and send it INIT.
        
        Args:
            model_name: Model the worker should load.
            worker_factory: Builds a worker given the on_message callback.
                The worker must expose start(), post_message() and
                terminate(). Defaults to EmbeddingWorker.
        """
        self.model_name = model_name
        self._lock = threading.Lock()
        self._pending: Dict[str, Future] = {}
        self._status: Optional[str] = None
        self._status_changed = threading.Event()
        self._closed = False
        
        factory = worker_factory or (lambda on_message: EmbeddingWorker(on_message))
        self._worker = factory(self._on_message)
        self._worker.start()
        self._worker.post_message({"type": "INIT", "modelName": model_name})
    
    @property
    def status(self) -> Optional[str]:
        return self._status
    
    @property
    def is_ready(self) -> bool:
        return self._status == STATUS_READY
    
    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
    
    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker reports ready or failed.
        
        Returns:
            True if ready, False if failed or timed out.
        """
        while not self.is_ready and self._status != STATUS_FAILED:
            if not self._status_changed.wait(timeout):
                break
            self._status_changed.clear()
        return self.is_ready
    
    def get_embedding(self, text: str) -> Future:
        """Request an embedding for text.
        
        Args:
            text: Event text.
            
        Returns:
            Future resolving to list[float], or failing with
            EmbeddingProviderError. Fails immediately if the worker is
            not ready.
        """
        future: Future = Future()
        request_id = str(uuid.uuid4())
        # Checked under the lock so close() cannot clear pending in between
        with self._lock:
            if self._closed or not self.is_ready:
                future.set_exception(EmbeddingProviderError("Worker is not ready"))
                return future
            self._pending[request_id] = future
        # A cancelled request is dropped; its late response is ignored
        future.add_done_callback(lambda done, rid=request_id: self._drop(rid))
        self._worker.post_message({"type": "EMBED", "id": request_id, "text": text})
        return future
    
    def embed_text(self, text: str, timeout: Optional[float] = None) -> list[float]:
        """Blocking form of get_embedding, usable as an embedding source."""
        return self.get_embedding(text).result(timeout)
    
    def close(self) -> None:
        """Terminate the worker and fail every pending request."""
        with self._lock:
            self._closed = True
        self._worker.terminate()
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for future in pending:
            _settle(future, error=EmbeddingProviderError("Worker closed"))
    
    def _drop(self, request_id: str) -> None:
        with self._lock:
            self._pending.pop(request_id, None)
    
    def _on_message(self, message: Message) -> None:
        if message.get("type") == "STATUS":
            self._status = message.get("status")
            self._status_changed.set()
            return
        if message.get("type") == "PROGRESS":
            return
        
        with self._lock:
            future = self._pending.pop(message.get("id"), None)
        if future is None:
            return
        
        error = message.get("error")
        vector = message.get("vector")
        if error is not None:
            _settle(future, error=EmbeddingProviderError(error, cause=error))
        elif vector is not None:
            _settle(future, result=vector)
        else:
            _settle(
                future,
                error=EmbeddingProviderError("Worker returned null vector without an error message")
            )


def _settle(future: Future, result: Any = None, error: Optional[BaseException] = None) -> None:
    """Resolve or fail a future unless the caller already cancelled it."""
    try:
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)
    except InvalidStateError:
        pass
