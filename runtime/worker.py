"""Background embedding worker.

Runs an embedder on its own thread and talks to its owner only through
messages, mirroring an isolated worker context:

Incoming:
    {"type": "INIT", "modelName": str}
    {"type": "EMBED", "id": str, "text": str}
    {"type": "STOP"}
Outgoing:
    {"type": "STATUS", "status": "loading" | "ready" | "failed"}
    {"id": str, "vector": list[float]}
    {"id": str, "vector": None, "error": str}
"""

import queue
import threading
from typing import Any, Callable, Dict, Optional

from embedding.cache import EmbedderCache
from embedding.deterministic import DeterministicEmbedder
from embedding.ollama import OllamaEmbeddingClient
from state import config

Message = Dict[str, Any]

STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_FAILED = "failed"

DETERMINISTIC_PREFIX = "deterministic"


def make_embedder(model_name: str) -> Any:
    """Build an embedder from a model name.
    
    "deterministic" or "deterministic:<dim>" selects the offline
    DeterministicEmbedder; any other name is an Ollama model.
    
    Args:
        model_name: Model identity.
        
    Returns:
        Object exposing embed_text(text) -> list[float].
    """
    if model_name == DETERMINISTIC_PREFIX:
        return DeterministicEmbedder()
    if model_name.startswith(DETERMINISTIC_PREFIX + ":"):
        return DeterministicEmbedder(dim=int(model_name.split(":", 1)[1]))
    return OllamaEmbeddingClient(model=model_name)


class EmbeddingWorker:
    """Thread that serves INIT/EMBED messages one at a time."""
    
    def __init__(
        self,
        on_message: Callable[[Message], None],
        embedder_factory: Callable[[str], Any] = make_embedder,
        cache: Optional[EmbedderCache] = None
    ) -> None:
        """Initialize worker (not started).
        
        Args:
            on_message: Receives every outgoing message, on the worker thread.
            embedder_factory: Builds an embedder for a model name.
            cache: Embedder cache; a private one is created if omitted.
        """
        self._on_message = on_message
        self._factory = embedder_factory
        self._cache = cache if cache is not None else EmbedderCache()
        self._inbox: "queue.Queue[Message]" = queue.Queue()
        self._embedder: Any = None
        self.last_error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="embedding-worker", daemon=True)
    
    def start(self) -> None:
        self._thread.start()
    
    def post_message(self, message: Message) -> None:
        self._inbox.put(message)
    
    def terminate(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the worker after queued messages are handled."""
        self._inbox.put({"type": "STOP"})
        if self._thread.is_alive():
            self._thread.join(timeout)
    
    def _run(self) -> None:
        while True:
            message = self._inbox.get()
            msg_type = message.get("type")
            if msg_type == "STOP":
                return
            try:
                if msg_type == "INIT":
                    self._handle_init(message)
                elif msg_type == "EMBED":
                    self._handle_embed(message)
            except Exception as e:
                # A failing on_message must not stop later requests being served
                self.last_error = e
    
    def _handle_init(self, message: Message) -> None:
        model_name = message.get("modelName") or config.DEFAULT_EMBEDDING_MODEL
        self._on_message({"type": "STATUS", "status": STATUS_LOADING})
        try:
            self._embedder = self._cache.get(model_name, self._factory)
        except Exception as e:
            self._embedder = None
            self._on_message({"type": "STATUS", "status": STATUS_FAILED, "error": str(e)})
            return
        self._on_message({"type": "STATUS", "status": STATUS_READY})
    
    def _handle_embed(self, message: Message) -> None:
        request_id = message.get("id")
        if self._embedder is None:
            self._on_message({"id": request_id, "vector": None, "error": "Worker is not initialized"})
            return
        try:
            vector = self._embedder.embed_text(message.get("text", ""))
        except Exception as e:
            self._on_message({"id": request_id, "vector": None, "error": str(e)})
            return
        self._on_message({"id": request_id, "vector": [float(x) for x in vector]})
