"""Ollama embedding client.

Calls a local Ollama server (/api/embeddings) to turn event text into an
embedding vector. Responses are schema-validated; transport failures are
reported in meta instead of raised.
"""

import json
import time
import urllib.error
import urllib.request
from typing import Any, Dict, Optional, Tuple

from runtime.schema_loader import load_embedding_response_validator, validate_or_error
from state import config
from state.errors import EmbeddingProviderError


class OllamaEmbeddingClient:
    """Client for generating embeddings using the Ollama API."""
    
    def __init__(
        self,
        base_url: str = config.DEFAULT_OLLAMA_URL,
        model: str = config.DEFAULT_EMBEDDING_MODEL,
        timeout_s: float = 30.0,
        max_retries: int = 1
    ):
        """Initialize Ollama embedding client.
        
        Args:
            base_url: Ollama API base URL
            model: Embedding model name
            timeout_s: Request timeout in seconds
            max_retries: Maximum number of retries on an invalid response
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        
        self.validator = load_embedding_response_validator()
    
    def embed(self, text: str) -> Tuple[Optional[list[float]], Dict[str, Any]]:
        """Embed text with the configured model.
        
        Args:
            text: Event text to embed.
        
        Returns:
            Tuple of (vector | None, meta_dict).
            vector is None if the call failed or the response was invalid.
            meta_dict contains: embed_backend, embed_model, embed_latency_ms,
            embed_schema_ok, embed_retry_count, embed_error
        """
        start_time = time.perf_counter()
        
        meta: Dict[str, Any] = {
            "embed_backend": "ollama",
            "embed_model": self.model,
            "embed_latency_ms": 0.0,
            "embed_schema_ok": False,
            "embed_retry_count": 0,
            "embed_error": None
        }
        
        for attempt in range(self.max_retries + 1):
            meta["embed_retry_count"] = attempt
            
            response_data, error = self._call_ollama_api(text)
            
            if error:
                # Transport errors are not retried here
                meta["embed_error"] = error
                meta["embed_latency_ms"] = (time.perf_counter() - start_time) * 1000
                return None, meta
            
            is_valid, error_info = validate_or_error(self.validator, response_data)
            if not is_valid:
                meta["embed_schema_ok"] = False
                if attempt < self.max_retries:
                    continue
                meta["embed_error"] = f"schema_invalid:{error_info.get('message', 'unknown')}"
                meta["embed_latency_ms"] = (time.perf_counter() - start_time) * 1000
                return None, meta
            
            meta["embed_schema_ok"] = True
            meta["embed_latency_ms"] = (time.perf_counter() - start_time) * 1000
            return [float(x) for x in response_data["embedding"]], meta
        
        meta["embed_error"] = "max_retries_exceeded"
        meta["embed_latency_ms"] = (time.perf_counter() - start_time) * 1000
        return None, meta
    
    def embed_text(self, text: str) -> list[float]:
        """Embed text, raising on failure.
        
        Raises:
            EmbeddingProviderError: If no usable vector was returned.
        """
        vector, meta = self.embed(text)
        if vector is None:
            raise EmbeddingProviderError(
                f"Ollama embedding failed: {meta['embed_error']}",
                cause=meta
            )
        return vector
    
    def _call_ollama_api(self, text: str) -> Tuple[Optional[Any], Optional[str]]:
        """Call Ollama /api/embeddings endpoint.
        
        Args:
            text: Prompt text to embed
        
        Returns:
            Tuple of (response_data | None, error_msg | None).
        """
        url = f"{self.base_url}/api/embeddings"
        
        payload = {
            "model": self.model,
            "prompt": text
        }
        
        try:
            req = urllib.request.Request(
                url,
                data=json.dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                method="POST"
            )
            
            with urllib.request.urlopen(req, timeout=self.timeout_s) as response:
                response_data = json.loads(response.read().decode("utf-8"))
                
                if isinstance(response_data, dict) and "error" in response_data:
                    return None, f"ollama_error:{response_data['error']}"
                
                return response_data, None
        
        # HTTPError subclasses URLError, so it must be caught first
        except urllib.error.HTTPError as e:
            return None, f"http_error:{e.code}"
        except urllib.error.URLError as e:
            return None, f"connection_failed:{str(e)}"
        except TimeoutError:
            return None, "timeout"
        except json.JSONDecodeError as e:
            return None, f"response_parse_error:{str(e)}"
