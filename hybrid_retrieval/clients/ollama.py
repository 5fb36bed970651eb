"""Client for the Ollama embedding endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from hybrid_retrieval.exceptions import EmbeddingError

from .base import BaseHttpClient

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "all-minilm:l6-v2"


class OllamaEmbeddingClient(BaseHttpClient):
    """Embed texts through an Ollama server's ``/api/embed`` endpoint.

    The client satisfies the :class:`~hybrid_retrieval.hybrid.embeddings.Embedder`
    protocol: one call embeds a batch and returns vectors in input order.
    """

    BASE_URL = "http://localhost:11434"

    def __init__(
        self,
        *,
        model: str = DEFAULT_EMBEDDING_MODEL,
        keep_alive: Optional[str] = "5m",
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(session=session, base_url=base_url, timeout=timeout)
        self.model = model
        self.keep_alive = keep_alive

    def embed(self, texts: Sequence[str], *, model: Optional[str] = None) -> List[List[float]]:
        texts = list(texts)
        if not texts:
            return []

        payload: Dict[str, Any] = {"model": model or self.model, "input": texts}
        if self.keep_alive is not None:
            payload["keep_alive"] = self.keep_alive

        response = self._request("POST", "/api/embed", json=payload)
        try:
            data = response.json()
        except ValueError as exc:
            raise EmbeddingError("Embedding response is not valid JSON") from exc

        if not isinstance(data, dict):
            raise EmbeddingError("Embedding response must be a JSON object")
        if "error" in data:
            raise EmbeddingError(str(data["error"]))

        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, got "
                f"{len(embeddings) if isinstance(embeddings, list) else 'none'}"
            )
        logger.debug("Embedded %d texts with %s", len(texts), payload["model"])
        return embeddings

    def _handle_response(self, response: requests.Response) -> requests.Response:
        """Surface Ollama's ``{"error": ...}`` body on failed requests, e.g. an unpulled model."""

        if response.status_code >= 400:
            message = _provider_error(response)
            if message is not None:
                logger.warning("Ollama request failed (%d): %s", response.status_code, message)
                raise EmbeddingError(message)
        return super()._handle_response(response)


def _provider_error(response: requests.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None


__all__ = ["DEFAULT_EMBEDDING_MODEL", "OllamaEmbeddingClient"]
