"""
Embedding Service

Turns text into vectors for corpus building and query ranking.

Modes:
- "openai": OpenAI embeddings API (default, text-embedding-3-small)
- "femb": on-device generation using fastembed

The mode and model must be the ones the corpus artifact was built with,
otherwise similarity scores are meaningless.
"""

import logging
from typing import List, Optional

import numpy as np

from .errors import EmbeddingProviderError

logger = logging.getLogger("historian.common.embedding_service")


class EmbeddingService:
    """
    Embedding provider wrapper.

    Every provider failure surfaces as EmbeddingProviderError; nothing is
    retried here.
    """

    def __init__(
        self,
        mode: str = "openai",
        model: str = "text-embedding-3-small",
        openai_api_key: Optional[str] = None,
    ):
        self._mode = (mode or "openai").lower()
        self._model = model
        self._client = None
        self._init_client(openai_api_key)

    def _init_client(self, openai_api_key: Optional[str]) -> None:
        """Initialize the provider client for the configured mode"""
        if self._mode == "openai":
            if not openai_api_key:
                logger.info("OpenAI API key not provided, embedding service unavailable")
                return
            try:
                from openai import OpenAI

                self._client = OpenAI(api_key=openai_api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI embeddings client: %s", e)
            return

        if self._mode == "femb":
            try:
                from fastembed import TextEmbedding

                self._client = TextEmbedding(model_name=self._model)
            except ImportError:
                logger.warning("fastembed package not installed")
            except Exception as e:
                logger.warning("Failed to initialize fastembed model %s: %s", self._model, e)
            return

        logger.warning("Unsupported embedding mode: %s", self._mode)

    @property
    def is_available(self) -> bool:
        """Check if embedding service is available"""
        return self._client is not None

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def model(self) -> str:
        return self._model

    def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: List of strings to embed

        Returns:
            One vector per input text, in input order

        Raises:
            EmbeddingProviderError: provider unavailable or the call failed
        """
        if not self.is_available:
            raise EmbeddingProviderError(
                f"Embedding provider '{self._mode}' is not available"
            )

        if not texts:
            return []

        try:
            if self._mode == "openai":
                response = self._client.embeddings.create(model=self._model, input=texts)
                embeddings = [item.embedding for item in response.data]
            else:
                embeddings = list(self._client.embed(texts))
        except Exception as e:
            raise EmbeddingProviderError(
                f"Embedding request failed ({self._mode}/{self._model}): {e}"
            ) from e

        return [
            emb.tolist() if isinstance(emb, np.ndarray) else list(emb)
            for emb in embeddings
        ]

    def embed_single(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: String to embed

        Returns:
            Embedding vector
        """
        if not text:
            raise ValueError("Cannot embed empty text")

        return self.embed([text])[0]


# Module-level singleton getter
_service_instance: Optional[EmbeddingService] = None


def get_embedding_service(
    mode: str = "openai",
    model: str = "text-embedding-3-small",
    openai_api_key: Optional[str] = None,
) -> EmbeddingService:
    """
    Get the shared EmbeddingService instance.

    Args:
        mode: Embedding mode (openai, femb)
        model: Model name
        openai_api_key: Key for the openai mode

    Returns:
        EmbeddingService instance
    """
    global _service_instance

    if _service_instance is None:
        _service_instance = EmbeddingService(
            mode=mode, model=model, openai_api_key=openai_api_key
        )

    return _service_instance
