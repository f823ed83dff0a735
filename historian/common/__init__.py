"""
Historian Common Module

Shared infrastructure for the retriever, the chat server and ingestion.
"""

from .config import HistorianConfig, load_config
from .embedding_service import EmbeddingService, get_embedding_service
from .errors import (
    HistorianError,
    CorpusLoadError,
    EmbeddingProviderError,
    GenerationProviderError,
)
from .llm_client import LLMClient

__all__ = [
    "HistorianConfig",
    "load_config",
    "EmbeddingService",
    "get_embedding_service",
    "HistorianError",
    "CorpusLoadError",
    "EmbeddingProviderError",
    "GenerationProviderError",
    "LLMClient",
]
