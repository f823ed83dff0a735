"""
Searcher

Embeds query text through the embedding provider and ranks corpus chunks by
cosine similarity, optionally restricted to one interview document.

Ranking is deterministic: a stable sort keeps corpus order for equal scores.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..common.embedding_service import EmbeddingService
from ..common.errors import EmbeddingProviderError
from ..common.schemas import Chunk
from .corpus_store import CorpusStore

logger = logging.getLogger("historian.retriever.searcher")


@dataclass(frozen=True)
class SearchResult:
    """A ranked chunk"""
    chunk: Chunk
    score: float

    @property
    def document_id(self) -> str:
        return self.chunk.document_id

    @property
    def text(self) -> str:
        return self.chunk.text

    @property
    def page(self) -> Optional[int]:
        return self.chunk.page


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors, in [-1, 1].

    A zero vector has no direction; its similarity to anything is 0.0.
    """
    v1 = np.asarray(vec1, dtype=float)
    v2 = np.asarray(vec2, dtype=float)

    if v1.shape != v2.shape:
        raise ValueError(f"Vector dimension mismatch: {v1.shape} vs {v2.shape}")

    denominator = np.linalg.norm(v1) * np.linalg.norm(v2)
    if denominator == 0:
        return 0.0
    return float(np.dot(v1, v2) / denominator)


class Searcher:
    """
    Similarity ranking over the in-memory corpus.

    Features:
    - Cosine scoring of every candidate chunk against the query vector
    - Optional restriction to a single document
    - Stable top-k truncation
    """

    def __init__(
        self,
        corpus: CorpusStore,
        embedding_service: EmbeddingService,
        topk: int = 5,
    ):
        """
        Initialize searcher.

        Args:
            corpus: Loaded corpus store
            embedding_service: Provider used to embed queries (same model as the corpus)
            topk: Maximum results per ranking
        """
        self._corpus = corpus
        self._embedding = embedding_service
        self._topk = topk

        norms = np.linalg.norm(corpus.matrix, axis=1) if corpus.size else np.zeros(0)
        self._norms = norms

    @property
    def topk(self) -> int:
        return self._topk

    def embed(self, text: str) -> List[float]:
        """
        Embed query text.

        Raises:
            EmbeddingProviderError: provider unavailable or the call failed
        """
        try:
            return self._embedding.embed_single(text)
        except (EmbeddingProviderError, ValueError):
            raise
        except Exception as e:
            raise EmbeddingProviderError(f"Embedding provider failed: {e}") from e

    async def aembed(self, text: str) -> List[float]:
        """embed() on a worker thread so provider I/O does not block the loop"""
        return await asyncio.to_thread(self.embed, text)

    def rank(
        self,
        query_vector: Sequence[float],
        restrict_to: Optional[str] = None,
    ) -> List[SearchResult]:
        """
        Rank chunks by cosine similarity to the query vector.

        Args:
            query_vector: Embedded query (corpus dimension)
            restrict_to: Only rank chunks of this document id

        Returns:
            Up to topk SearchResults, best first; equal scores keep corpus order
        """
        if self._corpus.size == 0:
            return []

        query = np.asarray(query_vector, dtype=float)
        if query.shape != (self._corpus.dimension,):
            raise ValueError(
                f"Query dimension {query.shape} does not match corpus dimension "
                f"{self._corpus.dimension}"
            )

        if restrict_to is None:
            candidates = np.arange(self._corpus.size)
        else:
            candidates = self._corpus.chunk_indices(restrict_to)
        if candidates.size == 0:
            return []

        scores = self._scores(query, candidates)
        order = np.argsort(-scores, kind="stable")[: self._topk]

        chunks = self._corpus.chunks
        return [
            SearchResult(chunk=chunks[candidates[i]], score=float(scores[i]))
            for i in order
        ]

    def _scores(self, query: np.ndarray, candidates: np.ndarray) -> np.ndarray:
        dots = self._corpus.matrix[candidates] @ query
        denominators = self._norms[candidates] * np.linalg.norm(query)
        scores = np.zeros_like(dots)
        np.divide(dots, denominators, out=scores, where=denominators != 0)
        return scores
