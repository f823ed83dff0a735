"""
Batch Embedder

Embeds chunk drafts in rate-limited batches and assembles the corpus artifact.

Within a batch, items are embedded concurrently (bounded by a semaphore);
batches are separated by a fixed delay. A chunk whose embedding fails is
logged and dropped together with its text and metadata, so the artifact's
arrays stay aligned.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..common.config import IngestConfig
from ..common.embedding_service import EmbeddingService
from ..common.errors import EmbeddingProviderError
from .artifact import build_artifact
from .chunker import ChunkDraft

logger = logging.getLogger("historian.ingest.batch_embedder")


class BatchEmbedder:
    def __init__(
        self,
        embedding_service: EmbeddingService,
        batch_size: int = 20,
        batch_delay: float = 1.0,
        max_concurrency: int = 20,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._embedding_service = embedding_service
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._max_concurrency = max(1, max_concurrency)
        self.dropped: List[ChunkDraft] = []

    @classmethod
    def from_config(cls, embedding_service: EmbeddingService, config: IngestConfig) -> "BatchEmbedder":
        return cls(
            embedding_service,
            batch_size=config.batch_size,
            batch_delay=config.batch_delay,
            max_concurrency=config.max_concurrency,
        )

    async def _embed_one(self, chunk: ChunkDraft, semaphore: asyncio.Semaphore) -> Optional[List[float]]:
        async with semaphore:
            try:
                return await asyncio.to_thread(self._embedding_service.embed_single, chunk.text)
            except (EmbeddingProviderError, ValueError) as e:
                logger.warning(
                    "Dropping chunk from %s (page %s): embedding failed: %s",
                    chunk.source, chunk.page, e,
                )
                return None

    async def embed_chunks(self, chunks: Sequence[ChunkDraft]) -> Dict[str, Any]:
        """
        Embed all chunks and build the artifact.

        Returns:
            Artifact dict with aligned embeddings/texts/metadata arrays
        """
        embeddings: List[List[float]] = []
        kept: List[ChunkDraft] = []
        self.dropped = []

        semaphore = asyncio.Semaphore(self._max_concurrency)
        total_batches = (len(chunks) + self._batch_size - 1) // self._batch_size

        for start in range(0, len(chunks), self._batch_size):
            batch = chunks[start:start + self._batch_size]
            logger.info("Embedding batch %d of %d", start // self._batch_size + 1, total_batches)

            vectors = await asyncio.gather(*(self._embed_one(chunk, semaphore) for chunk in batch))

            for chunk, vector in zip(batch, vectors):
                if vector is None:
                    self.dropped.append(chunk)
                    continue
                embeddings.append(list(vector))
                kept.append(chunk)

            if start + self._batch_size < len(chunks) and self._batch_delay > 0:
                await asyncio.sleep(self._batch_delay)

        if self.dropped:
            logger.warning("Dropped %d of %d chunks with failed embeddings", len(self.dropped), len(chunks))

        return build_artifact(
            embeddings,
            [chunk.text for chunk in kept],
            [chunk.to_metadata() for chunk in kept],
        )
