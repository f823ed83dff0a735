"""
Ingest - builds the corpus artifact from transcript PDFs

Pipeline:
1. Read PDFs in numeric order (document_reader)
2. Pack paragraphs into token-bounded chunks (chunker)
3. Embed in rate-limited batches (batch_embedder)
4. Write the parallel-array JSON artifact (artifact)
"""

from .artifact import build_artifact, read_artifact, write_artifact, validate_artifact
from .batch_embedder import BatchEmbedder
from .chunker import ChunkDraft, split_into_chunks, tiktoken_counter
from .document_reader import SourceDocument, read_documents

__all__ = [
    "build_artifact",
    "read_artifact",
    "write_artifact",
    "validate_artifact",
    "BatchEmbedder",
    "ChunkDraft",
    "split_into_chunks",
    "tiktoken_counter",
    "SourceDocument",
    "read_documents",
]
