"""
Historian

Question answering over a fixed corpus of oral history interview transcripts.

Philosophy:
- Every answer cites the interview(s) it draws from
- Retrieval is deterministic: same corpus + same question = same context
- The corpus is small, static and fully in memory

Usage:
    from historian.common import load_config, EmbeddingService, LLMClient
    from historian.retriever import CorpusStore, RetrievalController, AnswerSynthesizer
    from historian.ingest import read_documents, split_into_chunks, BatchEmbedder
"""

__version__ = "0.1.0"
