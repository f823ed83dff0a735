"""
Error types shared by the retriever, server and ingestion pipeline.

"No relevant context" is not an error: it is the NoContextFound result
in historian.common.schemas.retrieval.
"""


class HistorianError(Exception):
    """Base class for Historian failures"""


class CorpusLoadError(HistorianError):
    """Corpus artifact or metadata table is missing, unreadable or inconsistent.

    Fatal: the server must not start serving from a partial corpus.
    """


class EmbeddingProviderError(HistorianError):
    """Embedding provider call failed (transport, quota, configuration).

    Aborts the retrieval for the current request. Not retried here.
    """


class GenerationProviderError(HistorianError):
    """Generation provider call failed or the client is not configured"""
