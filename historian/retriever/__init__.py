"""
Retriever - Contextual Retrieval over interview transcripts

Key Components:
- CorpusStore: Immutable chunks, embeddings and people registry
- QueryProcessor: Folds conversation history into follow-up questions
- EntityResolver: Finds interviewees named in a query
- Searcher: Cosine ranking of chunks, optionally within one document
- ContextAssembler: Citation-formatted context blocks
- RetrievalController: The request-facing pipeline
- AnswerSynthesizer: LLM answer composition from the context

Pipeline:
1. Reformulate question with recent history
2. Resolve named interviewees
3. Rank per interviewee, within one interviewee, or corpus-wide
4. Render context (or report that nothing relevant was found)
5. Synthesize a cited answer
"""

from .corpus_store import CorpusStore
from .query_processor import QueryProcessor, ReformulatedQuery
from .entity_resolver import EntityResolver, EntityMatch
from .searcher import Searcher, SearchResult, cosine_similarity
from .context_assembler import ContextAssembler
from .controller import RetrievalController
from .synthesizer import AnswerSynthesizer, ensure_complete_response

__all__ = [
    "CorpusStore",
    "QueryProcessor",
    "ReformulatedQuery",
    "EntityResolver",
    "EntityMatch",
    "Searcher",
    "SearchResult",
    "cosine_similarity",
    "ContextAssembler",
    "RetrievalController",
    "AnswerSynthesizer",
    "ensure_complete_response",
]
