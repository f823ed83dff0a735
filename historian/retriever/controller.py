"""
Retrieval Controller

The single entry point the request layer calls: question + history in,
ContextFound or NoContextFound out.

Pipeline:
1. Reformulate the question with recent history (QueryProcessor)
2. Resolve named interviewees in the reformulated text (EntityResolver)
3. Pick a strategy:
   A. comparative: two or more interviewees, ranked per document
   B. single entity: exactly one interviewee, ranked within their document
   C. corpus fallback: ranked over everything, best-represented document wins
4. Render the chosen chunks (ContextAssembler)

An embedding failure anywhere aborts the request with EmbeddingProviderError;
no partial context is ever returned.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..common.config import RetrieverConfig
from ..common.embedding_service import EmbeddingService
from ..common.errors import EmbeddingProviderError
from ..common.schemas import ContextFound, ConversationTurn, NoContextFound, RetrievalResult
from .context_assembler import ContextAssembler
from .corpus_store import CorpusStore
from .entity_resolver import EntityMatch, EntityResolver
from .query_processor import QueryProcessor, ReformulatedQuery
from .searcher import Searcher, SearchResult

logger = logging.getLogger("historian.retriever.controller")


class RetrievalController:
    """
    Orchestrates query reformulation, entity resolution, ranking and
    formatting for one request. Holds no per-request state.
    """

    def __init__(
        self,
        corpus: CorpusStore,
        embedding_service: EmbeddingService,
        topk: int = 5,
        max_concurrency: int = 4,
        query_processor: Optional[QueryProcessor] = None,
    ):
        """
        Initialize controller.

        Args:
            corpus: Loaded, immutable corpus
            embedding_service: Query embedding provider
            topk: Results per ranking
            max_concurrency: Parallel embedding calls in the comparative strategy
            query_processor: Reformulator (defaults to QueryProcessor())
        """
        self._queries = query_processor or QueryProcessor()
        self._resolver = EntityResolver(corpus.records)
        self._searcher = Searcher(corpus, embedding_service, topk=topk)
        self._assembler = ContextAssembler(corpus)
        self._max_concurrency = max(1, max_concurrency)

    @classmethod
    def from_config(
        cls,
        corpus: CorpusStore,
        embedding_service: EmbeddingService,
        config: RetrieverConfig,
    ) -> "RetrievalController":
        return cls(
            corpus,
            embedding_service,
            topk=config.topk,
            max_concurrency=config.max_concurrency,
            query_processor=QueryProcessor(
                history_turns=config.history_turns,
                short_question_chars=config.short_question_chars,
            ),
        )

    async def retrieve_context(
        self,
        question: str,
        history: Sequence[ConversationTurn] = (),
    ) -> RetrievalResult:
        """
        Find and format the passages relevant to a question.

        Args:
            question: Raw user question
            history: Read-only session turns, oldest first

        Returns:
            ContextFound with the formatted context, or NoContextFound

        Raises:
            EmbeddingProviderError: an embedding call failed; nothing is returned
        """
        query = self._queries.reformulate(question, history)
        matches = self._resolver.find_matches(query.text)

        try:
            found = await self._retrieve(query, matches)
        except EmbeddingProviderError:
            logger.error(
                "Retrieval aborted, embedding provider failed (question=%r, matches=%d)",
                question[:80], len(matches),
            )
            raise

        if found is None:
            logger.info("No relevant context for question %r", question[:80])
            return NoContextFound(query=query.text)

        logger.info(
            "Context via %s strategy from document(s) %s",
            found.strategy.value, ", ".join(found.document_ids),
        )
        return found

    async def _retrieve(
        self,
        query: ReformulatedQuery,
        matches: List[EntityMatch],
    ) -> Optional[ContextFound]:
        if self._wants_comparison(query, matches):
            ranked = await self._rank_each(query.text, matches)
            found = self._assembler.assemble_comparative(
                [(match.record, results) for match, results in ranked]
            )
            if found is not None:
                return found

            # Fewer than two interviews had passages: answer from the first
            # one that did, reusing its ranking
            for match, results in ranked:
                if results:
                    return self._assembler.assemble_single(match.record, results)

        elif len(matches) == 1:
            match = matches[0]
            vector = await self._searcher.aembed(query.text)
            found = self._assembler.assemble_single(
                match.record,
                self._searcher.rank(vector, restrict_to=match.document_id),
            )
            if found is not None:
                return found

        vector = await self._searcher.aembed(query.text)
        return self._assembler.assemble_fallback(self._searcher.rank(vector))

    @staticmethod
    def _wants_comparison(query: ReformulatedQuery, matches: List[EntityMatch]) -> bool:
        """Comparative wording or several names, but always two interviewees to compare"""
        return (query.is_comparative or len(matches) > 1) and len(matches) >= 2

    async def _rank_each(
        self,
        text: str,
        matches: List[EntityMatch],
    ) -> List[Tuple[EntityMatch, List[SearchResult]]]:
        """Embed and rank once per matched document; results keep match order"""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def rank_one(match: EntityMatch) -> Tuple[EntityMatch, List[SearchResult]]:
            async with semaphore:
                vector = await self._searcher.aembed(text)
            return match, self._searcher.rank(vector, restrict_to=match.document_id)

        return list(await asyncio.gather(*(rank_one(match) for match in matches)))
