"""
Context Assembler

Turns ranked search results into the citation-formatted context block that
is interpolated into the generation prompt.

Three shapes, one per retrieval strategy:
- comparative: one block per interviewee, joined by a "---" rule
- single entity: one block for the named interviewee
- corpus fallback: the document with the most top-ranked chunks wins
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..common.schemas import (
    ContextFound,
    PersonRecord,
    RetrievalStrategy,
    join_document_blocks,
    render_document_block,
)
from .corpus_store import CorpusStore
from .searcher import SearchResult

logger = logging.getLogger("historian.retriever.context_assembler")


class ContextAssembler:
    """Renders SearchResults into ContextFound values"""

    def __init__(self, corpus: CorpusStore):
        self._corpus = corpus

    def render_block(self, record: PersonRecord, results: Sequence[SearchResult]) -> str:
        """All results under one interview header, in ranked order"""
        return render_document_block(record, [r.chunk for r in results])

    def assemble_comparative(
        self,
        ranked: Sequence[Tuple[PersonRecord, Sequence[SearchResult]]],
    ) -> Optional[ContextFound]:
        """
        One block per document that produced results.

        Args:
            ranked: (record, results) pairs in entity-match order

        Returns:
            ContextFound when at least two documents have results, else None
        """
        populated = [(record, results) for record, results in ranked if results]
        if len(populated) < 2:
            return None

        context = join_document_blocks(
            self.render_block(record, results) for record, results in populated
        )
        return ContextFound(
            context=context,
            strategy=RetrievalStrategy.COMPARATIVE,
            document_ids=[record.document_id for record, _ in populated],
        )

    def assemble_single(
        self,
        record: PersonRecord,
        results: Sequence[SearchResult],
    ) -> Optional[ContextFound]:
        """Block for one interviewee, or None when nothing ranked"""
        if not results:
            return None
        return ContextFound(
            context=self.render_block(record, results),
            strategy=RetrievalStrategy.SINGLE_ENTITY,
            document_ids=[record.document_id],
        )

    def assemble_fallback(self, results: Sequence[SearchResult]) -> Optional[ContextFound]:
        """
        Pick the document contributing the most top-ranked chunks.

        Ties go to the document that appears first in ranked order.
        """
        groups = group_by_document(results)
        if not groups:
            return None

        document_id, members = max(groups.items(), key=lambda item: len(item[1]))
        record = self._corpus.get_record(document_id)
        if record is None:
            # CorpusStore refuses chunks without a registry row
            raise LookupError(f"Document {document_id} missing from registry")

        logger.debug(
            "Fallback picked document %s (%d of %d results)",
            document_id, len(members), len(results),
        )
        return ContextFound(
            context=self.render_block(record, members),
            strategy=RetrievalStrategy.CORPUS_FALLBACK,
            document_ids=[document_id],
        )


def group_by_document(results: Sequence[SearchResult]) -> Dict[str, List[SearchResult]]:
    """Group results by document id; groups and members keep ranked order"""
    groups: Dict[str, List[SearchResult]] = {}
    for result in results:
        groups.setdefault(result.document_id, []).append(result)
    return groups
