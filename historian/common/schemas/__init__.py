"""
Historian Schemas

Corpus records, conversation turns, retrieval results and the context
rendering templates.
"""

from .corpus import Chunk, PersonRecord
from .conversation import ConversationTurn, Role
from .retrieval import ContextFound, NoContextFound, RetrievalResult, RetrievalStrategy
from .templates import (
    render_interview_header,
    render_passage,
    render_document_block,
    join_document_blocks,
    DOCUMENT_SEPARATOR,
    PASSAGE_SEPARATOR,
)

__all__ = [
    "Chunk",
    "PersonRecord",
    "ConversationTurn",
    "Role",
    "ContextFound",
    "NoContextFound",
    "RetrievalResult",
    "RetrievalStrategy",
    "render_interview_header",
    "render_passage",
    "render_document_block",
    "join_document_blocks",
    "DOCUMENT_SEPARATOR",
    "PASSAGE_SEPARATOR",
]
