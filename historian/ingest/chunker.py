"""
Chunker

Packs transcript paragraphs into chunks of at most max_tokens tokens.

Paragraphs are separated by blank lines and are never split, so a single
paragraph longer than max_tokens becomes a chunk of its own.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, List, Optional

from .document_reader import SourceDocument

TokenCounter = Callable[[str], int]

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
DEFAULT_ENCODING = "cl100k_base"


@dataclass(frozen=True)
class ChunkDraft:
    """A chunk awaiting its embedding"""
    text: str
    source: str
    page: Optional[int]  # page the chunk starts on, 1-based
    tokens: int

    def to_metadata(self) -> dict:
        return {"source": self.source, "page": self.page, "tokens": self.tokens}


@lru_cache(maxsize=None)
def _encoding(name: str):
    import tiktoken

    return tiktoken.get_encoding(name)


def tiktoken_counter(encoding_name: str = DEFAULT_ENCODING) -> TokenCounter:
    """Token counter backed by a tiktoken encoding"""
    def count(text: str) -> int:
        return len(_encoding(encoding_name).encode(text))

    return count


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in PARAGRAPH_BREAK.split(text) if p.strip()]


def split_into_chunks(
    documents: Iterable[SourceDocument],
    max_tokens: int = 500,
    token_counter: Optional[TokenCounter] = None,
) -> List[ChunkDraft]:
    """
    Split documents into chunks, in document order.

    Args:
        documents: Source documents with per-page text
        max_tokens: Upper bound for a multi-paragraph chunk
        token_counter: Counts tokens of a string (default: tiktoken cl100k_base)

    Returns:
        Chunks; a chunk never spans two documents
    """
    if max_tokens <= 0:
        raise ValueError("max_tokens must be positive")

    count = token_counter or tiktoken_counter()
    chunks: List[ChunkDraft] = []

    for doc in documents:
        current = ""
        current_page: Optional[int] = None

        for page_no, page_text in enumerate(doc.pages, 1):
            for paragraph in split_paragraphs(page_text):
                candidate = f"{current}\n{paragraph}" if current else paragraph

                if current and count(candidate) > max_tokens:
                    chunks.append(ChunkDraft(current, doc.name, current_page, count(current)))
                    current, current_page = paragraph, page_no
                else:
                    if not current:
                        current_page = page_no
                    current = candidate

        if current:
            chunks.append(ChunkDraft(current, doc.name, current_page, count(current)))

    return chunks
