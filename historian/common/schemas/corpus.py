"""
Corpus Schemas

Chunks of interview transcript and the per-document people registry.
Both are immutable once the corpus is loaded.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class PersonRecord:
    """Metadata for one interview document (one row of metadata.csv)"""
    document_id: str  # str(row_index + 1)
    name: str
    date: str
    title: str = ""
    tags: str = ""

    @property
    def name_tokens(self) -> Tuple[str, ...]:
        """Lowercased whitespace-separated name parts"""
        return tuple(self.name.lower().split())


@dataclass(frozen=True)
class Chunk:
    """A contiguous span of transcript text belonging to one document"""
    index: int  # position in corpus order
    text: str
    document_id: str
    source: str  # e.g. "document4.pdf"
    page: Optional[int] = None
    token_count: int = 0
    embedding: Tuple[float, ...] = field(default=(), repr=False, compare=False)

    @property
    def dimension(self) -> int:
        return len(self.embedding)
