"""
Retrieval Result Schemas

Retrieval either finds a formatted context or explicitly finds nothing.
The two outcomes are distinct types; an empty string never stands in for
"nothing relevant".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union


class RetrievalStrategy(str, Enum):
    """Which branch of the engine produced the context"""
    COMPARATIVE = "comparative"  # two or more named interviewees
    SINGLE_ENTITY = "single_entity"  # exactly one named interviewee
    CORPUS_FALLBACK = "corpus_fallback"  # nobody named, best document wins


@dataclass(frozen=True)
class ContextFound:
    """Formatted source passages ready for the generation prompt"""
    context: str
    strategy: RetrievalStrategy
    document_ids: List[str] = field(default_factory=list)

    found = True


@dataclass(frozen=True)
class NoContextFound:
    """No branch produced any passages for the query"""
    query: str = ""

    found = False


RetrievalResult = Union[ContextFound, NoContextFound]
