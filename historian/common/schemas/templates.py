"""
Context Text Templates

Renders retrieved chunks into the citation format the generation prompt
expects:

    Interview 4 with Jean Carlomusto (1991-05-02):
    [Page 12] ...passage...

    [Page 13] ...passage...

The format is part of the answer contract: the model is told to cite
"Interview #<id> with <name>", so headers must stay stable.
"""

from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .corpus import Chunk, PersonRecord


INTERVIEW_HEADER_TEMPLATE = "Interview {document_id} with {name} ({date}):"
PASSAGE_TEMPLATE = "[Page {page}] {text}"
UNKNOWN_PAGE = "?"

PASSAGE_SEPARATOR = "\n\n"
DOCUMENT_SEPARATOR = "\n\n---\n\n"


def render_interview_header(record: "PersonRecord") -> str:
    """Header line naming the interview a block of passages comes from"""
    return INTERVIEW_HEADER_TEMPLATE.format(
        document_id=record.document_id,
        name=record.name,
        date=record.date,
    )


def render_passage(text: str, page: Optional[int]) -> str:
    """One page-tagged passage line"""
    return PASSAGE_TEMPLATE.format(
        page=page if page is not None else UNKNOWN_PAGE,
        text=text,
    )


def render_document_block(record: "PersonRecord", chunks: Iterable["Chunk"]) -> str:
    """Header followed by every passage, in the given order"""
    passages = PASSAGE_SEPARATOR.join(
        render_passage(chunk.text, chunk.page) for chunk in chunks
    )
    return f"{render_interview_header(record)}\n{passages}"


def join_document_blocks(blocks: Iterable[str]) -> str:
    """Join per-document blocks for a comparative context"""
    return DOCUMENT_SEPARATOR.join(blocks)
