"""
Document Reader

Reads interview transcripts (document<N>.pdf) into per-page text.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

logger = logging.getLogger("historian.ingest.document_reader")

_NUMBER_PATTERN = re.compile(r"\d+")


@dataclass
class SourceDocument:
    """One transcript file and the text of each page"""
    name: str  # file name, e.g. "document4.pdf"
    pages: List[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


def document_sort_key(path: Path):
    """Numeric order by the first integer in the file name; files without one go last"""
    match = _NUMBER_PATTERN.search(path.name)
    if match:
        return (0, int(match.group()), path.name)
    return (1, 0, path.name)


def extract_pages(path: Union[str, Path]) -> List[str]:
    """Plain text of every page of a PDF"""
    import fitz

    with fitz.open(str(path)) as doc:
        return [page.get_text("text") for page in doc]


def read_documents(directory: Union[str, Path]) -> List[SourceDocument]:
    """
    Read every PDF in a directory, in numeric file order.

    Unreadable files are logged and skipped.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Documents directory not found: {directory}")

    paths = sorted(
        (p for p in directory.iterdir() if p.suffix.lower() == ".pdf"),
        key=document_sort_key,
    )

    documents = []
    for path in paths:
        try:
            pages = extract_pages(path)
        except Exception as e:
            logger.error("Failed to read %s: %s", path.name, e)
            continue
        documents.append(SourceDocument(name=path.name, pages=pages))
        logger.info("Read %s (%d pages)", path.name, len(pages))

    return documents
