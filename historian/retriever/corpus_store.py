"""
Corpus Store

Immutable in-memory holder of transcript chunks (with embeddings) and the
people registry. Loaded once at startup; read-only and lock-free afterwards.

Sources:
- Corpus artifact (embeddings.json): parallel arrays, see historian.ingest.artifact
- Metadata table (metadata.csv): columns name, date, excerpt_title, tags;
  row order assigns document ids "1", "2", ...

Loading is all-or-nothing: any inconsistency raises CorpusLoadError.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..common.errors import CorpusLoadError
from ..common.schemas import Chunk, PersonRecord
from ..ingest.artifact import read_artifact, validate_artifact

logger = logging.getLogger("historian.retriever.corpus_store")

METADATA_COLUMNS = ("name", "date", "excerpt_title", "tags")
SOURCE_PATTERN = re.compile(r"document(\d+)\.pdf")


def parse_document_id(source: str) -> Optional[str]:
    """Extract the bare document id from a file name like "document4.pdf" """
    if not isinstance(source, str):
        return None
    match = SOURCE_PATTERN.search(source)
    return match.group(1) if match else None


def document_source(document_id: str) -> str:
    """Inverse of parse_document_id"""
    return f"document{document_id}.pdf"


def read_metadata_table(path: Union[str, Path]) -> List[Dict[str, str]]:
    """
    Read metadata.csv rows as string dicts, in file order.

    Raises:
        CorpusLoadError: file missing/unreadable or required columns absent
    """
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CorpusLoadError(f"Cannot read metadata table {path}: {e}") from e

    frame.columns = [str(column).strip() for column in frame.columns]
    return frame.to_dict(orient="records")


def build_records(rows: Sequence[Dict[str, Any]]) -> List[PersonRecord]:
    """Turn metadata rows into PersonRecords keyed by row_index + 1"""
    records = []
    for row_index, row in enumerate(rows):
        missing = [column for column in METADATA_COLUMNS if column not in row]
        if missing:
            raise CorpusLoadError(
                f"Metadata row {row_index + 1} is missing columns: {', '.join(missing)}"
            )

        name = str(row["name"]).strip()
        if not name:
            raise CorpusLoadError(f"Metadata row {row_index + 1} has an empty name")

        tags = row["tags"]
        if isinstance(tags, (list, tuple)):
            tags = ", ".join(str(tag) for tag in tags)

        records.append(PersonRecord(
            document_id=str(row_index + 1),
            name=name,
            date=str(row["date"]).strip(),
            title=str(row["excerpt_title"]).strip(),
            tags=str(tags).strip(),
        ))
    return records


def build_chunks(artifact: Dict[str, Any], known_ids: set) -> List[Chunk]:
    """Turn the artifact's parallel arrays into Chunks in corpus order"""
    chunks = []
    dimension = None

    for index, (embedding, text, meta) in enumerate(
        zip(artifact["embeddings"], artifact["texts"], artifact["metadata"])
    ):
        if not isinstance(meta, dict):
            raise CorpusLoadError(f"Chunk {index}: metadata entry is not an object")

        source = meta.get("source", "")
        document_id = parse_document_id(source)
        if document_id is None:
            raise CorpusLoadError(f"Chunk {index}: cannot parse document id from source {source!r}")
        if document_id not in known_ids:
            raise CorpusLoadError(
                f"Chunk {index}: document {document_id} has no row in the metadata table"
            )

        if not isinstance(embedding, list) or not embedding:
            raise CorpusLoadError(f"Chunk {index}: embedding must be a non-empty array")
        if dimension is None:
            dimension = len(embedding)
        elif len(embedding) != dimension:
            raise CorpusLoadError(
                f"Chunk {index}: embedding dimension {len(embedding)} != corpus dimension {dimension}"
            )

        try:
            vector = tuple(float(value) for value in embedding)
        except (TypeError, ValueError) as e:
            raise CorpusLoadError(f"Chunk {index}: embedding is not numeric") from e

        page = meta.get("page")
        try:
            page = int(page) if page is not None else None
            token_count = int(meta.get("tokens", 0) or 0)
        except (TypeError, ValueError) as e:
            raise CorpusLoadError(f"Chunk {index}: page/tokens must be integers") from e

        chunks.append(Chunk(
            index=index,
            text=str(text),
            document_id=document_id,
            source=source,
            page=page,
            token_count=token_count,
            embedding=vector,
        ))

    return chunks


class CorpusStore:
    """
    Read-only corpus: chunks, their embedding matrix, and the people registry.

    The registry is an ordered list plus an index by id, so iteration order is
    always metadata-table order.
    """

    def __init__(self, chunks: Sequence[Chunk], records: Sequence[PersonRecord]):
        self._chunks: Tuple[Chunk, ...] = tuple(chunks)
        self._records: Tuple[PersonRecord, ...] = tuple(records)
        self._records_by_id: Dict[str, PersonRecord] = {r.document_id: r for r in self._records}

        by_document: Dict[str, List[int]] = {}
        for chunk in self._chunks:
            by_document.setdefault(chunk.document_id, []).append(chunk.index)
        self._chunk_indices = {doc_id: np.array(idx, dtype=int) for doc_id, idx in by_document.items()}

        if self._chunks:
            self._matrix = np.array([chunk.embedding for chunk in self._chunks], dtype=float)
        else:
            self._matrix = np.zeros((0, 0), dtype=float)
        self._matrix.setflags(write=False)

    @classmethod
    def load(cls, artifact_path: Union[str, Path], metadata_path: Union[str, Path]) -> "CorpusStore":
        """
        Load the corpus from disk.

        Raises:
            CorpusLoadError: any source unreadable, malformed or inconsistent
        """
        artifact = read_artifact(artifact_path)
        rows = read_metadata_table(metadata_path)
        store = cls.from_data(artifact, rows)
        logger.info(
            "Loaded %d chunks across %d documents (dimension %d)",
            store.size, store.document_count, store.dimension,
        )
        return store

    @classmethod
    def from_data(cls, artifact: Dict[str, Any], metadata_rows: Sequence[Dict[str, Any]]) -> "CorpusStore":
        """Build a store from in-memory artifact and metadata rows"""
        validate_artifact(artifact)
        records = build_records(metadata_rows)
        chunks = build_chunks(artifact, {r.document_id for r in records})
        return cls(chunks, records)

    @property
    def chunks(self) -> Tuple[Chunk, ...]:
        return self._chunks

    @property
    def records(self) -> Tuple[PersonRecord, ...]:
        """Registry in metadata-table order"""
        return self._records

    @property
    def matrix(self) -> np.ndarray:
        """Read-only (size x dimension) embedding matrix in corpus order"""
        return self._matrix

    @property
    def size(self) -> int:
        return len(self._chunks)

    @property
    def document_count(self) -> int:
        return len(self._records)

    @property
    def dimension(self) -> int:
        return self._matrix.shape[1] if self._chunks else 0

    def get_record(self, document_id: str) -> Optional[PersonRecord]:
        return self._records_by_id.get(document_id)

    def chunk_indices(self, document_id: str) -> np.ndarray:
        """Corpus positions of a document's chunks, in source order"""
        return self._chunk_indices.get(document_id, np.array([], dtype=int))
