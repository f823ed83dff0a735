"""Tests for CorpusStore loading and validation."""

import json

import numpy as np
import pytest

from historian.common.errors import CorpusLoadError
from historian.retriever.corpus_store import (
    CorpusStore,
    build_records,
    document_source,
    parse_document_id,
    read_metadata_table,
)
from historian.tests.conftest import PASSAGES, PEOPLE, make_artifact

CSV_HEADER = "name,date,excerpt_title,tags\n"


def _write_corpus(tmp_path, artifact=None, csv_text=None):
    artifact_path = tmp_path / "embeddings.json"
    metadata_path = tmp_path / "metadata.csv"
    artifact_path.write_text(json.dumps(artifact if artifact is not None else make_artifact(PASSAGES)))
    if csv_text is None:
        csv_text = CSV_HEADER + "".join(
            f'{p["name"]},{p["date"]},{p["excerpt_title"]},"{p["tags"]}"\n' for p in PEOPLE
        )
    metadata_path.write_text(csv_text)
    return artifact_path, metadata_path


class TestDocumentIds:
    def test_parse_document_id(self):
        assert parse_document_id("document4.pdf") == "4"
        assert parse_document_id("pdfs/document12.pdf") == "12"

    def test_parse_document_id_rejects_other_names(self):
        assert parse_document_id("notes.pdf") is None
        assert parse_document_id("document4.txt") is None
        assert parse_document_id(None) is None

    def test_document_source_inverts_parse(self):
        assert parse_document_id(document_source("7")) == "7"


class TestLoad:
    def test_load_from_files(self, tmp_path):
        artifact_path, metadata_path = _write_corpus(tmp_path)

        store = CorpusStore.load(artifact_path, metadata_path)

        assert store.size == len(PASSAGES)
        assert store.document_count == len(PEOPLE)
        assert store.dimension == 3
        assert [r.name for r in store.records] == [p["name"] for p in PEOPLE]
        assert store.get_record("2").name == "Vito Russo"
        assert store.get_record("2").tags == "film"
        assert store.get_record("1").tags == "GMHC, video"

    def test_chunks_keep_corpus_order_and_pages(self, corpus):
        assert [c.index for c in corpus.chunks] == list(range(len(PASSAGES)))
        assert corpus.chunks[0].document_id == "1"
        assert corpus.chunks[0].page == 12
        assert corpus.chunks[0].source == "document1.pdf"

    def test_chunk_indices_by_document(self, corpus):
        assert list(corpus.chunk_indices("2")) == [2, 3]
        assert corpus.chunk_indices("6").size == 0
        assert corpus.chunk_indices("99").size == 0

    def test_matrix_is_read_only(self, corpus):
        assert corpus.matrix.shape == (len(PASSAGES), 3)
        with pytest.raises(ValueError):
            corpus.matrix[0, 0] = 5.0

    def test_page_is_optional(self):
        artifact = make_artifact(PASSAGES[:1])
        del artifact["metadata"][0]["page"]

        store = CorpusStore.from_data(artifact, PEOPLE)

        assert store.chunks[0].page is None


class TestLoadErrors:
    def test_missing_artifact(self, tmp_path):
        _, metadata_path = _write_corpus(tmp_path)
        with pytest.raises(CorpusLoadError, match="Cannot read corpus artifact"):
            CorpusStore.load(tmp_path / "missing.json", metadata_path)

    def test_artifact_not_json(self, tmp_path):
        artifact_path, metadata_path = _write_corpus(tmp_path)
        artifact_path.write_text("{not json")
        with pytest.raises(CorpusLoadError):
            CorpusStore.load(artifact_path, metadata_path)

    def test_missing_metadata_table(self, tmp_path):
        artifact_path, _ = _write_corpus(tmp_path)
        with pytest.raises(CorpusLoadError, match="metadata table"):
            CorpusStore.load(artifact_path, tmp_path / "missing.csv")

    def test_metadata_missing_columns(self, tmp_path):
        artifact_path, metadata_path = _write_corpus(tmp_path, csv_text="name,date\nJean,1991\n")
        with pytest.raises(CorpusLoadError, match="missing columns"):
            CorpusStore.load(artifact_path, metadata_path)

    def test_mismatched_array_lengths(self):
        artifact = make_artifact(PASSAGES)
        artifact["texts"].pop()
        with pytest.raises(CorpusLoadError, match="mismatched"):
            CorpusStore.from_data(artifact, PEOPLE)

    def test_unparseable_source(self):
        artifact = make_artifact(PASSAGES[:1])
        artifact["metadata"][0]["source"] = "interview.pdf"
        with pytest.raises(CorpusLoadError, match="cannot parse document id"):
            CorpusStore.from_data(artifact, PEOPLE)

    def test_chunk_for_unknown_document(self):
        artifact = make_artifact([("9", 1, "orphan", (1.0, 0.0, 0.0))])
        with pytest.raises(CorpusLoadError, match="no row in the metadata table"):
            CorpusStore.from_data(artifact, PEOPLE)

    def test_inconsistent_dimension(self):
        artifact = make_artifact(PASSAGES[:2])
        artifact["embeddings"][1] = [1.0, 0.0]
        with pytest.raises(CorpusLoadError, match="dimension"):
            CorpusStore.from_data(artifact, PEOPLE)

    def test_non_numeric_embedding(self):
        artifact = make_artifact(PASSAGES[:1])
        artifact["embeddings"][0] = ["a", "b", "c"]
        with pytest.raises(CorpusLoadError, match="not numeric"):
            CorpusStore.from_data(artifact, PEOPLE)

    def test_empty_name(self):
        rows = [dict(PEOPLE[0], name="  ")]
        with pytest.raises(CorpusLoadError, match="empty name"):
            build_records(rows)


class TestMetadataTable:
    def test_rows_are_strings_in_file_order(self, tmp_path):
        path = tmp_path / "metadata.csv"
        path.write_text(CSV_HEADER + "Vito Russo,1990,Closet,\nJean Carlomusto,1991,Video,GMHC\n")

        rows = read_metadata_table(path)

        assert [r["name"] for r in rows] == ["Vito Russo", "Jean Carlomusto"]
        assert rows[0]["tags"] == ""
        assert isinstance(rows[0]["date"], str)

    def test_ids_follow_row_position(self):
        records = build_records([dict(p) for p in PEOPLE[:2]])
        assert [r.document_id for r in records] == ["1", "2"]

    def test_list_tags_are_joined(self):
        records = build_records([dict(PEOPLE[0], tags=["GMHC", "video"])])
        assert records[0].tags == "GMHC, video"


def test_empty_corpus_has_no_dimension():
    store = CorpusStore.from_data(make_artifact([]), PEOPLE)
    assert store.size == 0
    assert store.dimension == 0
    assert isinstance(store.matrix, np.ndarray)
