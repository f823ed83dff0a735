"""Shared fixtures: a small interview corpus with 3-dimensional embeddings."""

from unittest.mock import Mock

import pytest

PEOPLE = [
    {"name": "Jean Carlomusto", "date": "1991-05-02", "excerpt_title": "Living with AIDS", "tags": "GMHC, video"},
    {"name": "Vito Russo", "date": "1990-06-11", "excerpt_title": "The Celluloid Closet", "tags": "film"},
    {"name": "Larry Kramer", "date": "1992-03-09", "excerpt_title": "Founding ACT UP", "tags": "ACT UP"},
    {"name": "Maria Maggenti", "date": "1993-01-20", "excerpt_title": "Women's caucus", "tags": "caucus"},
    {"name": "Peter Staley", "date": "1993-08-14", "excerpt_title": "Treatment activism", "tags": "TAG"},
    {"name": "Ann Northrop", "date": "1994-02-02", "excerpt_title": "Stop the Church", "tags": "media"},
]

# (document id, page, text, embedding); document 6 has no chunks
PASSAGES = [
    ("1", 12, "Jean made AIDS education videos at GMHC.", (1.0, 0.0, 0.0)),
    ("1", 13, "The Living with AIDS show aired weekly.", (0.6, 0.8, 0.0)),
    ("2", 3, "Vito wrote The Celluloid Closet.", (0.9, 0.1, 0.0)),
    ("2", 7, "He spoke at the FDA demonstration.", (0.0, 1.0, 0.0)),
    ("3", 1, "Larry founded ACT UP in 1987.", (0.0, 0.0, 1.0)),
    ("4", 2, "Maria joined the women's caucus.", (0.5, 0.5, 0.0)),
    ("5", 4, "Peter worked on Wall Street before joining.", (0.2, 0.0, 0.9)),
]

QUERY_VECTOR = [1.0, 0.0, 0.0]


def make_artifact(passages):
    return {
        "embeddings": [list(vector) for _, _, _, vector in passages],
        "texts": [text for _, _, text, _ in passages],
        "metadata": [
            {"source": f"document{doc_id}.pdf", "page": page, "tokens": len(text.split())}
            for doc_id, page, text, _ in passages
        ],
    }


def make_corpus(passages=PASSAGES, people=PEOPLE):
    from historian.retriever.corpus_store import CorpusStore

    return CorpusStore.from_data(make_artifact(passages), [dict(row) for row in people])


@pytest.fixture
def corpus():
    return make_corpus()


@pytest.fixture
def embedding_service():
    service = Mock()
    service.embed_single.return_value = list(QUERY_VECTOR)
    return service
