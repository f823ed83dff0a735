#!/usr/bin/env python3
"""
Corpus Build Script

Reads the interview PDFs, chunks them, embeds every chunk and writes the
corpus artifact the server loads at startup. Re-run it whenever the
transcripts or the embedding model change.

Usage:
    python scripts/build_corpus.py [--dry-run] [--batch-size 20]
        [--documents-dir data/pdfs] [--output data/embeddings.json]
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def main():
    parser = argparse.ArgumentParser(description="Build the interview corpus artifact")
    parser.add_argument("--documents-dir", type=str, default=None, help="Directory with document<N>.pdf files")
    parser.add_argument("--output", type=str, default=None, help="Artifact path to write")
    parser.add_argument("--batch-size", type=int, default=None, help="Number of chunks embedded per batch")
    parser.add_argument("--dry-run", action="store_true", help="Read and chunk only, do not embed or write")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    from historian.common.config import load_config
    from historian.common.embedding_service import EmbeddingService
    from historian.ingest import BatchEmbedder, read_documents, split_into_chunks, write_artifact

    config = load_config()
    documents_dir = args.documents_dir or config.corpus.documents_dir
    output = args.output or config.corpus.embeddings_path
    if args.batch_size:
        config.ingest.batch_size = args.batch_size

    print(f"[Ingest] Reading documents from {documents_dir}...")
    try:
        documents = read_documents(documents_dir)
    except FileNotFoundError as e:
        print(f"[Ingest] ERROR: {e}")
        sys.exit(1)
    print(f"[Ingest] Found {len(documents)} documents")

    chunks = split_into_chunks(documents, max_tokens=config.ingest.max_chunk_tokens)
    print(f"[Ingest] Created {len(chunks)} chunks")

    if args.dry_run:
        print("[Ingest] DRY RUN - nothing will be embedded or written")
        print(f"[Ingest] Would embed {len(chunks)} chunks in batches of {config.ingest.batch_size}")
        print(f"[Ingest] Would write {output}")
        return

    print(f"[Ingest] Embedding model: {config.embedding.mode}/{config.embedding.model}")
    embedding_svc = EmbeddingService(
        mode=config.embedding.mode,
        model=config.embedding.model,
        openai_api_key=config.embedding.openai_api_key or None,
    )
    if not embedding_svc.is_available:
        print("[Ingest] ERROR: Embedding service not available")
        sys.exit(1)

    embedder = BatchEmbedder.from_config(embedding_svc, config.ingest)
    artifact = asyncio.run(embedder.embed_chunks(chunks))

    path = write_artifact(output, artifact)
    print(
        f"[Ingest] Complete: {len(artifact['texts'])} embedded, "
        f"{len(embedder.dropped)} dropped, {len(chunks)} total -> {path}"
    )


if __name__ == "__main__":
    main()
