"""
Corpus Artifact

JSON file with three equal-length parallel arrays, written by the ingestion
pipeline and read once by the corpus store at startup:

    {
      "embeddings": [[...], ...],
      "texts": ["...", ...],
      "metadata": [{"source": "document4.pdf", "page": 12, "tokens": 431}, ...]
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from ..common.errors import CorpusLoadError

logger = logging.getLogger("historian.ingest.artifact")

ARTIFACT_KEYS = ("embeddings", "texts", "metadata")


def build_artifact(
    embeddings: List[List[float]],
    texts: List[str],
    metadata: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Assemble the artifact structure, refusing misaligned arrays"""
    if not (len(embeddings) == len(texts) == len(metadata)):
        raise ValueError(
            f"Artifact arrays must be the same length: embeddings={len(embeddings)}, "
            f"texts={len(texts)}, metadata={len(metadata)}"
        )
    return {"embeddings": embeddings, "texts": texts, "metadata": metadata}


def write_artifact(path: Union[str, Path], artifact: Dict[str, Any]) -> Path:
    """Write the artifact as JSON; returns the written path"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(artifact, f, indent=2)
    logger.info("Saved corpus artifact with %d chunks to %s", len(artifact["texts"]), path)
    return path


def read_artifact(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read and shape-check an artifact file.

    Raises:
        CorpusLoadError: file missing/unreadable, not JSON, missing keys,
            or arrays of different lengths
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorpusLoadError(f"Cannot read corpus artifact {path}: {e}") from e

    validate_artifact(data, origin=str(path))
    return data


def validate_artifact(data: Any, origin: str = "<memory>") -> None:
    """Check keys, array types and equal lengths"""
    if not isinstance(data, dict):
        raise CorpusLoadError(f"Corpus artifact {origin} is not a JSON object")

    missing = [key for key in ARTIFACT_KEYS if key not in data]
    if missing:
        raise CorpusLoadError(f"Corpus artifact {origin} is missing keys: {', '.join(missing)}")

    for key in ARTIFACT_KEYS:
        if not isinstance(data[key], list):
            raise CorpusLoadError(f"Corpus artifact {origin}: '{key}' must be an array")

    lengths = {key: len(data[key]) for key in ARTIFACT_KEYS}
    if len(set(lengths.values())) != 1:
        raise CorpusLoadError(f"Corpus artifact {origin} has mismatched array lengths: {lengths}")
