"""
Configuration Management for Historian

Loads configuration from ~/.historian/config.json and environment variables
(a local .env file is honoured via python-dotenv).
"""

import os
import json
import logging
from pathlib import Path
from typing import List
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("historian.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".historian"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOGS_DIR = CONFIG_DIR / "logs"
CHAT_LOG_PATH = CONFIG_DIR / "chat_log.jsonl"

# Project paths (relative to this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"


@dataclass
class CorpusConfig:
    """Where the prebuilt corpus lives"""
    embeddings_path: str = str(DATA_DIR / "embeddings.json")
    metadata_path: str = str(DATA_DIR / "metadata.csv")
    documents_dir: str = str(DATA_DIR / "pdfs")


@dataclass
class EmbeddingConfig:
    """Embedding provider configuration (must match the corpus artifact)"""
    mode: str = "openai"  # "openai" or "femb" (fastembed, on-device)
    model: str = "text-embedding-3-small"
    openai_api_key: str = ""


@dataclass
class LLMConfig:
    """Generation provider configuration"""
    provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4-turbo-preview"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    temperature: float = 0.7
    max_tokens: int = 150
    presence_penalty: float = 1.0
    frequency_penalty: float = 1.0


@dataclass
class RetrieverConfig:
    """Retrieval engine tuning"""
    topk: int = 5
    history_turns: int = 4
    short_question_chars: int = 60
    max_concurrency: int = 4


@dataclass
class IngestConfig:
    """Corpus build pipeline tuning"""
    batch_size: int = 20
    batch_delay: float = 1.0
    max_chunk_tokens: int = 500
    max_concurrency: int = 20


@dataclass
class ServerConfig:
    """Chat API configuration"""
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(
        default_factory=lambda: ["https://chatbot11directanswers.netlify.app"]
    )
    chatbot_id: str = "direct-answers-bot"
    request_timeout: float = 60.0
    chat_log_path: str = str(CHAT_LOG_PATH)


@dataclass
class HistorianConfig:
    """Main Historian configuration"""
    corpus: CorpusConfig = field(default_factory=CorpusConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    retriever: RetrieverConfig = field(default_factory=RetrieverConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _parse_corpus_config(data: dict) -> CorpusConfig:
    """Parse corpus section from config dict"""
    corpus_data = data.get("corpus", {})
    defaults = CorpusConfig()
    return CorpusConfig(
        embeddings_path=corpus_data.get("embeddings_path", defaults.embeddings_path),
        metadata_path=corpus_data.get("metadata_path", defaults.metadata_path),
        documents_dir=corpus_data.get("documents_dir", defaults.documents_dir),
    )


def _parse_embedding_config(data: dict) -> EmbeddingConfig:
    """Parse embedding section from config dict"""
    embedding_data = data.get("embedding", {})
    return EmbeddingConfig(
        mode=embedding_data.get("mode", "openai"),
        model=embedding_data.get("model", "text-embedding-3-small"),
        openai_api_key=embedding_data.get("openai_api_key", ""),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "openai"),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", "gpt-4-turbo-preview"),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", "claude-sonnet-4-20250514"),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", "gemini-2.0-flash-exp"),
        temperature=llm_data.get("temperature", 0.7),
        max_tokens=llm_data.get("max_tokens", 150),
        presence_penalty=llm_data.get("presence_penalty", 1.0),
        frequency_penalty=llm_data.get("frequency_penalty", 1.0),
    )


def _parse_retriever_config(data: dict) -> RetrieverConfig:
    """Parse retriever section from config dict"""
    retriever_data = data.get("retriever", {})
    return RetrieverConfig(
        topk=retriever_data.get("topk", 5),
        history_turns=retriever_data.get("history_turns", 4),
        short_question_chars=retriever_data.get("short_question_chars", 60),
        max_concurrency=retriever_data.get("max_concurrency", 4),
    )


def _parse_ingest_config(data: dict) -> IngestConfig:
    """Parse ingest section from config dict"""
    ingest_data = data.get("ingest", {})
    return IngestConfig(
        batch_size=ingest_data.get("batch_size", 20),
        batch_delay=ingest_data.get("batch_delay", 1.0),
        max_chunk_tokens=ingest_data.get("max_chunk_tokens", 500),
        max_concurrency=ingest_data.get("max_concurrency", 20),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    defaults = ServerConfig()
    return ServerConfig(
        host=server_data.get("host", defaults.host),
        port=server_data.get("port", defaults.port),
        cors_origins=server_data.get("cors_origins", defaults.cors_origins),
        chatbot_id=server_data.get("chatbot_id", defaults.chatbot_id),
        request_timeout=server_data.get("request_timeout", defaults.request_timeout),
        chat_log_path=server_data.get("chat_log_path", defaults.chat_log_path),
    )


def load_config() -> HistorianConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.historian/config.json)
    3. Default values
    """
    config = HistorianConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.corpus = _parse_corpus_config(data)
            config.embedding = _parse_embedding_config(data)
            config.llm = _parse_llm_config(data)
            config.retriever = _parse_retriever_config(data)
            config.ingest = _parse_ingest_config(data)
            config.server = _parse_server_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Corpus locations
    if os.getenv("HISTORIAN_EMBEDDINGS_PATH"):
        config.corpus.embeddings_path = os.getenv("HISTORIAN_EMBEDDINGS_PATH")
    if os.getenv("HISTORIAN_METADATA_PATH"):
        config.corpus.metadata_path = os.getenv("HISTORIAN_METADATA_PATH")
    if os.getenv("HISTORIAN_DOCUMENTS_DIR"):
        config.corpus.documents_dir = os.getenv("HISTORIAN_DOCUMENTS_DIR")

    if os.getenv("EMBEDDING_MODE"):
        config.embedding.mode = os.getenv("EMBEDDING_MODE")
    if os.getenv("EMBEDDING_MODEL"):
        config.embedding.model = os.getenv("EMBEDDING_MODEL")

    # The same OpenAI key usually serves both embeddings and generation
    if os.getenv("OPENAI_API_KEY"):
        config.embedding.openai_api_key = os.getenv("OPENAI_API_KEY")

    _env_llm_map = {
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "HISTORIAN_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)

    if os.getenv("HISTORIAN_TOPK"):
        config.retriever.topk = int(os.getenv("HISTORIAN_TOPK"))

    if os.getenv("PORT"):
        config.server.port = int(os.getenv("PORT"))
    if os.getenv("HISTORIAN_CORS_ORIGINS"):
        config.server.cors_origins = [
            origin.strip()
            for origin in os.getenv("HISTORIAN_CORS_ORIGINS").split(",")
            if origin.strip()
        ]

    return config


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
