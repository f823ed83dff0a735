"""Tests for configuration loading."""

import json
import logging
import os
from unittest.mock import patch

from historian.common.config import HistorianConfig, load_config


class TestDefaults:
    def test_defaults(self, tmp_path):
        with patch("historian.common.config.CONFIG_PATH", tmp_path / "absent.json"), \
             patch.dict(os.environ, {}, clear=True):
            cfg = load_config()

        assert cfg.embedding.mode == "openai"
        assert cfg.embedding.model == "text-embedding-3-small"
        assert cfg.llm.openai_model == "gpt-4-turbo-preview"
        assert cfg.llm.max_tokens == 150
        assert cfg.llm.presence_penalty == 1.0
        assert cfg.retriever.topk == 5
        assert cfg.retriever.history_turns == 4
        assert cfg.ingest.batch_size == 20
        assert cfg.ingest.max_chunk_tokens == 500
        assert cfg.server.port == 3000
        assert cfg.server.chatbot_id == "direct-answers-bot"
        assert cfg.server.cors_origins == ["https://chatbot11directanswers.netlify.app"]

    def test_sections_are_independent_instances(self):
        a, b = HistorianConfig(), HistorianConfig()
        a.server.cors_origins.append("http://localhost")
        assert b.server.cors_origins == ["https://chatbot11directanswers.netlify.app"]


class TestConfigFile:
    def test_file_sections(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({
            "corpus": {"embeddings_path": "/data/emb.json"},
            "embedding": {"mode": "femb", "model": "BAAI/bge-small-en-v1.5"},
            "llm": {"provider": "anthropic", "max_tokens": 300},
            "retriever": {"topk": 8},
            "server": {"port": 8080},
        }))

        with patch("historian.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {}, clear=True):
            cfg = load_config()

        assert cfg.corpus.embeddings_path == "/data/emb.json"
        assert cfg.corpus.metadata_path.endswith("metadata.csv")
        assert cfg.embedding.mode == "femb"
        assert cfg.llm.provider == "anthropic"
        assert cfg.llm.max_tokens == 300
        assert cfg.retriever.topk == 8
        assert cfg.retriever.history_turns == 4
        assert cfg.server.port == 8080

    def test_malformed_file_falls_back_to_defaults(self, tmp_path, caplog):
        config_file = tmp_path / "config.json"
        config_file.write_text("{oops")

        with patch("historian.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {}, clear=True), \
             caplog.at_level(logging.WARNING, logger="historian.common.config"):
            cfg = load_config()

        assert cfg.retriever.topk == 5
        assert "Failed to load config file" in caplog.text


class TestEnvOverrides:
    def test_env_beats_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"retriever": {"topk": 8}, "server": {"port": 8080}}))

        env = {
            "OPENAI_API_KEY": "sk-env",
            "HISTORIAN_LLM_PROVIDER": "google",
            "GEMINI_API_KEY": "g-key",
            "HISTORIAN_TOPK": "3",
            "PORT": "9000",
            "HISTORIAN_CORS_ORIGINS": "http://a.example, http://b.example ,",
            "HISTORIAN_EMBEDDINGS_PATH": "/tmp/emb.json",
        }
        with patch("historian.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, env, clear=True):
            cfg = load_config()

        assert cfg.embedding.openai_api_key == "sk-env"
        assert cfg.llm.openai_api_key == "sk-env"
        assert cfg.llm.provider == "google"
        assert cfg.llm.google_api_key == "g-key"
        assert cfg.retriever.topk == 3
        assert cfg.server.port == 9000
        assert cfg.server.cors_origins == ["http://a.example", "http://b.example"]
        assert cfg.corpus.embeddings_path == "/tmp/emb.json"
