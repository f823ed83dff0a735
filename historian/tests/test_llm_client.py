"""Tests for LLMClient provider abstraction."""

import logging
from unittest.mock import Mock

import pytest

from historian.common.errors import GenerationProviderError
from historian.common.llm_client import LLMClient

MESSAGES = [
    {"role": "system", "content": "Cite interviews."},
    {"role": "user", "content": "Who is Jean?"},
    {"role": "assistant", "content": "From Interview #1 ..."},
    {"role": "user", "content": "What did she film?"},
]


def _with_client(provider, client):
    llm = LLMClient(provider=provider, model="test-model")
    llm._client = client
    return llm


class TestLLMClientInit:
    @pytest.mark.parametrize("provider", ["openai", "anthropic", "google"])
    def test_missing_key_logs_info(self, provider, caplog):
        with caplog.at_level(logging.INFO, logger="historian.common.llm_client"):
            client = LLMClient(provider=provider)
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="historian.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text


class TestChat:
    def test_raises_when_unavailable(self):
        with pytest.raises(GenerationProviderError, match="not available"):
            LLMClient(provider="openai").chat(MESSAGES)

    def test_openai_passes_messages_and_penalties(self):
        sdk = Mock()
        sdk.chat.completions.create.return_value.choices = [
            Mock(message=Mock(content="  She made videos.  "))
        ]
        llm = _with_client("openai", sdk)

        reply = llm.chat(MESSAGES, max_tokens=150, presence_penalty=1.0, frequency_penalty=1.0)

        assert reply == "She made videos."
        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["presence_penalty"] == 1.0
        assert kwargs["frequency_penalty"] == 1.0

    def test_anthropic_moves_system_out_of_turns(self):
        sdk = Mock()
        sdk.messages.create.return_value.content = [Mock(text="Answer.")]
        llm = _with_client("anthropic", sdk)

        assert llm.chat(MESSAGES) == "Answer."

        kwargs = sdk.messages.create.call_args.kwargs
        assert kwargs["system"] == "Cite interviews."
        assert [m["role"] for m in kwargs["messages"]] == ["user", "assistant", "user"]

    def test_google_maps_assistant_to_model(self):
        genai = Mock()
        model = genai.GenerativeModel.return_value
        model.generate_content.return_value.text = "Answer."
        llm = _with_client("google", genai)

        assert llm.chat(MESSAGES) == "Answer."

        assert genai.GenerativeModel.call_args.kwargs["system_instruction"] == "Cite interviews."
        contents = model.generate_content.call_args[0][0]
        assert [c["role"] for c in contents] == ["user", "model", "user"]

    def test_provider_exception_is_wrapped(self):
        sdk = Mock()
        sdk.chat.completions.create.side_effect = RuntimeError("502 bad gateway")
        llm = _with_client("openai", sdk)

        with pytest.raises(GenerationProviderError, match="bad gateway") as exc_info:
            llm.chat(MESSAGES)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
