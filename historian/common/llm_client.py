"""
Provider-agnostic LLM client for Historian.

Supports OpenAI, Anthropic, and Google Gemini with a shared chat interface
(system instructions + conversation history + user turn).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import GenerationProviderError

logger = logging.getLogger("historian.common.llm_client")


class LLMClient:
    """Unified chat completion client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        openai_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self._client = None

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import OpenAI

                self._client = OpenAI(api_key=openai_api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.Anthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int = 150,
        temperature: float = 0.7,
        presence_penalty: float = 0.0,
        frequency_penalty: float = 0.0,
        timeout: float = 30.0,
    ) -> str:
        """Run one chat completion.

        Args:
            messages: Ordered ``{"role", "content"}`` dicts; "system" entries
                become the provider's system instructions.
            presence_penalty: OpenAI only.
            frequency_penalty: OpenAI only.

        Raises:
            GenerationProviderError: client unavailable or the call failed
        """
        if not self.is_available:
            raise GenerationProviderError("LLM client is not available")

        try:
            if self.provider == "openai":
                return self._chat_openai(
                    messages, max_tokens, temperature,
                    presence_penalty, frequency_penalty, timeout,
                )
            if self.provider == "anthropic":
                return self._chat_anthropic(messages, max_tokens, temperature, timeout)
            if self.provider == "google":
                return self._chat_google(messages, max_tokens, temperature, timeout)
        except GenerationProviderError:
            raise
        except Exception as e:
            raise GenerationProviderError(f"{self.provider} request failed: {e}") from e

        raise GenerationProviderError(f"Unsupported LLM provider: {self.provider}")

    def _chat_openai(self, messages, max_tokens, temperature, presence_penalty,
                     frequency_penalty, timeout) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            presence_penalty=presence_penalty,
            frequency_penalty=frequency_penalty,
            timeout=timeout,
        )
        return (response.choices[0].message.content or "").strip()

    def _chat_anthropic(self, messages, max_tokens, temperature, timeout) -> str:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        turns = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] in ("user", "assistant")
        ]
        kwargs = {}
        if system:
            kwargs["system"] = system
        response = self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=turns,
            timeout=timeout,
            **kwargs,
        )
        return response.content[0].text.strip()

    def _chat_google(self, messages, max_tokens, temperature, timeout) -> str:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        kwargs = {"model_name": self.model}
        if system:
            kwargs["system_instruction"] = system
        model = self._client.GenerativeModel(**kwargs)

        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [m["content"]],
            }
            for m in messages
            if m["role"] in ("user", "assistant")
        ]
        response = model.generate_content(
            contents,
            generation_config={
                "max_output_tokens": max_tokens,
                "temperature": temperature,
            },
            request_options={"timeout": timeout},
        )
        return response.text.strip()
