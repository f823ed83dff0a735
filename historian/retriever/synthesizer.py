"""
Synthesizer

Composes the final answer: interpolates retrieved context into the system
instructions, replays the session history, and asks the LLM for a short,
cited reply.

Key principle: every claim cites an interview. When retrieval finds nothing,
the model is told so and answers that the interviews don't cover it.
"""

import asyncio
import logging
import re
from typing import Dict, List, Optional, Sequence

from ..common.config import LLMConfig
from ..common.llm_client import LLMClient
from ..common.schemas import ConversationTurn, RetrievalResult

logger = logging.getLogger("historian.retriever.synthesizer")

NO_CONTEXT_TEXT = "No relevant interview passages were found."

SYSTEM_PROMPT = """You are a helpful assistant analyzing oral history interviews. Respond warmly to greetings or friendly messages (e.g., "hi," "hello," "how are you?"). Follow these rules strictly:

CRITICAL RULES:
- ALWAYS start your response by citing the specific interview(s) you're drawing from
- Give ONE clear, definitive answer in the first sentence
- Use this format for citations: "From Interview #[X] with [Name]:"
- For multiple sources: "From Interview #[X] with [Name], and Interview #[Z] with [Name]:"
- After the citation, provide your concise answer
- Never make claims without citing specific interviews
- If you can't find relevant information, say "I don't find information about this in the interviews"
- For comparative questions, cite both interviews before making any comparison
- If asked 'why', always point back to specific interviews and pages

RESPONSE STRUCTURE:
1. Start with citation and clear answer
2. Provide brief supporting evidence if relevant
3. ALWAYS end with ONE relevant follow-up suggestion based on:
   - Related topics mentioned in the cited interviews
   - Connected projects or activities
   - Key people referenced
   - Timeline connections
   Format suggestion as: "Would you like to know more about [specific related topic/person/project]?"

WHICH/WHO QUESTIONS BETWEEN PEOPLE:
- ALWAYS choose one person as the primary figure based on:
   - Frequency of mention in relevant context
   - Scope and scale of their involvement
   - Whether it was their main focus vs. one of many activities
   - Direct vs. indirect involvement

HANDLING FOLLOW-UP QUESTIONS:
- Review previous exchanges to understand the context
- For "why" questions, refer back to the specific evidence from previously cited interviews
- If a follow-up question is unclear, ask for clarification about which aspect they want to know more about
- Always maintain continuity with previous responses
- If the follow-up requires new information not covered in previous responses, search for and cite new relevant passages

Example good response:
"From Interview #4 with Jean Carlomusto, page 12: She primarily worked on AIDS education videos at GMHC."

Example bad response:
"Jean Carlomusto worked on AIDS education videos at GMHC." (missing citation)

Only use information from the provided context. Here is the relevant context:

{context}"""

SENTENCE_ENDINGS = (".", "!", "?")
TRAILING_ELLIPSIS = re.compile(r"\.{3,}$")


def ensure_complete_response(text: str) -> str:
    """
    Trim a reply cut off by the token limit back to its last full sentence.

    - A trailing ellipsis is dropped
    - Text already ending in . ! ? is returned as is
    - Otherwise cut after the last sentence terminator
    - With no terminator at all, close the trimmed text with a period
    """
    text = TRAILING_ELLIPSIS.sub("", text)

    if text.endswith(SENTENCE_ENDINGS):
        return text

    last_complete = max(text.rfind(ending) for ending in SENTENCE_ENDINGS)
    if last_complete != -1:
        return text[: last_complete + 1]

    if text.strip():
        return text.strip() + "."
    return text


class AnswerSynthesizer:
    """
    Builds the chat messages for the generation provider and post-processes
    the reply.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.7,
        max_tokens: int = 150,
        presence_penalty: float = 1.0,
        frequency_penalty: float = 1.0,
    ):
        self._llm = llm_client
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._presence_penalty = presence_penalty
        self._frequency_penalty = frequency_penalty

    @classmethod
    def from_config(cls, llm_client: LLMClient, config: LLMConfig) -> "AnswerSynthesizer":
        return cls(
            llm_client,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            presence_penalty=config.presence_penalty,
            frequency_penalty=config.frequency_penalty,
        )

    @property
    def has_llm(self) -> bool:
        return self._llm.is_available

    def build_messages(
        self,
        question: str,
        history: Sequence[ConversationTurn],
        retrieval: RetrievalResult,
    ) -> List[Dict[str, str]]:
        """System instructions with context, then history, then the question"""
        context = retrieval.context if retrieval.found else NO_CONTEXT_TEXT
        messages = [{"role": "system", "content": SYSTEM_PROMPT.format(context=context)}]
        messages.extend(turn.as_message() for turn in history)
        messages.append({"role": "user", "content": question})
        return messages

    def compose(
        self,
        question: str,
        history: Sequence[ConversationTurn],
        retrieval: RetrievalResult,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate the answer for one request.

        Raises:
            GenerationProviderError: the LLM is unavailable or the call failed
        """
        messages = self.build_messages(question, history, retrieval)
        kwargs = {"timeout": timeout} if timeout is not None else {}
        reply = self._llm.chat(
            messages,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            presence_penalty=self._presence_penalty,
            frequency_penalty=self._frequency_penalty,
            **kwargs,
        )
        return ensure_complete_response(reply)

    async def acompose(
        self,
        question: str,
        history: Sequence[ConversationTurn],
        retrieval: RetrievalResult,
        timeout: Optional[float] = None,
    ) -> str:
        """compose() on a worker thread"""
        return await asyncio.to_thread(self.compose, question, history, retrieval, timeout)
