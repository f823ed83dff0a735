"""
Query Processor

Decides whether a raw question needs the conversation folded in before it is
embedded, and detects comparative questions.

Short, "why"/"how", or question-mark-less inputs are usually elliptical
follow-ups ("why did she leave?") and only make sense next to the previous
exchanges. Fully formed questions are embedded as asked.
"""

from dataclasses import dataclass
from typing import Sequence

from ..common.schemas import ConversationTurn


@dataclass(frozen=True)
class ReformulatedQuery:
    """Query text to resolve entities on and embed"""
    original: str
    text: str
    is_comparative: bool = False
    used_history: bool = False


class QueryProcessor:
    """
    Reformulates user questions using recent conversation history.

    Responsibilities:
    1. Detect context-dependent follow-ups
    2. Prefix them with the last few turns of the conversation
    3. Flag comparative questions ("between", "compare")
    """

    FOLLOWUP_PREFIXES = ("why", "how")
    COMPARATIVE_MARKERS = ("between", "compare")

    def __init__(self, history_turns: int = 4, short_question_chars: int = 60):
        """
        Args:
            history_turns: How many of the most recent turns to fold in
            short_question_chars: Questions shorter than this are follow-ups
        """
        self._history_turns = history_turns
        self._short_question_chars = short_question_chars

    def needs_history(self, question: str) -> bool:
        """Whether the question should be grounded in the conversation"""
        lowered = question.lower()
        return (
            len(question) < self._short_question_chars
            or lowered.startswith(self.FOLLOWUP_PREFIXES)
            or "?" not in question
        )

    def is_comparative(self, text: str) -> bool:
        lowered = text.lower()
        return any(marker in lowered for marker in self.COMPARATIVE_MARKERS)

    def reformulate(
        self,
        question: str,
        history: Sequence[ConversationTurn] = (),
    ) -> ReformulatedQuery:
        """
        Build the contextual query for one request.

        Args:
            question: Raw user question
            history: Session turns, oldest first

        Returns:
            ReformulatedQuery; text is "<last turns> <question>" for follow-ups
            (" <question>" on a fresh session), otherwise the question unchanged
        """
        text = question
        used_history = False

        # An empty history still folds, leaving a leading space
        if self.needs_history(question):
            recent = list(history)[-self._history_turns:]
            previous = " ".join(turn.content for turn in recent)
            text = f"{previous} {question}"
            used_history = True

        return ReformulatedQuery(
            original=question,
            text=text,
            is_comparative=self.is_comparative(text),
            used_history=used_history,
        )
