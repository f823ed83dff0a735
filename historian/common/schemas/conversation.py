"""
Conversation Schemas

A session is an ordered, append-only list of turns.
"""

from enum import Enum
from pydantic import BaseModel


class Role(str, Enum):
    """Who produced a conversation turn"""
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """One message in a chat session"""
    role: Role
    content: str

    def as_message(self) -> dict:
        """Chat-completion message dict"""
        return {"role": self.role.value, "content": self.content}
