"""
Historian Server

Chat API over the retrieval engine, plus the per-session history store and
the participant chat log.
"""

from .chat_log import ChatLog, ChatLogEntry
from .session_store import SessionStore, SessionHandle

__all__ = [
    "ChatLog",
    "ChatLogEntry",
    "SessionStore",
    "SessionHandle",
]
