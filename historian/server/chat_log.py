"""
Chat Log

Append-only record of every chat message, one JSON object per line, so a
study participant's full exchange can be exported later.

The log is persisted to ~/.historian/chat_log.jsonl by default.
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from ..common.config import CHAT_LOG_PATH

logger = logging.getLogger("historian.server.chat_log")


@dataclass
class ChatLogEntry:
    """One logged message"""
    qualtrics_id: str
    session_id: Optional[str]
    role: str  # "user" or "assistant"
    content: str
    chatbot_id: str
    timestamp: str  # ISO 8601, UTC


class ChatLog:
    """JSON-lines message log"""

    def __init__(self, log_path: Optional[Union[str, Path]] = None):
        """
        Initialize chat log.

        Args:
            log_path: Path to log file (default: ~/.historian/chat_log.jsonl)
        """
        self._log_path = Path(log_path) if log_path else CHAT_LOG_PATH

    @property
    def path(self) -> Path:
        return self._log_path

    def record(
        self,
        qualtrics_id: str,
        session_id: Optional[str],
        role: str,
        content: str,
        chatbot_id: str,
    ) -> ChatLogEntry:
        """Append one message to the log"""
        entry = ChatLogEntry(
            qualtrics_id=qualtrics_id,
            session_id=session_id,
            role=role,
            content=content,
            chatbot_id=chatbot_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry)) + "\n")

        return entry

    def history(self, qualtrics_id: str) -> List[ChatLogEntry]:
        """All messages of one participant, oldest first"""
        if not self._log_path.exists():
            return []

        entries = []
        with open(self._log_path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise TypeError(f"expected an object, got {type(data).__name__}")
                    if data.get("qualtrics_id") != qualtrics_id:
                        continue
                    entries.append(ChatLogEntry(**data))
                except (json.JSONDecodeError, TypeError) as e:
                    logger.warning("Skipping corrupt chat log line %d: %s", line_no, e)

        entries.sort(key=lambda entry: entry.timestamp)
        return entries
