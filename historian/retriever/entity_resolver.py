"""
Entity Resolver

Finds interviewees named in a query by plain substring containment against
the people registry. Names are short and few, so naive matching is adequate
and easy to audit.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..common.schemas import PersonRecord

logger = logging.getLogger("historian.retriever.entity_resolver")


@dataclass(frozen=True)
class EntityMatch:
    """A registry record whose name appears in the query"""
    document_id: str
    record: PersonRecord
    matched_on: str  # full name or the name token that hit

    @property
    def is_full_name(self) -> bool:
        return self.matched_on == self.record.name.lower()


class EntityResolver:
    """
    Matches query text against person names.

    Per record, in registry order:
    1. Full lowercased name is a substring of the query → match
    2. Otherwise the first name token longer than MIN_TOKEN_LENGTH - 1
       characters found in the query → match (one match per record)
    """

    MIN_TOKEN_LENGTH = 3

    def __init__(self, records: Sequence[PersonRecord]):
        """
        Args:
            records: Registry in metadata-table order
        """
        self._records = tuple(records)

    def find_matches(self, text: str) -> List[EntityMatch]:
        """
        Find every registry record named in text.

        Args:
            text: Query text (any case)

        Returns:
            Matches in registry order; empty when nobody is named
        """
        if not text:
            return []

        normalized = text.lower()
        matches = []

        for record in self._records:
            hit = self._match_record(record, normalized)
            if hit is not None:
                matches.append(EntityMatch(
                    document_id=record.document_id,
                    record=record,
                    matched_on=hit,
                ))

        if matches:
            logger.debug(
                "Resolved %d interviewee(s): %s",
                len(matches), ", ".join(m.record.name for m in matches),
            )
        return matches

    def find_best_match(self, text: str) -> Optional[EntityMatch]:
        """First match in registry order, or None"""
        matches = self.find_matches(text)
        return matches[0] if matches else None

    def _match_record(self, record: PersonRecord, normalized: str) -> Optional[str]:
        full_name = record.name.lower()
        if full_name and full_name in normalized:
            return full_name

        for token in record.name_tokens:
            if len(token) >= self.MIN_TOKEN_LENGTH and token in normalized:
                return token

        return None
