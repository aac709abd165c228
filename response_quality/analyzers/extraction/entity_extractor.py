"""Pattern-based entity tagging.

Four fixed patterns, each scanned independently so one span may carry more
than one type (a four-digit year is both a date and a number).
"""

import re

from response_quality.data_management.schemas import Entity, EntityType


class EntityExtractor:
    """Tags person, date, number and place spans with fixed regexes.

    Usage:
        extractor = EntityExtractor()
        entities = extractor.extract("Marie Curie moved to Paris City in 1891")
    """

    ENTITY_CONFIDENCE = 0.8

    PATTERNS: list[tuple[EntityType, re.Pattern[str]]] = [
        (EntityType.PERSON, re.compile(r"\b([A-Z][a-z]+ [A-Z][a-z]+)\b")),
        (EntityType.DATE, re.compile(r"\b(\d{4})\b")),
        (EntityType.NUMBER, re.compile(r"\b(\d+(?:\.\d+)?)\b")),
        (
            EntityType.PLACE,
            re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\s+(?:City|State|Country|County))\b"),
        ),
    ]

    def __init__(self, include_places: bool = True) -> None:
        self.include_places = include_places

    def extract(self, sentence: str) -> list[Entity]:
        """Return entities in pattern order, then by position."""
        entities: list[Entity] = []
        for entity_type, pattern in self.PATTERNS:
            if entity_type == EntityType.PLACE and not self.include_places:
                continue
            for match in pattern.finditer(sentence):
                entities.append(
                    Entity(
                        text=match.group(1),
                        type=entity_type,
                        confidence=self.ENTITY_CONFIDENCE,
                        start=match.start(1),
                        end=match.end(1),
                    )
                )
        return entities
