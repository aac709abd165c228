"""Claim and entity schemas produced by the extraction layer.

Claims are ephemeral: derived per evaluation, never persisted on their own.
Ids are unique within one response's evaluation only.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FactType(str, Enum):
    """Kind of factual assertion a claim makes."""

    FACTUAL = "factual"
    NUMERICAL = "numerical"
    STATISTICAL = "statistical"
    HISTORICAL = "historical"
    SCIENTIFIC = "scientific"
    DEFINITION = "definition"


class EntityType(str, Enum):
    """Lexical entity categories."""

    PERSON = "person"
    PLACE = "place"
    ORGANIZATION = "organization"
    DATE = "date"
    NUMBER = "number"
    CONCEPT = "concept"
    EVENT = "event"


class Factuality(str, Enum):
    """How assertively a sentence is phrased."""

    FACTUAL = "factual"
    OPINION = "opinion"
    HYPOTHETICAL = "hypothetical"
    UNCERTAIN = "uncertain"


class Entity(BaseModel):
    """A typed span recognized inside a claim."""

    text: str
    type: EntityType
    confidence: float = Field(0.8, ge=0.0, le=1.0)
    start: int = Field(0, ge=0, description="Start offset within the sentence")
    end: int = Field(0, ge=0, description="End offset within the sentence")


class Claim(BaseModel):
    """An extracted, classifiable assertion."""

    id: str = Field(..., description="Claim id, unique within one evaluation")
    text: str = Field(..., description="Sentence text")
    type: FactType = FactType.FACTUAL
    confidence: float = Field(0.6, ge=0.0, le=1.0)
    entities: list[Entity] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    context: str = Field(default="", description="Neighbouring sentences")
    span_start: int = Field(default=0, ge=0, description="Offset in the source text")
    span_end: int = Field(default=0, ge=0)
    factuality: Factuality = Factuality.FACTUAL
    sub_claims: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "claim_0",
                    "text": "The Eiffel Tower was completed in 1889",
                    "type": "numerical",
                    "confidence": 0.9,
                    "entities": [
                        {"text": "1889", "type": "date", "confidence": 0.8, "start": 34, "end": 38}
                    ],
                    "keywords": ["eiffel", "tower", "completed", "1889"],
                }
            ]
        }
    }

    @property
    def entity_texts(self) -> set[str]:
        return {e.text for e in self.entities}
