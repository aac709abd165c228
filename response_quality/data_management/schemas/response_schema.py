"""Input schemas: the response under evaluation and its read-only context.

Responses are produced upstream and treated as immutable. Context bundles are
owned by the caller; analyzers only read them.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Response(BaseModel):
    """An AI-generated answer submitted for quality screening."""

    id: str = Field(..., description="Upstream response identifier")
    content: str = Field(..., description="Response text")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Free-form upstream metadata"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "resp-001",
                    "content": "Water boils at 100 degrees Celsius at sea level.",
                    "metadata": {"model": "tutor-v2"},
                }
            ]
        },
    }


class KnowledgeItem(BaseModel):
    """A knowledge-base entry supplied by the knowledge/content collaborator."""

    id: str = Field(default="", description="Knowledge item identifier")
    content: str = Field(..., description="Knowledge text")
    source: str = Field(default="knowledge_base", description="Origin label")
    confidence: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Curator confidence in the item"
    )


class ConversationTurn(BaseModel):
    """One prior message in the conversation."""

    role: str = Field(default="user", description="Speaker role (user/assistant)")
    content: str = Field(..., description="Message text")


class ExternalSource(BaseModel):
    """An external reference document with a reliability score."""

    id: str = Field(default="", description="Source identifier")
    content: str = Field(default="", description="Source text or excerpt")
    title: str = Field(default="", description="Source title")
    url: Optional[str] = Field(default=None, description="Source URL")
    source_type: str = Field(default="web", description="Kind of source (journal, web, book, ...)")
    author: Optional[str] = Field(default=None, description="Author, if known")
    reliability_score: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Reliability in [0,1]"
    )
    verification_status: str = Field(
        default="unknown", description="verified, unverified or unknown"
    )

    @property
    def reliability(self) -> float:
        """Reliability with the 0.5 neutral default applied."""
        return self.reliability_score if self.reliability_score is not None else 0.5


class UserProfile(BaseModel):
    """Learner profile used for contextual scoring and contradiction checks."""

    academic_level: Optional[str] = Field(
        default=None, description="elementary, middle, high_school, undergraduate, ..."
    )
    subjects: list[str] = Field(default_factory=list, description="Declared study subjects")
    preferences: dict[str, Any] = Field(default_factory=dict)


class Context(BaseModel):
    """Read-only bundle accompanying a response."""

    knowledge_base: list[KnowledgeItem] = Field(default_factory=list)
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    external_sources: list[ExternalSource] = Field(default_factory=list)
    user_profile: Optional[UserProfile] = None

    model_config = {"frozen": True}
