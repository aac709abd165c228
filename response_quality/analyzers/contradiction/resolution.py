"""Deterministic resolution planning for detected contradictions.

Each detector maps to one resolution template; only self contradictions and
knowledge-base conflicts vary with the score.
"""

from response_quality.data_management.schemas import (
    Contradiction,
    ContradictionResolution,
    ResolutionAction,
    ResolutionStrategy,
    Severity,
)

PRIORITY_RANK = {
    Severity.CRITICAL: 1.0,
    Severity.HIGH: 0.7,
    Severity.MEDIUM: 0.4,
    Severity.LOW: 0.1,
}

RESOLUTION_STEPS: dict[ResolutionAction, list[str]] = {
    ResolutionAction.CLARIFICATION: [
        "Review both contradictory statements",
        "Determine which statement is more accurate",
        "Clarify or correct the contradictory statement",
    ],
    ResolutionAction.SOURCE_VERIFICATION: [
        "Verify claims against additional sources",
        "Assess source reliability and bias",
        "Determine most accurate information",
    ],
    ResolutionAction.CONTEXT_ADDITION: [
        "Identify the context the statement is missing",
        "Add context explaining how the statements relate",
        "Check the answer against the learner profile",
    ],
    ResolutionAction.RETRACTION: [
        "Remove the incorrect statement",
        "Replace it with verified information",
    ],
    ResolutionAction.ACKNOWLEDGEMENT: [
        "Acknowledge the conflicting information",
        "Explain why sources disagree",
    ],
}


class ResolutionPlanner:
    """Builds ContradictionResolution objects per detector and score."""

    def for_self(self, score: float) -> ContradictionResolution:
        if score > 0.8:
            priority = Severity.CRITICAL
        elif score > 0.6:
            priority = Severity.HIGH
        else:
            priority = Severity.MEDIUM
        return ContradictionResolution(
            action=ResolutionAction.CLARIFICATION,
            priority=priority,
            confidence=0.7,
            requires_human=score > 0.7,
            description="Self-contradiction detected within response",
        )

    def for_knowledge_base(self, score: float) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.SOURCE_VERIFICATION,
            priority=Severity.CRITICAL if score > 0.8 else Severity.HIGH,
            confidence=0.8,
            requires_human=True,
            description="Claim contradicts the knowledge base",
        )

    def for_history(self) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.CONTEXT_ADDITION,
            priority=Severity.MEDIUM,
            confidence=0.6,
            requires_human=True,
            description="Claim contradicts earlier conversation",
        )

    def for_source(self) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.SOURCE_VERIFICATION,
            priority=Severity.HIGH,
            confidence=0.7,
            requires_human=True,
            description="Claim contradicts an external source",
        )

    def for_temporal(self) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.CLARIFICATION,
            priority=Severity.MEDIUM,
            confidence=0.8,
            requires_human=True,
            description="Temporal inconsistency between claims",
        )

    def for_logical(self) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.CLARIFICATION,
            priority=Severity.HIGH,
            confidence=0.9,
            requires_human=True,
            description="Logically opposed statements",
        )

    def for_contextual(self) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.CONTEXT_ADDITION,
            priority=Severity.LOW,
            confidence=0.8,
            requires_human=False,
            description="Claim does not fit the learner profile",
        )

    def for_factual(self, severity: Severity) -> ContradictionResolution:
        return ContradictionResolution(
            action=ResolutionAction.SOURCE_VERIFICATION,
            priority=severity,
            confidence=0.7,
            requires_human=True,
            description="Claims in the response disagree on a fact",
        )

    def strategies(self, contradictions: list[Contradiction]) -> list[ResolutionStrategy]:
        """Resolution strategies ordered by confidence, then priority, descending."""
        ordered = sorted(
            contradictions,
            key=lambda c: (c.resolution.confidence, PRIORITY_RANK[c.resolution.priority]),
            reverse=True,
        )
        return [
            ResolutionStrategy(
                contradiction_id=c.id,
                action=c.resolution.action,
                priority=c.resolution.priority,
                steps=[
                    f"{index}. {step}"
                    for index, step in enumerate(RESOLUTION_STEPS[c.resolution.action], start=1)
                ],
                requires_human=c.resolution.requires_human,
            )
            for c in ordered
        ]
