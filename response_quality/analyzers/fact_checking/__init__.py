"""Claim verification against knowledge base, sources and history."""

from response_quality.analyzers.fact_checking.fact_checker import FactChecker

__all__ = ["FactChecker"]
