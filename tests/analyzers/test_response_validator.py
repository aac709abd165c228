"""Tests for ResponseValidator length and safety checks."""

import pytest

from response_quality.analyzers.validation import ResponseValidator
from response_quality.data_management.schemas import QualityLevel, Response, Severity


def make_response(content: str) -> Response:
    return Response(id="resp-1", content=content)


class TestResponseValidator:
    """Score, tier and validity rules."""

    def test_clean_response_is_valid(self):
        summary = ResponseValidator().validate(
            make_response("Photosynthesis converts light energy into chemical energy.")
        )

        assert summary.is_valid is True
        assert summary.validation_score == pytest.approx(0.7)
        assert summary.quality_level == QualityLevel.HIGH
        assert summary.issues == []
        assert summary.recommendations == []

    def test_short_response_sits_on_threshold(self):
        """0.7 - 0.2 = 0.5 is not strictly above the validity threshold."""
        summary = ResponseValidator().validate(make_response("Too short"))

        assert summary.validation_score == pytest.approx(0.5)
        assert summary.quality_level == QualityLevel.MEDIUM
        assert summary.is_valid is False
        assert summary.issues[0].description == "Response is too short"
        assert summary.issues[0].severity == Severity.MEDIUM

    def test_long_response(self):
        validator = ResponseValidator(max_content_length=20)
        summary = validator.validate(make_response("x" * 21))
        assert summary.issues[0].description == "Response is too long"

    def test_banned_term_penalty(self):
        summary = ResponseValidator().validate(
            make_response("Here is how to hack into the school network quickly.")
        )

        assert summary.validation_score == pytest.approx(0.4)
        assert summary.quality_level == QualityLevel.LOW
        assert summary.is_valid is False
        assert summary.issues[0].severity == Severity.HIGH
        assert "'hack'" in summary.issues[0].description
        assert summary.recommendations == ["Improve content quality and appropriateness"]

    def test_banned_terms_match_word_prefixes(self):
        validator = ResponseValidator()
        assert validator.find_banned_terms("Hacking is discussed here") == ["hack"]
        assert validator.find_banned_terms("The fishing shack is old") == []

    def test_score_never_negative(self):
        summary = ResponseValidator().validate(make_response("bomb hack"))
        assert summary.validation_score == 0.0
        assert summary.quality_level == QualityLevel.CRITICAL

    def test_custom_banned_terms(self):
        validator = ResponseValidator(banned_terms=["spoiler"])
        assert validator.find_banned_terms("No spoilers please, and no hacks") == ["spoiler"]

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.7, QualityLevel.HIGH),
            (0.5, QualityLevel.MEDIUM),
            (0.3, QualityLevel.LOW),
            (0.29, QualityLevel.CRITICAL),
        ],
    )
    def test_quality_level_bands(self, score, expected):
        assert ResponseValidator.quality_level(score) == expected
