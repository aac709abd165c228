"""Tests for lexical primitives, entity tagging and claim extraction."""

import pytest

from response_quality.analyzers.extraction import (
    AssertionExtractor,
    ClaimExtractor,
    EntityExtractor,
    LexicalClaimExtractor,
    classify_fact_type,
    extract_keywords,
)
from response_quality.analyzers.extraction.lexicon import (
    jaccard_similarity,
    negation_difference,
    split_sentences,
)
from response_quality.data_management.schemas import EntityType, Factuality, FactType


class TestLexicon:
    """Sentence splitting and similarity helpers."""

    def test_split_sentences_drops_empty_parts(self):
        assert split_sentences("One. Two!  Three?? ") == ["One", "Two", "Three"]

    def test_jaccard_similarity(self):
        assert jaccard_similarity("a b c", "a b c") == 1.0
        assert jaccard_similarity("a b", "c d") == 0.0
        assert jaccard_similarity("", "") == 0.0
        assert jaccard_similarity("a b c", "a b d") == pytest.approx(0.5)

    def test_negation_difference_is_symmetric(self):
        a = "Water does not boil at 100 degrees"
        b = "Water boils at 100 degrees"
        assert negation_difference(a, b) == negation_difference(b, a)
        assert negation_difference(a, b) == pytest.approx(0.3)

    def test_negation_matches_whole_words_only(self):
        """'know' and 'notable' must not count as negations."""
        assert negation_difference("I know this is notable", "This is notable") == 0.0


class TestEntityExtractor:
    """Fixed-pattern entity tagging."""

    def test_tags_all_entity_types(self):
        entities = EntityExtractor().extract("Marie Curie moved to Paris City in 1891")
        by_type = {e.type: [x.text for x in entities if x.type == e.type] for e in entities}

        assert "Marie Curie" in by_type[EntityType.PERSON]
        assert by_type[EntityType.DATE] == ["1891"]
        assert by_type[EntityType.NUMBER] == ["1891"]
        assert by_type[EntityType.PLACE] == ["Paris City"]

    def test_places_can_be_disabled(self):
        entities = EntityExtractor(include_places=False).extract("He moved to Paris City")
        assert all(e.type != EntityType.PLACE for e in entities)

    def test_entity_offsets(self):
        sentence = "It happened in 1969"
        date = next(e for e in EntityExtractor().extract(sentence) if e.type == EntityType.DATE)
        assert sentence[date.start:date.end] == "1969"


class TestFactClassification:
    """Keyword precedence for fact types."""

    @pytest.mark.parametrize(
        "sentence,expected",
        [
            ("About 42 percent of voters agreed", FactType.NUMERICAL),
            ("The unemployment rate rose sharply", FactType.STATISTICAL),
            ("That year changed everything", FactType.HISTORICAL),
            ("Newton's law describes gravity", FactType.SCIENTIFIC),
            ("Photosynthesis refers to how plants make food", FactType.DEFINITION),
            ("Paris is beautiful", FactType.FACTUAL),
        ],
    )
    def test_classify_fact_type(self, sentence, expected):
        assert classify_fact_type(sentence) == expected

    def test_extract_keywords(self):
        assert extract_keywords("The Nile is 6650 km long") == ["nile", "6650", "long"]
        assert len(extract_keywords(" ".join(["word"] * 20))) == 10


class TestLexicalClaimExtractor:
    """Claim extraction for fact checking."""

    def test_keeps_only_factual_sentences(self):
        claims = LexicalClaimExtractor().extract("The Nile is 6650 km long. I like rivers!")

        assert len(claims) == 1
        claim = claims[0]
        assert claim.id == "claim_0"
        assert claim.text == "The Nile is 6650 km long"
        assert claim.type == FactType.NUMERICAL
        assert claim.span_start == 0
        assert claim.span_end == len("The Nile is 6650 km long")

    def test_confidence_adjustments(self):
        extractor = LexicalClaimExtractor()

        plain = extractor.extract("Cats are mammals.")[0]
        numeric = extractor.extract("The Nile is 6650 km long.")[0]
        hedged = extractor.extract("Water might boil at 100 degrees.")[0]

        assert plain.confidence == pytest.approx(0.6)
        # entity + digit
        assert numeric.confidence == pytest.approx(0.8)
        # entity + digit - hedge
        assert hedged.confidence == pytest.approx(0.6)

    def test_claim_ids_are_unique(self):
        content = "Cats are mammals. Dogs are mammals. Fish are not mammals."
        claims = LexicalClaimExtractor().extract(content)
        assert [c.id for c in claims] == ["claim_0", "claim_1", "claim_2"]

    def test_spans_point_into_content(self):
        content = "Hello there. Cats are mammals. Dogs are loyal."
        for claim in LexicalClaimExtractor().extract(content):
            assert content[claim.span_start:claim.span_end] == claim.text

    def test_empty_content(self):
        assert LexicalClaimExtractor().extract("") == []

    def test_satisfies_protocol(self):
        assert isinstance(LexicalClaimExtractor(), ClaimExtractor)
        assert isinstance(AssertionExtractor(), ClaimExtractor)


class TestAssertionExtractor:
    """Claim extraction for contradiction analysis."""

    def test_skips_non_assertive_sentences(self):
        content = "I think cats are great. Maybe it rains. Dogs bark loudly."
        claims = AssertionExtractor().extract(content)
        assert [c.text for c in claims] == ["Dogs bark loudly"]

    def test_factuality(self):
        extractor = AssertionExtractor()
        assert extractor.factuality("If it rains the ground is wet") == Factuality.HYPOTHETICAL
        assert extractor.factuality("Students could improve") == Factuality.UNCERTAIN
        assert extractor.factuality("Many people feel strongly") == Factuality.OPINION
        assert extractor.factuality("Water is wet") == Factuality.FACTUAL

    def test_sub_claims_split_on_connectives(self):
        claim = AssertionExtractor().extract("Cats are mammals and dogs are mammals.")[0]
        assert claim.sub_claims == ["Cats are mammals", "dogs are mammals"]

    def test_base_confidence(self):
        claim = AssertionExtractor().extract("Dogs bark loudly.")[0]
        assert claim.confidence == pytest.approx(0.7)
