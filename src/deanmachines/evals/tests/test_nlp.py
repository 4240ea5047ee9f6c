"""Tests for the deterministic text metrics."""

from unittest.mock import MagicMock

import pytest

from deanmachines.evals.nlp import (
    CompletenessMetric,
    ContentSimilarityMetric,
    KeywordCoverageMetric,
    TextualDifferenceMetric,
    ToneConsistencyMetric,
    WordInclusionMetric,
    extract_keywords,
)


class TestWordInclusion:
    def test_counts_matched_words(self):
        metric = WordInclusionMetric(["Paris", "France", "Berlin"])

        result = metric.measure("", "paris is the capital of france")

        assert result.score == pytest.approx(2 / 3)
        assert result.info == {"total_words": 3, "matched_words": 2}

    def test_case_sensitive(self):
        result = WordInclusionMetric(["Paris"], case_sensitive=True).measure("", "paris")
        assert result.score == 0

    def test_no_words_scores_zero(self):
        assert WordInclusionMetric([]).measure("", "anything").score == 0


class TestKeywordCoverage:
    def test_stop_words_ignored(self):
        assert extract_keywords("The weather in Berlin") == {"weather", "berlin"}

    def test_partial_coverage(self):
        result = KeywordCoverageMetric().measure(
            "weather forecast for berlin", "The weather in Berlin is sunny"
        )

        assert result.score == pytest.approx(2 / 3)
        assert result.info["missing_keywords"] == ["forecast"]

    def test_both_empty_scores_one(self):
        assert KeywordCoverageMetric().measure("the a", "of the").score == 1

    def test_reference_without_keywords_scores_zero(self):
        assert KeywordCoverageMetric().measure("the", "sunny berlin").score == 0


class TestCompleteness:
    def test_met_and_unmet(self):
        metric = CompletenessMetric(["price", "Currency", "timestamp"])

        result = metric.measure("", "The PRICE is 10 in currency USD")

        assert result.score == pytest.approx(2 / 3)
        assert result.info["met_requirements"] == ["price", "Currency"]
        assert result.info["unmet_requirements"] == ["timestamp"]

    def test_no_requirements_scores_one(self):
        assert CompletenessMetric([]).measure("", "").score == 1


class TestContentSimilarity:
    def test_case_and_whitespace_ignored(self):
        result = ContentSimilarityMetric().measure("Hello   World", "hello world")

        assert result.score == 1
        assert result.info["similarity"] == 1

    def test_strict_comparison(self):
        result = ContentSimilarityMetric(ignore_case=False).measure("Hello", "hello")
        assert result.score < 1


class TestTextualDifference:
    def test_identical(self):
        result = TextualDifferenceMetric().measure("same text", "same text")

        assert result.score == 1
        assert result.info["changes"] == 0
        assert result.info["confidence"] == 1

    def test_length_difference(self):
        result = TextualDifferenceMetric().measure("abcd", "ab")

        assert result.info["length_diff"] == 0.5
        assert result.info["confidence"] == 0.5
        assert result.info["changes"] == 1

    def test_both_empty(self):
        result = TextualDifferenceMetric().measure("", "")
        assert result.info["length_diff"] == 0


class TestToneConsistency:
    @pytest.fixture
    def analyzer(self) -> MagicMock:
        analyzer = MagicMock()
        scores = {"great": 0.8, "good": 0.6, "awful": -0.7}
        analyzer.polarity_scores.side_effect = lambda text: {
            "compound": next((v for k, v in scores.items() if k in text), 0.0)
        }
        return analyzer

    def test_against_reference(self, analyzer: MagicMock):
        result = ToneConsistencyMetric(analyzer).measure("a great day", "a good day")

        assert result.score == pytest.approx(0.8)
        assert result.info["difference"] == pytest.approx(0.2)

    def test_opposite_tone_floors_at_zero(self, analyzer: MagicMock):
        assert ToneConsistencyMetric(analyzer).measure("great", "awful").score == 0

    def test_stability_of_reference_without_output(self, analyzer: MagicMock):
        result = ToneConsistencyMetric(analyzer).measure("It was great. It was good.", "  ")

        assert result.info["avg_sentiment"] == pytest.approx(0.7)
        assert result.score == pytest.approx(1 - 0.01)

    def test_empty_reference_compares_sentiment(self, analyzer: MagicMock):
        result = ToneConsistencyMetric(analyzer).measure("", "a great day")

        assert result.info["reference_sentiment"] == 0.0
        assert result.score == pytest.approx(0.2)

    def test_real_analyzer_agrees_with_itself(self):
        result = ToneConsistencyMetric().measure("I love this", "I love this")
        assert result.score == 1
