"""
Deterministic text metrics.

Similarity is difflib's ratio, sentiment is VADER's compound score.
"""

import difflib
import re
import statistics

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from deanmachines.evals.base import Metric, MetricResult

STOP_WORDS = frozenset(
    """
    a about above after again against all also am an and any are as at be because been
    before being below between both but by can could did do does doing down during each
    few for from further had has have having he her here hers herself him himself his how
    i if in into is it its itself just me more most my myself no nor not now of off on
    once only or other our ours ourselves out over own same she should so some such than
    that the their theirs them themselves then there these they this those through to too
    under until up very was we were what when where which while who whom why will with
    would you your yours yourself yourselves include including write about
    """.split()
)

_WORD_RE = re.compile(r"[a-z0-9']+")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def extract_keywords(text: str) -> set[str]:
    return {
        word
        for word in _WORD_RE.findall(text.lower())
        if word not in STOP_WORDS and len(word) > 1
    }


class WordInclusionMetric(Metric):
    """Share of the given words that appear in the output."""

    name = "word_inclusion"

    def __init__(self, words: list[str], case_sensitive: bool = False) -> None:
        self.words = list(dict.fromkeys(words))
        self.case_sensitive = case_sensitive

    def measure(self, input: str, output: str) -> MetricResult:
        haystack = output if self.case_sensitive else output.lower()
        matched = [
            word
            for word in self.words
            if (word if self.case_sensitive else word.lower()) in haystack
        ]
        total = len(self.words)
        return MetricResult(
            score=len(matched) / total if total else 0.0,
            info={"total_words": total, "matched_words": len(matched)},
        )


class KeywordCoverageMetric(Metric):
    """Share of the input's keywords that the output mentions."""

    name = "keyword_coverage"

    def measure(self, input: str, output: str) -> MetricResult:
        reference = extract_keywords(input)
        response = extract_keywords(output)
        if not reference and not response:
            return MetricResult(score=1.0, info={"total_keywords": 0, "matched_keywords": 0})

        matched = reference & response
        total = len(reference)
        return MetricResult(
            score=len(matched) / total if total else 0.0,
            info={
                "total_keywords": total,
                "matched_keywords": len(matched),
                "missing_keywords": sorted(reference - response),
            },
        )


class CompletenessMetric(Metric):
    """Share of the requirements the output mentions (case-insensitive)."""

    name = "completeness"

    def __init__(self, requirements: list[str]) -> None:
        self.requirements = requirements

    def measure(self, input: str, output: str) -> MetricResult:
        text = output.lower()
        met = [req for req in self.requirements if req.lower() in text]
        unmet = [req for req in self.requirements if req.lower() not in text]
        total = len(self.requirements)
        return MetricResult(
            score=len(met) / total if total else 1.0,
            info={"met_requirements": met, "unmet_requirements": unmet},
        )


class ContentSimilarityMetric(Metric):
    name = "content_similarity"

    def __init__(self, ignore_case: bool = True, ignore_whitespace: bool = True) -> None:
        self.ignore_case = ignore_case
        self.ignore_whitespace = ignore_whitespace

    def _prepare(self, text: str) -> str:
        if self.ignore_case:
            text = text.lower()
        if self.ignore_whitespace:
            text = " ".join(text.split())
        return text

    def measure(self, input: str, output: str) -> MetricResult:
        similarity = difflib.SequenceMatcher(
            None, self._prepare(input), self._prepare(output)
        ).ratio()
        return MetricResult(score=similarity, info={"similarity": similarity})


class TextualDifferenceMetric(Metric):
    name = "textual_difference"

    def measure(self, input: str, output: str) -> MetricResult:
        matcher = difflib.SequenceMatcher(None, input, output)
        ratio = matcher.ratio()
        changes = sum(1 for tag, *_ in matcher.get_opcodes() if tag != "equal")
        longest = max(len(input), len(output))
        length_diff = abs(len(input) - len(output)) / longest if longest else 0.0
        return MetricResult(
            score=ratio,
            info={
                "ratio": ratio,
                "changes": changes,
                "length_diff": length_diff,
                "confidence": 1 - length_diff,
            },
        )


class ToneConsistencyMetric(Metric):
    """
    Sentiment agreement between the reference (``input``) and the output.

    With an output the score is 1 - |difference| of the compound sentiments.
    With an empty output it is the sentiment stability across the reference's
    sentences (1 - variance).
    """

    name = "tone_consistency"

    def __init__(self, analyzer: SentimentIntensityAnalyzer | None = None) -> None:
        self.analyzer = analyzer or SentimentIntensityAnalyzer()

    def sentiment(self, text: str) -> float:
        return self.analyzer.polarity_scores(text)["compound"]

    def measure(self, input: str, output: str) -> MetricResult:
        if output.strip():
            reference = self.sentiment(input)
            response = self.sentiment(output)
            difference = abs(reference - response)
            return MetricResult(
                score=max(0.0, 1 - difference),
                info={
                    "reference_sentiment": reference,
                    "response_sentiment": response,
                    "difference": difference,
                },
            )

        sentences = [s for s in _SENTENCE_RE.split(input.strip()) if s]
        scores = [self.sentiment(sentence) for sentence in sentences]
        variance = statistics.pvariance(scores) if len(scores) > 1 else 0.0
        return MetricResult(
            score=max(0.0, 1 - variance),
            info={
                "avg_sentiment": statistics.fmean(scores) if scores else 0.0,
                "sentiment_variance": variance,
            },
        )
