"""
Tests for the Precision@N metric.
"""

import pytest

from rankqa.domain.entities import IntentJudgments
from rankqa.domain.errors import InvalidConfiguration
from rankqa.domain.value_objects import Rating, UNDEFINED_PRECISION
from rankqa.evaluation.metrics import PrecisionAtN, aggregate_statistics


def make_judgments(relevant=(), irrelevant=(), intent_id: str = "q1") -> IntentJudgments:
    ratings = {doc_id: Rating.RELEVANT for doc_id in relevant}
    ratings.update({doc_id: Rating.IRRELEVANT for doc_id in irrelevant})
    return IntentJudgments(intent_id, ratings)


class TestPrecisionAtNConfiguration:
    """Tests for metric construction."""

    @pytest.mark.parametrize("n", [0, -1, -10])
    def test_non_positive_n_raises(self, n):
        with pytest.raises(InvalidConfiguration, match="n must be >= 1"):
            PrecisionAtN(n)

    @pytest.mark.parametrize("n", [2.5, "3", None, True])
    def test_non_integer_n_raises(self, n):
        with pytest.raises(InvalidConfiguration):
            PrecisionAtN(n)

    def test_name_includes_n(self):
        assert PrecisionAtN(5).name == "precision@5"
        assert PrecisionAtN(5).n == 5

    def test_default_n(self):
        assert PrecisionAtN().n == 10


class TestPrecisionAtNEvaluate:
    """Tests for precision@N scoring."""

    def test_mixed_judgments_within_cutoff(self):
        """Only the first n results count; d2 at position 4 is ignored."""
        metric = PrecisionAtN(3)
        judgments = make_judgments(relevant={"d1", "d2"}, irrelevant={"d3"})

        result = metric.evaluate(["d1", "d3", "d4", "d2"], judgments)

        assert result.good == 1
        assert result.bad == 1
        assert result.unknown_doc_ids == ("d4",)
        assert result.score == 0.5

    def test_no_judged_results_is_undefined(self):
        metric = PrecisionAtN(2)

        result = metric.evaluate(["x", "y"], make_judgments())

        assert result.good == 0
        assert result.bad == 0
        assert result.score is UNDEFINED_PRECISION
        assert result.is_defined is False
        assert result.unknown_doc_ids == ("x", "y")

    def test_all_relevant(self):
        result = PrecisionAtN(3).evaluate(["a", "b", "c"], make_judgments(relevant={"a", "b", "c"}))

        assert result.score == 1.0
        assert result.unknown_doc_ids == ()

    def test_all_irrelevant(self):
        result = PrecisionAtN(2).evaluate(["a", "b"], make_judgments(irrelevant={"a", "b"}))

        assert result.score == 0.0
        assert result.is_defined is True

    def test_unknown_documents_are_not_in_denominator(self):
        result = PrecisionAtN(4).evaluate(
            ["a", "u1", "u2", "b"], make_judgments(relevant={"a"}, irrelevant={"b"})
        )

        assert result.score == 0.5
        assert result.unknown_doc_ids == ("u1", "u2")

    def test_list_shorter_than_n(self):
        result = PrecisionAtN(10).evaluate(["a", "b"], make_judgments(relevant={"a"}, irrelevant={"b"}))

        assert result.good + result.bad + len(result.unknown_doc_ids) == 2
        assert result.score == 0.5

    def test_empty_list_is_undefined(self):
        result = PrecisionAtN(3).evaluate([], make_judgments(relevant={"a"}))

        assert result.score is UNDEFINED_PRECISION
        assert result.unknown_doc_ids == ()

    def test_duplicate_unknown_ids_are_preserved(self):
        """Duplicates returned by the backend are reported, not deduplicated."""
        result = PrecisionAtN(4).evaluate(["u", "a", "u", "v"], make_judgments(relevant={"a"}))

        assert result.unknown_doc_ids == ("u", "u", "v")
        assert result.score == 1.0

    def test_duplicate_judged_ids_count_each_time(self):
        result = PrecisionAtN(3).evaluate(["a", "a", "b"], make_judgments(relevant={"a"}, irrelevant={"b"}))

        assert result.good == 2
        assert result.bad == 1

    def test_unknown_order_follows_ranking(self):
        result = PrecisionAtN(5).evaluate(["z", "y", "a", "x"], make_judgments(relevant={"a"}))

        assert result.unknown_doc_ids == ("z", "y", "x")

    def test_ranked_list_is_not_mutated(self):
        ranked = ["d3", "d1", "d2"]

        PrecisionAtN(3).evaluate(ranked, make_judgments(relevant={"d1"}))

        assert ranked == ["d3", "d1", "d2"]

    def test_evaluation_is_deterministic(self):
        metric = PrecisionAtN(3)
        judgments = make_judgments(relevant={"d1", "d2"}, irrelevant={"d3"})
        ranked = ["d1", "d3", "d4", "d2"]

        assert metric.evaluate(ranked, judgments) == metric.evaluate(ranked, judgments)

    @pytest.mark.parametrize(
        "n, ranked",
        [
            (1, ["a"]),
            (3, ["a", "b", "c", "d", "e"]),
            (5, ["u", "a", "b"]),
            (4, ["x", "y", "z", "b"]),
            (2, []),
        ],
    )
    def test_counts_cover_considered_results(self, n, ranked):
        """good + bad + unknown always equals min(n, len(ranked))."""
        judgments = make_judgments(relevant={"a", "c"}, irrelevant={"b", "d"})

        result = PrecisionAtN(n).evaluate(ranked, judgments)

        assert result.good + result.bad + len(result.unknown_doc_ids) == min(n, len(ranked))
        if result.is_defined:
            assert 0.0 <= result.score <= 1.0


class TestAggregateStatistics:
    """Tests for summary statistics over per-intent scores."""

    def test_empty_scores(self):
        stats = aggregate_statistics([])

        assert stats["count"] == 0
        assert stats["mean"] == 0.0

    def test_statistics(self):
        stats = aggregate_statistics([0.5, 1.0, 0.0])

        assert stats["mean"] == pytest.approx(0.5)
        assert stats["median"] == 0.5
        assert stats["min"] == 0.0
        assert stats["max"] == 1.0
        assert stats["count"] == 3
        assert stats["std"] == pytest.approx(0.408248, abs=1e-6)
