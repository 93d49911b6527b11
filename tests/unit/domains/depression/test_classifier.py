"""Tests for the rule-based and model-based severity classifiers."""

from __future__ import annotations

import numpy as np
import pytest

from mindscreen.domains.depression.domain_logic.classifier import (
    ModelClassifier,
    RuleBasedClassifier,
    SeverityClassifier,
    create_classifier,
)
from mindscreen.domains.depression.domain_logic.errors import ModelUnavailableError
from mindscreen.domains.depression.domain_logic.model_handle import ModelHandle, load_dense_model
from mindscreen.domains.depression.domain_logic.normalizer import FeatureNormalizer, FeatureStats
from mindscreen.domains.depression.domain_logic.questionnaire import SeverityState


class _FixedModel:
    """Returns the same distribution for every input."""

    def __init__(self, probabilities) -> None:
        self.probabilities = np.asarray(probabilities, dtype=float)
        self.calls: list[tuple[float, ...]] = []

    def predict_proba(self, features):
        self.calls.append(tuple(features))
        return self.probabilities


def _model_classifier(model) -> ModelClassifier:
    return ModelClassifier(FeatureNormalizer(FeatureStats.uniform(1, 6)), ModelHandle(lambda: model))


def _scores_with_total(total: int) -> list[int]:
    """Twelve valid answers that sum to ``total``, filled from the first field."""
    scores = [1] * 12
    remaining = total - 12
    for i in range(12):
        step = min(5, remaining)
        scores[i] += step
        remaining -= step
    assert sum(scores) == total
    return scores


# ---------------------------------------------------------------------------
# Rule-based
# ---------------------------------------------------------------------------

class TestRuleBased:
    @pytest.fixture
    def classifier(self) -> RuleBasedClassifier:
        return RuleBasedClassifier()

    def test_all_ones_is_none(self, classifier):
        result = classifier.classify([1] * 12)
        assert result.state is SeverityState.NONE
        assert result.classifier == "rule"

    def test_all_twos_is_severe(self, classifier):
        # Total 24 would be NONE; the uniform-2 pattern overrides it.
        assert classifier.classify([2] * 12).state is SeverityState.SEVERE

    def test_all_sixes_is_none(self, classifier):
        assert classifier.classify([6] * 12).state is SeverityState.NONE

    @pytest.mark.parametrize(
        ("total", "expected"),
        [(72, 0), (24, 0), (23, 1), (16, 1), (15, 2)],
    )
    def test_totals(self, classifier, total, expected):
        scores = [2] * 12 if total == 24 else _scores_with_total(total)
        if total == 24:
            scores[0], scores[1] = 1, 3
        assert classifier.classify(scores).state == expected

    @pytest.mark.parametrize(
        ("total", "expected"),
        [(30, 0), (24, 0), (23, 1), (16, 1), (15, 2), (8, 2), (7, 3), (0, 3)],
    )
    def test_state_for_total(self, total, expected):
        assert RuleBasedClassifier.state_for_total(total) == expected

    def test_deterministic(self, classifier):
        scores = [3, 1, 2, 1, 1, 2, 1, 1, 2, 1, 1, 2]
        assert classifier.classify(scores) == classifier.classify(scores)

    def test_wrong_length(self, classifier):
        with pytest.raises(ValueError, match="Expected 12"):
            classifier.classify([1] * 11)

    def test_no_probabilities(self, classifier):
        assert classifier.classify([4] * 12).probabilities is None


# ---------------------------------------------------------------------------
# Model-based
# ---------------------------------------------------------------------------

class TestModelBased:
    def test_argmax(self):
        classifier = _model_classifier(_FixedModel([0.1, 0.2, 0.6, 0.1]))
        result = classifier.classify([4] * 12)
        assert result.state is SeverityState.MODERATE
        assert result.classifier == "model"
        assert result.probabilities == (0.1, 0.2, 0.6, 0.1)

    def test_tie_goes_to_lowest_state(self):
        classifier = _model_classifier(_FixedModel([0.1, 0.4, 0.4, 0.1]))
        assert classifier.classify([4] * 12).state is SeverityState.MILD

    def test_receives_normalized_features(self):
        model = _FixedModel([1.0, 0.0, 0.0, 0.0])
        _model_classifier(model).classify([1] * 6 + [6] * 6)
        assert model.calls == [(0.0,) * 6 + (1.0,) * 6]

    def test_forced_severe_model_overrides_inputs(self):
        classifier = _model_classifier(_FixedModel([0.0, 0.0, 0.0, 1.0]))
        for scores in ([1] * 12, [6] * 12, [2, 3, 4, 5, 6, 1, 2, 3, 4, 5, 6, 1]):
            assert classifier.classify(scores).state is SeverityState.SEVERE

    @pytest.mark.parametrize("bad", [[0.5, 0.5], [0.2, 0.2, 0.2, 0.2, 0.2], [np.nan, 0.5, 0.2, 0.3]])
    def test_invalid_distribution(self, bad):
        classifier = _model_classifier(_FixedModel(bad))
        with pytest.raises(ModelUnavailableError):
            classifier.classify([4] * 12)

    def test_malformed_features(self):
        classifier = _model_classifier(_FixedModel([1, 0, 0, 0]))
        with pytest.raises(ValueError, match="Expected 12"):
            classifier.classify_features((0.5,) * 11)
        with pytest.raises(ValueError, match="non-finite"):
            classifier.classify_features((float("inf"),) + (0.5,) * 11)

    def test_model_load_failure_surfaces(self):
        def _broken():
            raise FileNotFoundError("no model")

        classifier = ModelClassifier(
            FeatureNormalizer(FeatureStats.uniform(1, 6)), ModelHandle(_broken)
        )
        with pytest.raises(ModelUnavailableError, match="unavailable"):
            classifier.classify([4] * 12)

    def test_state_always_in_range(self):
        classifier = _model_classifier(load_dense_model())
        rng = np.random.default_rng(7)
        for features in rng.random((50, 12)):
            result = classifier.classify_features(tuple(features))
            assert result.state in set(SeverityState)

    def test_shipped_model_artifact(self):
        classifier = _model_classifier(load_dense_model())
        result = classifier.classify([6] * 12)
        assert result.state is SeverityState.NONE
        assert sum(result.probabilities) == pytest.approx(1.0, abs=1e-5)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class TestCreateClassifier:
    def test_rule(self):
        classifier = create_classifier("rule")
        assert isinstance(classifier, RuleBasedClassifier)
        assert isinstance(classifier, SeverityClassifier)

    def test_model(self):
        classifier = create_classifier(
            "model",
            normalizer=FeatureNormalizer(FeatureStats.uniform(1, 6)),
            model_handle=ModelHandle(load_dense_model),
        )
        assert classifier.name == "model"

    def test_model_requires_dependencies(self):
        with pytest.raises(ValueError, match="needs a normalizer"):
            create_classifier("model")

    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="Unknown classifier variant"):
            create_classifier("coin-flip")
