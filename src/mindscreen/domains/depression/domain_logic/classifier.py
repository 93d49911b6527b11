"""Severity classification strategies.

Two interchangeable implementations of ``SeverityClassifier``:

* ``RuleBasedClassifier``: threshold arithmetic on the raw 1-6 answers.
* ``ModelClassifier``: trained model inference on normalized features.

Which one runs is a deployment decision (``CLASSIFIER_VARIANT``), fixed when
the server starts; it is never switched per request.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from mindscreen.domains.depression.domain_logic.errors import ModelUnavailableError
from mindscreen.domains.depression.domain_logic.model_handle import ModelHandle
from mindscreen.domains.depression.domain_logic.normalizer import (
    FeatureNormalizer,
    FeatureVector,
)
from mindscreen.domains.depression.domain_logic.questionnaire import (
    MENTAL_HEALTH_FIELDS,
    Classification,
    SeverityState,
)

logger = logging.getLogger(__name__)

# Lower bounds of each band on the 12-72 total score.
NONE_MIN_TOTAL = 24
MILD_MIN_TOTAL = 16
MODERATE_MIN_TOTAL = 8


@runtime_checkable
class SeverityClassifier(Protocol):
    """Maps validated raw scores to a severity state."""

    name: str

    def classify(self, scores: Sequence[int]) -> Classification: ...


class RuleBasedClassifier:
    """Deterministic thresholds on the raw answers.

    Two uniform answer patterns are special-cased before the total is used:

    * every answer 1 -> NONE
    * every answer 2 -> SEVERE. The total rule alone would give NONE (2 * 12 = 24);
      this override is kept exactly as the screening was originally calibrated.
    """

    name = "rule"

    @staticmethod
    def state_for_total(total: int) -> SeverityState:
        if total >= NONE_MIN_TOTAL:
            return SeverityState.NONE
        if total >= MILD_MIN_TOTAL:
            return SeverityState.MILD
        if total >= MODERATE_MIN_TOTAL:
            return SeverityState.MODERATE
        return SeverityState.SEVERE

    def classify(self, scores: Sequence[int]) -> Classification:
        if len(scores) != len(MENTAL_HEALTH_FIELDS):
            raise ValueError(f"Expected {len(MENTAL_HEALTH_FIELDS)} scores, got {len(scores)}")

        if all(score == 1 for score in scores):
            state = SeverityState.NONE
        elif all(score == 2 for score in scores):
            state = SeverityState.SEVERE
        else:
            state = self.state_for_total(sum(scores))
        return Classification(state=state, classifier=self.name)


class ModelClassifier:
    """Trained multi-class model over the normalized feature vector."""

    name = "model"

    def __init__(self, normalizer: FeatureNormalizer, model_handle: ModelHandle) -> None:
        self._normalize = normalizer
        self._handle = model_handle

    def classify(self, scores: Sequence[int]) -> Classification:
        return self.classify_features(self._normalize(scores))

    def classify_features(self, features: FeatureVector) -> Classification:
        """Return the most probable state; ties go to the lowest state index.

        Raises:
            ValueError: If the feature vector is malformed.
            ModelUnavailableError: If the model cannot be loaded or returns a
                distribution of the wrong size.
        """
        if len(features) != len(MENTAL_HEALTH_FIELDS):
            raise ValueError(
                f"Expected {len(MENTAL_HEALTH_FIELDS)} features, got {len(features)}"
            )
        if not all(math.isfinite(value) for value in features):
            raise ValueError("Feature vector contains non-finite values")

        model = self._handle.get()
        probabilities = np.asarray(model.predict_proba(features), dtype=np.float64).ravel()
        if probabilities.shape != (len(SeverityState),) or not np.all(np.isfinite(probabilities)):
            raise ModelUnavailableError(
                f"Classification model returned an invalid distribution of shape {probabilities.shape}"
            )

        # np.argmax returns the first maximum, i.e. the lowest index on ties.
        state = SeverityState(int(np.argmax(probabilities)))
        rounded = tuple(round(float(p), 6) for p in probabilities)
        logger.debug("Model probabilities %s -> state %d", rounded, state)
        return Classification(state=state, classifier=self.name, probabilities=rounded)


def create_classifier(
    variant: str,
    *,
    normalizer: FeatureNormalizer | None = None,
    model_handle: ModelHandle | None = None,
) -> SeverityClassifier:
    """Build the classifier selected by configuration.

    Args:
        variant: "rule" or "model".
        normalizer: Required for "model".
        model_handle: Required for "model".
    """
    if variant == "rule":
        return RuleBasedClassifier()
    if variant == "model":
        if normalizer is None or model_handle is None:
            raise ValueError("The model classifier needs a normalizer and a model handle")
        return ModelClassifier(normalizer, model_handle)
    raise ValueError(f"Unknown classifier variant: {variant!r}")
