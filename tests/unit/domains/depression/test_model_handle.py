"""Tests for model artifact loading and the shared ModelHandle."""

from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from mindscreen.domains.depression.domain_logic.errors import ModelUnavailableError
from mindscreen.domains.depression.domain_logic.model_handle import (
    DenseLayer,
    DenseModel,
    ModelFormatError,
    ModelHandle,
    load_dense_model,
)


def _write_model(tmp_path, **overrides):
    artifact = {
        "format": "dense-v1",
        "input_dim": 12,
        "layers": [
            {"kernel": [[0.1] * 8] * 12, "bias": [0.0] * 8, "activation": "relu"},
            {"kernel": [[0.2] * 4] * 8, "bias": [0.0, 0.1, 0.2, 0.3], "activation": "softmax"},
        ],
    }
    artifact.update(overrides)
    path = tmp_path / "model.json"
    path.write_text(json.dumps(artifact))
    return path


class TestLoadDenseModel:
    def test_shipped_artifact(self):
        model = load_dense_model()
        assert model.input_dim == 12
        assert model.output_dim == 4

    def test_two_layer_network(self, tmp_path):
        model = load_dense_model(_write_model(tmp_path))
        probabilities = model.predict_proba([0.5] * 12)
        assert probabilities.shape == (4,)
        assert probabilities.sum() == pytest.approx(1.0)
        # Equal hidden units, so the bias decides.
        assert int(np.argmax(probabilities)) == 3

    def test_wrong_format(self, tmp_path):
        with pytest.raises(ModelFormatError, match="Unsupported model format"):
            load_dense_model(_write_model(tmp_path, format="keras-h5"))

    def test_shape_mismatch(self, tmp_path):
        layers = [{"kernel": [[0.1] * 4] * 10, "bias": [0.0] * 4, "activation": "softmax"}]
        with pytest.raises(ModelFormatError, match="does not accept 12 inputs"):
            load_dense_model(_write_model(tmp_path, layers=layers))

    def test_unknown_activation(self, tmp_path):
        layers = [{"kernel": [[0.1] * 4] * 12, "bias": [0.0] * 4, "activation": "swish"}]
        with pytest.raises(ModelFormatError, match="unknown activation"):
            load_dense_model(_write_model(tmp_path, layers=layers))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelFormatError, match="Cannot read"):
            load_dense_model(tmp_path / "absent.json")

    def test_empty_layers(self):
        with pytest.raises(ModelFormatError, match="no layers"):
            DenseModel([], input_dim=12)

    def test_bias_mismatch(self):
        layer = DenseLayer(kernel=np.zeros((12, 4)), bias=np.zeros(3), activation="linear")
        with pytest.raises(ModelFormatError, match="bias shape"):
            DenseModel([layer], input_dim=12)


class TestModelHandle:
    def test_lazy_and_cached(self):
        calls = []

        def _loader():
            calls.append(1)
            return object()

        handle = ModelHandle(_loader)
        assert not handle.loaded
        first = handle.get()
        assert handle.get() is first
        assert handle.loaded
        assert calls == [1]

    def test_concurrent_first_use_loads_once(self):
        calls = []

        def _slow_loader():
            calls.append(1)
            time.sleep(0.1)
            return object()

        handle = ModelHandle(_slow_loader)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: handle.get(), range(8)))

        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_failure_is_remembered(self):
        calls = []

        def _broken():
            calls.append(1)
            raise OSError("disk gone")

        handle = ModelHandle(_broken)
        for _ in range(3):
            with pytest.raises(ModelUnavailableError) as excinfo:
                handle.get()
            assert excinfo.value.status_code == 500
        assert calls == [1]
        assert handle.failed
        assert not handle.loaded

    def test_reset_allows_reload(self):
        attempts = []

        def _flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise OSError("first try fails")
            return "model"

        handle = ModelHandle(_flaky)
        with pytest.raises(ModelUnavailableError):
            handle.get()
        handle.reset()
        assert handle.get() == "model"
        assert not handle.failed
