"""Trained severity model: artifact loading, inference, and the process-wide handle.

The model is a small Keras-style sequential network exported to JSON::

    {
      "format": "dense-v1",
      "input_dim": 12,
      "layers": [
        {"kernel": [[...], ...], "bias": [...], "activation": "relu"},
        {"kernel": [[...], ...], "bias": [...], "activation": "softmax"}
      ]
    }

``kernel`` has shape (inputs, units). Inference is a numpy forward pass.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import numpy as np

from mindscreen.domains.depression.domain_logic.errors import ModelUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = Path(__file__).resolve().parent.parent / "resources" / "depression_model.json"

MODEL_FORMAT = "dense-v1"


class ModelFormatError(Exception):
    """Raised when a model artifact does not describe a valid dense network."""


@runtime_checkable
class SeverityModel(Protocol):
    """Anything that maps a batch of feature vectors to class probabilities."""

    def predict_proba(self, features: Sequence[float]) -> np.ndarray: ...


def _softmax(x: np.ndarray) -> np.ndarray:
    shifted = x - np.max(x, axis=-1, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=-1, keepdims=True)


_ACTIVATIONS: dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "linear": lambda x: x,
    "relu": lambda x: np.maximum(x, 0.0),
    "sigmoid": lambda x: 1.0 / (1.0 + np.exp(-x)),
    "tanh": np.tanh,
    "softmax": _softmax,
}


@dataclass(frozen=True)
class DenseLayer:
    kernel: np.ndarray  # (inputs, units)
    bias: np.ndarray  # (units,)
    activation: str

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return _ACTIVATIONS[self.activation](x @ self.kernel + self.bias)


class DenseModel:
    """Sequential stack of dense layers."""

    def __init__(self, layers: list[DenseLayer], *, input_dim: int) -> None:
        if not layers:
            raise ModelFormatError("Model has no layers")
        width = input_dim
        for index, layer in enumerate(layers):
            if layer.kernel.ndim != 2 or layer.kernel.shape[0] != width:
                raise ModelFormatError(
                    f"Layer {index}: kernel shape {layer.kernel.shape} does not accept {width} inputs"
                )
            if layer.bias.shape != (layer.kernel.shape[1],):
                raise ModelFormatError(f"Layer {index}: bias shape {layer.bias.shape} mismatch")
            if layer.activation not in _ACTIVATIONS:
                raise ModelFormatError(f"Layer {index}: unknown activation {layer.activation!r}")
            width = layer.kernel.shape[1]
        self.layers = layers
        self.input_dim = input_dim
        self.output_dim = width

    def predict_proba(self, features: Sequence[float]) -> np.ndarray:
        x = np.asarray(features, dtype=np.float64).reshape(1, self.input_dim)
        for layer in self.layers:
            x = layer(x)
        return x[0]


def load_dense_model(path: str | Path | None = None) -> DenseModel:
    """Read a ``dense-v1`` JSON artifact.

    Raises:
        ModelFormatError: If the file is unreadable or describes an invalid network.
    """
    path = Path(path).expanduser() if path else DEFAULT_MODEL_PATH
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ModelFormatError(f"Cannot read model artifact {path}: {exc}") from exc

    if data.get("format") != MODEL_FORMAT:
        raise ModelFormatError(f"Unsupported model format: {data.get('format')!r}")
    try:
        layers = [
            DenseLayer(
                kernel=np.asarray(layer["kernel"], dtype=np.float64),
                bias=np.asarray(layer["bias"], dtype=np.float64),
                activation=layer.get("activation", "linear"),
            )
            for layer in data["layers"]
        ]
        input_dim = int(data["input_dim"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ModelFormatError(f"Malformed model artifact {path}: {exc}") from exc

    model = DenseModel(layers, input_dim=input_dim)
    logger.info(
        "Loaded severity model from %s (%d layers, %d -> %d)",
        path, len(layers), model.input_dim, model.output_dim,
    )
    return model


class ModelHandle:
    """Lazily loaded, process-wide model shared by all requests.

    ``get()`` is single-flight: the first caller runs the loader while holding
    the lock, concurrent callers wait on the lock and reuse its result. A failed
    load is remembered and every later ``get()`` raises ModelUnavailableError
    until ``reset()`` is called.

    Usage::

        handle = ModelHandle(lambda: load_dense_model(path))
        model = handle.get()
    """

    def __init__(self, loader: Callable[[], SeverityModel]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._model: SeverityModel | None = None
        self._error: Exception | None = None

    @property
    def loaded(self) -> bool:
        return self._model is not None

    @property
    def failed(self) -> bool:
        return self._error is not None

    def get(self) -> SeverityModel:
        model = self._model
        if model is not None:
            return model
        with self._lock:
            if self._model is not None:
                return self._model
            if self._error is not None:
                raise ModelUnavailableError(
                    "Classification model is unavailable."
                ) from self._error
            try:
                self._model = self._loader()
            except Exception as exc:
                self._error = exc
                logger.error("Severity model failed to load: %s", exc)
                raise ModelUnavailableError("Classification model is unavailable.") from exc
            return self._model

    def reset(self) -> None:
        """Forget the cached model or failure so the next ``get()`` reloads."""
        with self._lock:
            self._model = None
            self._error = None
