"""Fixed-topology feed-forward network used as a bird's brain.

Pure-Numpy implementation: every layer computes ``sigmoid(W @ x + b)``. All
parameters live in a single flat vector so the genetic operators can work on
plain arrays; per layer the ``(out, in)`` weight matrix is stored row-major and
followed by its ``out`` bias terms.
"""
from __future__ import annotations

from numbers import Integral
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import WEIGHT_RANGE
from .errors import (
    InputSizeMismatch,
    InvalidTopologyWeights,
    WeightCountMismatch,
)


def sigmoid(z: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-z))


def parameter_count(topology: Sequence[int]) -> int:
    """Number of weights plus biases needed by ``topology``."""
    return int(sum(n_out * n_in + n_out for n_in, n_out in zip(topology[:-1], topology[1:])))


def _validate_topology(topology: Sequence[int]) -> Tuple[int, ...]:
    if any(isinstance(n, bool) or not isinstance(n, Integral) for n in topology):
        raise InvalidTopologyWeights(f"Layer sizes must be integers, got {list(topology)}")
    layer_sizes = tuple(int(n) for n in topology)
    if len(layer_sizes) < 2:
        raise InvalidTopologyWeights(
            f"Topology needs at least an input and an output layer, got {list(layer_sizes)}"
        )
    if any(n < 1 for n in layer_sizes):
        raise InvalidTopologyWeights(f"Layer sizes must be positive, got {list(layer_sizes)}")
    return layer_sizes


class NeuralNetwork:
    """A fixed-topology MLP with sigmoid activations on every layer.

    ``weights=None`` draws every parameter uniformly from ``[-1, 1]`` using
    ``rng``; otherwise the given flat vector is copied and must match the
    topology's parameter count exactly.
    """

    def __init__(self,
                 topology: Sequence[int],
                 weights: Optional[Sequence[float]] = None,
                 rng: Optional[np.random.Generator] = None):
        self._topology = _validate_topology(topology)
        self.num_layers = len(self._topology) - 1

        self.weight_shapes: List[Tuple[Tuple[int, int], Tuple[int]]] = []
        for i in range(self.num_layers):
            weight_shape = (self._topology[i + 1], self._topology[i])
            bias_shape = (self._topology[i + 1],)
            self.weight_shapes.append((weight_shape, bias_shape))
        self.total_weights = parameter_count(self._topology)

        if weights is None:
            if rng is None:
                rng = np.random.default_rng()
            flat = rng.uniform(-WEIGHT_RANGE, WEIGHT_RANGE, size=self.total_weights)
        else:
            flat = np.array(weights, dtype=float)
            if flat.ndim != 1 or flat.shape[0] != self.total_weights:
                raise InvalidTopologyWeights(
                    f"Topology {list(self._topology)} expects {self.total_weights} weights, "
                    f"got shape {flat.shape}"
                )
        self._load(flat)

    @property
    def topology(self) -> Tuple[int, ...]:
        return self._topology

    @property
    def input_size(self) -> int:
        return self._topology[0]

    @property
    def output_size(self) -> int:
        return self._topology[-1]

    def _load(self, flat: np.ndarray) -> None:
        self._flat = flat.astype(float, copy=True)
        self.layer_weights = []
        self.layer_biases = []
        idx = 0

        # Views into _flat, so the layers always agree with weights().
        for weight_shape, bias_shape in self.weight_shapes:
            weight_size = weight_shape[0] * weight_shape[1]
            self.layer_weights.append(self._flat[idx:idx + weight_size].reshape(weight_shape))
            idx += weight_size

            bias_size = bias_shape[0]
            self.layer_biases.append(self._flat[idx:idx + bias_size])
            idx += bias_size

    def weights(self) -> np.ndarray:
        return self._flat.copy()

    def set_weights(self, flat_weights: Sequence[float]) -> None:
        flat = np.array(flat_weights, dtype=float)
        if flat.ndim != 1 or flat.shape[0] != self.total_weights:
            raise WeightCountMismatch(
                f"Expected a flat vector of {self.total_weights} weights, got shape {flat.shape}"
            )
        self._load(flat)

    def infer(self, inputs: Sequence[float]) -> np.ndarray:
        activation = np.asarray(inputs, dtype=float)
        if activation.ndim != 1 or activation.shape[0] != self.input_size:
            raise InputSizeMismatch(
                f"Network expects {self.input_size} inputs, got shape {activation.shape}"
            )

        for w, b in zip(self.layer_weights, self.layer_biases):
            activation = sigmoid(w @ activation + b)
        return activation

    def copy(self) -> 'NeuralNetwork':
        return NeuralNetwork(self._topology, self._flat)

    def __repr__(self) -> str:
        return f"NeuralNetwork(topology={list(self._topology)}, params={self.total_weights})"
