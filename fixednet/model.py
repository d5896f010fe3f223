"""The modulation-classification network as a pipeline of fixed-point layers."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import accumulate

import numpy as np

from fixednet import layers as ops
from fixednet.fixedpoint import Activation

# Reference logits of the trained network for one recorded input signal.
GOLDEN_OUTPUT = (
    -0.1115623190999031,
    0.028452124446630478,
    0.08606725186109543,
    -0.11163362115621567,
    -0.1031305119395256,
    -0.004309601150453091,
    0.03632266819477081,
    0.1023329645395279,
    0.08342970162630081,
    -0.05488889291882515,
    -0.09496816247701645,
    -0.0341779962182045,
    0.08909109979867935,
    0.01881156861782074,
    0.06820567697286606,
    0.10236958414316177,
    -0.05282776802778244,
    0.04468337446451187,
    -0.034915823489427567,
    -0.01376620028167963,
    -0.1154041439294815,
    -0.03661327064037323,
    -0.040412623435258865,
    -0.013180211186408997,
)


@dataclass(frozen=True)
class Conv1DLayer:
    """One-dimensional convolution reading its kernels at ``param_offset``."""

    depth: int
    rows: int
    cols: int
    num_kernels: int
    kernel_row: int
    kernel_col: int
    padding: int
    param_offset: int

    def __call__(self, x: np.ndarray, params: np.ndarray) -> np.ndarray:
        return ops.conv1d(
            x,
            params[self.param_offset :],
            self.depth,
            self.rows,
            self.cols,
            self.num_kernels,
            self.kernel_row,
            self.kernel_col,
            self.padding,
        )


@dataclass(frozen=True)
class ReLULayer:
    """Leaky ReLU over ``depth * rows * cols`` values; ``alpha`` is raw."""

    depth: int
    rows: int
    cols: int
    alpha: int = 0

    def __call__(self, x: np.ndarray, params: np.ndarray) -> np.ndarray:
        size = self.depth * self.rows * self.cols
        if x.size < size:
            raise ValueError(f"ReLU expects {size} values, got {x.size}")
        return ops.relu(x[:size], self.alpha)


@dataclass(frozen=True)
class MaxPool1DLayer:
    """Non-overlapping max pooling along each channel."""

    depth: int
    rows: int
    cols: int
    pool_row: int
    pool_col: int

    def __call__(self, x: np.ndarray, params: np.ndarray) -> np.ndarray:
        return ops.max_pool1d(x, self.depth, self.cols, self.pool_col)


@dataclass(frozen=True)
class FlattenLayer:
    """Flatten in channel, row, column order."""

    depth: int
    rows: int
    cols: int

    def __call__(self, x: np.ndarray, params: np.ndarray) -> np.ndarray:
        return ops.flatten(x, self.depth, self.rows, self.cols)


@dataclass(frozen=True)
class DenseLayer:
    """Fully connected layer reading weights and biases at ``param_offset``.

    The activation is recorded with the layer but, as in the reference
    network, no activation is computed inside the dense layer itself.
    """

    input_size: int
    num_neurons: int
    param_offset: int
    activation: Activation = Activation.LINEAR

    def __call__(self, x: np.ndarray, params: np.ndarray) -> np.ndarray:
        return ops.fully_connected(
            x, params[self.param_offset :], self.input_size, self.num_neurons
        )


def _param_end(layer) -> int:
    match layer:
        case Conv1DLayer():
            count = layer.num_kernels * (
                layer.depth * layer.kernel_row * layer.kernel_col + 1
            )
            return layer.param_offset + count
        case DenseLayer():
            return layer.param_offset + layer.num_neurons * (layer.input_size + 1)
        case _:
            return 0


@dataclass(frozen=True)
class ForwardResult:
    """Everything a forward pass produced.

    ``intermediate`` concatenates the outputs of the model's recorded
    layers; ``offsets`` gives where each of them starts in it.
    """

    output: np.ndarray
    activations: tuple
    intermediate: np.ndarray
    offsets: tuple


@dataclass(frozen=True)
class Model:
    """A sequence of layers sharing one flat parameter vector."""

    layers: tuple
    input_size: int
    output_size: int
    recorded: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))
        object.__setattr__(self, "recorded", tuple(self.recorded))
        if not self.layers:
            raise ValueError("a model needs at least one layer")
        for index in self.recorded:
            if not 0 <= index < len(self.layers):
                raise ValueError(f"recorded layer index {index} is out of range")

    def parameter_count(self) -> int:
        """Number of parameters the layers read from the parameter vector."""
        return max((_param_end(layer) for layer in self.layers), default=0)

    def forward(self, inputs, params) -> ForwardResult:
        """Run every layer in turn on raw fixed-point inputs and parameters."""
        x = np.asarray(inputs, dtype=np.int64).reshape(-1)
        if x.size != self.input_size:
            raise ValueError(f"expected {self.input_size} inputs, got {x.size}")
        p = np.asarray(params, dtype=np.int64).reshape(-1)
        needed = self.parameter_count()
        if p.size < needed:
            raise ValueError(f"expected {needed} parameters, got {p.size}")

        activations = []
        for layer in self.layers:
            x = layer(x, p)
            activations.append(x)
        if x.size < self.output_size:
            raise ValueError(
                f"last layer yields {x.size} values, {self.output_size} are needed"
            )

        segments = [activations[i] for i in self.recorded]
        sizes = [segment.size for segment in segments]
        offsets = tuple(accumulate(sizes[:-1], initial=0)) if segments else ()
        intermediate = (
            np.concatenate(segments) if segments else np.empty(0, dtype=np.int64)
        )
        return ForwardResult(
            output=x[: self.output_size].copy(),
            activations=tuple(activations),
            intermediate=intermediate,
            offsets=offsets,
        )


def modulation_classifier() -> Model:
    """The 24-class radio modulation classifier over 2 x 1024 I/Q samples."""
    layers = (
        Conv1DLayer(2, 1, 1024, 12, 1, 3, 1, 0),
        ReLULayer(12, 1, 1024),
        Conv1DLayer(12, 1, 1024, 12, 1, 3, 1, 84),
        ReLULayer(12, 1, 1024),
        MaxPool1DLayer(12, 1, 1024, 1, 2),
        Conv1DLayer(12, 1, 512, 24, 1, 3, 1, 528),
        ReLULayer(24, 1, 512),
        Conv1DLayer(24, 1, 512, 24, 1, 3, 1, 1416),
        ReLULayer(24, 1, 512),
        MaxPool1DLayer(24, 1, 512, 1, 2),
        Conv1DLayer(24, 1, 256, 32, 1, 3, 1, 3168),
        ReLULayer(32, 1, 256),
        Conv1DLayer(32, 1, 256, 32, 1, 3, 1, 5504),
        ReLULayer(32, 1, 256),
        MaxPool1DLayer(32, 1, 256, 1, 2),
        FlattenLayer(32, 1, 128),
        DenseLayer(4096, 100, 8608),
        ReLULayer(1, 1, 100),
        DenseLayer(100, 100, 418308),
        ReLULayer(1, 1, 100),
        DenseLayer(100, 24, 428408),
    )
    # Flatten output, then each dense layer and its ReLU, then the logits.
    return Model(
        layers=layers,
        input_size=2048,
        output_size=24,
        recorded=(15, 16, 17, 18, 19, 20),
    )