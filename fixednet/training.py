"""One training step: a forward pass followed by backpropagation through the dense head."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from fixednet.backprop import hidden_layer_gradient, output_gradient, param_update
from fixednet.model import DenseLayer, ForwardResult, modulation_classifier


@dataclass(frozen=True)
class TrainResult:
    """What one training step produced.

    ``weight_gradients`` holds one flat gradient matrix per dense layer, in
    network order. ``output_loss`` is softmax(logits) minus the labels.
    ``params`` is the parameter vector after the update; only the weights of
    the dense layers change, biases and convolution kernels are kept.
    """

    forward: ForwardResult
    output_loss: np.ndarray
    weight_gradients: tuple
    params: np.ndarray

    @property
    def output(self) -> np.ndarray:
        return self.forward.output


def train_step(inputs, params, labels, learning_rate) -> TrainResult:
    """Run the classifier forward, backpropagate and update the dense weights.

    ``inputs``, ``params`` and ``labels`` are raw fixed-point values, as is
    ``learning_rate``. ``labels`` is a one-hot vector over the output classes.
    """
    model = modulation_classifier()
    x = np.asarray(inputs, dtype=np.int64).reshape(-1)
    p = np.asarray(params, dtype=np.int64).reshape(-1)
    lab = np.asarray(labels, dtype=np.int64).reshape(-1)
    if lab.size != model.output_size:
        raise ValueError(f"expected {model.output_size} labels, got {lab.size}")

    forward = model.forward(x, p)
    activations = forward.activations

    def layer_input(index: int) -> np.ndarray:
        return activations[index - 1] if index > 0 else x

    dense = [
        (index, layer)
        for index, layer in enumerate(model.layers)
        if isinstance(layer, DenseLayer)
    ]
    if not dense:
        raise ValueError("the model has no dense layer to train")

    last_index, last = dense[-1]
    gradients, loss = output_gradient(
        activations[last_index][: last.num_neurons], layer_input(last_index), lab
    )
    output_loss = loss
    collected = [gradients]

    front = last
    for index, layer in reversed(dense[:-1]):
        weight_count = front.num_neurons * front.input_size
        front_weights = p[front.param_offset : front.param_offset + weight_count]
        gradients, loss = hidden_layer_gradient(
            activations[index],
            layer_input(index),
            front_weights,
            loss,
            layer.num_neurons,
            layer.input_size,
            front.num_neurons,
        )
        collected.append(gradients)
        front = layer
    collected.reverse()

    updated = p.copy()
    rate = int(learning_rate)
    for (_, layer), grads in zip(dense, collected):
        start = layer.param_offset
        end = start + layer.num_neurons * layer.input_size
        updated[start:end] = param_update(p[start:end], rate, grads)

    return TrainResult(
        forward=forward,
        output_loss=output_loss,
        weight_gradients=tuple(collected),
        params=updated,
    )