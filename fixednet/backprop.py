"""Backward pass for the fully connected and convolutional layers.

All tensors are flat arrays of raw fixed-point values in the default
format. Every product is truncated back into the format before it is
accumulated, and sums wrap as a fixed-width register would.
"""

from __future__ import annotations

import numpy as np

from fixednet.fixedpoint import FIXEDP, to_fixed
from fixednet.layers import softmax

# Sizes of the three dense layers at the head of the classifier.
FULLYCONNECTED2_IN_FEATURES = 100
FULLYCONNECTED2_OUT_FEATURES = 24
FULLYCONNECTED1_IN_FEATURES = 100
FULLYCONNECTED1_OUT_FEATURES = 100
FULLYCONNECTED1_PREV_LAYER_INPUT_SIZE = 24
FULLYCONNECTED0_IN_FEATURES = 4096
FULLYCONNECTED0_OUT_FEATURES = 100
FULLYCONNECTED0_PREV_LAYER_INPUT_SIZE = 100

NUM_WEIGHTS_0 = 409600
NUM_WEIGHTS_1 = 10000
NUM_WEIGHTS_2 = 2400

NUM_BIASES_0 = 100
NUM_BIASES_1 = 100
NUM_BIASES_2 = 24

NUM_GRADIENTS_0 = NUM_WEIGHTS_0 + NUM_BIASES_0
NUM_GRADIENTS_1 = NUM_WEIGHTS_1 + NUM_BIASES_1
NUM_GRADIENTS_2 = NUM_WEIGHTS_2 + NUM_BIASES_2

WEIGHTS_OFFSET_0 = 0
WEIGHTS_OFFSET_1 = FULLYCONNECTED0_OUT_FEATURES * FULLYCONNECTED0_IN_FEATURES
WEIGHTS_OFFSET_2 = (
    WEIGHTS_OFFSET_1 + FULLYCONNECTED1_OUT_FEATURES * FULLYCONNECTED1_IN_FEATURES
)

BIAS_OFFSET_0 = FULLYCONNECTED0_OUT_FEATURES
BIAS_OFFSET_1 = BIAS_OFFSET_0 + FULLYCONNECTED1_OUT_FEATURES
BIAS_OFFSET_2 = BIAS_OFFSET_1 + FULLYCONNECTED2_OUT_FEATURES

GRADIENTS_OFFSET_0 = 0
GRADIENTS_OFFSET_1 = NUM_GRADIENTS_0
GRADIENTS_OFFSET_2 = GRADIENTS_OFFSET_1 + NUM_GRADIENTS_1

# Starting maximum of each unpooling window. The constant -1000 does not fit
# the 10 integer bits of the format and wraps, exactly as in the register.
_UNPOOL_FLOOR = int(FIXEDP.quantize(-1000.0))

_ONE = FIXEDP.scale


def _raw(values) -> np.ndarray:
    return np.asarray(values, dtype=np.int64).reshape(-1)


def _require(arr: np.ndarray, size: int, name: str) -> None:
    if arr.size < size:
        raise ValueError(f"{name} holds {arr.size} values, {size} are needed")


def output_gradient(predictions, post_act_prev, labels):
    """Gradients of a softmax cross-entropy output layer.

    Returns ``(gradients, loss)``: ``loss`` is softmax(predictions) minus the
    labels, and ``gradients`` holds ``loss[i] * post_act_prev[j]`` row by row.
    """
    pred = _raw(predictions)
    prev = _raw(post_act_prev)
    lab = _raw(labels)
    if lab.size != pred.size:
        raise ValueError(
            f"expected {pred.size} labels, got {lab.size}"
        )
    probabilities = softmax(pred)
    loss = FIXEDP.wrap(to_fixed(probabilities.astype(np.float64)) - lab)
    gradients = FIXEDP.multiply(loss[:, None], prev[None, :])
    return gradients.reshape(-1), loss


def relu_derivative(values) -> np.ndarray:
    """1.0 where the value is positive, 0 elsewhere, as raw fixed-point."""
    x = _raw(values)
    return np.where(x > 0, _ONE, 0).astype(np.int64)


def mat_mult(a, b, rows, inner, cols) -> np.ndarray:
    """Product of a ``rows x inner`` and an ``inner x cols`` matrix, row-major."""
    left = _raw(a)
    right = _raw(b)
    _require(left, rows * inner, "left matrix")
    _require(right, inner * cols, "right matrix")
    ma = left[: rows * inner].reshape(rows, inner)
    mb = right[: inner * cols].reshape(inner, cols)
    products = FIXEDP.multiply(ma[:, :, None], mb[None, :, :])
    return FIXEDP.wrap(products.sum(axis=1)).reshape(-1)


def transpose(matrix, rows, cols) -> np.ndarray:
    """Transpose a row-major ``rows x cols`` matrix."""
    m = _raw(matrix)
    _require(m, rows * cols, "matrix")
    return m[: rows * cols].reshape(rows, cols).T.reshape(-1).copy()


def hidden_layer_gradient(
    pre_act, post_act_prev, weights, front_loss, num_neurons, input_size, prev_layer_size
):
    """Gradients of a hidden dense layer followed by ReLU.

    ``weights`` belong to the layer in front (``prev_layer_size`` rows of
    ``num_neurons``). Returns ``(gradients, loss)`` where ``loss`` is the
    gradient with respect to this layer's activations and ``gradients`` is
    the ``num_neurons x input_size`` weight gradient matrix.
    """
    pre = _raw(pre_act)
    _require(pre, num_neurons, "pre-activations")
    relu_derivs = relu_derivative(pre[:num_neurons])
    weights_t = transpose(weights, prev_layer_size, num_neurons)
    loss = mat_mult(weights_t, front_loss, num_neurons, prev_layer_size, 1)
    delta = FIXEDP.multiply(relu_derivs, loss)
    gradients = mat_mult(delta, post_act_prev, num_neurons, 1, input_size)
    return gradients, loss


def param_update(params, learning_rate, gradient) -> np.ndarray:
    """One gradient-descent step; ``learning_rate`` is a raw fixed-point value."""
    p = _raw(params)
    g = _raw(gradient)
    _require(g, p.size, "gradient")
    step = FIXEDP.multiply(learning_rate, g[: p.size])
    return FIXEDP.wrap(p - step)


def rotate_kernels(weights, depth, num_kernels, kernel_size) -> np.ndarray:
    """Reverse every one-dimensional kernel; the input is left unchanged."""
    w = _raw(weights)
    count = num_kernels * depth * kernel_size
    _require(w, count, "weights")
    rotated = w.copy()
    kernels = rotated[:count].reshape(num_kernels * depth, kernel_size)
    rotated[:count] = kernels[:, ::-1].reshape(-1)
    return rotated


def conv1d_backward(
    post_act_prev, weights, front_loss, depth, cols, num_kernels, kernel_size, padding
):
    """Gradients of a one-dimensional convolution with stride 1.

    Returns ``(weight_gradients, input_gradients)``: the former in kernel,
    channel, element order, the latter channel-major over ``depth * cols``.
    The kernels are reversed before the input gradient is accumulated.
    """
    prev = _raw(post_act_prev)
    loss = _raw(front_loss)
    output_width = cols + 2 * padding - kernel_size + 1
    if output_width <= 0:
        raise ValueError("kernel is wider than the padded input")
    _require(prev, depth * cols, "post activations")
    _require(loss, num_kernels * output_width, "front layer loss")

    w = _raw(weights)
    if kernel_size > 1:
        w = rotate_kernels(w, depth, num_kernels, kernel_size)
    _require(w, num_kernels * depth * kernel_size, "weights")
    kernels = w[: num_kernels * depth * kernel_size].reshape(
        num_kernels, depth, kernel_size
    )
    losses = loss[: num_kernels * output_width].reshape(num_kernels, output_width)
    inputs = prev[: depth * cols].reshape(depth, cols)

    input_grads = np.zeros((depth, cols), dtype=np.int64)
    for out_index in range(output_width):
        start = out_index - padding
        if not 0 <= start < cols:
            continue
        span = min(kernel_size, cols - start)
        for k in range(num_kernels):
            contribution = FIXEDP.multiply(losses[k, out_index], kernels[k, :, :span])
            input_grads[:, start : start + span] += contribution
    input_grads = FIXEDP.wrap(input_grads)

    weight_grads = np.zeros((num_kernels, depth, kernel_size), dtype=np.int64)
    for j in range(kernel_size):
        # Positions past the end of the input contribute nothing.
        valid = max(0, min(output_width, cols - j))
        window = inputs[:, j : j + valid]
        for k in range(num_kernels):
            products = FIXEDP.multiply(window, losses[k, :valid][None, :])
            weight_grads[k, :, j] = FIXEDP.wrap(products.sum(axis=1))

    return weight_grads.reshape(-1), input_grads.reshape(-1)


def max_unpool1d(prepool, pooled_grad, kernel_size, stride) -> np.ndarray:
    """Route each pooled gradient back to the position of its window's maximum.

    A window whose values never exceed the starting maximum routes nothing.
    """
    if kernel_size <= 0 or stride <= 0:
        raise ValueError("kernel size and stride must be positive")
    x = _raw(prepool)
    grads = _raw(pooled_grad)
    pooled_size = max(0, (x.size - kernel_size) // stride + 1)
    _require(grads, pooled_size, "pooled gradient")
    unpooled = np.zeros(x.size, dtype=np.int64)
    for i in range(pooled_size):
        start = i * stride
        window = x[start : start + kernel_size]
        best = _UNPOOL_FLOOR
        best_index = None
        for offset, value in enumerate(window):
            if value > best:
                best = value
                best_index = start + offset
        if best_index is not None:
            unpooled[best_index] = grads[i]
    return unpooled


def unflatten(loss, depth, rows, cols) -> np.ndarray:
    """Reshape a flat gradient into ``(depth, rows, cols)``."""
    x = _raw(loss)
    _require(x, depth * rows * cols, "loss")
    return x[: depth * rows * cols].reshape(depth, rows, cols).copy()