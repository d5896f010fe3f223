"""Network layers working on flat arrays of raw fixed-point values."""

from __future__ import annotations

from itertools import product

import numpy as np

from fixednet.fixedpoint import FIXEDP, to_float

# Starting maximum of every pooling window: the expression the pooling
# kernels use for it evaluates to -16, so smaller values are clamped there.
_POOL_FLOOR = -16 << FIXEDP.frac_bits


def _raw(values) -> np.ndarray:
    return np.asarray(values, dtype=np.int64).reshape(-1)


def _require(arr: np.ndarray, size: int, name: str) -> None:
    if arr.size < size:
        raise ValueError(f"{name} holds {arr.size} values, {size} are needed")


def conv1d(inputs, params, depth, rows, cols, num_kernels, kernel_row, kernel_col, padding):
    """One-dimensional convolution with stride 1 and zero padding.

    ``params`` holds every kernel (kernel, channel, row, column order)
    followed by one bias per kernel. The result is kernel-major.
    """
    x = _raw(inputs)
    p = _raw(params)
    out_width = cols - kernel_col + 2 * padding + 1
    if out_width <= 0:
        raise ValueError("kernel is wider than the padded input")
    kernel_len = kernel_row * kernel_col
    _require(x, depth * rows * cols, "inputs")
    _require(p, num_kernels * depth * kernel_len + num_kernels, "params")

    channels = [
        np.pad(x[d * rows * cols : d * rows * cols + cols], padding)
        for d in range(depth)
    ]
    bias_base = num_kernels * depth * kernel_len
    out = np.zeros((num_kernels, out_width), dtype=np.int64)
    for k in range(num_kernels):
        acc = np.zeros(out_width, dtype=np.int64)
        for d, padded in enumerate(channels):
            base = (k * depth + d) * kernel_len
            for r, c in product(range(kernel_row), range(kernel_col)):
                weight = p[base + r * kernel_row + c]
                acc += FIXEDP.multiply(padded[c : c + out_width], weight)
        out[k] = FIXEDP.wrap(acc + p[bias_base + k])
    return out.reshape(-1)


def conv2d(inputs, params, depth, rows, cols, num_kernels, kernel_dim, padding):
    """Two-dimensional convolution with square kernels, stride 1 and zero padding."""
    x = _raw(inputs)
    p = _raw(params)
    out_rows = rows + 2 * padding - kernel_dim + 1
    out_cols = cols + 2 * padding - kernel_dim + 1
    if out_rows <= 0 or out_cols <= 0:
        raise ValueError("kernel is larger than the padded input")
    kernel_len = kernel_dim * kernel_dim
    _require(x, depth * rows * cols, "inputs")
    _require(p, num_kernels * depth * kernel_len + num_kernels, "params")

    images = [
        np.pad(x[d * rows * cols : (d + 1) * rows * cols].reshape(rows, cols), padding)
        for d in range(depth)
    ]
    bias_base = num_kernels * depth * kernel_len
    out = np.zeros((num_kernels, out_rows * out_cols), dtype=np.int64)
    for k in range(num_kernels):
        acc = np.zeros((out_rows, out_cols), dtype=np.int64)
        for d, padded in enumerate(images):
            base = (k * depth + d) * kernel_len
            for r, c in product(range(kernel_dim), range(kernel_dim)):
                weight = p[base + r * kernel_dim + c]
                window = padded[r : r + out_rows, c : c + out_cols]
                acc += FIXEDP.multiply(window, weight)
        out[k] = FIXEDP.wrap(acc.reshape(-1) + p[bias_base + k])
    return out.reshape(-1)


def relu(inputs, alpha=0):
    """Leaky ReLU; ``alpha`` is the raw fixed-point slope for negative values."""
    x = _raw(inputs)
    return np.where(x >= 0, x, FIXEDP.multiply(x, alpha)).astype(np.int64)


def max_pool1d(inputs, depth, cols, pool_col):
    """Non-overlapping max pooling along each channel; a short tail is dropped."""
    if pool_col <= 0:
        raise ValueError("pool size must be positive")
    x = _raw(inputs)
    _require(x, depth * cols, "inputs")
    starts = range(0, cols - pool_col + 1, pool_col)
    if depth == 0 or not starts:
        return np.empty(0, dtype=np.int64)
    channels = x[: depth * cols].reshape(depth, cols)
    pooled = np.stack(
        [channels[:, s : s + pool_col].max(axis=1) for s in starts], axis=1
    )
    return np.maximum(pooled.reshape(-1), _POOL_FLOOR)


def max_pool2d(inputs, depth, rows, cols, pool_dim):
    """Square max pooling; windows at the right and bottom edges may be partial."""
    if pool_dim <= 0:
        raise ValueError("pool size must be positive")
    x = _raw(inputs)
    _require(x, depth * rows * cols, "inputs")
    pooled = [
        max(int(image[r : r + pool_dim, c : c + pool_dim].max()), _POOL_FLOOR)
        for image in x[: depth * rows * cols].reshape(depth, rows, cols)
        for r in range(0, rows, pool_dim)
        for c in range(0, cols, pool_dim)
    ]
    return np.array(pooled, dtype=np.int64)


def flatten(inputs, depth, rows, cols):
    """Flatten in channel, row, column order."""
    x = _raw(inputs)
    _require(x, depth * rows * cols, "inputs")
    return x[: depth * rows * cols].copy()


def flatten_keras(inputs, depth, rows, cols):
    """Flatten in column, row, channel order, as channels-last models expect."""
    x = _raw(inputs)
    _require(x, depth * rows * cols, "inputs")
    cube = x[: depth * rows * cols].reshape(depth, rows, cols)
    return cube.transpose(2, 1, 0).reshape(-1).copy()


def fully_connected(inputs, params, input_size, num_neurons):
    """Dense layer: ``params`` holds the weights row by row, then the biases."""
    x = _raw(inputs)
    p = _raw(params)
    _require(x, input_size, "inputs")
    weight_count = num_neurons * input_size
    _require(p, weight_count + num_neurons, "params")
    weights = p[:weight_count].reshape(num_neurons, input_size)
    products = FIXEDP.multiply(weights, x[:input_size])
    biases = p[weight_count : weight_count + num_neurons]
    return FIXEDP.wrap(products.sum(axis=1) + biases)


def softmax(inputs):
    """Single-precision softmax of raw fixed-point values."""
    values = to_float(_raw(inputs)).astype(np.float32)
    exps = np.exp(values).astype(np.float32)
    if exps.size == 0:
        return exps
    total = np.cumsum(exps, dtype=np.float32)[-1]
    return (exps / total).astype(np.float32)