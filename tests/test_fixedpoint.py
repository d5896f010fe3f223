import numpy as np
import pytest

from fixednet.fixedpoint import FIXEDP, FixedFormat, to_fixed, to_float


def test_default_format_layout():
    fmt = FixedFormat()
    assert fmt.frac_bits == 22
    assert fmt.max_raw == 2**31 - 1
    assert fmt.min_raw == -(2**31)
    assert fmt.resolution == 2.0**-22


@pytest.mark.parametrize("value", [0.0, 0.5, -1.25, 3.0, 511.0, -512.0])
def test_representable_values_round_trip(value):
    assert float(to_float(to_fixed(value))) == value


@pytest.mark.parametrize("value", [0.1, -0.1, 1 / 3, -2 / 3, 123.456])
def test_quantize_truncates_toward_negative_infinity(value):
    q = float(to_float(to_fixed(value)))
    assert q <= value < q + FIXEDP.resolution


def test_overflow_wraps_around():
    assert float(to_float(to_fixed(512.0))) == -512.0


def test_wrap_raw_edges():
    fmt = FixedFormat()
    assert int(fmt.wrap(fmt.max_raw + 1)) == fmt.min_raw
    assert int(fmt.wrap(fmt.min_raw - 1)) == fmt.max_raw


def test_wrap_keeps_in_range_values():
    fmt = FixedFormat()
    raw = np.array([fmt.min_raw, -1, 0, 1, fmt.max_raw])
    assert np.array_equal(fmt.wrap(raw), raw)


def test_multiply_exact_product():
    assert FIXEDP.multiply(to_fixed(1.5), to_fixed(-2.0)) == to_fixed(-3.0)


def test_multiply_by_one_is_identity():
    raw = to_fixed([0.75, -3.125, 100.0, -0.001])
    assert np.array_equal(FIXEDP.multiply(raw, to_fixed(1.0)), raw)


@pytest.mark.parametrize("a,b", [(0.3, 0.7), (-0.3, 0.7), (1e-6, -1e-6), (7.1, -3.3)])
def test_multiply_truncates(a, b):
    ra, rb = to_fixed(a), to_fixed(b)
    exact = float(to_float(ra)) * float(to_float(rb))
    result = float(to_float(FIXEDP.multiply(ra, rb)))
    assert result <= exact < result + FIXEDP.resolution


def test_multiply_is_commutative():
    a = to_fixed([1.5, -2.25, 0.1])
    b = to_fixed([3.0, 0.3, -7.7])
    assert np.array_equal(FIXEDP.multiply(a, b), FIXEDP.multiply(b, a))


def test_custom_format_scale():
    fmt = FixedFormat(16, 8)
    assert fmt.frac_bits == 8
    assert int(fmt.quantize(1.0)) == 1 << fmt.frac_bits
    assert float(fmt.to_float(fmt.quantize(-2.5))) == -2.5


def test_to_float_keeps_shape():
    values = [[1.0, 2.0], [-0.5, 4.25]]
    result = to_float(to_fixed(values))
    assert result.shape == (2, 2)
    assert np.array_equal(result, np.array(values))


@pytest.mark.parametrize("total,integer", [(0, 0), (33, 10), (32, 0), (8, 9)])
def test_invalid_formats_rejected(total, integer):
    with pytest.raises(ValueError):
        FixedFormat(total, integer)


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), [1.0, float("-inf")]])
def test_non_finite_values_rejected(bad):
    with pytest.raises(ValueError):
        to_fixed(bad)