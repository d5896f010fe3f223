"""Fixed-point 1D CNN inference, backpropagation and modulation classification."""

__version__ = "0.1.0"

__all__ = ["backprop", "classify", "fixedpoint", "layers", "model", "training"]