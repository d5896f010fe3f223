"""Turn network logits into a modulation class and its family."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from fixednet.fixedpoint import to_fixed, to_float
from fixednet.model import modulation_classifier

CLASSES = (
    "32PSK", "16APSK", "32QAM", "FM", "GMSK", "32APSK",
    "OQPSK", "8ASK", "BPSK", "8PSK", "AM-SSB-SC", "4ASK",
    "16PSK", "64APSK", "128QAM", "128APSK", "AM-DSB-SC",
    "AM-SSB-WC", "64QAM", "QPSK", "256QAM", "AM-DSB-WC",
    "OOK", "16QAM",
)

_FAMILIES = {
    "ASK": frozenset({"4ASK", "8ASK", "OOK"}),
    "PSK": frozenset({"BPSK", "8PSK", "16PSK", "32PSK", "OQPSK", "QPSK"}),
    "APSK": frozenset({"16APSK", "32APSK", "64APSK", "128APSK"}),
    "QAM": frozenset({"16QAM", "32QAM", "64QAM", "128QAM", "256QAM"}),
    "fM": frozenset({"FM", "GMSK"}),
    "aM": frozenset({"AM-DSB-SC", "AM-SSB-WC", "AM-SSB-SC", "AM-DSB-WC"}),
}


@dataclass(frozen=True)
class Classification:
    """The winning class of one set of logits."""

    index: int
    modulation: str
    hyperclass: str

    def __str__(self) -> str:
        return (
            f"Max index: {self.index}\n"
            f"Modulation: {self.modulation}\n"
            f"Hyperclass: {self.hyperclass}"
        )


def hyperclass(modulation: str) -> str:
    """Family of a modulation name, or ``"Unknown"``."""
    for family, members in _FAMILIES.items():
        if modulation in members:
            return family
    return "Unknown"


def classify(logits) -> Classification:
    """Pick the first largest logit and name its modulation."""
    values = np.asarray(logits).reshape(-1)
    if values.size != len(CLASSES):
        raise ValueError(f"expected {len(CLASSES)} logits, got {values.size}")
    index = int(np.argmax(values))
    modulation = CLASSES[index]
    return Classification(index, modulation, hyperclass(modulation))


def _load_values(path: str) -> np.ndarray:
    if path.endswith(".npy"):
        return np.load(path).astype(np.float64).reshape(-1)
    text = Path(path).read_text()
    return np.array(text.replace(",", " ").split(), dtype=np.float64)


def main(argv=None) -> int:
    """Run the classifier on an input signal and a parameter vector."""
    parser = argparse.ArgumentParser(
        prog="fixednet-classify",
        description="Classify the modulation of a 2 x 1024 I/Q signal.",
    )
    parser.add_argument("inputs", help="file of 2048 input samples (text or .npy)")
    parser.add_argument("params", help="file of network parameters (text or .npy)")
    args = parser.parse_args(argv)

    model = modulation_classifier()
    try:
        inputs = to_fixed(_load_values(args.inputs))
        params = to_fixed(_load_values(args.params))
        result = model.forward(inputs, params)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    floats = to_float(result.output)
    sys.stdout.write("".join(f"Seen: {v:f} " for v in floats))
    sys.stdout.write("out = [" + "".join(f"{v:f}," for v in floats) + "];\n")
    print(classify(result.output))
    return 0