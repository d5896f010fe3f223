from collections import Counter

import numpy as np
import pytest

from fixednet.classify import CLASSES, Classification, classify, hyperclass, main
from fixednet.fixedpoint import to_fixed
from fixednet.model import GOLDEN_OUTPUT, modulation_classifier


@pytest.mark.parametrize(
    "modulation, family",
    [
        ("OOK", "ASK"),
        ("4ASK", "ASK"),
        ("OQPSK", "PSK"),
        ("BPSK", "PSK"),
        ("128APSK", "APSK"),
        ("256QAM", "QAM"),
        ("GMSK", "fM"),
        ("FM", "fM"),
        ("AM-DSB-WC", "aM"),
        ("AM-SSB-SC", "aM"),
    ],
)
def test_hyperclass(modulation, family):
    assert hyperclass(modulation) == family


def test_unknown_hyperclass():
    assert hyperclass("Morse") == "Unknown"


def test_every_class_has_family():
    families = Counter(hyperclass(name) for name in CLASSES)
    assert families == Counter(
        {"ASK": 3, "PSK": 6, "APSK": 4, "QAM": 5, "fM": 2, "aM": 4}
    )
    assert len(set(CLASSES)) == 24


def test_one_hot_logits_pick_class():
    for index, name in enumerate(CLASSES):
        logits = np.zeros(len(CLASSES))
        logits[index] = 1.0
        result = classify(to_fixed(logits))
        assert result == Classification(index, name, hyperclass(name))


def test_ties_pick_first():
    result = classify(np.zeros(len(CLASSES), dtype=np.int64))
    assert result.index == 0
    assert result.modulation == CLASSES[0]


def test_golden_output():
    result = classify(to_fixed(GOLDEN_OUTPUT))
    assert result.index == 15
    assert result.modulation == "128APSK"
    assert result.hyperclass == "APSK"


def test_wrong_logit_count_raises():
    with pytest.raises(ValueError):
        classify([0.0] * (len(CLASSES) - 1))


def test_str_lists_fields():
    text = str(Classification(8, "BPSK", "PSK"))
    assert text.splitlines() == ["Max index: 8", "Modulation: BPSK", "Hyperclass: PSK"]


def _write_text(path, values):
    path.write_text("\n".join(str(v) for v in values))
    return str(path)


def test_main_text_files(tmp_path, capsys):
    count = modulation_classifier().parameter_count()
    params = [0.0] * count
    params[count - len(CLASSES) + CLASSES.index("BPSK")] = 1.0
    inputs = _write_text(tmp_path / "input.txt", [0.0] * 2048)
    param_file = _write_text(tmp_path / "params.txt", params)
    assert main([inputs, param_file]) == 0
    out = capsys.readouterr().out
    assert "Modulation: BPSK" in out
    assert "Hyperclass: PSK" in out
    assert out.count("Seen: ") == len(CLASSES)


def test_main_npy_files(tmp_path, capsys):
    count = modulation_classifier().parameter_count()
    inputs = tmp_path / "input.npy"
    params = tmp_path / "params.npy"
    np.save(inputs, np.zeros(2048))
    np.save(params, np.zeros(count))
    assert main([str(inputs), str(params)]) == 0
    out = capsys.readouterr().out
    assert f"Modulation: {CLASSES[0]}" in out
    assert "Max index: 0" in out


def test_main_reports_bad_input(tmp_path, capsys):
    inputs = _write_text(tmp_path / "input.txt", [0.0] * 10)
    params = _write_text(tmp_path / "params.txt", [0.0] * 10)
    assert main([inputs, params]) == 1
    assert "error" in capsys.readouterr().err


def test_main_reports_missing_file(tmp_path, capsys):
    missing = str(tmp_path / "absent.txt")
    assert main([missing, missing]) == 1
    assert "error" in capsys.readouterr().err