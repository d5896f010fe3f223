# fixednet

A fixed-point convolutional network that classifies radio modulation schemes
from 2 × 1024 I/Q samples into 24 classes. All arithmetic works on raw integer
values of a signed 32-bit fixed-point format with 10 integer bits and 22
fractional bits. Conversions from real numbers truncate toward negative
infinity, products are truncated back into the format, and results that leave
the range wrap around, as a 32-bit hardware register would.

## Modules

- `fixednet.fixedpoint`: the `FixedFormat` dataclass (`quantize`, `to_float`,
  `wrap`, `multiply`), the module-level `to_fixed` and `to_float` conversions
  for the default format, and the `Activation` enumeration.
- `fixednet.layers`: layer functions on flat arrays of raw values: `conv1d`,
  `conv2d`, `relu`, `max_pool1d`, `max_pool2d`, `flatten`, `flatten_keras`,
  `fully_connected` and `softmax` (which returns single-precision floats).
- `fixednet.model`: the layer descriptions `Conv1DLayer`, `ReLULayer`,
  `MaxPool1DLayer`, `FlattenLayer` and `DenseLayer`; `Model`, which chains
  them over one flat parameter vector; `ForwardResult`; and
  `modulation_classifier()`, which builds the 21-layer classifier that reads
  430 832 parameters. `GOLDEN_OUTPUT` holds reference logits of the trained
  network for one recorded signal.
- `fixednet.classify`: `classify(logits)` picks the first largest of 24 logits
  and returns a `Classification` (index, modulation name, family);
  `hyperclass(name)` gives the family (ASK, PSK, APSK, QAM, fM, aM or
  Unknown). `CLASSES` lists the 24 modulation names in output order.
- `fixednet.backprop`: `output_gradient`, `hidden_layer_gradient`,
  `relu_derivative`, `mat_mult`, `transpose`, `param_update`, and backward
  helpers for the convolutional part: `rotate_kernels`, `conv1d_backward`,
  `max_unpool1d` and `unflatten`.
- `fixednet.training`: `train_step`, one forward pass, backpropagation
  through the three dense layers and a gradient-descent update of their
  weights, returned as a `TrainResult`.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Inference

Inputs and parameters are raw fixed-point integers; convert real numbers
with `to_fixed`.

```python
import numpy as np
from fixednet.fixedpoint import to_fixed, to_float
from fixednet.model import modulation_classifier
from fixednet.classify import classify

model = modulation_classifier()
params = to_fixed(np.zeros(model.parameter_count()))  # load trained weights here
samples = to_fixed(np.zeros(2048))                    # 2 channels x 1024 samples

result = model.forward(samples, params)
print(to_float(result.output))
print(classify(result.output))
```

`Model.forward` returns a `ForwardResult` with `output` (the logits),
`activations` (the output of every layer), and `intermediate` with `offsets`:
the outputs of the flatten layer, the dense layers and their ReLUs laid end to
end, and where each one starts.

## Training step

```python
from fixednet.training import train_step

labels = np.zeros(24)
labels[2] = 1.0
step = train_step(samples, params, to_fixed(labels), int(to_fixed(0.01)))
```

The labels are a one-hot vector and the learning rate is a single raw
fixed-point value. The `TrainResult` holds `forward`, `output` (the logits),
`output_loss` (softmax of the logits minus the labels), `weight_gradients`
(one flat gradient matrix per dense layer, in network order) and `params`
(the updated vector). Only the weights of the dense layers change; biases and
convolution kernels are left as they were.

## Command line

```
fixednet-classify INPUTS PARAMS
```

`INPUTS` is a file of 2048 input samples and `PARAMS` a file of network
parameters, each either a `.npy` array or text with values separated by
whitespace or commas. The command runs the classifier and prints the logits
(`Seen: ...` and `out = [...]`), then the winning index, the modulation and
its family. It exits with status 1 and a message on standard error if a file
cannot be read or holds the wrong number of values.

## What the package does not do

It ships no trained parameters and no sample signals; both must be supplied.
There is no command for training, and `train_step` performs a single step
without saving the updated parameters anywhere. Backpropagation covers only
the dense layers; the convolutional backward helpers are provided but are not
wired into `train_step`.