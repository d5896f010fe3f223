[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fixednet"
version = "0.1.0"
description = "Bit-accurate fixed-point 1D CNN inference and backpropagation for radio modulation classification"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "fixed-point",
    "neural-network",
    "cnn",
    "backpropagation",
    "modulation-classification",
    "quantization",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
fixednet-classify = "fixednet.classify:main"

[tool.hatch.build.targets.wheel]
packages = ["fixednet"]

[tool.pytest.ini_options]
addopts = "-ra"
