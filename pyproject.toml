[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bitmix"
version = "0.1.0"
description = "Building blocks for bitwise context-mixing compression: arithmetic coder, contexts, mixers, SSE, LSTM and byte models"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["compression", "context mixing", "arithmetic coding", "lstm", "sse"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Compression",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["bitmix"]

[tool.pytest.ini_options]
addopts = "-ra"
