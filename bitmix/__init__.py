"""Building blocks for bitwise context-mixing compression: an arithmetic coder,
byte contexts, mixers, SSE, an LSTM and byte-level models."""

__version__ = "0.1.0"

__all__ = [
    "byte_mixer",
    "byte_model",
    "bracket",
    "coder",
    "contexts",
    "direct",
    "lstm",
    "mixer",
    "mixer_input",
    "sigmoid",
    "sse",
]