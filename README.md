# bitmix

`bitmix` provides the building blocks of a bitwise context-mixing compressor. It is
written in Python with numpy. Each part works on one bit at a time:

- a model predicts the probability that the next bit is 1;
- a mixer combines several such predictions;
- a binary arithmetic coder turns the final probability into bytes.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `bitmix.coder`

`Encoder(predictor)` and `Decoder(data, predictor)` form a 32-bit binary arithmetic coder.

- The predictor is any object with `predict()`, which returns the probability of a 1 bit, and `perceive(bit)`.
- `Encoder.encode(bit)` codes one bit.
- `Encoder.flush()` finishes the stream and returns the bytes.
- `Encoder.output_size()` gives the number of bytes produced so far.
- `Decoder.decode()` returns the next bit.
- When the decoder runs out of data, it reads zero bytes.

### `bitmix.contexts`

Byte-level contexts, each advanced by `update()` once per byte:

- `BitContext`
- `BracketContext`
- `CombinedContext`
- `ContextHash`
- `IndirectHash`
- `Interval`
- `IntervalHash`
- `Sparse`

Each context has a current `context` value and a `size`. `is_equal(other)` tells
whether two contexts would compute the same value.

Contexts read their inputs through zero-argument callables, so they always see
current values. `Sparse` is the exception: it reads from a shared list.

### `bitmix.sigmoid`

`Sigmoid(logit_size)` has three methods:

- `logit(p)` looks the logit up in a table and clamps the index to the table.
- `logistic(p)` is a static method.
- `fast_logistic(p)` is a static method that gives a rational approximation.

### `bitmix.mixer_input`

`MixerInput(sigmoid, eps)` holds the stretched model predictions in `inputs` and
further values in `extra_inputs`.

- `set_input` clamps a probability to `[eps, 1 - eps]` and then stretches it.
- `set_stretched_input` and `set_extra_input` clamp their value to the logit table's range.

### `bitmix.mixer`

`Mixer(mixer_input, context, learning_rate, extra_input_size)` mixes the inputs linearly.

- It uses a weight set (`ContextData`) chosen by the value of the `context` callable.
- At most 10,000 context values get their own weights. Later ones share a common set.
- `mix()` returns the stretched prediction.
- `perceive(bit)` adjusts the weights. Its step size shrinks as more bits are seen.

### `bitmix.sse`

`SSE` refines a probability, using the bits seen so far as context.

- Call `predict(probability)` first, then `perceive(bit)`.
- `predict` raises `ValueError` for a probability outside `[0, 1]`.
- `perceive` raises `RuntimeError` if it is called before any prediction.

### `bitmix.lstm`

`Lstm(input_size, output_size, num_cells, num_layers, horizon, learning_rate,
gradient_clip, seed=0)` is a stacked, layer-normalised LSTM.

- It predicts a distribution over `output_size` symbols.
- It learns by backpropagation through time over `horizon` steps, with Adam updates.
- `set_input(inputs)` sets the auxiliary inputs.
- `perceive(symbol)` learns the symbol and returns the next distribution.
- `predict(symbol)` only runs the network forward.
- `LstmLayer` is a single layer.

### `bitmix.byte_model`

`ByteModel(vocab)` holds a distribution over the 256 byte values. `vocab` is 256 booleans.

- `predict()` gives the bit probability by a binary search over the values that are still possible.
- After `predict()`, `most_likely` holds the most probable of those values.
- `perceive(bit)` narrows the range of possible values.
- `byte_update()` resets the range and zeroes values outside the vocabulary.
- `byte_predict()` returns the distribution.

### `bitmix.bracket`

`Bracket(byte, distance_limit, stack_limit, stats_limit, vocab)` is a byte model.

- It tracks open brackets and quotes.
- It learns, per bracket and distance, how often the closing byte comes next.

### `bitmix.direct`

`Direct(byte_context, bit_context, limit, delta, size)` keeps one adaptive
probability per pair of byte context and partial byte.

`DirectHash` takes the same arguments. It hashes byte contexts into `size` rows:

- each row is claimed by the first context that lands on it;
- after 20 occupied probes, the last row probed is cleared and taken over.

### `bitmix.byte_mixer`

`ByteMixer(num_models, byte, vocab, vocab_size, lstm)` sums the byte-level
predictions of several models over the vocabulary. At each byte boundary it
passes them to an `Lstm` and takes the LSTM's distribution as its own.

## Example: coding bits

```python
from bitmix.coder import Encoder, Decoder


class Half:
    def predict(self):
        return 0.5

    def perceive(self, bit):
        pass


bits = [1, 0, 1, 1, 0, 0, 1, 0]
encoder = Encoder(Half())
for bit in bits:
    encoder.encode(bit)
data = encoder.flush()

decoder = Decoder(data, Half())
assert [decoder.decode() for _ in bits] == bits
```

The decoder needs a predictor that sees the same bits in the same order as the
encoder's predictor. That way both produce the same probabilities.

## Example: a context

```python
from bitmix.contexts import ContextHash

state = {"byte": 0}
ctx = ContextHash(lambda: state["byte"], order=2, hash_size=8)
for b in b"ab":
    state["byte"] = b
    ctx.update()
assert ctx.context == (ord("a") << 8) + ord("b")
```

## What the package does not do

`bitmix` is a library of parts. It does not provide:

- a command-line tool;
- a file format (the coded stream carries no length or header);
- text preprocessing;
- a ready-made predictor that wires contexts, models, mixers and SSE together.

You build the predictor passed to `Encoder` and `Decoder` yourself from these parts.