# starkstack

`starkstack` has three parts.

**A bidirectional byte stack with a task scheduler.** `BidirectionalStack` (in
`starkstack.stack`) keeps length-prefixed records in one fixed buffer of 65536 bytes
by default. Data records grow up from the front and task records grow down from the
back. Each call to `execute` decodes the task at the back and runs one step of it.
The task can read and write data at the front, and it can return further tasks to
schedule. Its updated state is written back in place. This splits a long computation
into many small, resumable steps.

**Step-by-step arithmetic tasks.** `starkstack.arithmetic` provides `Add`, `Mul`,
`MulInternal`, `Exp`, `ExpInternal`, `Fibonacci`, `FibonacciCombiner` and `Increment`.
Multiplication is carried out as repeated `Add` tasks and exponentiation as repeated
`Mul` tasks. Values on the stack are 128-bit unsigned big-endian integers, and sums
saturate at 2**128 - 1.

**A STARK proof parser.** `starkstack.json_parser` reads a prover's JSON output and
builds a structured `starkstack.proof.StarkProof`. The input holds proof parameters,
the public input and the annotation log. The result holds:

- the commitment configuration;
- the public input, including its continuous page headers, which are computed with a
  Pedersen hash;
- the unsent commitments;
- the witness.

## Installation

```
pip install .
```

The package has no third-party runtime dependencies. To run the tests:

```
pip install ".[test]"
pytest
```

## Running tasks on the stack

```python
from starkstack.stack import BidirectionalStack
from starkstack.arithmetic import Exp, Fibonacci

stack = BidirectionalStack()
stack.push_task(Exp(2, 10))
while not stack.is_empty_back():
    stack.execute()

print(int.from_bytes(stack.borrow_front(), "big"))  # 1024
stack.pop_front()

stack.push_task(Fibonacci(19))
steps = stack.simulate()          # runs until no task is left, returns the step count
print(int.from_bytes(stack.borrow_front(), "big"))  # 4181
```

### Working with raw data

```python
stack = BidirectionalStack()
stack.push_front(b"\x01\x02\x03")
stack.push_back(b"\x07\x08\x09")
assert stack.borrow_front() == b"\x01\x02\x03"
assert stack.borrow_back() == b"\x07\x08\x09"
stack.pop_front()
stack.pop_back()
assert stack.is_empty_front() and stack.is_empty_back()
```

The record ends work as follows:

- `push_data` and `pop_data` work on the front of the stack.
- `push_task` and `pop_task` work on the back.
- `borrow_front` and `borrow_back` return copies of the top records.
- `borrow_mut_front` and `borrow_mut_back` return writable `memoryview`s into the
  buffer.

### Errors

Errors raised by the stack derive from `VerifierError`:

- Pushing a record that does not fit, or one longer than 65535 bytes, raises
  `StackCapacityError`.
- Reading or popping an empty end raises `EmptyStackError`.

### Writing your own task

To define a task:

1. Subclass `Executable` from `starkstack.tasks`, usually as a dataclass.
2. List its state in the class attribute `fields` as `(attribute, byte width)` pairs.
   Each value is stored as an unsigned big-endian integer.
3. Decorate the class with `register_task`.

The type tag is the 32-bit FNV-1a hash (`type_id`) of the class's `task_name` if it
sets one. Otherwise it is the hash of `module::QualifiedName`. Registering two classes
under the same tag raises `TaskRegistryError`.

`execute(stack)` returns a list of encoded tasks to schedule. `is_finished()` says
whether the task is removed after the step, and defaults to `False`.
`to_vec_with_type_tag()` gives the tagged bytes. `decode_task` (or
`task_class_for_tag` together with `from_bytes`) turns those bytes back into a task.

```python
from dataclasses import dataclass
from starkstack.tasks import Executable, register_task

@register_task
@dataclass
class PushConstant(Executable):
    value: int
    fields = (("value", 16),)

    def execute(self, stack):
        stack.push_front(self.value.to_bytes(16, "big"))
        return []

    def is_finished(self):
        return True
```

## Parsing a proof

```python
from starkstack.json_parser import parse

with open("proof.json") as fh:
    proof = parse(fh.read())

print(proof.config.log_trace_domain_size)
print(proof.public_input.n_continuous_pages)
data = proof.to_dict()   # nested dicts, lists and ints, counts included
```

Errors from the parser:

- Malformed or inconsistent input raises `ProofParseError`. Examples are invalid JSON,
  missing fields, an unknown layout or builtin, a step count that is not a power of
  two, and non-contiguous memory pages.
- Problems in the annotation log raise `AnnotationError`. Examples are a missing
  commitment hash or an unexpected number of interaction elements.

### Lower-level pieces

These can also be used on their own:

- `starkstack.json_parser.load_raw_proof`: turns a decoded JSON document into a
  `RawStarkProof`, which has `stark_config()` and `to_stark_proof()`.
- `starkstack.json_parser.continuous_page_headers`, `build_public_input` and
  `log2_if_power_of_2`.
- `starkstack.annotations.parse_annotations`, `extract_z_and_alpha`,
  `extract_annotations` and `parse_hex`.
- `starkstack.layout.Layout`: the layout constants, with overrides from dynamic
  parameters.
- `starkstack.builtins.parse_builtin` and `sort_segments`: the canonical order of
  builtin segments.
- `starkstack.pedersen.pedersen_hash` and `compute_hash_on_elements`: these work over
  the STARK field, and values outside it raise `ValueError`.

## Command line

```
starkstack-parse proof.json
```

This parses the proof in the given file and prints it as JSON. Pass `-` to read the
proof from standard input. `--indent N` sets the JSON indentation, which defaults to
2. On a read or parse error, the command prints the message to standard error and
exits with status 1.

## What this package does not do

The package parses a proof and computes its public-input data. It does not verify the
proof. There are no tasks for checking commitments, FRI layers or proof of work, and
no Poseidon hashing. The stack scheduler runs only the tasks registered with it, which
are the arithmetic tasks and any that you define.