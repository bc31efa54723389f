"""Reading prover JSON output into a :class:`~starkstack.proof.StarkProof`."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from starkstack.annotations import AnnotationError, parse_annotations, parse_hex
from starkstack.builtins import sort_segments
from starkstack.layout import Layout
from starkstack.pedersen import FIELD_PRIME, compute_hash_on_elements
from starkstack.proof import (
    FriConfig,
    FriLayerWitness,
    FriUnsentCommitment,
    FriWitness,
    ProofOfWorkConfig,
    ProofOfWorkUnsentCommitment,
    PublicInput,
    PublicMemoryCell,
    SegmentInfo,
    StarkConfig,
    StarkProof,
    StarkUnsentCommitment,
    StarkWitness,
    TableCommitmentConfig,
    TableCommitmentWitness,
    TableDecommitment,
    TracesConfig,
    TracesDecommitment,
    TracesUnsentCommitment,
    TracesWitness,
    VectorCommitmentConfig,
    VectorCommitmentWitness,
)

__all__ = [
    "ProofParseError",
    "FriParameters",
    "StarkParameters",
    "ProofParameters",
    "MemorySegmentAddress",
    "PublicMemoryElement",
    "RawPublicInput",
    "RawStarkProof",
    "log2_if_power_of_2",
    "load_raw_proof",
    "continuous_page_headers",
    "build_public_input",
    "parse",
    "main",
]

_COMPONENT_HEIGHT = 16
_U32_MAX = 0xFFFFFFFF


class ProofParseError(ValueError):
    """The proof document is malformed or inconsistent."""


def log2_if_power_of_2(x: int) -> int | None:
    """Return log2 of ``x`` when it is a positive power of two, else None."""
    if x > 0 and x & (x - 1) == 0:
        return x.bit_length() - 1
    return None


@dataclass(frozen=True)
class FriParameters:
    fri_step_list: list[int]
    last_layer_degree_bound: int
    n_queries: int
    proof_of_work_bits: int


@dataclass(frozen=True)
class StarkParameters:
    fri: FriParameters
    log_n_cosets: int


@dataclass(frozen=True)
class ProofParameters:
    stark: StarkParameters
    n_verifier_friendly_commitment_layers: int = 0


@dataclass(frozen=True)
class MemorySegmentAddress:
    begin_addr: int
    stop_ptr: int


@dataclass(frozen=True)
class PublicMemoryElement:
    address: int
    page: int
    value: str


@dataclass(frozen=True)
class RawPublicInput:
    layout: Layout
    memory_segments: dict[str, MemorySegmentAddress]
    n_steps: int
    public_memory: list[PublicMemoryElement]
    rc_min: int
    rc_max: int
    dynamic_params: dict[str, int] | None = None


def _parse_hex_value(text: str) -> int:
    try:
        return parse_hex(text)
    except ValueError:
        raise ProofParseError("Invalid memory value") from None


def _felt(text: str) -> int:
    return _parse_hex_value(text) % FIELD_PRIME


def continuous_page_headers(
    public_memory: Sequence[PublicMemoryElement], z: int, alpha: int
) -> list[tuple[int, int, int, int]]:
    """Return (start address, size, hash, product) for each page after page 0."""
    z %= FIELD_PRIME
    alpha %= FIELD_PRIME
    page_products: dict[int, int] = {}
    start_address: dict[int, int] = {}
    data: dict[int, list[int]] = {}

    for cell in public_memory:
        value = _felt(cell.value)
        factor = z - (cell.address + alpha * value)
        page_products[cell.page] = page_products.get(cell.page, 1) * factor % FIELD_PRIME

        start_address.setdefault(cell.page, cell.address)
        if cell.page == 0:
            continue
        values = data.setdefault(cell.page, [])
        expected = start_address[cell.page] + len(values)
        if cell.address != expected:
            raise ProofParseError(
                f"page {cell.page} address {cell.address} is not contiguous, "
                f"expected {expected}"
            )
        values.append(value)

    if len(page_products) != len(data) + 1:
        raise ProofParseError("public memory pages do not match their products")

    headers = []
    for index, page in enumerate(sorted(data), start=1):
        if page != index:
            raise ProofParseError(f"public memory page {index} is missing")
        values = data[page]
        headers.append(
            (
                start_address[page] % FIELD_PRIME,
                len(values),
                compute_hash_on_elements(values),
                page_products[page],
            )
        )
    return headers


def build_public_input(public_input: RawPublicInput, z: int, alpha: int) -> PublicInput:
    """Assemble the proof's public input from the raw one and z, alpha."""
    memory = public_input.public_memory
    if not memory:
        raise ProofParseError("Invalid public memory")
    headers = continuous_page_headers(memory, z, alpha)
    main_page = [
        PublicMemoryCell(address=cell.address, value=_parse_hex_value(cell.value))
        for cell in memory
        if cell.page == 0
    ]
    try:
        segments = [
            SegmentInfo(begin_addr=s.begin_addr, stop_ptr=s.stop_ptr)
            for s in sort_segments(public_input.memory_segments)
        ]
    except ValueError as error:
        raise ProofParseError(str(error)) from error

    first = memory[0]
    padding_value = _parse_hex_value(first.value)
    log_n_steps = log2_if_power_of_2(public_input.n_steps)
    if log_n_steps is None:
        raise ProofParseError("Invalid number of steps")

    return PublicInput(
        log_n_steps=log_n_steps,
        range_check_min=public_input.rc_min,
        range_check_max=public_input.rc_max,
        layout=int.from_bytes(public_input.layout.bytes_encode(), "big"),
        dynamic_params=dict(sorted((public_input.dynamic_params or {}).items())),
        segments=segments,
        padding_addr=first.address,
        padding_value=padding_value,
        main_page=main_page,
        continuous_page_headers=[value for header in headers for value in header],
    )


@dataclass(frozen=True)
class RawStarkProof:
    """A proof as found in the prover's JSON output."""

    proof_parameters: ProofParameters
    annotations: list[str] = field(repr=False)
    public_input: RawPublicInput

    def _log_trace_domain_size(self) -> int:
        raw = self.public_input
        consts = raw.layout.dynamics_or_consts(raw.dynamic_params)
        size = _COMPONENT_HEIGHT * consts.cpu_component_step * raw.n_steps
        result = log2_if_power_of_2(size) if size <= _U32_MAX else None
        if result is None:
            raise ProofParseError("Invalid cpu component step")
        return result

    def _log_eval_domain_size(self) -> int:
        return self._log_trace_domain_size() + self.proof_parameters.stark.log_n_cosets

    def _layer_log_sizes(self) -> list[int]:
        sizes = [self._log_eval_domain_size()]
        for step in self.proof_parameters.stark.fri.fri_step_list:
            next_size = sizes[-1] - step
            if next_size < 0:
                raise ProofParseError("FRI steps exceed the evaluation domain")
            sizes.append(next_size)
        return sizes

    def stark_config(self) -> StarkConfig:
        """Derive the STARK configuration from the proof parameters."""
        params = self.proof_parameters
        fri = params.stark.fri
        layers = params.n_verifier_friendly_commitment_layers
        raw = self.public_input
        consts = raw.layout.dynamics_or_consts(raw.dynamic_params)

        def table(n_columns: int, height: int) -> TableCommitmentConfig:
            return TableCommitmentConfig(
                n_columns=n_columns,
                vector=VectorCommitmentConfig(
                    height=height, n_verifier_friendly_commitment_layers=layers
                ),
            )

        log_eval = self._log_eval_domain_size()
        layer_log_sizes = self._layer_log_sizes()
        log_last = log2_if_power_of_2(fri.last_layer_degree_bound)
        if log_last is None:
            raise ProofParseError("Invalid last layer degree bound")
        steps = list(fri.fri_step_list)
        if not steps:
            raise ProofParseError("fri_step_list must not be empty")

        return StarkConfig(
            traces=TracesConfig(
                original=table(consts.num_columns_first, log_eval),
                interaction=table(consts.num_columns_second, log_eval),
            ),
            composition=table(consts.constraint_degree, log_eval),
            fri=FriConfig(
                log_input_size=layer_log_sizes[0],
                n_layers=len(steps),
                inner_layers=[
                    table(2**step, rows)
                    for step, rows in zip(steps[1:], layer_log_sizes[2:])
                ],
                fri_step_sizes=steps,
                log_last_layer_degree_bound=log_last,
            ),
            proof_of_work=ProofOfWorkConfig(n_bits=fri.proof_of_work_bits),
            log_trace_domain_size=self._log_trace_domain_size(),
            n_queries=fri.n_queries,
            log_n_cosets=params.stark.log_n_cosets,
            n_verifier_friendly_commitment_layers=layers,
        )

    def to_stark_proof(self) -> StarkProof:
        """Build the full proof, reading commitments and witnesses from annotations."""
        config = self.stark_config()
        ann = parse_annotations(
            self.annotations, len(self.proof_parameters.stark.fri.fri_step_list)
        )
        public_input = build_public_input(self.public_input, ann.z, ann.alpha)

        def witness(authentications: list[int]) -> TableCommitmentWitness:
            return TableCommitmentWitness(
                vector=VectorCommitmentWitness(authentications=list(authentications))
            )

        unsent_commitment = StarkUnsentCommitment(
            traces=TracesUnsentCommitment(
                original=ann.original_commitment_hash,
                interaction=ann.interaction_commitment_hash,
            ),
            composition=ann.composition_commitment_hash,
            oods_values=list(ann.oods_values),
            fri=FriUnsentCommitment(
                inner_layers=list(ann.fri_layers_commitments),
                last_layer_coefficients=list(ann.fri_last_layer_coefficients),
            ),
            proof_of_work=ProofOfWorkUnsentCommitment(nonce=ann.proof_of_work_nonce),
        )
        stark_witness = StarkWitness(
            traces_decommitment=TracesDecommitment(
                original=TableDecommitment(values=list(ann.original_witness_leaves)),
                interaction=TableDecommitment(
                    values=list(ann.interaction_witness_leaves)
                ),
            ),
            traces_witness=TracesWitness(
                original=witness(ann.original_witness_authentications),
                interaction=witness(ann.interaction_witness_authentications),
            ),
            composition_decommitment=TableDecommitment(
                values=list(ann.composition_witness_leaves)
            ),
            composition_witness=witness(ann.composition_witness_authentications),
            fri_witness=FriWitness(
                layers=[
                    FriLayerWitness(
                        leaves=list(layer.leaves),
                        table_witness=witness(layer.authentications),
                    )
                    for layer in ann.fri_witnesses
                ]
            ),
        )
        return StarkProof(
            config=config,
            public_input=public_input,
            unsent_commitment=unsent_commitment,
            witness=stark_witness,
        )


def _object(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ProofParseError(f"{where} must be an object")
    return value


def _get(obj: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in obj:
        raise ProofParseError(f"missing field {key!r} in {where}")
    return obj[key]


def _as_u32(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U32_MAX:
        raise ProofParseError(f"{where} must be an unsigned 32-bit integer")
    return value


def _u32(obj: Mapping[str, Any], key: str, where: str) -> int:
    return _as_u32(_get(obj, key, where), f"{where}.{key}")


def _array(value: Any, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise ProofParseError(f"{where} must be an array")
    return value


def _load_fri(data: Any) -> FriParameters:
    obj = _object(data, "fri")
    return FriParameters(
        fri_step_list=[
            _as_u32(step, "fri.fri_step_list")
            for step in _array(_get(obj, "fri_step_list", "fri"), "fri.fri_step_list")
        ],
        last_layer_degree_bound=_u32(obj, "last_layer_degree_bound", "fri"),
        n_queries=_u32(obj, "n_queries", "fri"),
        proof_of_work_bits=_u32(obj, "proof_of_work_bits", "fri"),
    )


def _load_proof_parameters(data: Any) -> ProofParameters:
    obj = _object(data, "proof_parameters")
    stark = _object(_get(obj, "stark", "proof_parameters"), "stark")
    layers = obj.get("n_verifier_friendly_commitment_layers", 0)
    return ProofParameters(
        stark=StarkParameters(
            fri=_load_fri(_get(stark, "fri", "stark")),
            log_n_cosets=_u32(stark, "log_n_cosets", "stark"),
        ),
        n_verifier_friendly_commitment_layers=_as_u32(
            layers, "proof_parameters.n_verifier_friendly_commitment_layers"
        ),
    )


def _load_memory_element(data: Any) -> PublicMemoryElement:
    obj = _object(data, "public_memory element")
    value = _get(obj, "value", "public_memory element")
    if not isinstance(value, str):
        raise ProofParseError("public_memory value must be a string")
    return PublicMemoryElement(
        address=_u32(obj, "address", "public_memory element"),
        page=_u32(obj, "page", "public_memory element"),
        value=value,
    )


def _load_public_input(data: Any) -> RawPublicInput:
    obj = _object(data, "public_input")
    layout_name = _get(obj, "layout", "public_input")
    try:
        layout = Layout(layout_name)
    except ValueError:
        raise ProofParseError(f"unknown layout {layout_name!r}") from None

    segments = {}
    for name, segment in _object(
        _get(obj, "memory_segments", "public_input"), "memory_segments"
    ).items():
        seg = _object(segment, f"memory segment {name!r}")
        segments[name] = MemorySegmentAddress(
            begin_addr=_u32(seg, "begin_addr", f"memory segment {name!r}"),
            stop_ptr=_u32(seg, "stop_ptr", f"memory segment {name!r}"),
        )

    raw_dynamic = obj.get("dynamic_params")
    dynamic_params = None
    if raw_dynamic is not None:
        dynamic_params = {
            key: _as_u32(value, f"dynamic_params.{key}")
            for key, value in _object(raw_dynamic, "dynamic_params").items()
        }

    return RawPublicInput(
        layout=layout,
        memory_segments=segments,
        n_steps=_u32(obj, "n_steps", "public_input"),
        public_memory=[
            _load_memory_element(element)
            for element in _array(
                _get(obj, "public_memory", "public_input"), "public_memory"
            )
        ],
        rc_min=_u32(obj, "rc_min", "public_input"),
        rc_max=_u32(obj, "rc_max", "public_input"),
        dynamic_params=dynamic_params,
    )


def load_raw_proof(data: Mapping[str, Any]) -> RawStarkProof:
    """Validate a decoded JSON document and return the raw proof it holds."""
    obj = _object(data, "proof")
    annotations = _array(_get(obj, "annotations", "proof"), "annotations")
    if not all(isinstance(line, str) for line in annotations):
        raise ProofParseError("annotations must be strings")
    return RawStarkProof(
        proof_parameters=_load_proof_parameters(_get(obj, "proof_parameters", "proof")),
        annotations=list(annotations),
        public_input=_load_public_input(_get(obj, "public_input", "proof")),
    )


def parse(text: str | bytes) -> StarkProof:
    """Parse a prover JSON document into a proof."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as error:
        raise ProofParseError(f"invalid JSON: {error}") from error
    return load_raw_proof(document).to_stark_proof()


def main(argv: Sequence[str] | None = None) -> int:
    """Parse a proof file and print it as JSON."""
    parser = argparse.ArgumentParser(description="Parse a STARK proof JSON file.")
    parser.add_argument("proof", help="path of the proof file, or - for stdin")
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation")
    args = parser.parse_args(argv)

    try:
        if args.proof == "-":
            text = sys.stdin.read()
        else:
            with open(args.proof, encoding="utf-8") as handle:
                text = handle.read()
        proof = parse(text)
    except (OSError, ProofParseError, AnnotationError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 1

    print(json.dumps(proof.to_dict(), indent=args.indent))
    return 0