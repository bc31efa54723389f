"""The parsed STARK proof: configuration, public input, commitments and witness."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar

__all__ = [
    "StarkProof",
    "StarkConfig",
    "TracesConfig",
    "TableCommitmentConfig",
    "VectorCommitmentConfig",
    "FriConfig",
    "ProofOfWorkConfig",
    "StarkUnsentCommitment",
    "TracesUnsentCommitment",
    "FriUnsentCommitment",
    "ProofOfWorkUnsentCommitment",
    "StarkWitness",
    "TracesDecommitment",
    "TableDecommitment",
    "TracesWitness",
    "TableCommitmentWitness",
    "VectorCommitmentWitness",
    "FriWitness",
    "FriLayerWitness",
    "PublicInput",
    "PublicMemoryCell",
    "SegmentInfo",
]

_PAGE_HEADER_SIZE = 4


def _plain(value: Any) -> Any:
    if isinstance(value, _Record):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


class _Record:
    """Shared conversion of nested proof records into plain dictionaries."""

    _derived: ClassVar[tuple[str, ...]] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return the record as nested dicts, lists and ints, counts included."""
        result = {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
        for name in self._derived:
            result[name] = getattr(self, name)
        return result


@dataclass
class VectorCommitmentConfig(_Record):
    height: int
    n_verifier_friendly_commitment_layers: int


@dataclass
class TableCommitmentConfig(_Record):
    n_columns: int
    vector: VectorCommitmentConfig


@dataclass
class TracesConfig(_Record):
    original: TableCommitmentConfig
    interaction: TableCommitmentConfig


@dataclass
class FriConfig(_Record):
    log_input_size: int
    n_layers: int
    inner_layers: list[TableCommitmentConfig]
    fri_step_sizes: list[int]
    log_last_layer_degree_bound: int


@dataclass
class ProofOfWorkConfig(_Record):
    n_bits: int


@dataclass
class StarkConfig(_Record):
    traces: TracesConfig
    composition: TableCommitmentConfig
    fri: FriConfig
    proof_of_work: ProofOfWorkConfig
    log_trace_domain_size: int
    n_queries: int
    log_n_cosets: int
    n_verifier_friendly_commitment_layers: int


@dataclass
class TracesUnsentCommitment(_Record):
    original: int
    interaction: int


@dataclass
class FriUnsentCommitment(_Record):
    inner_layers: list[int]
    last_layer_coefficients: list[int]


@dataclass
class ProofOfWorkUnsentCommitment(_Record):
    nonce: int


@dataclass
class StarkUnsentCommitment(_Record):
    traces: TracesUnsentCommitment
    composition: int
    oods_values: list[int]
    fri: FriUnsentCommitment
    proof_of_work: ProofOfWorkUnsentCommitment


@dataclass
class TableDecommitment(_Record):
    values: list[int]

    _derived: ClassVar[tuple[str, ...]] = ("n_values",)

    @property
    def n_values(self) -> int:
        return len(self.values)


@dataclass
class TracesDecommitment(_Record):
    original: TableDecommitment
    interaction: TableDecommitment


@dataclass
class VectorCommitmentWitness(_Record):
    authentications: list[int]

    _derived: ClassVar[tuple[str, ...]] = ("n_authentications",)

    @property
    def n_authentications(self) -> int:
        return len(self.authentications)


@dataclass
class TableCommitmentWitness(_Record):
    vector: VectorCommitmentWitness


@dataclass
class TracesWitness(_Record):
    original: TableCommitmentWitness
    interaction: TableCommitmentWitness


@dataclass
class FriLayerWitness(_Record):
    leaves: list[int]
    table_witness: TableCommitmentWitness

    _derived: ClassVar[tuple[str, ...]] = ("n_leaves",)

    @property
    def n_leaves(self) -> int:
        return len(self.leaves)


@dataclass
class FriWitness(_Record):
    layers: list[FriLayerWitness]


@dataclass
class StarkWitness(_Record):
    traces_decommitment: TracesDecommitment
    traces_witness: TracesWitness
    composition_decommitment: TableDecommitment
    composition_witness: TableCommitmentWitness
    fri_witness: FriWitness


@dataclass
class PublicMemoryCell(_Record):
    address: int
    value: int


@dataclass
class SegmentInfo(_Record):
    begin_addr: int
    stop_ptr: int


@dataclass
class PublicInput(_Record):
    """Public input of a proof; page headers are flattened, four values per page."""

    log_n_steps: int
    range_check_min: int
    range_check_max: int
    layout: int
    dynamic_params: dict[str, int]
    segments: list[SegmentInfo]
    padding_addr: int
    padding_value: int
    main_page: list[PublicMemoryCell]
    continuous_page_headers: list[int]

    _derived: ClassVar[tuple[str, ...]] = (
        "n_segments",
        "main_page_len",
        "n_continuous_pages",
    )

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @property
    def main_page_len(self) -> int:
        return len(self.main_page)

    @property
    def n_continuous_pages(self) -> int:
        return len(self.continuous_page_headers) // _PAGE_HEADER_SIZE


@dataclass
class StarkProof(_Record):
    config: StarkConfig
    public_input: PublicInput
    unsent_commitment: StarkUnsentCommitment
    witness: StarkWitness

    def to_dict(self) -> dict[str, Any]:
        """Return the whole proof as nested dicts, lists and ints."""
        return super().to_dict()