"""Extraction of commitments and witnesses from prover annotation lines."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "AnnotationError",
    "ZAlpha",
    "AnnotationKind",
    "PrefixAndKinds",
    "Annotation",
    "Annotations",
    "FriLayerAnnotations",
    "parse_hex",
    "extract_z_and_alpha",
    "extract_annotations",
    "parse_annotations",
]

_HEX_RE = re.compile(r"\+?[0-9A-Fa-f]+")
_INTERACTION_RE = re.compile(
    r"V->P: /cpu air/STARK/Interaction: Interaction element #\d+: "
    r"Field Element\(0x([0-9a-f]+)\)"
)
_EXPECTED_INTERACTION_COUNTS = (3, 6, 8)


class AnnotationError(ValueError):
    """Annotations are missing or malformed."""


def parse_hex(value: str) -> int:
    """Parse a hexadecimal number, with or without a leading ``0x``."""
    text = value.strip()
    if text.startswith("0x"):
        text = text[2:]
    if not _HEX_RE.fullmatch(text):
        raise ValueError(f"invalid hexadecimal value: {value!r}")
    return int(text, 16)


def _try_parse_hex(value: str) -> int | None:
    try:
        return parse_hex(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class ZAlpha:
    """The first two interaction elements of the proof."""

    z: int
    alpha: int

    @classmethod
    def extract(cls, annotations: Sequence[str]) -> ZAlpha:
        return extract_z_and_alpha(annotations)


def extract_z_and_alpha(annotations: Sequence[str]) -> ZAlpha:
    """Read the interaction elements and return the first two as z and alpha."""
    elements = [
        parse_hex(match.group(1))
        for line in annotations
        for match in _INTERACTION_RE.finditer(line)
    ]
    if len(elements) not in _EXPECTED_INTERACTION_COUNTS:
        raise AnnotationError(
            f"Unexpected number of interaction elements: {len(elements)}"
        )
    return ZAlpha(z=elements[0], alpha=elements[1])


def extract_annotations(
    annotations: Sequence[str], prefix: str, kind: str
) -> list[int]:
    """Collect the values of prover-to-verifier lines under ``prefix`` of ``kind``.

    ``prefix`` is a regular expression fragment. Values that do not parse as
    hexadecimal are skipped.
    """
    pattern = re.compile(
        rf"P->V\[(\d+):(\d+)\]: /cpu air/{prefix}: .*{re.escape(kind)}\((.+)\)"
    )
    result: list[int] = []
    for line in annotations:
        match = pattern.search(line)
        if match is None:
            continue
        text = match.group(3)
        if kind == AnnotationKind.FIELD_ELEMENTS.labels[0]:
            result.extend(
                value
                for value in map(_try_parse_hex, text.split(","))
                if value is not None
            )
        else:
            value = _try_parse_hex(text)
            if value is not None:
                result.append(value)
    return result


class AnnotationKind(Enum):
    """The value kinds an annotation line may carry."""

    DATA = ("Data",)
    HASH = ("Hash",)
    FIELD_ELEMENT = ("Field Element",)
    FIELD_ELEMENTS = ("Field Elements",)
    DATA_AND_HASH = ("Data", "Hash")

    @property
    def labels(self) -> tuple[str, ...]:
        return self.value


@dataclass(frozen=True)
class PrefixAndKinds:
    prefix: str
    kinds: AnnotationKind


_DECOMMITMENT_TRACE = "STARK/FRI/Decommitment/Layer 0/Virtual Oracle/Trace {}"
_FRI_DECOMMITMENT_LAYER = "STARK/FRI/Decommitment/Layer {}"


class Annotation(Enum):
    """A named group of annotation lines."""

    ORIGINAL_COMMITMENT_HASH = "original_commitment_hash"
    INTERACTION_COMMITMENT_HASH = "interaction_commitment_hash"
    COMPOSITION_COMMITMENT_HASH = "composition_commitment_hash"
    OODS_VALUES = "oods_values"
    FRI_LAYERS_COMMITMENTS = "fri_layers_commitments"
    FRI_LAST_LAYER_COEFFICIENTS = "fri_last_layer_coefficients"
    PROOF_OF_WORK_NONCE = "proof_of_work_nonce"
    ORIGINAL_WITNESS_LEAVES = "original_witness_leaves"
    ORIGINAL_WITNESS_AUTHENTICATIONS = "original_witness_authentications"
    INTERACTION_WITNESS_LEAVES = "interaction_witness_leaves"
    INTERACTION_WITNESS_AUTHENTICATIONS = "interaction_witness_authentications"
    COMPOSITION_WITNESS_LEAVES = "composition_witness_leaves"
    COMPOSITION_WITNESS_AUTHENTICATIONS = "composition_witness_authentications"
    FRI_WITNESSES_LEAVES = "fri_witnesses_leaves"
    FRI_WITNESSES_AUTHENTICATIONS = "fri_witnesses_authentications"

    @property
    def per_layer(self) -> bool:
        return self in (
            Annotation.FRI_WITNESSES_LEAVES,
            Annotation.FRI_WITNESSES_AUTHENTICATIONS,
        )

    def spec(self, layer: int | None = None) -> PrefixAndKinds:
        """Return the line prefix and kinds; FRI witnesses need a layer."""
        if self.per_layer:
            if layer is None:
                raise ValueError(f"{self.name} needs a FRI layer")
            prefix = _FRI_DECOMMITMENT_LAYER.format(layer)
        else:
            prefix = _STATIC_PREFIXES[self]
        return PrefixAndKinds(prefix=prefix, kinds=_KINDS[self])

    def extract(
        self, annotations: Sequence[str], layer: int | None = None
    ) -> list[int]:
        """Collect this group's values, kind by kind."""
        spec = self.spec(layer)
        return [
            value
            for label in spec.kinds.labels
            for value in extract_annotations(annotations, spec.prefix, label)
        ]


_STATIC_PREFIXES = {
    Annotation.ORIGINAL_COMMITMENT_HASH: "STARK/Original/Commit on Trace",
    Annotation.INTERACTION_COMMITMENT_HASH: "STARK/Interaction/Commit on Trace",
    Annotation.COMPOSITION_COMMITMENT_HASH: (
        "STARK/Out Of Domain Sampling/Commit on Trace"
    ),
    Annotation.OODS_VALUES: "STARK/Out Of Domain Sampling/OODS values",
    Annotation.FRI_LAYERS_COMMITMENTS: "STARK/FRI/Commitment/Layer [0-9]+",
    Annotation.FRI_LAST_LAYER_COEFFICIENTS: "STARK/FRI/Commitment/Last Layer",
    Annotation.PROOF_OF_WORK_NONCE: "STARK/FRI/Proof of Work",
    Annotation.ORIGINAL_WITNESS_LEAVES: _DECOMMITMENT_TRACE.format(0),
    Annotation.ORIGINAL_WITNESS_AUTHENTICATIONS: _DECOMMITMENT_TRACE.format(0),
    Annotation.INTERACTION_WITNESS_LEAVES: _DECOMMITMENT_TRACE.format(1),
    Annotation.INTERACTION_WITNESS_AUTHENTICATIONS: _DECOMMITMENT_TRACE.format(1),
    Annotation.COMPOSITION_WITNESS_LEAVES: _DECOMMITMENT_TRACE.format(2),
    Annotation.COMPOSITION_WITNESS_AUTHENTICATIONS: _DECOMMITMENT_TRACE.format(2),
}

_KINDS = {
    Annotation.ORIGINAL_COMMITMENT_HASH: AnnotationKind.HASH,
    Annotation.INTERACTION_COMMITMENT_HASH: AnnotationKind.HASH,
    Annotation.COMPOSITION_COMMITMENT_HASH: AnnotationKind.HASH,
    Annotation.OODS_VALUES: AnnotationKind.FIELD_ELEMENTS,
    Annotation.FRI_LAYERS_COMMITMENTS: AnnotationKind.HASH,
    Annotation.FRI_LAST_LAYER_COEFFICIENTS: AnnotationKind.FIELD_ELEMENTS,
    Annotation.PROOF_OF_WORK_NONCE: AnnotationKind.DATA,
    Annotation.ORIGINAL_WITNESS_LEAVES: AnnotationKind.FIELD_ELEMENT,
    Annotation.ORIGINAL_WITNESS_AUTHENTICATIONS: AnnotationKind.DATA_AND_HASH,
    Annotation.INTERACTION_WITNESS_LEAVES: AnnotationKind.FIELD_ELEMENT,
    Annotation.INTERACTION_WITNESS_AUTHENTICATIONS: AnnotationKind.DATA_AND_HASH,
    Annotation.COMPOSITION_WITNESS_LEAVES: AnnotationKind.FIELD_ELEMENT,
    Annotation.COMPOSITION_WITNESS_AUTHENTICATIONS: AnnotationKind.DATA_AND_HASH,
    Annotation.FRI_WITNESSES_LEAVES: AnnotationKind.FIELD_ELEMENT,
    Annotation.FRI_WITNESSES_AUTHENTICATIONS: AnnotationKind.HASH,
}


@dataclass(frozen=True)
class FriLayerAnnotations:
    """Decommitment values of one inner FRI layer."""

    layer: int
    leaves: list[int]
    authentications: list[int]


@dataclass(frozen=True)
class Annotations:
    """Every value the proof takes from its annotation lines."""

    z: int
    alpha: int
    original_commitment_hash: int
    interaction_commitment_hash: int
    composition_commitment_hash: int
    oods_values: list[int]
    fri_layers_commitments: list[int]
    fri_last_layer_coefficients: list[int]
    proof_of_work_nonce: int
    original_witness_leaves: list[int]
    original_witness_authentications: list[int]
    interaction_witness_leaves: list[int]
    interaction_witness_authentications: list[int]
    composition_witness_leaves: list[int]
    composition_witness_authentications: list[int]
    fri_witnesses: list[FriLayerAnnotations]


def _first(annotation: Annotation, annotations: Sequence[str], label: str) -> int:
    values = annotation.extract(annotations)
    if not values:
        raise AnnotationError(f"No {label} in annotations!")
    return values[0]


def parse_annotations(annotations: Sequence[str], n_fri_layers: int) -> Annotations:
    """Extract all proof values; FRI witnesses are read for layers 1 to n-1."""
    z_alpha = extract_z_and_alpha(annotations)
    return Annotations(
        z=z_alpha.z,
        alpha=z_alpha.alpha,
        original_commitment_hash=_first(
            Annotation.ORIGINAL_COMMITMENT_HASH, annotations, "OriginalCommitmentHash"
        ),
        interaction_commitment_hash=_first(
            Annotation.INTERACTION_COMMITMENT_HASH,
            annotations,
            "InteractionCommitmentHash",
        ),
        composition_commitment_hash=_first(
            Annotation.COMPOSITION_COMMITMENT_HASH,
            annotations,
            "CompositionCommitmentHash",
        ),
        oods_values=Annotation.OODS_VALUES.extract(annotations),
        fri_layers_commitments=Annotation.FRI_LAYERS_COMMITMENTS.extract(annotations),
        fri_last_layer_coefficients=Annotation.FRI_LAST_LAYER_COEFFICIENTS.extract(
            annotations
        ),
        proof_of_work_nonce=_first(
            Annotation.PROOF_OF_WORK_NONCE, annotations, "ProofOfWorkNonce"
        ),
        original_witness_leaves=Annotation.ORIGINAL_WITNESS_LEAVES.extract(
            annotations
        ),
        original_witness_authentications=(
            Annotation.ORIGINAL_WITNESS_AUTHENTICATIONS.extract(annotations)
        ),
        interaction_witness_leaves=Annotation.INTERACTION_WITNESS_LEAVES.extract(
            annotations
        ),
        interaction_witness_authentications=(
            Annotation.INTERACTION_WITNESS_AUTHENTICATIONS.extract(annotations)
        ),
        composition_witness_leaves=Annotation.COMPOSITION_WITNESS_LEAVES.extract(
            annotations
        ),
        composition_witness_authentications=(
            Annotation.COMPOSITION_WITNESS_AUTHENTICATIONS.extract(annotations)
        ),
        fri_witnesses=[
            FriLayerAnnotations(
                layer=layer,
                leaves=Annotation.FRI_WITNESSES_LEAVES.extract(annotations, layer),
                authentications=Annotation.FRI_WITNESSES_AUTHENTICATIONS.extract(
                    annotations, layer
                ),
            )
            for layer in range(1, n_fri_layers)
        ],
    )