"""Builtin memory segments and their canonical order."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TypeVar

T = TypeVar("T")

__all__ = ["Builtin", "parse_builtin", "sort_segments"]


class Builtin(Enum):
    """Memory segment names, declared in canonical order."""

    PROGRAM = "program"
    EXECUTION = "execution"
    OUTPUT = "output"
    PEDERSEN = "pedersen"
    RANGE_CHECK = "range_check"
    ECDSA = "ecdsa"
    BITWISE = "bitwise"
    EC_OP = "ec_op"
    KECCAK = "keccak"
    POSEIDON = "poseidon"
    RANGE_CHECK96 = "range_check96"
    ADD_MOD = "add_mod"
    MUL_MOD = "mul_mod"

    @property
    def position(self) -> int:
        return list(Builtin).index(self)


def parse_builtin(name: str) -> Builtin:
    """Return the builtin with the given segment name."""
    try:
        return Builtin(name)
    except ValueError:
        raise ValueError(f"Builtin name not matched: {name!r}") from None


def sort_segments(memory_segments: Mapping[str, T]) -> list[T]:
    """Return the segments' values ordered by their builtin's canonical position."""
    keyed = [(parse_builtin(name), segment) for name, segment in memory_segments.items()]
    keyed.sort(key=lambda item: item[0].position)
    return [segment for _, segment in keyed]