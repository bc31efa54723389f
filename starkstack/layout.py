"""Proof layouts and the trace constants each one fixes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

__all__ = ["Layout", "LayoutConstants"]


@dataclass(frozen=True)
class LayoutConstants:
    """Per-layout trace parameters."""

    cpu_component_step: int
    constraint_degree: int
    num_columns_first: int
    num_columns_second: int


_CONSTANTS: dict[str, LayoutConstants] = {
    "dex": LayoutConstants(1, 2, 21, 1),
    "plain": LayoutConstants(1, 2, 6, 2),
    "recursive": LayoutConstants(1, 2, 7, 3),
    "recursive_with_poseidon": LayoutConstants(1, 2, 6, 2),
    "small": LayoutConstants(1, 2, 23, 2),
    "starknet": LayoutConstants(1, 2, 9, 1),
    "starknet_with_keccak": LayoutConstants(1, 2, 12, 3),
    "dynamic": LayoutConstants(4, 2, 0, 0),
}


class Layout(Enum):
    """A proof layout, named as in proof files."""

    DEX = "dex"
    PLAIN = "plain"
    RECURSIVE = "recursive"
    RECURSIVE_WITH_POSEIDON = "recursive_with_poseidon"
    SMALL = "small"
    STARKNET = "starknet"
    STARKNET_WITH_KECCAK = "starknet_with_keccak"
    DYNAMIC = "dynamic"

    def __str__(self) -> str:
        return self.value

    def constants(self) -> LayoutConstants:
        """Return the fixed constants of this layout."""
        return _CONSTANTS[self.value]

    def dynamics_or_consts(
        self, dynamic_params: Mapping[str, int] | None
    ) -> LayoutConstants:
        """Return the constants, overridden by dynamic parameters when given.

        Missing column counts fall back to the layout's cpu component step.
        """
        consts = self.constants()
        if dynamic_params is None:
            return consts
        return LayoutConstants(
            cpu_component_step=dynamic_params.get(
                "cpu_component_step", consts.cpu_component_step
            ),
            constraint_degree=consts.constraint_degree,
            num_columns_first=dynamic_params.get(
                "num_columns_first", consts.cpu_component_step
            ),
            num_columns_second=dynamic_params.get(
                "num_columns_second", consts.cpu_component_step
            ),
        )

    def bytes_encode(self) -> bytes:
        """Return the layout name as ASCII bytes."""
        return self.value.encode("ascii")