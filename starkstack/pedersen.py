"""The Pedersen hash over the STARK curve."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Tuple

__all__ = ["FIELD_PRIME", "pedersen_hash", "compute_hash_on_elements"]

FIELD_PRIME = 2**251 + 17 * 2**192 + 1

_CURVE_ALPHA = 1
_LOW_BITS = 248
_LOW_MASK = (1 << _LOW_BITS) - 1

_Point = Optional[Tuple[int, int]]

_SHIFT_POINT = (
    0x49EE3EBA8C1600700EE1B87EB599F16716B0B1022947733551FDE4050CA6804,
    0x3CA0CFE4B3BC6DDF346D49D06EA0ED34E621062C0E056C1D0405D266E10268A,
)
_P0 = (
    0x234287DCBAFFE7F969C748655FCA9E58FA8120B6D56EB0C1080D17957EBE47B,
    0x3B056F100F96FB21E889527D41F4E39940135DD7A6C94CC6ED0268EE89E5615,
)
_P1 = (
    0x4FA56F376C83DB33F9DAB2656558F3399099EC1DE5E3018B7A6932DBA8AA378,
    0x3FA0984C931C9E38113E0C0E47E4401562761F92A7A23B45168F4E80FF5B54D,
)
_P2 = (
    0x4BA4CC166BE8DEC764910F75B45F74B40C690C74709E90F3AA372F0BD2D6997,
    0x40301CF5C1751F4B971E46C4EDE85FCAC5C59A5CE5AE7C48151F27B24B219C,
)
_P3 = (
    0x54302DCB0E6CC1C6E44CCA8F61A63BB2CA65048D53FB325D36FF12C49A58202,
    0x1B77B3E37D13504B348046268D8AE25CE98AD783C25561A879DCC77E99C2426,
)


def _add(p: _Point, q: _Point) -> _Point:
    if p is None:
        return q
    if q is None:
        return p
    x1, y1 = p
    x2, y2 = q
    if x1 == x2:
        if (y1 + y2) % FIELD_PRIME == 0:
            return None
        slope = (3 * x1 * x1 + _CURVE_ALPHA) * pow(2 * y1, -1, FIELD_PRIME)
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, FIELD_PRIME)
    slope %= FIELD_PRIME
    x3 = (slope * slope - x1 - x2) % FIELD_PRIME
    y3 = (slope * (x1 - x3) - y1) % FIELD_PRIME
    return (x3, y3)


def _multiply(point: _Point, scalar: int) -> _Point:
    result: _Point = None
    addend = point
    while scalar:
        if scalar & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        scalar >>= 1
    return result


def _check_element(value: int) -> None:
    if not 0 <= value < FIELD_PRIME:
        raise ValueError(f"{value:#x} is not a field element")


def pedersen_hash(a: int, b: int) -> int:
    """Hash two field elements into one."""
    _check_element(a)
    _check_element(b)
    point: _Point = _SHIFT_POINT
    for value, (low_point, high_point) in ((a, (_P0, _P1)), (b, (_P2, _P3))):
        point = _add(point, _multiply(low_point, value & _LOW_MASK))
        point = _add(point, _multiply(high_point, value >> _LOW_BITS))
    if point is None:
        raise ArithmeticError("Pedersen hash reached the point at infinity")
    return point[0]


def compute_hash_on_elements(data: Iterable[int]) -> int:
    """Chain-hash the elements from zero, then hash in their count."""
    accumulator = 0
    count = 0
    for value in data:
        accumulator = pedersen_hash(accumulator, value)
        count += 1
    return pedersen_hash(accumulator, count)