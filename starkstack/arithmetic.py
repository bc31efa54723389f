"""Arithmetic tasks built from repeated additions on the task stack."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from starkstack.tasks import Executable, register_task

if TYPE_CHECKING:
    from starkstack.stack import BidirectionalStack

_U128_SIZE = 16
_U32_SIZE = 4
_U128_MAX = (1 << 128) - 1

__all__ = [
    "Add",
    "Mul",
    "MulInternal",
    "Exp",
    "ExpInternal",
    "Fibonacci",
    "FibonacciCombiner",
    "Increment",
]


def _encode_u128(value: int) -> bytes:
    return value.to_bytes(_U128_SIZE, "big")


def _read_u128(stack: BidirectionalStack) -> int:
    data = stack.borrow_front()
    if len(data) != _U128_SIZE:
        raise ValueError(f"expected a {_U128_SIZE}-byte value, got {len(data)} bytes")
    return int.from_bytes(data, "big")


def _saturating_add(x: int, y: int) -> int:
    return min(x + y, _U128_MAX)


@register_task
@dataclass
class Add(Executable):
    """Push ``x + y`` (saturating at 128 bits) to the front of the stack."""

    x: int
    y: int

    task_name = "arithmetic::add::Add"
    fields = (("x", _U128_SIZE), ("y", _U128_SIZE))

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        stack.push_front(_encode_u128(_saturating_add(self.x, self.y)))
        return []

    def is_finished(self) -> bool:
        return True


@register_task
@dataclass
class MulInternal(Executable):
    """Accumulate additions until ``y`` of them have been made."""

    x: int
    y: int
    result: int
    counter: int

    task_name = "arithmetic::mul::MulInternal"
    fields = (
        ("x", _U128_SIZE),
        ("y", _U128_SIZE),
        ("result", _U128_SIZE),
        ("counter", _U128_SIZE),
    )

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        add_result = _read_u128(stack)
        self.counter += 1
        self.result = add_result
        stack.pop_front()

        if self.counter < self.y:
            return [Add(self.result, self.x).to_vec_with_type_tag()]
        stack.push_front(_encode_u128(self.result))
        return []

    def is_finished(self) -> bool:
        return self.counter >= self.y


@register_task
@dataclass
class Mul(Executable):
    """Multiply ``x`` by ``y`` through ``y`` additions."""

    x: int
    y: int

    task_name = "arithmetic::mul::Mul"
    fields = (("x", _U128_SIZE), ("y", _U128_SIZE))

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        if self.y == 0:
            stack.push_front(_encode_u128(0))
            return []
        return [
            Add(0, self.x).to_vec_with_type_tag(),
            MulInternal(self.x, self.y, 0, 0).to_vec_with_type_tag(),
        ]

    def is_finished(self) -> bool:
        return True


@register_task
@dataclass
class ExpInternal(Executable):
    """Accumulate multiplications until ``exponent`` of them have been made."""

    base: int
    exponent: int
    result: int
    counter: int

    task_name = "arithmetic::exp::ExpInternal"
    fields = (
        ("base", _U128_SIZE),
        ("exponent", _U32_SIZE),
        ("result", _U128_SIZE),
        ("counter", _U32_SIZE),
    )

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        mul_result = _read_u128(stack)
        self.counter += 1
        self.result = mul_result
        stack.pop_front()

        if self.counter < self.exponent:
            return [Mul(self.result, self.base).to_vec_with_type_tag()]
        stack.push_front(_encode_u128(self.result))
        return []

    def is_finished(self) -> bool:
        return self.counter >= self.exponent


@register_task
@dataclass
class Exp(Executable):
    """Raise ``base`` to ``exponent`` through repeated multiplication."""

    base: int
    exponent: int

    task_name = "arithmetic::exp::Exp"
    fields = (("base", _U128_SIZE), ("exponent", _U32_SIZE))

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        if self.exponent == 0:
            stack.push_front(_encode_u128(1))
            return []
        return [
            Mul(1, self.base).to_vec_with_type_tag(),
            ExpInternal(self.base, self.exponent, self.base, 0).to_vec_with_type_tag(),
        ]

    def is_finished(self) -> bool:
        return True


@register_task
@dataclass
class FibonacciCombiner(Executable):
    """Replace F(n-2) and F(n-1) on the front of the stack with their sum."""

    n: int

    task_name = "arithmetic::fib::FibonacciCombiner"
    fields = (("n", _U32_SIZE),)

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        fib_n_2 = _read_u128(stack)
        stack.pop_front()
        fib_n_1 = _read_u128(stack)
        stack.pop_front()
        stack.push_front(_encode_u128(_saturating_add(fib_n_1, fib_n_2)))
        return []

    def is_finished(self) -> bool:
        return True


@register_task
@dataclass
class Fibonacci(Executable):
    """Compute the n-th Fibonacci number by recursive task expansion."""

    n: int

    task_name = "arithmetic::fib::Fibonacci"
    fields = (("n", _U32_SIZE),)

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        if self.n in (0, 1):
            stack.push_front(_encode_u128(self.n))
            return []
        return [
            Fibonacci(self.n - 1).to_vec_with_type_tag(),
            Fibonacci(self.n - 2).to_vec_with_type_tag(),
            FibonacciCombiner(self.n).to_vec_with_type_tag(),
        ]

    def is_finished(self) -> bool:
        return True


@register_task
@dataclass
class Increment(Executable):
    """Push the front value plus one, leaving the original in place."""

    task_name = "arithmetic::increment::Increment"
    fields = ()

    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        value = _read_u128(stack)
        stack.push_front(_encode_u128(_saturating_add(value, 1)))
        return []

    def is_finished(self) -> bool:
        return True