"""A fixed-capacity byte stack that grows from both ends and runs tasks."""

from __future__ import annotations

from starkstack.tasks import Executable, decode_task

CAPACITY = 65536
LENGTH_SIZE = 2
_MAX_RECORD = 0xFFFF
_TAG_SIZE = 4


class VerifierError(Exception):
    """Base error of the verifier stack."""


class StackCapacityError(VerifierError):
    """The stack has no room for the data."""

    def __init__(self, message: str = "Stack capacity exceeded") -> None:
        super().__init__(message)


class EmptyStackError(VerifierError):
    """An empty end of the stack was read or popped."""

    def __init__(
        self, message: str = "Empty stack - attempted to read from an empty stack"
    ) -> None:
        super().__init__(message)


class BidirectionalStack:
    """Data records grow up from the front, task records down from the back.

    Each record carries a 2-byte length: after the payload (little-endian)
    at the front, before it (big-endian) at the back.
    """

    def __init__(self, capacity: int = CAPACITY) -> None:
        self.capacity = capacity
        self.buffer = bytearray(capacity)
        self.front_index = 0
        self.back_index = capacity

    def _reserve(self, size: int) -> None:
        if size > _MAX_RECORD:
            raise StackCapacityError(f"record of {size} bytes is too long")
        if size + LENGTH_SIZE > self.back_index - self.front_index:
            raise StackCapacityError()

    def _front_length(self) -> int:
        if self.front_index < LENGTH_SIZE:
            raise EmptyStackError()
        return int.from_bytes(
            self.buffer[self.front_index - LENGTH_SIZE : self.front_index], "little"
        )

    def _back_length(self) -> int:
        if self.back_index + LENGTH_SIZE > self.capacity:
            raise EmptyStackError()
        return int.from_bytes(
            self.buffer[self.back_index : self.back_index + LENGTH_SIZE], "big"
        )

    def push_front(self, data: bytes) -> None:
        payload = bytes(data)
        self._reserve(len(payload))
        end = self.front_index + len(payload)
        self.buffer[self.front_index : end] = payload
        self.buffer[end : end + LENGTH_SIZE] = len(payload).to_bytes(
            LENGTH_SIZE, "little"
        )
        self.front_index = end + LENGTH_SIZE

    def push_back(self, data: bytes) -> None:
        payload = bytes(data)
        self._reserve(len(payload))
        start = self.back_index - len(payload) - LENGTH_SIZE
        self.buffer[start : start + LENGTH_SIZE] = len(payload).to_bytes(
            LENGTH_SIZE, "big"
        )
        self.buffer[start + LENGTH_SIZE : self.back_index] = payload
        self.back_index = start

    def pop_front(self) -> None:
        self.front_index -= self._front_length() + LENGTH_SIZE

    def pop_back(self) -> None:
        self.back_index += self._back_length() + LENGTH_SIZE

    def _front_span(self) -> tuple[int, int]:
        end = self.front_index - LENGTH_SIZE
        return end - self._front_length(), end

    def _back_span(self) -> tuple[int, int]:
        start = self.back_index + LENGTH_SIZE
        return start, start + self._back_length()

    def borrow_front(self) -> bytes:
        start, end = self._front_span()
        return bytes(self.buffer[start:end])

    def borrow_back(self) -> bytes:
        start, end = self._back_span()
        return bytes(self.buffer[start:end])

    def borrow_mut_front(self) -> memoryview:
        start, end = self._front_span()
        return memoryview(self.buffer)[start:end]

    def borrow_mut_back(self) -> memoryview:
        start, end = self._back_span()
        return memoryview(self.buffer)[start:end]

    def is_empty_front(self) -> bool:
        return self.front_index == 0

    def is_empty_back(self) -> bool:
        return self.back_index == self.capacity

    def push_task(self, task: Executable) -> None:
        self.push_back(task.to_vec_with_type_tag())

    def push_data(self, data: bytes) -> None:
        self.push_front(data)

    def pop_task(self) -> None:
        self.pop_back()

    def pop_data(self) -> None:
        self.pop_front()

    def execute(self) -> None:
        """Run the task at the back once, keeping its updated state in place."""
        start, _ = self._back_span()
        task = decode_task(self.buffer[start : start + _TAG_SIZE + 0] + self.borrow_back()[_TAG_SIZE:]
                           if False else self.borrow_back())
        new_tasks = task.execute(self)
        finished = task.is_finished()

        state = task.to_bytes()
        state_start = start + _TAG_SIZE
        self.buffer[state_start : state_start + len(state)] = state

        if finished:
            self.pop_back()
        for encoded in reversed(new_tasks):
            self.push_back(encoded)

    def simulate(self) -> int:
        """Execute until no task is left and return the number of steps."""
        steps = 0
        while not self.is_empty_back():
            self.execute()
            steps += 1
        return steps