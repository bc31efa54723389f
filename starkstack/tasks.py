"""Executable tasks, their type tags and the registry that maps tags to classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from starkstack.stack import BidirectionalStack

_FNV_PRIME = 16777619
_FNV_OFFSET_BASIS = 2166136261
_TAG_SIZE = 4

_REGISTRY: dict[int, type[Executable]] = {}


class TaskRegistryError(LookupError):
    """Raised when a task cannot be registered, found or decoded."""


def type_id(name: str) -> int:
    """Return the 32-bit FNV-1a hash of a task name."""
    value = _FNV_OFFSET_BASIS
    for byte in name.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return value


class Executable(ABC):
    """A unit of work that lives on the back of a stack as tagged bytes.

    Subclasses list their state in ``fields`` as ``(attribute, byte width)``
    pairs; each value is an unsigned big-endian integer of that width.
    """

    fields: ClassVar[tuple[tuple[str, int], ...]] = ()
    type_tag: ClassVar[int]

    @abstractmethod
    def execute(self, stack: BidirectionalStack) -> list[bytes]:
        """Run one step and return new tagged tasks to schedule."""

    def is_finished(self) -> bool:
        """Whether the task is done and may be removed from the stack."""
        return False

    @classmethod
    def _byte_size(cls) -> int:
        return sum(width for _, width in cls.fields)

    def to_bytes(self) -> bytes:
        """Encode the task's state without its type tag."""
        return b"".join(
            getattr(self, name).to_bytes(width, "big") for name, width in self.fields
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Executable:
        """Decode a task's state as produced by :meth:`to_bytes`."""
        data = bytes(data)
        expected = cls._byte_size()
        if len(data) != expected:
            raise ValueError(
                f"{cls.__name__} needs {expected} bytes, got {len(data)}"
            )
        values = {}
        offset = 0
        for name, width in cls.fields:
            values[name] = int.from_bytes(data[offset : offset + width], "big")
            offset += width
        return cls(**values)

    def to_vec_with_type_tag(self) -> bytes:
        """Encode the task prefixed with its 4-byte big-endian type tag."""
        tag = _tag_of(type(self))
        return tag.to_bytes(_TAG_SIZE, "big") + self.to_bytes()


def _tag_of(cls: type) -> int:
    if "type_tag" not in cls.__dict__:
        raise TaskRegistryError(f"task class {cls.__name__} is not registered")
    return cls.__dict__["type_tag"]


def register_task(cls: type[Executable]) -> type[Executable]:
    """Class decorator giving a task its type tag and making it decodable."""
    if not (isinstance(cls, type) and issubclass(cls, Executable)):
        raise TypeError("only Executable subclasses can be registered")
    name = cls.__dict__.get("task_name") or f"{cls.__module__}::{cls.__qualname__}"
    tag = type_id(name)
    existing = _REGISTRY.get(tag)
    if existing is not None and existing is not cls:
        raise TaskRegistryError(
            f"type tag {tag:#010x} of {name} is already used by {existing.__qualname__}"
        )
    cls.type_tag = tag
    _REGISTRY[tag] = cls
    return cls


def task_class_for_tag(tag: int) -> type[Executable]:
    """Return the registered task class for a type tag."""
    try:
        return _REGISTRY[tag]
    except KeyError:
        raise TaskRegistryError(f"Unknown type tag: {tag}") from None


def decode_task(data: bytes) -> Executable:
    """Decode tagged task bytes into a task instance."""
    data = bytes(data)
    if len(data) < _TAG_SIZE:
        raise TaskRegistryError("Data too short to contain type tag")
    tag = int.from_bytes(data[:_TAG_SIZE], "big")
    cls = task_class_for_tag(tag)
    return cls.from_bytes(data[_TAG_SIZE : _TAG_SIZE + cls._byte_size()])