"""Bidirectional task stack, arithmetic tasks and a STARK proof JSON parser."""

__version__ = "0.1.0"

__all__ = [
    "annotations",
    "arithmetic",
    "builtins",
    "json_parser",
    "layout",
    "pedersen",
    "proof",
    "stack",
    "tasks",
]