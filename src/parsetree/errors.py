"""Error types for parsetree.

Serialization errors carry the node kind and, once known, the type and
method being serialized so that a failure inside a large batch can be
traced back to the tree that caused it.

Taxonomy
--------
``StructuralInconsistencyError``
    The input graph violates a documented invariant (odd hash entry
    count, local-table index out of range, wrong slot payload).  Fatal
    for the method being serialized.
``CapturedValueUnavailableError``
    The closure accessor cannot produce the parameter/body pair of a
    ``bmethod`` or ``dmethod`` node.  Fatal for the method.
``NodeLimitExceededError``
    A caller-imposed node budget was exhausted.

A missing method and an unhandled node kind are *not* errors: the first
is the ``(nil)`` value, the second a diagnostic.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path


class ParseTreeError(Exception):
    """Base exception for all parsetree errors."""


@dataclass(eq=False)
class SerializationError(ParseTreeError):
    """A fatal problem found while serializing one method's tree.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    kind:
        Tag of the node kind being serialized when the error occurred.
    type_name:
        Name of the type whose method was being serialized.
    method_name:
        Name of the method being serialized.
    """

    message: str
    kind: str | None = None
    type_name: str | None = None
    method_name: str | None = None

    def __post_init__(self) -> None:
        self.args = (str(self),)

    def __str__(self) -> str:
        where = []
        if self.type_name is not None or self.method_name is not None:
            where.append(f"{self.type_name or '?'}#{self.method_name or '?'}")
        if self.kind is not None:
            where.append(f"node {self.kind!r}")
        if where:
            return f"{self.message} (in {', '.join(where)})"
        return self.message

    def with_context(
        self,
        *,
        kind: str | None = None,
        type_name: str | None = None,
        method_name: str | None = None,
    ) -> "SerializationError":
        """Return a copy with any missing context fields filled in.

        Fields that are already set are kept.  Returns ``self`` when
        nothing would change.
        """
        updates = {}
        if self.kind is None and kind is not None:
            updates["kind"] = kind
        if self.type_name is None and type_name is not None:
            updates["type_name"] = type_name
        if self.method_name is None and method_name is not None:
            updates["method_name"] = method_name
        if not updates:
            return self
        return dataclasses.replace(self, **updates)


@dataclass(eq=False)
class StructuralInconsistencyError(SerializationError):
    """The input graph violates a sequence or table invariant."""


@dataclass(eq=False)
class OutOfRangeError(StructuralInconsistencyError):
    """A local-table index fell outside the table.

    Parameters
    ----------
    index:
        The requested position.
    size:
        Number of entries in the table, reserved positions included.
    """

    index: int = -1
    size: int = 0


@dataclass(eq=False)
class CapturedValueUnavailableError(SerializationError):
    """The closure accessor could not produce a parameter/body pair."""


@dataclass(eq=False)
class NodeLimitExceededError(SerializationError):
    """More nodes were visited than the configured limit allows."""

    limit: int = 0


class DocumentError(ParseTreeError):
    """Raised when a node-graph document cannot be decoded."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"Document error in {self.path}: {self.message}"
        return f"Document error: {self.message}"


class ConfigError(ParseTreeError):
    """Raised when there's an issue with the configuration file."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"Config error in {self.path}: {self.message}"
        return f"Config error: {self.message}"


class SexpSyntaxError(ParseTreeError):
    """Raised when S-expression text cannot be read.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    offset:
        0-based character offset where reading failed.
    """

    def __init__(self, message: str, offset: int) -> None:
        self.message = message
        self.offset = offset
        super().__init__(f"{message} at offset {offset}")
