"""Local variable tables of scope-introducing nodes.

A ``LocalTable`` lists the names of one scope's parameters and locals in
declaration order.  Positions 0-2 are reserved by the host runtime; the
first declared name sits at position 3.  ``args`` nodes refer to their
parameters by position, and ``resolve`` turns a position back into the
name.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Final

from parsetree.errors import OutOfRangeError

RESERVED_SLOTS: Final[int] = 3

_RESERVED_NAMES: Final[tuple[str, ...]] = ("", "_", "~")


@dataclass(frozen=True, slots=True)
class LocalTable:
    """Ordered, read-only name table of one scope.

    Parameters
    ----------
    names:
        Every entry of the table, reserved positions included.
    """

    names: tuple[str, ...]

    @classmethod
    def of(cls, *declared: str) -> "LocalTable":
        """Build a table whose declared names start at position 3."""
        return cls(_RESERVED_NAMES + tuple(declared))

    def resolve(self, index: int) -> str:
        """Return the name stored at ``index``.

        Raises
        ------
        OutOfRangeError
            If ``index`` is negative or not below the table length.
        """
        if index < 0 or index >= len(self.names):
            raise OutOfRangeError(
                f"local table index {index} out of range (size {len(self.names)})",
                index=index,
                size=len(self.names),
            )
        return self.names[index]

    @property
    def declared(self) -> tuple[str, ...]:
        """Names after the reserved positions, in declaration order."""
        return self.names[RESERVED_SLOTS:]

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self) -> Iterator[str]:
        return iter(self.declared)
