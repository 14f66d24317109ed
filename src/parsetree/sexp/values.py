"""S-expression values: the output algebra of the serializer.

Every serialized tree is built from four immutable value types:

``Atom``
    A symbolic name: node kind tags, identifiers, operators, the
    nil-marker.
``Int``
    An integer: integer literals, line numbers, raw kind ids.
``Text``
    String content: string literals, source names.
``Seq``
    An ordered list of values.

``SeqBuilder`` is the mutable list under construction that the serializer
pushes into; ``build()`` freezes it into a ``Seq``.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Final, Union, overload


@dataclass(frozen=True, slots=True)
class Atom:
    """A symbolic name, e.g. ``call`` or ``+``."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Int:
    """An integer value."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Text:
    """String content."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Seq:
    """An immutable ordered list of S-expression values."""

    items: tuple["SExp", ...] = ()

    @classmethod
    def of(cls, *items: "SExp") -> "Seq":
        """Build a ``Seq`` from positional values."""
        return cls(tuple(items))

    @property
    def head(self) -> "SExp | None":
        """The first element (the kind tag of a node list), if any."""
        return self.items[0] if self.items else None

    @property
    def tail(self) -> tuple["SExp", ...]:
        """All elements after the first."""
        return self.items[1:]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["SExp"]:
        return iter(self.items)

    @overload
    def __getitem__(self, index: int) -> "SExp": ...

    @overload
    def __getitem__(self, index: slice) -> "Seq": ...

    def __getitem__(self, index: int | slice) -> "SExp | Seq":
        if isinstance(index, slice):
            return Seq(self.items[index])
        return self.items[index]

    def __str__(self) -> str:
        from parsetree.sexp.text import dumps

        return dumps(self)


SExp = Union[Atom, Int, Text, Seq]

NIL: Final[Atom] = Atom("nil")
UNHANDLED: Final[Atom] = Atom("unhandled")
TRUE: Final[Atom] = Atom("true")
FALSE: Final[Atom] = Atom("false")


class SeqBuilder:
    """A sequence under construction.

    Parameters
    ----------
    items:
        Initial elements, typically the kind tag of a node list.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[SExp] = ()) -> None:
        self._items: list[SExp] = list(items)

    def push(self, item: SExp) -> None:
        """Append ``item`` to the sequence."""
        self._items.append(item)

    def extend(self, items: Iterable[SExp]) -> None:
        """Append every value of ``items`` in order."""
        self._items.extend(items)

    def build(self) -> Seq:
        """Freeze the collected elements into a ``Seq``."""
        return Seq(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"SeqBuilder({self._items!r})"


def seq(*items: object) -> Seq:
    """Build a ``Seq`` from loosely typed Python values.

    ``str`` becomes an ``Atom``, ``int`` an ``Int``, ``None`` the
    nil-marker, ``bool`` the ``true``/``false`` atoms and ``list``/``tuple``
    a nested ``Seq``.  S-expression values are kept as they are; string
    content must be passed as ``Text`` explicitly.

    Example
    -------
    ::

        seq("call", seq("lit", 1), "+", seq("array", seq("lit", 1)))
    """
    return Seq(tuple(_coerce(item) for item in items))


def _coerce(item: object) -> SExp:
    if isinstance(item, (Atom, Int, Text, Seq)):
        return item
    if item is None:
        return NIL
    if isinstance(item, bool):
        return TRUE if item else FALSE
    if isinstance(item, int):
        return Int(item)
    if isinstance(item, str):
        return Atom(item)
    if isinstance(item, (list, tuple)):
        return seq(*item)
    raise TypeError(f"Cannot convert {type(item).__name__} to an S-expression value")
