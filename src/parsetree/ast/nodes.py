"""Node model for host-runtime syntax trees.

A ``Node`` is one entry of the tree the host front end built for a class
or method body.  Every node has a ``kind`` from the closed ``NodeKind``
enumeration and up to three positional slots (``u1``, ``u2``, ``u3``)
whose meaning and type depend on the kind.  ``LAYOUTS`` records, for each
kind, the role name and ``SlotType`` of every slot, so that slots can be
read by role::

    node = Node.make(NodeKind.IF, cond=test, body=then_branch)
    node.cond        # -> test
    node.else_       # -> None

Sibling chains that the host threads through ``next`` links (block
statements, array items, hash entries, interpolation parts) are stored
as native tuples (``SlotType.NODES``).  The ``when`` chain, the
``resbody`` chain and the line marker keep their ``next`` link.

Kinds whose value is not a ``NodeKind`` member (a host runtime newer than
this table) are kept as raw integers and read through the generic
``u1``/``u2``/``u3`` roles.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, NamedTuple, Union

from parsetree.ast.locals import LocalTable


# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------


class NodeKind(Enum):
    """Closed enumeration of host node kinds; values are the raw kind ids."""

    METHOD = 0
    FBODY = 1
    CFUNC = 2
    SCOPE = 3
    BLOCK = 4
    IF = 5
    CASE = 6
    WHEN = 7
    OPT_N = 8
    WHILE = 9
    UNTIL = 10
    ITER = 11
    FOR = 12
    BREAK = 13
    NEXT = 14
    REDO = 15
    RETRY = 16
    BEGIN = 17
    RESCUE = 18
    RESBODY = 19
    ENSURE = 20
    AND = 21
    OR = 22
    NOT = 23
    MASGN = 24
    LASGN = 25
    DASGN = 26
    DASGN_CURR = 27
    GASGN = 28
    IASGN = 29
    CDECL = 30
    CVASGN = 31
    CVDECL = 32
    OP_ASGN1 = 33
    OP_ASGN2 = 34
    OP_ASGN_AND = 35
    OP_ASGN_OR = 36
    CALL = 37
    FCALL = 38
    VCALL = 39
    SUPER = 40
    ZSUPER = 41
    ARRAY = 42
    ZARRAY = 43
    HASH = 44
    RETURN = 45
    YIELD = 46
    LVAR = 47
    DVAR = 48
    GVAR = 49
    IVAR = 50
    CONST = 51
    CVAR = 52
    NTH_REF = 53
    BACK_REF = 54
    MATCH = 55
    MATCH2 = 56
    MATCH3 = 57
    LIT = 58
    STR = 59
    DSTR = 60
    XSTR = 61
    DXSTR = 62
    EVSTR = 63
    DREGX = 64
    DREGX_ONCE = 65
    ARGS = 66
    ARGSCAT = 67
    ARGSPUSH = 68
    SPLAT = 69
    TO_ARY = 70
    SVALUE = 71
    BLOCK_ARG = 72
    BLOCK_PASS = 73
    DEFN = 74
    DEFS = 75
    ALIAS = 76
    VALIAS = 77
    UNDEF = 78
    CLASS = 79
    MODULE = 80
    SCLASS = 81
    COLON2 = 82
    COLON3 = 83
    CREF = 84
    DOT2 = 85
    DOT3 = 86
    FLIP2 = 87
    FLIP3 = 88
    ATTRSET = 89
    SELF = 90
    NIL = 91
    TRUE = 92
    FALSE = 93
    DEFINED = 94
    NEWLINE = 95
    POSTEXE = 96
    DMETHOD = 97
    BMETHOD = 98
    MEMO = 99
    IFUNC = 100
    DSYM = 101
    ATTRASGN = 102
    LAST = 103


Kind = Union[NodeKind, int]


def kind_name(kind: Kind) -> str:
    """Return the canonical lowercase tag for ``kind``.

    Raw integer kinds outside the enumeration are named ``node_<id>``.
    """
    if isinstance(kind, NodeKind):
        return kind.name.lower()
    return f"node_{kind}"


def kind_id(kind: Kind) -> int:
    """Return the raw integer id of ``kind``."""
    if isinstance(kind, NodeKind):
        return kind.value
    return int(kind)


def kind_from_name(name: str) -> NodeKind:
    """Look up a ``NodeKind`` by its canonical tag, e.g. ``"dasgn_curr"``.

    Raises
    ------
    KeyError
        If ``name`` is not the tag of any kind.
    """
    return NodeKind[name.upper()]


# ---------------------------------------------------------------------------
# Slot payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Symbol:
    """An interned symbol literal, e.g. ``:bmethod_added``."""

    name: str


@dataclass(frozen=True, slots=True)
class Regex:
    """A regular-expression literal, kept as its source text."""

    source: str


Literal = Union[int, float, str, Symbol, Regex]


@dataclass(frozen=True, slots=True)
class OpSelector:
    """Attribute setter and operator of an attribute compound assignment.

    For ``obj.var ||= 20`` the selector is ``OpSelector("var=", "||")``.
    """

    attr: str
    operator: str


@dataclass(frozen=True, slots=True)
class CapturedClosure:
    """Parameter node, body node and owner name behind a captured closure.

    This is what a closure accessor yields for ``bmethod`` and ``dmethod``
    nodes; the host representation of the closure itself stays opaque.
    """

    params: "Node | None"
    body: "Node | None"
    owner: str | None = None


# ---------------------------------------------------------------------------
# Slot layouts
# ---------------------------------------------------------------------------


class SlotType(Enum):
    """Type of the value held in one node slot."""

    NODE = auto()
    NODES = auto()
    ID = auto()
    LITERAL = auto()
    INT = auto()
    TABLE = auto()
    SELECTOR = auto()
    CLOSURE = auto()
    ANY = auto()


class SlotSpec(NamedTuple):
    """Role name and type of one slot."""

    role: str
    type: SlotType


Layout = tuple["SlotSpec | None", "SlotSpec | None", "SlotSpec | None"]


def _s(role: str, slot_type: SlotType) -> SlotSpec:
    return SlotSpec(role, slot_type)


_N, _NS, _ID, _LIT, _INT = (
    SlotType.NODE,
    SlotType.NODES,
    SlotType.ID,
    SlotType.LITERAL,
    SlotType.INT,
)

GENERIC_LAYOUT: Layout = (
    _s("u1", SlotType.ANY),
    _s("u2", SlotType.ANY),
    _s("u3", SlotType.ANY),
)
_EMPTY: Layout = (None, None, None)
_VAR: Layout = (_s("vid", _ID), None, None)
_ASSIGN: Layout = (_s("vid", _ID), _s("value", _N), None)
_HEAD: Layout = (_s("head", _N), None, None)
_BODY: Layout = (None, _s("body", _N), None)
_PAIR: Layout = (_s("first", _N), _s("second", _N), None)
_RANGE: Layout = (_s("beg", _N), _s("end", _N), None)
_STTS: Layout = (_s("stts", _N), None, None)
_LOOP: Layout = (_s("cond", _N), _s("body", _N), _s("state", _INT))
_ITER: Layout = (_s("var", SlotType.ANY), _s("body", _N), _s("iter", _N))
_LITERAL: Layout = (_s("lit", _LIT), None, None)
_DSTR: Layout = (_s("lit", _LIT), None, _s("parts", _NS))
_CLOSURE: Layout = (None, None, _s("closure", SlotType.CLOSURE))

LAYOUTS: dict[NodeKind, Layout] = {
    NodeKind.METHOD: (_s("noex", _INT), _s("body", _N), None),
    NodeKind.FBODY: (_s("head", _N), _s("mid", _ID), _s("orig", _ID)),
    NodeKind.CFUNC: GENERIC_LAYOUT,
    NodeKind.SCOPE: (_s("table", SlotType.TABLE), None, _s("body", _N)),
    NodeKind.BLOCK: (_s("statements", _NS), None, None),
    NodeKind.IF: (_s("cond", _N), _s("body", _N), _s("else_", _N)),
    NodeKind.CASE: (_s("head", _N), _s("body", _N), None),
    NodeKind.WHEN: (_s("head", _N), _s("body", _N), _s("next", _N)),
    NodeKind.OPT_N: _BODY,
    NodeKind.WHILE: _LOOP,
    NodeKind.UNTIL: _LOOP,
    NodeKind.ITER: _ITER,
    NodeKind.FOR: _ITER,
    NodeKind.BREAK: _STTS,
    NodeKind.NEXT: _STTS,
    NodeKind.REDO: _EMPTY,
    NodeKind.RETRY: _EMPTY,
    NodeKind.BEGIN: _BODY,
    NodeKind.RESCUE: (_s("head", _N), _s("resq", _N), _s("else_", _N)),
    NodeKind.RESBODY: (_s("next", _N), _s("body", _N), _s("args", _N)),
    NodeKind.ENSURE: (_s("head", _N), None, _s("ensr", _N)),
    NodeKind.AND: _PAIR,
    NodeKind.OR: _PAIR,
    NodeKind.NOT: _BODY,
    NodeKind.MASGN: (_s("head", _N), _s("value", _N), _s("splat", SlotType.ANY)),
    NodeKind.LASGN: _ASSIGN,
    NodeKind.DASGN: _ASSIGN,
    NodeKind.DASGN_CURR: _ASSIGN,
    NodeKind.GASGN: _ASSIGN,
    NodeKind.IASGN: _ASSIGN,
    NodeKind.CDECL: _ASSIGN,
    NodeKind.CVASGN: _ASSIGN,
    NodeKind.CVDECL: _ASSIGN,
    NodeKind.OP_ASGN1: (_s("recv", _N), _s("mid", _ID), _s("args", _N)),
    NodeKind.OP_ASGN2: (
        _s("recv", _N),
        _s("value", _N),
        _s("selector", SlotType.SELECTOR),
    ),
    NodeKind.OP_ASGN_AND: (_s("head", _N), _s("value", _N), None),
    NodeKind.OP_ASGN_OR: (_s("head", _N), _s("value", _N), None),
    NodeKind.CALL: (_s("recv", _N), _s("mid", _ID), _s("args", _N)),
    NodeKind.FCALL: (None, _s("mid", _ID), _s("args", _N)),
    NodeKind.VCALL: (None, _s("mid", _ID), None),
    NodeKind.SUPER: (None, None, _s("args", _N)),
    NodeKind.ZSUPER: _EMPTY,
    NodeKind.ARRAY: (_s("items", _NS), None, None),
    NodeKind.ZARRAY: _EMPTY,
    NodeKind.HASH: (_s("entries", _NS), None, None),
    NodeKind.RETURN: _STTS,
    NodeKind.YIELD: _STTS,
    NodeKind.LVAR: _VAR,
    NodeKind.DVAR: _VAR,
    NodeKind.GVAR: _VAR,
    NodeKind.IVAR: _VAR,
    NodeKind.CONST: _VAR,
    NodeKind.CVAR: _VAR,
    NodeKind.NTH_REF: (None, _s("nth", _INT), None),
    NodeKind.BACK_REF: (None, _s("nth", _INT), None),
    NodeKind.MATCH: _LITERAL,
    NodeKind.MATCH2: (_s("recv", _N), _s("value", _N), None),
    NodeKind.MATCH3: (_s("recv", _N), _s("value", _N), None),
    NodeKind.LIT: _LITERAL,
    NodeKind.STR: _LITERAL,
    NodeKind.DSTR: _DSTR,
    NodeKind.XSTR: _LITERAL,
    NodeKind.DXSTR: _DSTR,
    NodeKind.EVSTR: _BODY,
    NodeKind.DREGX: _DSTR,
    NodeKind.DREGX_ONCE: _DSTR,
    NodeKind.ARGS: (_s("opt", _N), _s("rest", _INT), _s("cnt", _INT)),
    NodeKind.ARGSCAT: (_s("head", _N), _s("body", _N), None),
    NodeKind.ARGSPUSH: (_s("head", _N), _s("body", _N), None),
    NodeKind.SPLAT: _HEAD,
    NodeKind.TO_ARY: _HEAD,
    NodeKind.SVALUE: _HEAD,
    NodeKind.BLOCK_ARG: _VAR,
    NodeKind.BLOCK_PASS: (None, _s("body", _N), _s("iter", _N)),
    NodeKind.DEFN: (_s("noex", _INT), _s("mid", _ID), _s("defn", _N)),
    NodeKind.DEFS: (_s("recv", _N), _s("mid", _ID), _s("defn", _N)),
    NodeKind.ALIAS: (_s("new", _ID), _s("old", _ID), None),
    NodeKind.VALIAS: (_s("new", _ID), _s("old", _ID), None),
    NodeKind.UNDEF: (None, _s("mid", _ID), None),
    NodeKind.CLASS: (_s("cpath", _N), _s("body", _N), _s("super", _N)),
    NodeKind.MODULE: (_s("cpath", _N), _s("body", _N), None),
    NodeKind.SCLASS: (_s("recv", _N), _s("body", _N), None),
    NodeKind.COLON2: (_s("head", _N), _s("mid", _ID), None),
    NodeKind.COLON3: (None, _s("mid", _ID), None),
    NodeKind.CREF: GENERIC_LAYOUT,
    NodeKind.DOT2: _RANGE,
    NodeKind.DOT3: _RANGE,
    NodeKind.FLIP2: _RANGE,
    NodeKind.FLIP3: _RANGE,
    NodeKind.ATTRSET: _VAR,
    NodeKind.SELF: _EMPTY,
    NodeKind.NIL: _EMPTY,
    NodeKind.TRUE: _EMPTY,
    NodeKind.FALSE: _EMPTY,
    NodeKind.DEFINED: _HEAD,
    NodeKind.NEWLINE: (None, None, _s("next", _N)),
    NodeKind.POSTEXE: _EMPTY,
    NodeKind.DMETHOD: _CLOSURE,
    NodeKind.BMETHOD: _CLOSURE,
    NodeKind.MEMO: GENERIC_LAYOUT,
    NodeKind.IFUNC: GENERIC_LAYOUT,
    NodeKind.DSYM: _DSTR,
    NodeKind.ATTRASGN: (_s("recv", _N), _s("mid", _ID), _s("args", _N)),
    NodeKind.LAST: GENERIC_LAYOUT,
}

_ROLE_INDEX: dict[NodeKind, dict[str, int]] = {
    kind: {spec.role: i for i, spec in enumerate(layout) if spec is not None}
    for kind, layout in LAYOUTS.items()
}
_GENERIC_INDEX: dict[str, int] = {"u1": 0, "u2": 1, "u3": 2}

_OWN_ATTRS = frozenset({"kind", "u1", "u2", "u3", "line", "file"})


def layout_for(kind: Kind) -> Layout:
    """Return the slot layout of ``kind`` (generic for raw integer kinds)."""
    if isinstance(kind, NodeKind):
        return LAYOUTS[kind]
    return GENERIC_LAYOUT


def _role_index(kind: Kind) -> dict[str, int]:
    if isinstance(kind, NodeKind):
        return _ROLE_INDEX[kind]
    return _GENERIC_INDEX


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Node:
    """One host syntax-tree node.

    Parameters
    ----------
    kind:
        A ``NodeKind``, or a raw integer id the enumeration does not know.
    u1, u2, u3:
        Positional slots, typed per kind by ``LAYOUTS``.
    line:
        Source line the host recorded for this node.
    file:
        Source name the host recorded for this node.
    """

    kind: Kind
    u1: Any = None
    u2: Any = None
    u3: Any = None
    line: int = 0
    file: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, NodeKind):
            try:
                object.__setattr__(self, "kind", NodeKind(self.kind))
            except ValueError:
                pass

    def __getattr__(self, role: str) -> Any:
        if role.startswith("__") or role in _OWN_ATTRS:
            raise AttributeError(role)
        index = _role_index(self.kind).get(role)
        if index is None:
            raise AttributeError(
                f"{kind_name(self.kind)!r} node has no slot named {role!r}"
            )
        return self.slots[index]

    def __repr__(self) -> str:
        parts = [kind_name(self.kind)]
        for spec, value in zip(layout_for(self.kind), self.slots):
            if spec is not None and value is not None:
                parts.append(f"{spec.role}={value!r}")
        return f"Node({', '.join(parts)})"

    @classmethod
    def make(
        cls,
        kind: Kind,
        *,
        line: int = 0,
        file: str | None = None,
        **roles: Any,
    ) -> "Node":
        """Build a node from role-named slot values.

        ``NODES`` roles accept any iterable and are stored as tuples.

        Raises
        ------
        TypeError
            If a role is not part of the layout of ``kind``.
        """
        if not isinstance(kind, NodeKind):
            try:
                kind = NodeKind(kind)
            except ValueError:
                pass
        layout = layout_for(kind)
        index = _role_index(kind)
        slots: list[Any] = [None, None, None]
        for role, value in roles.items():
            if role not in index:
                raise TypeError(
                    f"{kind_name(kind)!r} node has no slot named {role!r}; "
                    f"expected one of {sorted(index)}"
                )
            position = index[role]
            spec = layout[position]
            if spec is not None and spec.type is SlotType.NODES and value is not None:
                value = tuple(value)
            slots[position] = value
        return cls(kind, slots[0], slots[1], slots[2], line=line, file=file)

    @property
    def slots(self) -> tuple[Any, Any, Any]:
        """The raw ``(u1, u2, u3)`` slot values."""
        return (self.u1, self.u2, self.u3)

    @property
    def name(self) -> str:
        """Canonical lowercase tag of this node's kind."""
        return kind_name(self.kind)

    def slots_present(self) -> tuple[bool, bool, bool]:
        """Return which of the three slots hold a value."""
        return (self.u1 is not None, self.u2 is not None, self.u3 is not None)

    def check(self) -> None:
        """Validate the slot values of this node (not its children) against its layout.

        Raises
        ------
        TypeError
            If a slot holds a value of the wrong type, or a slot the
            layout does not define is set.
        """
        for position, (spec, value) in enumerate(zip(layout_for(self.kind), self.slots)):
            slot = f"u{position + 1}"
            if spec is None:
                if value is not None:
                    raise TypeError(
                        f"{self.name!r} node does not use slot {slot}, got {value!r}"
                    )
                continue
            if value is None or spec.type in (SlotType.ANY, SlotType.CLOSURE):
                continue
            if not _SLOT_CHECKS[spec.type](value):
                raise TypeError(
                    f"{self.name!r} node slot {spec.role!r} expects "
                    f"{spec.type.name}, got {type(value).__name__}"
                )


def _is_literal(value: object) -> bool:
    return not isinstance(value, bool) and isinstance(
        value, (int, float, str, Symbol, Regex)
    )


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_SLOT_CHECKS = {
    SlotType.NODE: lambda value: isinstance(value, Node),
    SlotType.NODES: lambda value: isinstance(value, tuple)
    and all(isinstance(item, Node) for item in value),
    SlotType.ID: lambda value: isinstance(value, str),
    SlotType.LITERAL: _is_literal,
    SlotType.INT: _is_int,
    SlotType.TABLE: lambda value: isinstance(value, LocalTable),
    SlotType.SELECTOR: lambda value: isinstance(value, OpSelector),
}
