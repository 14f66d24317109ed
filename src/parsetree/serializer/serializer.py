"""Serializer: host syntax tree -> S-expression.

The ``Serializer`` walks a ``Node`` graph and produces nested ``Seq``
values whose first element is the kind tag of the node they represent::

    from parsetree.serializer import Serializer

    forms = Serializer().serialize(root)
    # Seq((Seq((Atom("return"), Seq(...))),))

Walk
----
The walk runs on an explicit work stack instead of Python recursion, so
neither deep nesting nor long statement sequences are bounded by the
interpreter recursion limit.  Each stack entry targets the list under
construction it writes into:

- visiting a node opens one fresh frame (the node's own list, headed by
  its kind tag), schedules the node's parts into it and closes it into
  the enclosing frame when they are done;
- a line marker opens no frame: the marker (when enabled) and the
  statement it marks are written straight into the enclosing frame.

Whether a region is nested or spliced is therefore decided only by
whether a frame was opened for it.

Rules
-----
Each handled kind has a rule, registered with ``@_rule``, that returns
the parts following the kind tag in order.  A part is a ready
S-expression value, a ``Node`` to visit, a ``_Scoped`` node to visit
under another local table, or a ``_Group`` building a nested list.  A
kind without a rule degrades to ``(unhandled RAW_ID)`` and a diagnostic.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Final, Protocol, Union

from parsetree.ast.locals import RESERVED_SLOTS, LocalTable
from parsetree.ast.nodes import (
    CapturedClosure,
    Node,
    NodeKind,
    OpSelector,
    Regex,
    Symbol,
    kind_id,
    kind_name,
)
from parsetree.errors import (
    CapturedValueUnavailableError,
    NodeLimitExceededError,
    SerializationError,
    StructuralInconsistencyError,
)
from parsetree.serializer.diagnostics import (
    UNHANDLED_NODE,
    Diagnostic,
    DiagnosticSeverity,
    DiagnosticSink,
)
from parsetree.sexp.values import (
    FALSE,
    NIL,
    TRUE,
    UNHANDLED,
    Atom,
    Int,
    Seq,
    SeqBuilder,
    SExp,
    Text,
)

logger = logging.getLogger(__name__)

LINE_MARKER: Final[Atom] = Atom("newline")

# Host kinds that only exist at run time; they never appear in a parsed
# body and go through the unhandled-kind path.
UNHANDLED_KINDS: Final[frozenset[NodeKind]] = frozenset(
    {NodeKind.CFUNC, NodeKind.CREF, NodeKind.MEMO, NodeKind.IFUNC, NodeKind.LAST}
)

# ``rest`` values of an ``args`` node that carry no parameter name.
_NO_REST: Final[int] = -1
_ANONYMOUS_REST: Final[int] = -2


class ClosureAccessor(Protocol):
    """Resolves the opaque handle of a captured-closure node.

    Returns ``None`` when the handle cannot be resolved.
    """

    def __call__(self, handle: object) -> CapturedClosure | None: ...


def default_closure_accessor(handle: object) -> CapturedClosure | None:
    """Accept handles that already are ``CapturedClosure`` values."""
    if isinstance(handle, CapturedClosure):
        return handle
    return None


# ---------------------------------------------------------------------------
# Parts and work stack entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Scoped:
    """Visit ``node`` with ``table`` as the enclosing local table."""

    node: Node | None
    table: LocalTable | None


@dataclass(frozen=True, slots=True)
class _Group:
    """A nested list headed by ``tag`` holding ``parts``."""

    tag: Atom
    parts: tuple["Part", ...]


Part = Union[SExp, Node, _Scoped, _Group]

_VISIT: Final[int] = 0
_EMIT: Final[int] = 1
_CLOSE: Final[int] = 2


@dataclass(slots=True)
class _Context:
    """State of one ``serialize`` call."""

    type_name: str | None
    method_name: str | None
    table: LocalTable | None = None
    visited: int = 0


Rule = Callable[["Serializer", Node, _Context], Sequence[Part]]

_RULES: dict[NodeKind, Rule] = {}


def _rule(*kinds: NodeKind) -> Callable[[Rule], Rule]:
    """Register the decorated method as the rule for ``kinds``."""

    def decorator(fn: Rule) -> Rule:
        for kind in kinds:
            if kind in _RULES:
                raise ValueError(f"Duplicate serializer rule for {kind_name(kind)!r}")
            _RULES[kind] = fn
        return fn

    return decorator


def handled_kinds() -> frozenset[NodeKind]:
    """Return every kind the serializer handles.

    Line markers have no rule; the walk splices them itself.
    """
    return frozenset(_RULES) | {NodeKind.NEWLINE}


# ---------------------------------------------------------------------------
# Slot helpers
# ---------------------------------------------------------------------------


def _child(node: Node | None) -> Part:
    return NIL if node is None else node


def _present(node: Node | None) -> tuple[Part, ...]:
    return () if node is None else (node,)


def _ident(value: object, role: str) -> Atom:
    if not isinstance(value, str):
        raise StructuralInconsistencyError(
            f"slot {role!r} must hold an identifier, got {value!r}"
        )
    return Atom(value)


def _literal(value: object) -> SExp:
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, int):
        return Int(value)
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, Symbol):
        return Atom(value.name)
    if isinstance(value, float):
        return Atom(repr(value))
    if isinstance(value, Regex):
        return Atom(f"/{value.source}/")
    raise StructuralInconsistencyError(f"unsupported literal payload {value!r}")


def _leading_text(value: object) -> Text:
    # The literal part of an interpolated string, regex or symbol.
    if value is None:
        return Text("")
    if isinstance(value, Symbol):
        return Text(value.name)
    if isinstance(value, Regex):
        return Text(value.source)
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return Text(str(value))
    raise StructuralInconsistencyError(f"unsupported literal payload {value!r}")


def _optional_defaults(opt: Node) -> tuple[Node, ...]:
    if opt.kind is NodeKind.BLOCK:
        return opt.statements or ()
    return (opt,)


# ---------------------------------------------------------------------------
# Serializer
# ---------------------------------------------------------------------------


class Serializer:
    """Converts host syntax trees into S-expression values.

    A ``Serializer`` holds only configuration; every ``serialize`` call
    keeps its state locally, so one instance can serve concurrent callers
    as long as each passes its own, unmodified tree.

    Parameters
    ----------
    include_line_markers:
        When ``True``, every line marker is emitted as
        ``(newline LINE "FILE")`` right before the statement it marks.
    closures:
        Accessor resolving the handle of ``bmethod``/``dmethod`` nodes.
    sink:
        Receiver of diagnostics for unhandled node kinds.  Diagnostics
        are logged in any case.
    node_limit:
        Maximum number of nodes one call may visit, or ``None``.
    """

    def __init__(
        self,
        include_line_markers: bool = False,
        closures: ClosureAccessor | None = None,
        sink: DiagnosticSink | None = None,
        node_limit: int | None = None,
    ) -> None:
        self.include_line_markers = include_line_markers
        self._closures: ClosureAccessor = closures or default_closure_accessor
        self._sink = sink
        self._node_limit = node_limit

    def serialize(
        self,
        root: Node | None,
        *,
        type_name: str | None = None,
        method_name: str | None = None,
    ) -> Seq:
        """Serialize ``root`` and everything reachable from it.

        Parameters
        ----------
        root:
            The node to serialize.  ``None`` yields an empty ``Seq``.
        type_name, method_name:
            Identity of the method being serialized, attached to
            diagnostics and errors.

        Returns
        -------
        Seq
            The top-level forms ``root`` produced, in order.  This is a
            single form unless ``root`` is a line marker and markers are
            enabled, in which case the marker precedes the form.

        Raises
        ------
        StructuralInconsistencyError
            If the tree violates a sequence or table invariant.
        CapturedValueUnavailableError
            If a closure handle cannot be resolved.
        NodeLimitExceededError
            If more than ``node_limit`` nodes are visited.
        """
        ctx = _Context(type_name=type_name, method_name=method_name)
        top = SeqBuilder()
        stack: list[tuple[int, object, SeqBuilder, LocalTable | None]] = [
            (_VISIT, root, top, None)
        ]
        while stack:
            op, payload, target, table = stack.pop()
            if op == _EMIT:
                target.push(payload)  # type: ignore[arg-type]
                continue
            if op == _CLOSE:
                target.push(payload.build())  # type: ignore[union-attr]
                continue
            node: Node | None = payload  # type: ignore[assignment]
            if node is None:
                continue
            self._count(node, ctx)
            if node.kind is NodeKind.NEWLINE:
                if self.include_line_markers:
                    target.push(
                        Seq.of(LINE_MARKER, Int(node.line), Text(node.file or ""))
                    )
                stack.append((_VISIT, node.next, target, table))
                continue
            ctx.table = table
            frame, parts = self._open(node, ctx)
            stack.append((_CLOSE, frame, target, table))
            self._schedule(stack, parts, frame, table)
        return top.build()

    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------

    def _count(self, node: Node, ctx: _Context) -> None:
        ctx.visited += 1
        if self._node_limit is not None and ctx.visited > self._node_limit:
            raise NodeLimitExceededError(
                f"node limit of {self._node_limit} exceeded",
                kind=kind_name(node.kind),
                type_name=ctx.type_name,
                method_name=ctx.method_name,
                limit=self._node_limit,
            )
        if logger.isEnabledFor(logging.DEBUG):
            u1, u2, u3 = node.slots_present()
            logger.debug(
                "%15s: %s%s%s",
                kind_name(node.kind),
                "u1 " if u1 else "   ",
                "u2 " if u2 else "   ",
                "u3 " if u3 else "   ",
            )

    def _open(self, node: Node, ctx: _Context) -> tuple[SeqBuilder, Sequence[Part]]:
        rule = _RULES.get(node.kind) if isinstance(node.kind, NodeKind) else None
        if rule is None:
            self._report_unhandled(node, ctx)
            return SeqBuilder([UNHANDLED]), (Int(kind_id(node.kind)),)
        try:
            parts = rule(self, node, ctx)
        except SerializationError as exc:
            located = exc.with_context(
                kind=kind_name(node.kind),
                type_name=ctx.type_name,
                method_name=ctx.method_name,
            )
            if located is exc:
                raise
            raise located from exc
        return SeqBuilder([Atom(kind_name(node.kind))]), parts

    @staticmethod
    def _schedule(
        stack: list[tuple[int, object, SeqBuilder, LocalTable | None]],
        parts: Sequence[Part],
        frame: SeqBuilder,
        table: LocalTable | None,
    ) -> None:
        # Pushed in reverse so that parts are popped in source order.
        for part in reversed(parts):
            if isinstance(part, Node):
                stack.append((_VISIT, part, frame, table))
            elif isinstance(part, _Scoped):
                if part.node is None:
                    stack.append((_EMIT, NIL, frame, table))
                else:
                    stack.append((_VISIT, part.node, frame, part.table))
            elif isinstance(part, _Group):
                group = SeqBuilder([part.tag])
                stack.append((_CLOSE, group, frame, table))
                Serializer._schedule(stack, part.parts, group, table)
            else:
                stack.append((_EMIT, part, frame, table))

    def _report_unhandled(self, node: Node, ctx: _Context) -> None:
        name = kind_name(node.kind)
        raw = kind_id(node.kind)
        present = node.slots_present()
        logger.warning(
            "Unhandled node #%d type %r (u1=%s u2=%s u3=%s)",
            raw,
            name,
            *("set" if flag else "empty" for flag in present),
        )
        if self._sink is not None:
            self._sink.report(
                Diagnostic(
                    severity=DiagnosticSeverity.WARNING,
                    code=UNHANDLED_NODE,
                    message=f"Unhandled node #{raw} type {name!r}",
                    kind_name=name,
                    raw_kind=raw,
                    slots_present=present,
                    type_name=ctx.type_name,
                    method_name=ctx.method_name,
                )
            )

    def _capture(self, node: Node) -> CapturedClosure:
        closure = self._closures(node.closure)
        if closure is None:
            raise CapturedValueUnavailableError(
                f"cannot resolve the captured closure of a {node.name!r} node"
            )
        return closure

    # ------------------------------------------------------------------
    # Scopes and statement sequences
    # ------------------------------------------------------------------

    @_rule(NodeKind.SCOPE)
    def _scope(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_Scoped(node.body, node.table),)

    @_rule(NodeKind.BLOCK)
    def _block(self, node: Node, ctx: _Context) -> Sequence[Part]:
        """Statements of a ``(block ...)`` list.

        A block always nests as one element of its parent, loop and
        iterator bodies included; only ``newline`` markers splice into the
        enclosing list.
        """
        return node.statements or ()

    @_rule(NodeKind.METHOD, NodeKind.BEGIN, NodeKind.OPT_N, NodeKind.NOT, NodeKind.EVSTR)
    def _body(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.body),)

    @_rule(
        NodeKind.FBODY,
        NodeKind.DEFINED,
        NodeKind.SPLAT,
        NodeKind.TO_ARY,
        NodeKind.SVALUE,
    )
    def _head(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head),)

    @_rule(
        NodeKind.SELF,
        NodeKind.NIL,
        NodeKind.TRUE,
        NodeKind.FALSE,
        NodeKind.RETRY,
        NodeKind.REDO,
        NodeKind.ZARRAY,
        NodeKind.ZSUPER,
        NodeKind.POSTEXE,
    )
    def _terminal(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return ()

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    @_rule(NodeKind.IF)
    def _if(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.cond), _child(node.body), _child(node.else_))

    @_rule(NodeKind.CASE)
    def _case(self, node: Node, ctx: _Context) -> Sequence[Part]:
        parts: list[Part] = [_child(node.head)]
        clause = node.body
        while clause is not None:
            parts.append(clause)
            if clause.kind is not NodeKind.WHEN:
                break
            clause = clause.next
        else:
            parts.append(NIL)
        return parts

    @_rule(NodeKind.WHEN)
    def _when(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head), _child(node.body))

    @_rule(NodeKind.WHILE, NodeKind.UNTIL)
    def _loop(self, node: Node, ctx: _Context) -> Sequence[Part]:
        pre_test = FALSE if node.state == 0 else TRUE
        return (_child(node.cond), _child(node.body), pre_test)

    @_rule(NodeKind.ITER, NodeKind.FOR)
    def _iter(self, node: Node, ctx: _Context) -> Sequence[Part]:
        # The host stores small integers in ``var`` for blocks that take
        # no variables at all.
        var = node.var if isinstance(node.var, Node) else None
        return (_child(node.iter), _child(var), _child(node.body))

    @_rule(NodeKind.BREAK, NodeKind.NEXT, NodeKind.RETURN, NodeKind.YIELD)
    def _jump(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return _present(node.stts)

    @_rule(NodeKind.AND, NodeKind.OR)
    def _logical(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.first), _child(node.second))

    @_rule(NodeKind.DOT2, NodeKind.DOT3, NodeKind.FLIP2, NodeKind.FLIP3)
    def _range(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.beg), _child(node.end))

    # ------------------------------------------------------------------
    # Exceptions
    # ------------------------------------------------------------------

    @_rule(NodeKind.RESCUE)
    def _rescue(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head), _child(node.resq), *_present(node.else_))

    @_rule(NodeKind.RESBODY)
    def _resbody(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.args), _child(node.body), *_present(node.next))

    @_rule(NodeKind.ENSURE)
    def _ensure(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head), *_present(node.ensr))

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    @_rule(
        NodeKind.LASGN,
        NodeKind.DASGN,
        NodeKind.DASGN_CURR,
        NodeKind.GASGN,
        NodeKind.IASGN,
        NodeKind.CDECL,
        NodeKind.CVASGN,
        NodeKind.CVDECL,
    )
    def _assign(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.vid, "vid"), *_present(node.value))

    @_rule(NodeKind.MASGN)
    def _masgn(self, node: Node, ctx: _Context) -> Sequence[Part]:
        # The host marks "no splat" with -1 as well as with an empty slot.
        splat = (node.splat,) if isinstance(node.splat, Node) else ()
        return (_child(node.head), *splat, _child(node.value))

    @_rule(NodeKind.OP_ASGN1)
    def _op_asgn1(self, node: Node, ctx: _Context) -> Sequence[Part]:
        # Stored as (recv, operator, [value, *index]); read as
        # recv[index] operator= value.
        args = node.args
        if args is None or args.kind is not NodeKind.ARRAY or not args.items:
            raise StructuralInconsistencyError(
                "indexed compound assignment needs an array of value and index"
            )
        value, *index = args.items
        return (
            _child(node.recv),
            _Group(Atom(kind_name(NodeKind.ARRAY)), tuple(index)),
            _ident(node.mid, "mid"),
            value,
        )

    @_rule(NodeKind.OP_ASGN2)
    def _op_asgn2(self, node: Node, ctx: _Context) -> Sequence[Part]:
        selector = node.selector
        if not isinstance(selector, OpSelector):
            raise StructuralInconsistencyError(
                "attribute compound assignment needs an attribute/operator selector"
            )
        return (
            _child(node.recv),
            Atom(selector.attr),
            Atom(selector.operator),
            _child(node.value),
        )

    @_rule(NodeKind.OP_ASGN_AND, NodeKind.OP_ASGN_OR)
    def _op_asgn_logical(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head), _child(node.value))

    @_rule(NodeKind.ATTRASGN)
    def _attrasgn(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.recv), _ident(node.mid, "mid"), _child(node.args))

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    @_rule(NodeKind.CALL)
    def _call(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.recv), _ident(node.mid, "mid"), *_present(node.args))

    @_rule(NodeKind.FCALL)
    def _fcall(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.mid, "mid"), _child(node.args))

    @_rule(NodeKind.VCALL)
    def _vcall(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.mid, "mid"),)

    @_rule(NodeKind.SUPER)
    def _super(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.args),)

    @_rule(NodeKind.ARGSCAT, NodeKind.ARGSPUSH)
    def _argscat(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head), _child(node.body))

    @_rule(NodeKind.BLOCK_PASS)
    def _block_pass(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.body), _child(node.iter))

    @_rule(NodeKind.ARGS)
    def _args(self, node: Node, ctx: _Context) -> Sequence[Part]:
        table = ctx.table
        count = node.cnt or 0
        rest = _NO_REST if node.rest is None else node.rest
        opt = node.opt
        if table is None or not (count or opt is not None or rest != _NO_REST):
            return ()
        parts: list[Part] = []
        index = RESERVED_SLOTS
        for _ in range(count):
            parts.append(Atom(table.resolve(index)))
            index += 1
        if opt is not None:
            for _ in _optional_defaults(opt):
                parts.append(Atom(table.resolve(index)))
                index += 1
        if rest > 0:
            parts.append(Atom("*" + table.resolve(rest + 1)))
        elif rest not in (_NO_REST, _ANONYMOUS_REST):
            raise StructuralInconsistencyError(f"unrecognized rest argument value {rest}")
        if opt is not None:
            parts.append(opt)
        return parts

    @_rule(NodeKind.BLOCK_ARG)
    def _block_arg(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.vid, "vid"),)

    # ------------------------------------------------------------------
    # Literals and variables
    # ------------------------------------------------------------------

    @_rule(NodeKind.ARRAY)
    def _array(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return node.items or ()

    @_rule(NodeKind.HASH)
    def _hash(self, node: Node, ctx: _Context) -> Sequence[Part]:
        entries = node.entries or ()
        if len(entries) % 2:
            raise StructuralInconsistencyError(
                f"odd number list for hash ({len(entries)} entries)"
            )
        return entries

    @_rule(
        NodeKind.LVAR,
        NodeKind.DVAR,
        NodeKind.GVAR,
        NodeKind.IVAR,
        NodeKind.CONST,
        NodeKind.CVAR,
        NodeKind.ATTRSET,
    )
    def _variable(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.vid, "vid"),)

    @_rule(NodeKind.NTH_REF)
    def _nth_ref(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (Int(node.nth),)

    @_rule(NodeKind.BACK_REF)
    def _back_ref(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (Atom(chr(node.nth)),)

    @_rule(NodeKind.LIT, NodeKind.STR, NodeKind.XSTR, NodeKind.MATCH)
    def _lit(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_literal(node.lit),)

    @_rule(NodeKind.MATCH2, NodeKind.MATCH3)
    def _match(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.recv), _child(node.value))

    @_rule(
        NodeKind.DSTR,
        NodeKind.DXSTR,
        NodeKind.DREGX,
        NodeKind.DREGX_ONCE,
        NodeKind.DSYM,
    )
    def _interpolation(self, node: Node, ctx: _Context) -> Sequence[Part]:
        parts: list[Part] = [_leading_text(node.lit)]
        for piece in node.parts or ():
            if piece.kind is NodeKind.EVSTR:
                parts.append(_child(piece.body))
            else:
                parts.append(piece)
        return parts

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    @_rule(NodeKind.DEFN)
    def _defn(self, node: Node, ctx: _Context) -> Sequence[Part]:
        if node.defn is None:
            return ()
        return (_ident(node.mid, "mid"), node.defn)

    @_rule(NodeKind.DEFS)
    def _defs(self, node: Node, ctx: _Context) -> Sequence[Part]:
        if node.defn is None:
            return ()
        return (_child(node.recv), _ident(node.mid, "mid"), node.defn)

    @_rule(NodeKind.ALIAS, NodeKind.VALIAS)
    def _alias(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.new, "new"), _ident(node.old, "old"))

    @_rule(NodeKind.UNDEF, NodeKind.COLON3)
    def _named(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_ident(node.mid, "mid"),)

    @_rule(NodeKind.COLON2)
    def _colon2(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.head), _ident(node.mid, "mid"))

    @_rule(NodeKind.CLASS)
    def _class(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_cpath_name(node), *_present(node.super), _child(node.body))

    @_rule(NodeKind.MODULE)
    def _module(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_cpath_name(node), _child(node.body))

    @_rule(NodeKind.SCLASS)
    def _sclass(self, node: Node, ctx: _Context) -> Sequence[Part]:
        return (_child(node.recv), _child(node.body))

    @_rule(NodeKind.BMETHOD)
    def _bmethod(self, node: Node, ctx: _Context) -> Sequence[Part]:
        closure = self._capture(node)
        return (_Scoped(closure.params, None), _Scoped(closure.body, None))

    @_rule(NodeKind.DMETHOD)
    def _dmethod(self, node: Node, ctx: _Context) -> Sequence[Part]:
        closure = self._capture(node)
        owner = NIL if closure.owner is None else Atom(closure.owner)
        return (owner, _Scoped(closure.body, None))


def _cpath_name(node: Node) -> Atom:
    cpath = node.cpath
    if cpath is None or cpath.kind not in (NodeKind.COLON2, NodeKind.COLON3):
        raise StructuralInconsistencyError("class path must be a colon2 or colon3 node")
    return _ident(cpath.mid, "mid")


def serialize(
    root: Node | None,
    include_line_markers: bool = False,
    *,
    closures: ClosureAccessor | None = None,
    sink: DiagnosticSink | None = None,
    node_limit: int | None = None,
) -> Seq:
    """Convenience function: serialize ``root`` with a one-off ``Serializer``.

    See ``Serializer.serialize`` for the shape of the result.
    """
    serializer = Serializer(
        include_line_markers=include_line_markers,
        closures=closures,
        sink=sink,
        node_limit=node_limit,
    )
    return serializer.serialize(root)


def serialize_all(
    roots: Iterable[Node],
    include_line_markers: bool = False,
) -> list[Seq]:
    """Serialize several independent roots with one ``Serializer``."""
    serializer = Serializer(include_line_markers=include_line_markers)
    return [serializer.serialize(root) for root in roots]
