"""Method/class driver.

``ParseTree`` looks methods up in a ``MethodTable`` and serializes their
bodies into the method and type forms::

    (defn NAME FORMS...)
    (class NAME SUPERCLASS (defn ...) ...)
    (module NAME (defn ...) ...)

A method the table does not know yields ``(nil)``.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from parsetree.ast.nodes import Node, NodeKind
from parsetree.config import ParseTreeConfig
from parsetree.driver.runtime import MethodTable, TypeInfo
from parsetree.errors import SerializationError
from parsetree.serializer.diagnostics import DiagnosticSink
from parsetree.serializer.serializer import ClosureAccessor, Serializer
from parsetree.sexp.values import NIL, Atom, Seq

logger = logging.getLogger(__name__)

DEFN: Atom = Atom("defn")
CLASS: Atom = Atom("class")
MODULE: Atom = Atom("module")


@dataclass
class DumpResult:
    """Outcome of a batch dump.

    Parameters
    ----------
    tree:
        One type form per type that serialized cleanly, in input order.
    failures:
        The error of every type that was left out of ``tree``.
    """

    tree: Seq
    failures: list[SerializationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True if every type serialized cleanly."""
        return not self.failures


class ParseTree:
    """Serializes the methods of host types.

    Parameters
    ----------
    methods:
        The method table to look method bodies up in.
    include_line_markers:
        Emit ``(newline LINE "FILE")`` before every marked statement.
    closures:
        Accessor for the closures of ``bmethod``/``dmethod`` nodes.
    sink:
        Receiver of diagnostics for unhandled node kinds.
    node_limit:
        Maximum number of nodes per method, or ``None``.
    """

    def __init__(
        self,
        methods: MethodTable,
        include_line_markers: bool = False,
        *,
        closures: ClosureAccessor | None = None,
        sink: DiagnosticSink | None = None,
        node_limit: int | None = None,
    ) -> None:
        self._methods = methods
        self._serializer = Serializer(
            include_line_markers=include_line_markers,
            closures=closures,
            sink=sink,
            node_limit=node_limit,
        )

    @classmethod
    def from_config(
        cls,
        methods: MethodTable,
        config: ParseTreeConfig,
        **kwargs: Any,
    ) -> "ParseTree":
        """Create a driver with the settings of ``config``."""
        return cls(
            methods,
            include_line_markers=config.include_line_markers,
            node_limit=config.node_limit,
            **kwargs,
        )

    @property
    def include_line_markers(self) -> bool:
        return self._serializer.include_line_markers

    def tree_for_method(self, type_info: TypeInfo, name: str) -> Seq:
        """Return ``(defn NAME FORMS...)`` for one method, or ``(nil)``.

        Raises
        ------
        SerializationError
            If the method body cannot be serialized.  The error names the
            type and the method.
        """
        body = self._methods.lookup_method(type_info, name)
        if body is None:
            logger.debug("No method %s#%s", type_info.display_name, name)
            return Seq.of(NIL)
        forms = self._serializer.serialize(
            _method_body(body),
            type_name=type_info.display_name,
            method_name=name,
        )
        return Seq((DEFN, Atom(name), *forms))

    def tree_for_type(self, type_info: TypeInfo) -> Seq:
        """Return the class or module form of one type."""
        if type_info.is_module:
            form = [MODULE, Atom(type_info.display_name)]
        else:
            form = [CLASS, Atom(type_info.display_name), Atom(type_info.superclass_name)]
        for name in sorted(self._methods.instance_methods(type_info)):
            logger.debug("tree_for_method(%s, %s)", type_info.display_name, name)
            form.append(self.tree_for_method(type_info, name))
        return Seq(tuple(form))

    def tree_for_types(self, *types: TypeInfo) -> Seq:
        """Return one class or module form per type, in argument order.

        Methods appear in lexicographic order of their names.

        Raises
        ------
        TypeError
            If a method name is passed instead of a type.
        SerializationError
            On the first method that cannot be serialized.
        """
        _check_types(types)
        return Seq(tuple(self.tree_for_type(type_info) for type_info in types))

    def dump_types(self, types: Iterable[TypeInfo]) -> DumpResult:
        """Serialize every type, leaving out the ones that fail.

        A failure in one type does not affect the others; its error is
        collected in ``DumpResult.failures``.
        """
        types = tuple(types)
        _check_types(types)
        forms: list[Seq] = []
        failures: list[SerializationError] = []
        for type_info in types:
            try:
                forms.append(self.tree_for_type(type_info))
            except SerializationError as exc:
                logger.error("Skipping %s: %s", type_info.display_name, exc)
                failures.append(exc)
        return DumpResult(Seq(tuple(forms)), failures)


def _method_body(node: Node) -> Node | None:
    # Method table entries wrap the body in a method node.
    if node.kind is NodeKind.METHOD:
        return node.body
    return node


def _check_types(types: Iterable[object]) -> None:
    types = tuple(types)
    for type_info in types:
        if isinstance(type_info, str):
            first = types[0]
            raise TypeError(
                f"Call tree_for_method({first!r}, {type_info!r}) instead of "
                "tree_for_types to serialize a single method"
            )
        if not isinstance(type_info, TypeInfo):
            raise TypeError(f"Expected a TypeInfo, got {type(type_info).__name__}")
