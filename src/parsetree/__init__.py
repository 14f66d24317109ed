"""parsetree: serialize host-runtime syntax trees into S-expressions.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import parsetree

    # Load the types and method bodies dumped by a host runtime
    runtime = parsetree.load_document("something.yaml")
    something = runtime.get_type("Something")

    # One method
    tree = parsetree.tree_for_method(runtime, something, "blah")
    parsetree.dumps(tree)
    # '(defn blah (scope (block (args) (return (call (lit 1) + (array (lit 1)))))))'

    # Whole types
    parsetree.tree_for_types(runtime, something)

    # A bare node
    parsetree.serialize(node)

    parsetree.__version__
    '1.3.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

__version__: str = "1.3.0"

if TYPE_CHECKING:
    from pathlib import Path

    from parsetree.ast.nodes import Node
    from parsetree.driver.runtime import MethodTable, Runtime, TypeInfo
    from parsetree.sexp.values import Seq, SExp


def serialize(root: "Node | None", include_line_markers: bool = False) -> "Seq":
    """Serialize a node and everything reachable from it.

    Parameters
    ----------
    root:
        The node to serialize.
    include_line_markers:
        When ``True``, line markers are emitted as ``(newline LINE "FILE")``.

    Returns
    -------
    Seq
        The top-level forms ``root`` produced, in order.

    Raises
    ------
    parsetree.errors.SerializationError
        If the tree is structurally inconsistent.
    """
    from parsetree.serializer.serializer import serialize as _serialize

    return _serialize(root, include_line_markers)


def tree_for_method(
    methods: "MethodTable",
    type_info: "TypeInfo",
    name: str,
    include_line_markers: bool = False,
) -> "Seq":
    """Serialize one method as ``(defn NAME FORMS...)``.

    Returns ``(nil)`` when ``type_info`` has no method ``name``.
    """
    from parsetree.driver.driver import ParseTree

    return ParseTree(methods, include_line_markers).tree_for_method(type_info, name)


def tree_for_types(
    methods: "MethodTable",
    *types: "TypeInfo",
    include_line_markers: bool = False,
) -> "Seq":
    """Serialize every method of ``types`` as class and module forms."""
    from parsetree.driver.driver import ParseTree

    return ParseTree(methods, include_line_markers).tree_for_types(*types)


def dumps(value: "SExp", pretty: bool = False) -> str:
    """Render an S-expression value in nested-list notation."""
    from parsetree.sexp.text import dumps as _dumps

    return _dumps(value, pretty=pretty)


def loads(text: str) -> "SExp":
    """Read one S-expression value from nested-list notation.

    Raises
    ------
    parsetree.errors.SexpSyntaxError
        If ``text`` is not a single well-formed value.
    """
    from parsetree.sexp.text import loads as _loads

    return _loads(text)


def load_document(path: "Path | str") -> "Runtime":
    """Load a runtime document from a YAML or JSON file.

    Raises
    ------
    parsetree.errors.DocumentError
        If the file cannot be read or is not a valid document.
    """
    from parsetree.driver.runtime import load_document as _load_document

    return _load_document(path)


__all__ = [
    "__version__",
    "serialize",
    "tree_for_method",
    "tree_for_types",
    "dumps",
    "loads",
    "load_document",
]
