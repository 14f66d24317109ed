"""AST module.

Exports the host node model, local variable tables and the node-graph
codec.
"""
from __future__ import annotations

from parsetree.ast.codec import NodeCodec
from parsetree.ast.locals import RESERVED_SLOTS, LocalTable
from parsetree.ast.nodes import (
    GENERIC_LAYOUT,
    LAYOUTS,
    CapturedClosure,
    Kind,
    Layout,
    Literal,
    Node,
    NodeKind,
    OpSelector,
    Regex,
    SlotSpec,
    SlotType,
    Symbol,
    kind_from_name,
    kind_id,
    kind_name,
    layout_for,
)

__all__ = [
    # Nodes
    "Node",
    "NodeKind",
    "Kind",
    "kind_name",
    "kind_id",
    "kind_from_name",
    # Slot payloads
    "Symbol",
    "Regex",
    "Literal",
    "OpSelector",
    "CapturedClosure",
    # Layouts
    "SlotType",
    "SlotSpec",
    "Layout",
    "LAYOUTS",
    "GENERIC_LAYOUT",
    "layout_for",
    # Locals
    "LocalTable",
    "RESERVED_SLOTS",
    # Codec
    "NodeCodec",
]
