"""S-expression module.

Exports the value types produced by the serializer and the textual
nested-list adapter.
"""
from __future__ import annotations

from parsetree.sexp.text import dumps, loads
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
    seq,
)

__all__ = [
    # Value types
    "Atom",
    "Int",
    "Text",
    "Seq",
    "SExp",
    "SeqBuilder",
    "seq",
    # Markers
    "NIL",
    "UNHANDLED",
    "TRUE",
    "FALSE",
    # Text adapter
    "dumps",
    "loads",
]
