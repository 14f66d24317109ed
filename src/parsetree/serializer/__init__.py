"""Serializer module.

Exports the ``Serializer`` and its diagnostic types.
"""
from __future__ import annotations

from parsetree.serializer.diagnostics import (
    UNHANDLED_NODE,
    Diagnostic,
    DiagnosticCollection,
    DiagnosticSeverity,
    DiagnosticSink,
)
from parsetree.serializer.serializer import (
    LINE_MARKER,
    UNHANDLED_KINDS,
    ClosureAccessor,
    Serializer,
    default_closure_accessor,
    handled_kinds,
    serialize,
    serialize_all,
)

__all__ = [
    # Serializer
    "Serializer",
    "serialize",
    "serialize_all",
    "handled_kinds",
    "ClosureAccessor",
    "default_closure_accessor",
    "LINE_MARKER",
    "UNHANDLED_KINDS",
    # Diagnostics
    "Diagnostic",
    "DiagnosticCollection",
    "DiagnosticSeverity",
    "DiagnosticSink",
    "UNHANDLED_NODE",
]
