"""Driver module.

Exports the method/class driver and the host-runtime adapter.
"""
from __future__ import annotations

from parsetree.driver.driver import CLASS, DEFN, MODULE, DumpResult, ParseTree
from parsetree.driver.runtime import (
    MethodTable,
    Runtime,
    TypeInfo,
    load_document,
    runtime_from_dict,
    runtime_to_dict,
)

__all__ = [
    # Driver
    "ParseTree",
    "DumpResult",
    "DEFN",
    "CLASS",
    "MODULE",
    # Runtime adapter
    "MethodTable",
    "Runtime",
    "TypeInfo",
    "load_document",
    "runtime_from_dict",
    "runtime_to_dict",
]
