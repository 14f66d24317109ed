"""Host-runtime adapter.

The driver never talks to a live host runtime directly.  It asks a
``MethodTable`` for the body of a method and for the methods a type
defines.  ``Runtime`` is the in-memory implementation, filled either in
code or from a runtime document::

    types:
      - name: Something
        superclass: Object
        methods:
          blah:
            kind: scope
            table: []
            body: {kind: block, statements: [...]}

Modules are types with ``module: true`` and no superclass.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from parsetree.ast.codec import NodeCodec
from parsetree.ast.nodes import Node
from parsetree.errors import DocumentError

logger = logging.getLogger(__name__)

_TYPE_KEYS = frozenset({"name", "superclass", "module", "methods"})


@dataclass(eq=False)
class TypeInfo:
    """A class or module of the host runtime.

    Parameters
    ----------
    name:
        The type name.  May be empty for anonymous types.
    superclass:
        Name of the superclass; ``None`` for modules and root classes.
    is_module:
        ``True`` for modules, which have no superclass.
    methods:
        Instance methods defined directly on this type, by name.
    """

    name: str
    superclass: str | None = None
    is_module: bool = False
    methods: dict[str, Node] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """The type name, or ``UnnamedClass_<id>`` for anonymous types."""
        return self.name or f"UnnamedClass_{id(self)}"

    @property
    def superclass_name(self) -> str:
        """The superclass name, or ``"nil"`` when there is none."""
        return self.superclass or "nil"

    def define(self, name: str, body: Node) -> None:
        """Add or replace the method ``name``."""
        self.methods[name] = body

    def __repr__(self) -> str:
        kind = "module" if self.is_module else "class"
        return f"TypeInfo({kind} {self.display_name}, {len(self.methods)} method(s))"


@runtime_checkable
class MethodTable(Protocol):
    """Read access to the method bodies of a host runtime."""

    def lookup_method(self, type_info: TypeInfo, name: str) -> Node | None:
        """Return the body of ``name`` on ``type_info``, or ``None``."""
        ...

    def instance_methods(self, type_info: TypeInfo) -> list[str]:
        """Return the names of the methods defined directly on ``type_info``."""
        ...


class Runtime:
    """In-memory registry of types and their method bodies.

    Example
    -------
    ::

        runtime = Runtime()
        something = runtime.define_type("Something", superclass="Object")
        something.define("blah", body)
        runtime.lookup_method(something, "blah")
    """

    def __init__(self, types: Iterable[TypeInfo] = ()) -> None:
        self._types: dict[str, TypeInfo] = {}
        for type_info in types:
            self.add_type(type_info)

    def add_type(self, type_info: TypeInfo) -> TypeInfo:
        """Register ``type_info``, replacing any type of the same name."""
        if type_info.display_name in self._types:
            logger.debug("Replacing type %r", type_info.display_name)
        self._types[type_info.display_name] = type_info
        return type_info

    def define_type(
        self,
        name: str,
        superclass: str | None = None,
        *,
        is_module: bool = False,
    ) -> TypeInfo:
        """Create, register and return a new type."""
        return self.add_type(TypeInfo(name, superclass, is_module))

    def get_type(self, name: str) -> TypeInfo:
        """Return the registered type called ``name``.

        Raises
        ------
        KeyError
            If no type of that name is registered.
        """
        try:
            return self._types[name]
        except KeyError:
            raise KeyError(
                f"No type named {name!r}. Known types: {sorted(self._types)}"
            ) from None

    def lookup_method(self, type_info: TypeInfo, name: str) -> Node | None:
        return type_info.methods.get(name)

    def instance_methods(self, type_info: TypeInfo) -> list[str]:
        return list(type_info.methods)

    @property
    def types(self) -> list[TypeInfo]:
        """Registered types in registration order."""
        return list(self._types.values())

    def __iter__(self) -> Iterator[TypeInfo]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __repr__(self) -> str:
        return f"Runtime(types={sorted(self._types)})"


# ---------------------------------------------------------------------------
# Runtime documents
# ---------------------------------------------------------------------------


def runtime_from_dict(data: Any, codec: NodeCodec | None = None) -> Runtime:
    """Build a ``Runtime`` from a decoded runtime document.

    Raises
    ------
    DocumentError
        If the document does not have the expected shape or a method body
        cannot be decoded.
    """
    codec = codec or NodeCodec()
    if not isinstance(data, dict) or not isinstance(data.get("types"), list):
        raise DocumentError("Runtime document must be a mapping with a 'types' list")
    runtime = Runtime()
    for position, entry in enumerate(data["types"]):
        runtime.add_type(_type_from_dict(entry, position, codec))
    return runtime


def _type_from_dict(entry: Any, position: int, codec: NodeCodec) -> TypeInfo:
    if not isinstance(entry, dict):
        raise DocumentError(f"Type entry #{position} must be a mapping")
    unknown = set(entry) - _TYPE_KEYS
    if unknown:
        raise DocumentError(f"Type entry #{position} has unknown keys: {sorted(unknown)}")
    name = entry.get("name") or ""
    if not isinstance(name, str):
        raise DocumentError(f"Type entry #{position}: 'name' must be a string")
    is_module = bool(entry.get("module", False))
    superclass = entry.get("superclass")
    if superclass is not None and not isinstance(superclass, str):
        raise DocumentError(f"Type {name!r}: 'superclass' must be a string")
    if is_module and superclass is not None:
        raise DocumentError(f"Module {name!r} cannot have a superclass")
    methods = entry.get("methods") or {}
    if not isinstance(methods, dict):
        raise DocumentError(f"Type {name!r}: 'methods' must be a mapping")
    type_info = TypeInfo(name, superclass, is_module)
    for method_name, body in methods.items():
        try:
            type_info.define(str(method_name), codec.from_dict(body))
        except DocumentError as exc:
            raise DocumentError(f"{name or '<anonymous>'}#{method_name}: {exc.message}") from exc
    return type_info


def runtime_to_dict(runtime: Runtime, codec: NodeCodec | None = None) -> dict[str, Any]:
    """Encode ``runtime`` as a runtime document."""
    codec = codec or NodeCodec()
    types = []
    for type_info in runtime:
        entry: dict[str, Any] = {"name": type_info.name}
        if type_info.is_module:
            entry["module"] = True
        elif type_info.superclass is not None:
            entry["superclass"] = type_info.superclass
        entry["methods"] = {
            name: codec.to_dict(body) for name, body in type_info.methods.items()
        }
        types.append(entry)
    return {"types": types}


def load_document(path: Path | str) -> Runtime:
    """Load a runtime document from a YAML (or JSON) file.

    JSON documents are valid YAML, so one reader serves both.

    Raises
    ------
    DocumentError
        If the file cannot be read or does not hold a valid document.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise DocumentError(f"Cannot read document: {exc.strerror}", path) from exc
    except yaml.YAMLError as exc:
        raise DocumentError(f"Invalid YAML: {exc}", path) from exc
    try:
        runtime = runtime_from_dict(data)
    except DocumentError as exc:
        raise DocumentError(exc.message, path) from exc
    logger.debug("Loaded %d type(s) from %s", len(runtime), path)
    return runtime
