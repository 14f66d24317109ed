"""Node-graph codec.

Converts ``Node`` graphs to and from a plain dict/list structure that maps
naturally to JSON and YAML.  This is how trees built outside the process
(by a host runtime dump, or by hand in tests) are fed to the serializer.

Usage
-----
::

    from parsetree.ast.codec import NodeCodec

    codec = NodeCodec()
    node = codec.from_yaml('''
    kind: call
    recv: {kind: lit, lit: 1}
    mid: "+"
    args: {kind: array, items: [{kind: lit, lit: 1}]}
    ''')
    assert codec.from_dict(codec.to_dict(node)) == node

Format
------
A node is a mapping with a ``kind`` entry (the lowercase kind tag, or a
raw integer id for kinds this table does not know), one entry per
non-empty slot keyed by its role name, and optional ``line`` and ``file``
entries.  Slot values are encoded by slot type:

- node: a node mapping; node sequence: a list of node mappings;
- literal: a plain int, float or string, ``{"sym": NAME}`` or
  ``{"regex": SOURCE}``;
- local table: the list of declared names, or ``{"names": [...]}`` with
  every entry when the reserved positions hold other names;
- selector: ``{"attr": NAME, "operator": OP}``;
- closure: ``{"params": NODE, "body": NODE, "owner": NAME}``.

Raw integer kinds use the generic ``u1``/``u2``/``u3`` roles.
"""
from __future__ import annotations

import json
from typing import Any

import yaml

from parsetree.ast.locals import RESERVED_SLOTS, LocalTable
from parsetree.ast.nodes import (
    CapturedClosure,
    Node,
    NodeKind,
    OpSelector,
    Regex,
    SlotType,
    Symbol,
    kind_from_name,
    kind_name,
    layout_for,
)
from parsetree.errors import DocumentError

_NODE_KEYS = frozenset({"kind", "line", "file"})
_DEFAULT_TABLE = LocalTable.of()


class NodeCodec:
    """Converts between ``Node`` graphs and plain Python dicts.

    Decoding validates every slot against the layout of its kind, so a
    graph that decodes cleanly only holds the payload types the serializer
    expects.
    """

    # ------------------------------------------------------------------
    # Encoding (Node -> dict)
    # ------------------------------------------------------------------

    def to_dict(self, node: Node) -> dict[str, Any]:
        """Encode ``node`` and everything reachable from it."""
        data: dict[str, Any] = {
            "kind": kind_name(node.kind) if isinstance(node.kind, NodeKind) else node.kind
        }
        for spec, value in zip(layout_for(node.kind), node.slots):
            if spec is None or value is None:
                continue
            data[spec.role] = self._slot_to_data(spec.type, value)
        if node.line:
            data["line"] = node.line
        if node.file is not None:
            data["file"] = node.file
        return data

    def _slot_to_data(self, slot_type: SlotType, value: Any) -> Any:
        if slot_type is SlotType.NODES:
            return [self.to_dict(item) for item in value]
        if slot_type is SlotType.TABLE:
            if value.names[:RESERVED_SLOTS] == _DEFAULT_TABLE.names:
                return list(value.declared)
            return {"names": list(value.names)}
        if slot_type is SlotType.SELECTOR:
            return {"attr": value.attr, "operator": value.operator}
        if slot_type is SlotType.CLOSURE:
            return self._closure_to_dict(value)
        if isinstance(value, Node):
            return self.to_dict(value)
        if isinstance(value, Symbol):
            return {"sym": value.name}
        if isinstance(value, Regex):
            return {"regex": value.source}
        return value

    def _closure_to_dict(self, closure: CapturedClosure) -> dict[str, Any]:
        return {
            "params": self.to_dict(closure.params) if closure.params is not None else None,
            "body": self.to_dict(closure.body) if closure.body is not None else None,
            "owner": closure.owner,
        }

    def to_json(self, node: Node, indent: int = 2) -> str:
        """Encode ``node`` as a JSON string."""
        return json.dumps(self.to_dict(node), indent=indent, ensure_ascii=False)

    def to_yaml(self, node: Node) -> str:
        """Encode ``node`` as a YAML string."""
        return yaml.dump(self.to_dict(node), allow_unicode=True, sort_keys=False)

    # ------------------------------------------------------------------
    # Decoding (dict -> Node)
    # ------------------------------------------------------------------

    def from_dict(self, data: Any) -> Node:
        """Decode a node mapping.

        Raises
        ------
        DocumentError
            If the mapping has no valid ``kind``, names a role the kind
            does not have, or holds a payload of the wrong type.
        """
        if not isinstance(data, dict):
            raise DocumentError(f"Expected a node mapping, got {type(data).__name__}")
        kind = self._kind_from_data(data.get("kind"))
        layout = layout_for(kind)
        roles = {spec.role: spec for spec in layout if spec is not None}
        slots: dict[str, Any] = {}
        for key, value in data.items():
            if key in _NODE_KEYS:
                continue
            spec = roles.get(key)
            if spec is None:
                raise DocumentError(
                    f"{kind_name(kind)!r} node has no slot named {key!r}; "
                    f"expected one of {sorted(roles)}"
                )
            slots[key] = self._slot_from_data(spec.type, value, key)
        line = data.get("line", 0)
        file = data.get("file")
        if not isinstance(line, int) or isinstance(line, bool):
            raise DocumentError(f"'line' must be an integer, got {line!r}")
        if file is not None and not isinstance(file, str):
            raise DocumentError(f"'file' must be a string, got {file!r}")
        node = Node.make(kind, line=line, file=file, **slots)
        try:
            node.check()
        except TypeError as exc:
            raise DocumentError(str(exc)) from exc
        return node

    def _kind_from_data(self, value: Any) -> NodeKind | int:
        if isinstance(value, bool) or value is None:
            raise DocumentError(f"Node mapping needs a 'kind', got {value!r}")
        if isinstance(value, int):
            try:
                return NodeKind(value)
            except ValueError:
                return value
        if isinstance(value, str):
            try:
                return kind_from_name(value)
            except KeyError as exc:
                raise DocumentError(f"Unknown node kind {value!r}") from exc
        raise DocumentError(f"Node kind must be a name or an integer, got {value!r}")

    def _slot_from_data(self, slot_type: SlotType, value: Any, role: str) -> Any:
        if value is None:
            return None
        if slot_type is SlotType.NODE:
            return self.from_dict(value)
        if slot_type is SlotType.NODES:
            if not isinstance(value, list):
                raise DocumentError(f"Slot {role!r} expects a list of nodes")
            return tuple(self.from_dict(item) for item in value)
        if slot_type is SlotType.LITERAL:
            return self._literal_from_data(value, role)
        if slot_type is SlotType.TABLE:
            return self._table_from_data(value, role)
        if slot_type is SlotType.SELECTOR:
            if not isinstance(value, dict) or set(value) != {"attr", "operator"}:
                raise DocumentError(f"Slot {role!r} expects 'attr' and 'operator'")
            return OpSelector(str(value["attr"]), str(value["operator"]))
        if slot_type is SlotType.CLOSURE:
            return self._closure_from_data(value, role)
        if slot_type is SlotType.ANY and isinstance(value, dict):
            return self.from_dict(value)
        return value

    def _table_from_data(self, value: Any, role: str) -> LocalTable:
        full = isinstance(value, dict)
        if full:
            if set(value) != {"names"}:
                raise DocumentError(f"Slot {role!r} table mapping expects only 'names'")
            value = value["names"]
        if not isinstance(value, list) or not all(isinstance(n, str) for n in value):
            raise DocumentError(f"Slot {role!r} expects a list of names")
        return LocalTable(tuple(value)) if full else LocalTable.of(*value)

    def _literal_from_data(self, value: Any, role: str) -> Any:
        if isinstance(value, dict):
            if set(value) == {"sym"}:
                return Symbol(str(value["sym"]))
            if set(value) == {"regex"}:
                return Regex(str(value["regex"]))
            raise DocumentError(f"Slot {role!r} literal must be 'sym' or 'regex'")
        return value

    def _closure_from_data(self, value: Any, role: str) -> CapturedClosure:
        if not isinstance(value, dict):
            raise DocumentError(f"Slot {role!r} expects a closure mapping")
        unknown = set(value) - {"params", "body", "owner"}
        if unknown:
            raise DocumentError(f"Unknown closure keys: {sorted(unknown)}")
        params = value.get("params")
        body = value.get("body")
        owner = value.get("owner")
        return CapturedClosure(
            params=self.from_dict(params) if params is not None else None,
            body=self.from_dict(body) if body is not None else None,
            owner=None if owner is None else str(owner),
        )

    def from_json(self, text: str) -> Node:
        """Decode a node from a JSON string."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DocumentError(f"Invalid JSON: {exc}") from exc
        return self.from_dict(data)

    def from_yaml(self, text: str) -> Node:
        """Decode a node from a YAML string."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise DocumentError(f"Invalid YAML: {exc}") from exc
        return self.from_dict(data)
