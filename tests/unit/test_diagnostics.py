"""Unit tests for serializer diagnostics and the error types."""
from __future__ import annotations

from pathlib import Path

import pytest

from parsetree.errors import (
    CapturedValueUnavailableError,
    ConfigError,
    DocumentError,
    NodeLimitExceededError,
    OutOfRangeError,
    ParseTreeError,
    SerializationError,
    SexpSyntaxError,
    StructuralInconsistencyError,
)
from parsetree.serializer import (
    UNHANDLED_NODE,
    Diagnostic,
    DiagnosticCollection,
    DiagnosticSeverity,
)


def _diagnostic(**overrides: object) -> Diagnostic:
    fields = {
        "severity": DiagnosticSeverity.WARNING,
        "code": UNHANDLED_NODE,
        "message": "Unhandled node #2 type 'cfunc'",
        "kind_name": "cfunc",
        "raw_kind": 2,
        "slots_present": (True, False, True),
    }
    fields.update(overrides)
    return Diagnostic(**fields)  # type: ignore[arg-type]


# ===========================================================================
# Diagnostic
# ===========================================================================


class TestDiagnostic:
    def test_str_without_location(self) -> None:
        assert str(_diagnostic()) == "[PT001] WARNING: Unhandled node #2 type 'cfunc'"

    def test_str_with_location(self) -> None:
        diagnostic = _diagnostic(type_name="Something", method_name="blah")
        assert str(diagnostic) == (
            "[PT001] WARNING in Something#blah: Unhandled node #2 type 'cfunc'"
        )

    def test_slot_summary(self) -> None:
        assert _diagnostic().slot_summary == "u1    u3"


class TestDiagnosticCollection:
    def test_empty(self) -> None:
        collection = DiagnosticCollection()
        assert not collection.has_diagnostics
        assert len(collection) == 0
        assert str(collection) == "DiagnosticCollection (no diagnostics)"

    def test_report_keeps_order(self) -> None:
        collection = DiagnosticCollection()
        first = _diagnostic(raw_kind=2)
        second = _diagnostic(raw_kind=84)
        collection.report(first)
        collection.report(second)
        assert list(collection) == [first, second]
        assert collection.has_diagnostics
        assert str(collection).startswith("DiagnosticCollection (2 diagnostic(s)):")


# ===========================================================================
# Errors
# ===========================================================================


class TestSerializationErrors:
    def test_hierarchy(self) -> None:
        assert issubclass(OutOfRangeError, StructuralInconsistencyError)
        assert issubclass(StructuralInconsistencyError, SerializationError)
        assert issubclass(CapturedValueUnavailableError, SerializationError)
        assert issubclass(NodeLimitExceededError, SerializationError)
        assert issubclass(SerializationError, ParseTreeError)

    def test_plain_message(self) -> None:
        assert str(StructuralInconsistencyError("bad")) == "bad"

    def test_message_with_context(self) -> None:
        error = StructuralInconsistencyError(
            "odd number list for hash (3 entries)",
            kind="hash",
            type_name="Something",
            method_name="blah",
        )
        assert str(error) == (
            "odd number list for hash (3 entries) (in Something#blah, node 'hash')"
        )

    def test_with_context_returns_copy(self) -> None:
        error = OutOfRangeError("out of range", index=7, size=4)
        located = error.with_context(kind="args", method_name="m")
        assert located is not error
        assert isinstance(located, OutOfRangeError)
        assert (located.index, located.size) == (7, 4)
        assert located.kind == "args"
        assert located.type_name is None

    def test_with_context_keeps_existing_fields(self) -> None:
        error = SerializationError("x", kind="iter")
        assert error.with_context(kind="call") is error

    def test_can_be_raised(self) -> None:
        with pytest.raises(ParseTreeError, match="limit"):
            raise NodeLimitExceededError("node limit of 5 exceeded", limit=5)


class TestOtherErrors:
    def test_document_error(self) -> None:
        assert str(DocumentError("bad")) == "Document error: bad"
        assert str(DocumentError("bad", Path("a.yaml"))) == "Document error in a.yaml: bad"

    def test_config_error(self) -> None:
        assert str(ConfigError("bad")) == "Config error: bad"
        assert str(ConfigError("bad", Path("p.yaml"))) == "Config error in p.yaml: bad"

    def test_sexp_syntax_error(self) -> None:
        error = SexpSyntaxError("Unbalanced ')'", 4)
        assert error.offset == 4
        assert str(error) == "Unbalanced ')' at offset 4"
