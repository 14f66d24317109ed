"""Integration tests.

Integration tests exercise the full path from a runtime document on disk
through the driver to the rendered text. They are kept in a separate
directory so they can be excluded from the fast unit-test run with
``pytest tests/unit/``.
"""
from __future__ import annotations
