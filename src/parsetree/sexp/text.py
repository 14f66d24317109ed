"""Textual nested-list notation for S-expression values.

``dumps`` writes the conventional notation::

    (defn blah (scope (block (args) (return (call (lit 1) + (array (lit 1)))))))

``loads`` reads it back.  The notation is:

- ``Int``: an optionally signed run of digits, e.g. ``42`` or ``-99``.
- ``Text``: double-quoted with backslash escapes (``\\n``, ``\\t``,
  ``\\r``, ``\\"``, ``\\\\``).
- ``Atom``: any other run of characters without whitespace, parentheses
  or double quotes.  Atoms that cannot be written that way (empty, digit
  runs, embedded blanks) are written ``:"..."`` with the escapes of
  ``Text``.
- ``Seq``: elements separated by single spaces inside parentheses.
"""
from __future__ import annotations

import re
from typing import Final

from parsetree.errors import SexpSyntaxError
from parsetree.sexp.values import Atom, Int, Seq, SExp, Text

_INT: Final[re.Pattern[str]] = re.compile(r"-?[0-9]+")
_BARE_ATOM: Final[re.Pattern[str]] = re.compile(r'[^\s()"]+')
_TOKEN: Final[re.Pattern[str]] = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<open>\()
    | (?P<close>\))
    | (?P<qatom>:"(?:[^"\\]|\\.)*")
    | (?P<text>"(?:[^"\\]|\\.)*")
    | (?P<bare>[^\s()"]+)
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES: Final[dict[str, str]] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}
_UNESCAPES: Final[dict[str, str]] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
}

_DEFAULT_WIDTH: Final[int] = 78


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _quote(value: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


def _atom_text(name: str) -> str:
    if _BARE_ATOM.fullmatch(name) and not _INT.fullmatch(name):
        return name
    return ":" + _quote(name)


def _scalar_text(value: SExp) -> str:
    if isinstance(value, Atom):
        return _atom_text(value.name)
    if isinstance(value, Int):
        return str(value.value)
    if isinstance(value, Text):
        return _quote(value.value)
    raise TypeError(f"Not an S-expression value: {value!r}")


def _compact(value: SExp) -> str:
    # Trees can nest deeper than the interpreter recursion limit.
    out: list[str] = []
    stack: list[SExp | str] = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, Seq):
            stack.append(")")
            for position in range(len(item.items) - 1, -1, -1):
                stack.append(item.items[position])
                if position:
                    stack.append(" ")
            stack.append("(")
        else:
            out.append(_scalar_text(item))
    return "".join(out)


def _flat_widths(value: SExp) -> dict[int, int]:
    # Compact width of every list in ``value``, keyed by ``id``.
    widths: dict[int, int] = {}
    stack: list[tuple[SExp, bool]] = [(value, False)]
    while stack:
        item, children_done = stack.pop()
        if not isinstance(item, Seq):
            continue
        if children_done:
            widths[id(item)] = 2 + max(len(item.items) - 1, 0) + sum(
                widths[id(child)] if isinstance(child, Seq) else len(_scalar_text(child))
                for child in item.items
            )
        elif id(item) not in widths:
            stack.append((item, True))
            stack.extend((child, False) for child in item.items)
    return widths


def _pretty(value: SExp, indent: int, width: int) -> str:
    widths = _flat_widths(value)
    out: list[str] = []
    stack: list[tuple[SExp, int] | str] = [(value, 0)]
    while stack:
        entry = stack.pop()
        if isinstance(entry, str):
            out.append(entry)
            continue
        item, level = entry
        if (
            not isinstance(item, Seq)
            or len(item) < 2
            or level * indent + widths[id(item)] <= width
        ):
            out.append(_compact(item))
            continue
        pad = "\n" + " " * ((level + 1) * indent)
        stack.append(")")
        for child in reversed(item.items[1:]):
            stack.append((child, level + 1))
            stack.append(pad)
        stack.append((item.items[0], level + 1))
        stack.append("(")
    return "".join(out)


def dumps(value: SExp, pretty: bool = False, indent: int = 2, width: int = _DEFAULT_WIDTH) -> str:
    """Render ``value`` in nested-list notation.

    Parameters
    ----------
    value:
        The value to render.
    pretty:
        When ``True``, lists that do not fit in ``width`` columns are
        broken over several lines, one element per line.
    indent:
        Spaces per nesting level in pretty mode.
    width:
        Target line width in pretty mode.

    Returns
    -------
    str
        The rendered text, without a trailing newline.
    """
    if pretty:
        return _pretty(value, indent, width)
    return _compact(value)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def _unquote(body: str, offset: int) -> str:
    chars: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            nxt = body[i + 1]
            if nxt not in _UNESCAPES:
                raise SexpSyntaxError(f"Unknown escape sequence \\{nxt}", offset + i)
            chars.append(_UNESCAPES[nxt])
            i += 2
            continue
        chars.append(ch)
        i += 1
    return "".join(chars)


def loads(text: str) -> SExp:
    """Read one value written in nested-list notation.

    Raises
    ------
    SexpSyntaxError
        If ``text`` is empty, unbalanced, contains more than one value or
        uses an unknown escape sequence.
    """
    stack: list[list[SExp]] = []
    result: list[SExp] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None:
            raise SexpSyntaxError(f"Unexpected character {text[pos]!r}", pos)
        kind = match.lastgroup
        token = match.group()
        start = pos
        pos = match.end()
        if kind == "space":
            continue
        if kind == "open":
            stack.append([])
            continue
        if kind == "close":
            if not stack:
                raise SexpSyntaxError("Unbalanced ')'", start)
            value: SExp = Seq(tuple(stack.pop()))
        elif kind == "qatom":
            value = Atom(_unquote(token[2:-1], start + 2))
        elif kind == "text":
            value = Text(_unquote(token[1:-1], start + 1))
        elif _INT.fullmatch(token):
            value = Int(int(token))
        else:
            value = Atom(token)
        if stack:
            stack[-1].append(value)
        elif result:
            raise SexpSyntaxError("Unexpected trailing value", start)
        else:
            result.append(value)
    if stack:
        raise SexpSyntaxError("Unbalanced '(': missing ')'", len(text))
    if not result:
        raise SexpSyntaxError("No value found", len(text))
    return result[0]
