"""Shared test fixtures for parsetree.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. The ``something`` fixtures rebuild, node by
node, the reference class whose method trees are known::

    class Something
      def empty; end
      def stupid; return nil; end
      def simple(arg1); print arg1; puts((4 + 2).to_s); end
      ...
    end

Every statement of a method body is wrapped in a line marker, the way
the host front end emits them, so the same runtime serves tests with and
without markers.
"""
from __future__ import annotations

from typing import Any

import pytest

from parsetree.ast.locals import LocalTable
from parsetree.ast.nodes import (
    CapturedClosure,
    Node,
    OpSelector,
    Symbol,
    kind_from_name,
)
from parsetree.driver.runtime import Runtime, TypeInfo

SOURCE = "something.rb"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _n(kind: str, **roles: Any) -> Node:
    return Node.make(kind_from_name(kind), **roles)


def _lit(value: Any) -> Node:
    return _n("lit", lit=value)


def _str(value: str) -> Node:
    return _n("str", lit=value)


def _lvar(name: str) -> Node:
    return _n("lvar", vid=name)


def _dvar(name: str) -> Node:
    return _n("dvar", vid=name)


def _gvar(name: str) -> Node:
    return _n("gvar", vid=name)


def _const(name: str) -> Node:
    return _n("const", vid=name)


def _array(*items: Node) -> Node:
    return _n("array", items=items)


def _call(recv: Node, mid: str, *args: Node) -> Node:
    return _n("call", recv=recv, mid=mid, args=_array(*args) if args else None)


def _fcall(mid: str, *args: Node) -> Node:
    return _n("fcall", mid=mid, args=_array(*args) if args else None)


def _vcall(mid: str) -> Node:
    return _n("vcall", mid=mid)


def _lasgn(name: str, value: Node | None = None) -> Node:
    return _n("lasgn", vid=name, value=value)


def _dasgn_curr(name: str, value: Node | None = None) -> Node:
    return _n("dasgn_curr", vid=name, value=value)


def _return(value: Node | None = None) -> Node:
    return _n("return", stts=value)


def _if(cond: Node, then: Node | None, else_: Node | None = None) -> Node:
    return _n("if", cond=cond, body=then, else_=else_)


def _block(*statements: Node) -> Node:
    return _n("block", statements=statements)


def _iter(iterator: Node, var: Any, body: Node | None) -> Node:
    return _n("iter", iter=iterator, var=var, body=body)


def _when(head: Node, body: Node | None, next_: Node | None = None) -> Node:
    return _n("when", head=head, body=body, next=next_)


def _evstr(body: Node) -> Node:
    return _n("evstr", body=body)


def _scope(
    stmts: tuple[Node, ...],
    *,
    required: tuple[str, ...] = (),
    locals_: tuple[str, ...] = (),
    opt: Node | None = None,
    rest: int = -1,
    line: int = 1,
) -> Node:
    """A method scope: ``(scope (block (args ...) STMTS...))``."""
    args = _n("args", cnt=len(required), opt=opt, rest=rest)
    marked = [
        _n("newline", next=stmt, line=line + offset, file=SOURCE)
        for offset, stmt in enumerate(stmts, start=1)
    ]
    return _n(
        "scope",
        table=LocalTable.of(*required, *locals_),
        body=_block(args, *marked),
    )


def _method(body: Node) -> Node:
    return _n("method", noex=0, body=body)


# ---------------------------------------------------------------------------
# The reference class
# ---------------------------------------------------------------------------


def _bmethod_maker_scope() -> Node:
    return _scope(
        (
            _iter(
                _fcall("define_method", _lit(Symbol("bmethod_added"))),
                _dasgn_curr("x"),
                _call(_dvar("x"), "+", _lit(1)),
            ),
        ),
        locals_=("x",),
    )


def _iteration_body() -> Node:
    return _scope(
        (
            _lasgn("array", _array(_lit(1), _lit(2), _lit(3))),
            _iter(
                _call(_lvar("array"), "each"),
                _dasgn_curr("x"),
                _block(
                    _dasgn_curr("y"),
                    _dasgn_curr("y", _call(_dvar("x"), "to_s")),
                    _fcall("puts", _dvar("y")),
                ),
            ),
        ),
        locals_=("array",),
    )


def _op_asgn_body() -> Node:
    def op_asgn1(index: int, operator: str, value: int) -> Node:
        # Stored as [value, *index].
        return _n(
            "op_asgn1",
            recv=_lvar("b"),
            mid=operator,
            args=_array(_lit(value), _lit(index)),
        )

    def op_asgn2(recv: Node, attr: str, operator: str, value: int) -> Node:
        return _n(
            "op_asgn2",
            recv=recv,
            selector=OpSelector(attr, operator),
            value=_lit(value),
        )

    return _scope(
        (
            _lasgn("a", _lit(0)),
            _n("op_asgn_or", head=_lvar("a"), value=_lasgn("a", _lit(1))),
            _n("op_asgn_and", head=_lvar("a"), value=_lasgn("a", _lit(2))),
            _lasgn("b", _n("zarray")),
            op_asgn1(1, "||", 10),
            op_asgn1(2, "&&", 11),
            op_asgn1(3, "+", 12),
            _lasgn("s", _call(_const("Struct"), "new", _lit(Symbol("var")))),
            _lasgn("c", _call(_lvar("s"), "new", _n("nil"))),
            op_asgn2(_lvar("c"), "var=", "||", 20),
            op_asgn2(_lvar("c"), "var=", "&&", 21),
            op_asgn2(_lvar("c"), "var=", "+", 22),
            op_asgn2(_call(_call(_lvar("c"), "d"), "e"), "f=", "||", 42),
            _return(_lvar("a")),
        ),
        locals_=("a", "b", "s", "c"),
    )


def _case_body() -> Node:
    first = _n(
        "case",
        head=_lvar("var"),
        body=_when(
            _array(_lit(1)),
            _block(
                _fcall("puts", _str("something")),
                _lasgn("result", _str("red")),
            ),
            _when(
                _array(_lit(2), _lit(3)),
                _lasgn("result", _str("yellow")),
                _when(
                    _array(_lit(4)),
                    None,
                    _lasgn("result", _str("green")),
                ),
            ),
        ),
    )
    second = _n(
        "case",
        head=_lvar("result"),
        body=_when(
            _array(_str("red")),
            _lasgn("var", _lit(1)),
            _when(
                _array(_str("yellow")),
                _lasgn("var", _lit(2)),
                _when(_array(_str("green")), _lasgn("var", _lit(3))),
            ),
        ),
    )
    return _scope(
        (
            _lasgn("var", _lit(2)),
            _lasgn("result", _str("")),
            first,
            second,
            _return(_lvar("result")),
        ),
        locals_=("var", "result"),
    )


def _bbegin_body() -> Node:
    rescue = _n(
        "rescue",
        head=_lit(1),
        resq=_n(
            "resbody",
            args=_array(_const("SyntaxError")),
            body=_block(_lasgn("e1", _gvar("$!")), _lit(2)),
            next=_n(
                "resbody",
                args=_array(_const("Exception")),
                body=_block(_lasgn("e2", _gvar("$!")), _lit(3)),
            ),
        ),
        else_=_lit(4),
    )
    return _scope(
        (_n("begin", body=_n("ensure", head=rescue, ensr=_lit(5))),),
        locals_=("e1", "e2"),
    )


def _multiply_body(
    *,
    required: tuple[str, ...],
    locals_: tuple[str, ...],
    opt: Node | None = None,
    rest: int = -1,
) -> Node:
    return _scope(
        (
            _lasgn(
                "arg3",
                _call(_call(_lvar("arg1"), "*", _lvar("arg2")), "*", _lit(7)),
            ),
            _fcall("puts", _call(_lvar("arg3"), "to_s")),
            _return(_str("foo")),
        ),
        required=required,
        locals_=locals_,
        opt=opt,
        rest=rest,
    )


def _compare(arg: str, operator: str, value: int) -> Node:
    return _call(_lvar(arg), operator, _lit(value))


def build_something() -> dict[str, Node]:
    """Method bodies of the reference class, by method name."""
    methods: dict[str, Node] = {
        "empty": _scope((_n("nil"),)),
        "stupid": _scope((_return(_n("nil")),)),
        "simple": _scope(
            (
                _fcall("print", _lvar("arg1")),
                _fcall("puts", _call(_call(_lit(4), "+", _lit(2)), "to_s")),
            ),
            required=("arg1",),
        ),
        "global": _scope((_call(_gvar("$stderr"), "fputs", _str("blah")),)),
        "lasgn_call": _scope(
            (_lasgn("c", _call(_lit(2), "+", _lit(3))),),
            locals_=("c",),
        ),
        "conditional1": _scope(
            (_if(_compare("arg1", "==", 0), _return(_lit(1))),),
            required=("arg1",),
        ),
        "conditional2": _scope(
            (_if(_compare("arg1", "==", 0), None, _return(_lit(2))),),
            required=("arg1",),
        ),
        "conditional3": _scope(
            (_if(_compare("arg1", "==", 0), _return(_lit(3)), _return(_lit(4))),),
            required=("arg1",),
        ),
        "conditional4": _scope(
            (
                _if(
                    _compare("arg1", "==", 0),
                    _return(_lit(2)),
                    _if(_compare("arg1", "<", 0), _return(_lit(3)), _return(_lit(4))),
                ),
            ),
            required=("arg1",),
        ),
        "iteration1": _iteration_body(),
        "iteration2": _iteration_body(),
        "iteration6": _scope(
            (
                _iter(
                    _call(_lit(3), "downto", _lit(1)),
                    0,
                    _fcall("puts", _str("hello")),
                ),
            ),
        ),
        "opt_args": _multiply_body(
            required=("arg1",),
            locals_=("arg2", "args", "arg3"),
            opt=_block(_lasgn("arg2", _lit(42))),
            rest=4,
        ),
        "multi_args": _multiply_body(required=("arg1", "arg2"), locals_=("arg3",)),
        "bools": _scope(
            (
                _if(
                    _call(_lvar("arg1"), "nil?"),
                    _return(_n("false")),
                    _return(_n("true")),
                ),
            ),
            required=("arg1",),
        ),
        "case_stmt": _case_body(),
        "eric_is_stubborn": _scope(
            (
                _lasgn("var", _lit(42)),
                _lasgn("var2", _call(_lvar("var"), "to_s")),
                _call(_gvar("$stderr"), "fputs", _lvar("var2")),
                _return(_lvar("var2")),
            ),
            locals_=("var", "var2"),
        ),
        "interpolated": _scope(
            (
                _lasgn("var", _lit(14)),
                _lasgn(
                    "var2",
                    _n(
                        "dstr",
                        lit="var is ",
                        parts=(_evstr(_lvar("var")), _str(". So there.")),
                    ),
                ),
            ),
            locals_=("var", "var2"),
        ),
        "unknown_args": _scope(
            (_return(_lvar("arg1")),),
            required=("arg1", "arg2"),
        ),
        "bbegin": _bbegin_body(),
        "bbegin_no_exception": _scope(
            (
                _n(
                    "begin",
                    body=_n(
                        "rescue",
                        head=_lit(5),
                        resq=_n("resbody", body=_lit(6)),
                    ),
                ),
            ),
        ),
        "op_asgn": _op_asgn_body(),
        "determine_args": _scope(
            (
                _call(
                    _lit(5),
                    "==",
                    _fcall("unknown_args", _lit(4), _str("known")),
                ),
            ),
        ),
        "bmethod_added": _n(
            "bmethod",
            closure=CapturedClosure(
                params=_dasgn_curr("x"),
                body=_call(_dvar("x"), "+", _lit(1)),
            ),
        ),
        "dmethod_added": _n(
            "dmethod",
            closure=CapturedClosure(
                params=None,
                body=_bmethod_maker_scope(),
                owner="bmethod_maker",
            ),
        ),
        "attrasgn": _scope(
            (
                _n(
                    "attrasgn",
                    recv=_lit(42),
                    mid="method=",
                    args=_array(_vcall("y")),
                ),
                _n(
                    "attrasgn",
                    recv=_n("self"),
                    mid="type=",
                    args=_array(_call(_vcall("other"), "type")),
                ),
            ),
        ),
        "whiles": _scope(
            (
                _n(
                    "while",
                    cond=_n("false"),
                    body=_fcall("puts", _str("false")),
                    state=1,
                ),
                _n(
                    "while",
                    cond=_n("false"),
                    body=_fcall("puts", _str("true")),
                    state=0,
                ),
            ),
        ),
        "xstr": _scope((_n("xstr", lit="touch 5"),)),
        "dxstr": _scope((_n("dxstr", lit="touch ", parts=(_evstr(_lit(5)),)),)),
    }
    return {name: _method(body) for name, body in methods.items()}


_ITERATION_BODY = (
    "(scope (block (args)"
    " (lasgn array (array (lit 1) (lit 2) (lit 3)))"
    " (iter (call (lvar array) each) (dasgn_curr x)"
    " (block (dasgn_curr y) (dasgn_curr y (call (dvar x) to_s))"
    " (fcall puts (array (dvar y)))))))"
)

_MULTIPLY = (
    " (lasgn arg3 (call (call (lvar arg1) * (array (lvar arg2))) * (array (lit 7))))"
    ' (fcall puts (array (call (lvar arg3) to_s))) (return (str "foo"))))'
)

SOMETHING_TREES: dict[str, str] = {
    "empty": "(defn empty (scope (block (args) (nil))))",
    "stupid": "(defn stupid (scope (block (args) (return (nil)))))",
    "simple": (
        "(defn simple (scope (block (args arg1)"
        " (fcall print (array (lvar arg1)))"
        " (fcall puts (array (call (call (lit 4) + (array (lit 2))) to_s))))))"
    ),
    "global": (
        '(defn global (scope (block (args) (call (gvar $stderr) fputs (array (str "blah"))))))'
    ),
    "lasgn_call": (
        "(defn lasgn_call (scope (block (args) (lasgn c (call (lit 2) + (array (lit 3)))))))"
    ),
    "conditional1": (
        "(defn conditional1 (scope (block (args arg1)"
        " (if (call (lvar arg1) == (array (lit 0))) (return (lit 1)) nil))))"
    ),
    "conditional2": (
        "(defn conditional2 (scope (block (args arg1)"
        " (if (call (lvar arg1) == (array (lit 0))) nil (return (lit 2))))))"
    ),
    "conditional3": (
        "(defn conditional3 (scope (block (args arg1)"
        " (if (call (lvar arg1) == (array (lit 0))) (return (lit 3)) (return (lit 4))))))"
    ),
    "conditional4": (
        "(defn conditional4 (scope (block (args arg1)"
        " (if (call (lvar arg1) == (array (lit 0))) (return (lit 2))"
        " (if (call (lvar arg1) < (array (lit 0))) (return (lit 3)) (return (lit 4)))))))"
    ),
    "iteration1": f"(defn iteration1 {_ITERATION_BODY})",
    "iteration2": f"(defn iteration2 {_ITERATION_BODY})",
    "iteration6": (
        "(defn iteration6 (scope (block (args)"
        ' (iter (call (lit 3) downto (array (lit 1))) nil (fcall puts (array (str "hello")))))))'
    ),
    "opt_args": (
        "(defn opt_args (scope (block (args arg1 arg2 *args (block (lasgn arg2 (lit 42))))"
        + _MULTIPLY
        + ")"
    ),
    "multi_args": "(defn multi_args (scope (block (args arg1 arg2)" + _MULTIPLY + ")",
    "bools": (
        "(defn bools (scope (block (args arg1)"
        " (if (call (lvar arg1) nil?) (return (false)) (return (true))))))"
    ),
    "case_stmt": (
        "(defn case_stmt (scope (block (args)"
        " (lasgn var (lit 2))"
        ' (lasgn result (str ""))'
        " (case (lvar var)"
        ' (when (array (lit 1)) (block (fcall puts (array (str "something")))'
        ' (lasgn result (str "red"))))'
        ' (when (array (lit 2) (lit 3)) (lasgn result (str "yellow")))'
        " (when (array (lit 4)) nil)"
        ' (lasgn result (str "green")))'
        " (case (lvar result)"
        ' (when (array (str "red")) (lasgn var (lit 1)))'
        ' (when (array (str "yellow")) (lasgn var (lit 2)))'
        ' (when (array (str "green")) (lasgn var (lit 3)))'
        " nil)"
        " (return (lvar result)))))"
    ),
    "eric_is_stubborn": (
        "(defn eric_is_stubborn (scope (block (args)"
        " (lasgn var (lit 42))"
        " (lasgn var2 (call (lvar var) to_s))"
        " (call (gvar $stderr) fputs (array (lvar var2)))"
        " (return (lvar var2)))))"
    ),
    "interpolated": (
        "(defn interpolated (scope (block (args)"
        " (lasgn var (lit 14))"
        ' (lasgn var2 (dstr "var is " (lvar var) (str ". So there."))))))'
    ),
    "unknown_args": "(defn unknown_args (scope (block (args arg1 arg2) (return (lvar arg1)))))",
    "bbegin": (
        "(defn bbegin (scope (block (args)"
        " (begin (ensure (rescue (lit 1)"
        " (resbody (array (const SyntaxError)) (block (lasgn e1 (gvar $!)) (lit 2))"
        " (resbody (array (const Exception)) (block (lasgn e2 (gvar $!)) (lit 3))))"
        " (lit 4))"
        " (lit 5))))))"
    ),
    "bbegin_no_exception": (
        "(defn bbegin_no_exception (scope (block (args)"
        " (begin (rescue (lit 5) (resbody nil (lit 6)))))))"
    ),
    "op_asgn": (
        "(defn op_asgn (scope (block (args)"
        " (lasgn a (lit 0))"
        " (op_asgn_or (lvar a) (lasgn a (lit 1)))"
        " (op_asgn_and (lvar a) (lasgn a (lit 2)))"
        " (lasgn b (zarray))"
        " (op_asgn1 (lvar b) (array (lit 1)) || (lit 10))"
        " (op_asgn1 (lvar b) (array (lit 2)) && (lit 11))"
        " (op_asgn1 (lvar b) (array (lit 3)) + (lit 12))"
        " (lasgn s (call (const Struct) new (array (lit var))))"
        " (lasgn c (call (lvar s) new (array (nil))))"
        " (op_asgn2 (lvar c) var= || (lit 20))"
        " (op_asgn2 (lvar c) var= && (lit 21))"
        " (op_asgn2 (lvar c) var= + (lit 22))"
        " (op_asgn2 (call (call (lvar c) d) e) f= || (lit 42))"
        " (return (lvar a)))))"
    ),
    "determine_args": (
        "(defn determine_args (scope (block (args)"
        ' (call (lit 5) == (array (fcall unknown_args (array (lit 4) (str "known"))))))))'
    ),
    "bmethod_added": (
        "(defn bmethod_added (bmethod (dasgn_curr x) (call (dvar x) + (array (lit 1)))))"
    ),
    "dmethod_added": (
        "(defn dmethod_added (dmethod bmethod_maker (scope (block (args)"
        " (iter (fcall define_method (array (lit bmethod_added))) (dasgn_curr x)"
        " (call (dvar x) + (array (lit 1))))))))"
    ),
    "attrasgn": (
        "(defn attrasgn (scope (block (args)"
        " (attrasgn (lit 42) method= (array (vcall y)))"
        " (attrasgn (self) type= (array (call (vcall other) type))))))"
    ),
    "whiles": (
        "(defn whiles (scope (block (args)"
        ' (while (false) (fcall puts (array (str "false"))) true)'
        ' (while (false) (fcall puts (array (str "true"))) false))))'
    ),
    "xstr": '(defn xstr (scope (block (args) (xstr "touch 5"))))',
    "dxstr": '(defn dxstr (scope (block (args) (dxstr "touch " (lit 5)))))',
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "parsetree"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "1.3.0"


@pytest.fixture()
def something() -> TypeInfo:
    """The reference class with every method of ``SOMETHING_TREES``."""
    return TypeInfo("Something", "Object", methods=build_something())


@pytest.fixture()
def something_with_initialize() -> TypeInfo:
    """A class with two empty methods."""
    return TypeInfo(
        "SomethingWithInitialize",
        "Object",
        methods={
            "initialize": _method(_scope((_n("nil"),))),
            "protected_meth": _method(_scope((_n("nil"),))),
        },
    )


@pytest.fixture()
def runtime(something: TypeInfo, something_with_initialize: TypeInfo) -> Runtime:
    """A runtime holding both reference classes."""
    return Runtime([something, something_with_initialize])


@pytest.fixture()
def something_trees() -> dict[str, str]:
    """Expected ``(defn ...)`` text of every reference method."""
    return dict(SOMETHING_TREES)
