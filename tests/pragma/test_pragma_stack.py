from __future__ import annotations

import pytest

from whisker.errors import InvalidPragmaNameError
from whisker.pragma import ImplicitIterator, Pragma, PragmaStack, SubViews, validate_pragma_name
from whisker.tokens import TokenKind

from tests.utils import FixedPragma, as_pragma


def test_builtins_satisfy_protocol() -> None:
    for p in (SubViews(), ImplicitIterator(), FixedPragma("X", None)):
        assert isinstance(p, Pragma)


def test_plain_object_is_not_a_pragma() -> None:
    assert not isinstance(object(), Pragma)


@pytest.mark.parametrize("name", ["SUB-VIEWS", "a", "A_1-b"])
def test_valid_names(name: str) -> None:
    assert validate_pragma_name(name) == name


@pytest.mark.parametrize("name", ["", "1A", "-A", "A B", "A.B", None, 3])
def test_invalid_names(name: object) -> None:
    with pytest.raises(InvalidPragmaNameError):
        validate_pragma_name(name)


def test_claimants_in_reverse_activation_order() -> None:
    stack = PragmaStack()
    a, b = as_pragma(FixedPragma("A", "a")), as_pragma(FixedPragma("B", "b"))
    stack.activate(a)
    stack.activate(b)
    assert list(stack.claimants(TokenKind.VARIABLE)) == [b, a]
    assert list(stack.claimants(TokenKind.SECTION)) == []
    assert stack.names == ("A", "B")


def test_reactivation_refreshes_order_and_options() -> None:
    stack = PragmaStack()
    a, b = as_pragma(FixedPragma("A", "a")), as_pragma(FixedPragma("B", "b"))
    stack.activate(a, {"k": "1"})
    stack.activate(b)
    stack.activate(a, {"k": "2"})
    assert stack.names == ("B", "A")
    assert len(stack) == 2
    assert stack.options("A") == {"k": "2"}


def test_deactivate() -> None:
    stack = PragmaStack()
    a = as_pragma(FixedPragma("A", "a"))
    stack.activate(a, {"k": "v"})
    assert stack.is_active("A")
    assert stack.deactivate("A") is a
    assert not stack.is_active("A")
    assert stack.options("A") == {}
    assert stack.deactivate("A") is None


def test_options_are_read_only() -> None:
    stack = PragmaStack()
    stack.activate(as_pragma(FixedPragma("A", "a")), {"k": "v"})
    with pytest.raises(TypeError):
        stack.options("A")["k"] = "w"  # type: ignore[index]


def test_deactivating_while_iterating_claimants() -> None:
    stack = PragmaStack()
    a, b = as_pragma(FixedPragma("A", "a")), as_pragma(FixedPragma("B", "b"))
    stack.activate(a)
    stack.activate(b)
    seen = []
    for p in stack.claimants(TokenKind.VARIABLE):
        stack.deactivate(p.name)
        seen.append(p.name)
    assert seen == ["B", "A"]
    assert len(stack) == 0
