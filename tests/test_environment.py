import pytest

from ream.types import Environment


def test_define_and_lookup_through_outer_frames():
    outer = Environment()
    outer.define("x", 1)
    inner = outer.extend()
    inner.define("y", 2)
    assert inner.lookup("x") == 1
    assert inner.lookup("y") == 2
    assert "y" not in outer
    assert inner.find("x") is outer


def test_inner_definitions_shadow_without_mutating():
    outer = Environment()
    outer.define("x", 1)
    inner = outer.extend()
    inner.define("x", 2)
    assert inner.lookup("x") == 2
    assert outer.lookup("x") == 1


def test_lookup_of_unbound_name_raises_key_error():
    with pytest.raises(KeyError):
        Environment().extend().lookup("missing")


def test_annotations_are_per_frame():
    outer = Environment()
    outer.annotate("f", "doc", "outer doc")
    inner = outer.extend()
    assert inner.annotation("f", "doc") is None
    assert outer.annotation("f", "doc") == "outer doc"


def test_repr_lists_names_by_frame():
    outer = Environment()
    outer.define("b", 1)
    outer.define("a", 2)
    inner = outer.extend()
    inner.define("c", 3)
    assert repr(inner) == "<Environment [0: c] [1: a, b]>"
