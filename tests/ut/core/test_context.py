"""依赖上下文与依赖集合测试"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from pkgrepo.core.repos import context as depctx
from pkgrepo.core.repos.context import DependencyCollection, DependencyContext


class _Pkg:
    def __init__(self, name: str) -> None:
        self.package_name = name


class TestDependencyContext:
    def test_child_of_root_has_depth_one(self) -> None:
        ctx = depctx.child(None, "junit/junit")
        assert ctx.depth == 1
        assert ctx.from_pkg == "junit/junit"
        assert ctx.parent is None

    def test_chain(self) -> None:
        ctx = depctx.child(depctx.child(None, "a"), "b").child("c")
        assert ctx.depth == 3
        assert ctx.including_packages() == ["a", "b", "c"]
        assert str(ctx) == "a -> b -> c"

    def test_immutable(self) -> None:
        ctx = DependencyContext(1, "a")
        with pytest.raises(FrozenInstanceError):
            ctx.depth = 5  # type: ignore[misc]

    def test_val(self) -> None:
        assert depctx.val(None) == 0
        assert depctx.val(DependencyContext(4)) == 4

    def test_merge_prefers_lower_depth(self) -> None:
        shallow = DependencyContext(1, "a")
        deep = DependencyContext(3, "c")
        assert depctx.merge(deep, shallow) is shallow
        assert depctx.merge(shallow, deep) is shallow
        assert depctx.merge(None, shallow) is None

    def test_merge_tie_keeps_first(self) -> None:
        first = DependencyContext(2, "x")
        second = DependencyContext(2, "y")
        assert depctx.merge(first, second) is first

    def test_has_priority_is_strict(self) -> None:
        assert depctx.has_priority(None, DependencyContext(1))
        assert not depctx.has_priority(DependencyContext(1), DependencyContext(1))
        assert not depctx.has_priority(DependencyContext(2), None)


class TestDependencyCollection:
    def test_one_entry_per_package(self) -> None:
        coll = DependencyCollection()
        a = _Pkg("a")
        coll.add_dependency(a, DependencyContext(2))
        coll.add_dependency(a, DependencyContext(3))
        assert len(coll) == 1
        assert coll.get("a").ctx.depth == 2

    def test_higher_priority_replaces_ctx(self) -> None:
        coll = DependencyCollection()
        a = _Pkg("a")
        coll.add_dependency(a, DependencyContext(3))
        coll.add_dependency(a, DependencyContext(1))
        assert coll.get("a").ctx.depth == 1

    def test_order_and_membership(self) -> None:
        coll = DependencyCollection()
        for name in ("b", "a", "c"):
            coll.add_dependency(_Pkg(name), None)
        assert [d.pkg.package_name for d in coll] == ["b", "a", "c"]
        assert "a" in coll
        assert _Pkg("c") in coll
        assert "z" not in coll
        assert len(coll.needed_deps) == 3
