"""仓库包测试: 来源回退、来源合并、class path 遍历、记录比对"""

from __future__ import annotations

import os

import pytest

from pkgrepo.core.repos import context as depctx
from pkgrepo.core.repos.package import RepositoryPackage

from fakes import add_counting_manager


@pytest.fixture()
def mgr(system):
    return add_counting_manager(system)


def _installed(mgr, name: str, deps=()) -> RepositoryPackage:
    pkg = mgr.create_package(f"fake://{name}")
    pkg.installed = True
    pkg.dependencies = list(deps)
    return pkg


class TestInstallSources:
    def test_falls_back_to_next_source(self, system) -> None:
        bad = add_counting_manager(system, "bad")
        good = add_counting_manager(system, "good")
        bad.fail = True
        pkg = RepositoryPackage(bad, "alpha", "alpha", [
            bad.create_source("bad://alpha"),
            good.create_source("good://alpha"),
        ])
        assert pkg.install() is None
        assert pkg.installed
        assert pkg.current_source.url == "good://alpha"
        assert pkg.install_error is None
        assert bad.fetches == 1
        assert good.fetches == 1

    def test_first_success_stops(self, system) -> None:
        first = add_counting_manager(system, "first")
        second = add_counting_manager(system, "second")
        pkg = RepositoryPackage(first, "alpha", "alpha", [
            first.create_source("first://alpha"),
            second.create_source("second://alpha"),
        ])
        assert pkg.install() is None
        assert second.fetches == 0

    def test_all_sources_fail(self, system) -> None:
        a = add_counting_manager(system, "a")
        b = add_counting_manager(system, "b")
        a.fail = b.fail = True
        pkg = RepositoryPackage(a, "alpha", "alpha", [
            a.create_source("a://alpha"),
            b.create_source("b://alpha"),
        ])
        err = pkg.install()
        assert err == "拉取失败: a://alpha; 拉取失败: b://alpha"
        assert not pkg.installed
        assert pkg.install_error == err

    def test_inactive_manager(self, mgr) -> None:
        mgr.active = False
        pkg = mgr.create_package("fake://alpha")
        err = pkg.install()
        assert err == "没有可用的仓库管理器来安装包: alpha"
        assert mgr.fetches == 0


class TestAddNewSource:
    def test_new_source_appended_by_depth(self, mgr) -> None:
        deep = depctx.child(depctx.child(None, "a"), "b")
        pkg = mgr.create_package("fake://one/x")
        pkg.sources[0].ctx = depctx.child(None, "a")

        appended = pkg.add_new_source(mgr.create_source("fake://two/x", ctx=deep))
        assert [s.url for s in pkg.sources] == ["fake://one/x", "fake://two/x"]
        assert appended.pkg is pkg

        pkg.add_new_source(mgr.create_source("fake://root/x"))
        assert pkg.sources[0].url == "fake://root/x"

    def test_same_url_merges_context(self, mgr) -> None:
        ctx2 = depctx.child(depctx.child(None, "a"), "b")
        ctx3 = ctx2.child("c")
        pkg = mgr.create_package("fake://one/x")
        pkg.sources[0].ctx = ctx2
        two = mgr.create_source("fake://two/x", ctx=ctx3)
        pkg.add_new_source(two)

        ctx1 = depctx.child(None, "z")
        merged = pkg.add_new_source(mgr.create_source("fake://two/x", ctx=ctx1))
        assert merged is two
        assert merged.ctx is ctx1
        assert [s.url for s in pkg.sources] == ["fake://two/x", "fake://one/x"]
        assert len(pkg.sources) == 2

    def test_same_url_deeper_context_ignored(self, mgr) -> None:
        pkg = mgr.create_package("fake://one/x")
        original = pkg.sources[0]
        merged = pkg.add_new_source(
            mgr.create_source("fake://one/x", ctx=depctx.child(None, "a")))
        assert merged is original
        assert merged.ctx is None


class TestClassPath:
    def test_diamond_order(self, mgr) -> None:
        d = _installed(mgr, "d")
        b = _installed(mgr, "b", [d])
        c = _installed(mgr, "c", [d])
        a = _installed(mgr, "a", [b, c])
        expected = [str(mgr.package_root / n) for n in ("a", "b", "d", "c")]
        assert a.get_class_path() == os.pathsep.join(expected)

    def test_no_classes_skipped_but_deps_kept(self, mgr) -> None:
        lib = _installed(mgr, "lib")
        bom = _installed(mgr, "bom", [lib])
        bom.defines_classes = False
        assert bom.get_class_path() == str(mgr.package_root / "lib")

    def test_not_installed(self, mgr) -> None:
        pkg = mgr.create_package("fake://a")
        assert pkg.get_class_path() is None
        assert pkg.class_path_entry() is None

    def test_cycle_terminates(self, mgr) -> None:
        a = _installed(mgr, "a")
        b = _installed(mgr, "b", [a])
        a.dependencies = [b]
        assert a.get_class_path() == os.pathsep.join(
            [str(mgr.package_root / "a"), str(mgr.package_root / "b")])


class TestUpdateFromSaved:
    def _record(self, **overrides) -> dict:
        record = {
            "package_name": "x",
            "file_name": "x",
            "defines_classes": False,
            "installed_time": 123,
            "current_source": {"manager": "fake", "url": "fake://two/x", "unzip": False},
            "sources": [
                {"manager": "fake", "url": "fake://one/x", "unzip": False},
                {"manager": "fake", "url": "fake://two/x", "unzip": False},
            ],
            "dependencies": ["fake://dep"],
        }
        record.update(overrides)
        return record

    def test_prefix_matches(self, mgr) -> None:
        pkg = mgr.create_package("fake://one/x")
        assert pkg.update_from_saved(self._record())
        assert pkg.current_source.url == "fake://two/x"
        assert [s.url for s in pkg.sources] == ["fake://one/x", "fake://two/x"]
        assert pkg.defines_classes is False
        assert pkg.installed_time == 123
        assert pkg.saved_dependencies == ["fake://dep"]

    def test_different_first_source(self, mgr) -> None:
        pkg = mgr.create_package("fake://two/x")
        assert not pkg.update_from_saved(self._record())

    def test_file_name_changed(self, mgr) -> None:
        pkg = mgr.create_package("fake://one/x")
        assert not pkg.update_from_saved(self._record(file_name="y"))

    def test_more_sources_than_saved(self, mgr) -> None:
        pkg = mgr.create_package("fake://one/x")
        pkg.add_new_source(mgr.create_source("fake://two/x"))
        pkg.add_new_source(mgr.create_source("fake://three/x"))
        assert not pkg.update_from_saved(self._record())
