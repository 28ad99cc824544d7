"""依赖上下文与待安装依赖集合

DependencyContext 记录一个包请求在依赖图中的深度和来源链，
同一个包经多条路径被请求时，深度小（离构建根更近）的优先。
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkgrepo.core.repos.package import RepositoryPackage


@dataclass(frozen=True)
class DependencyContext:
    """不可变的依赖链节点"""

    depth: int
    from_pkg: str | None = None
    parent: DependencyContext | None = None

    def child(self, pkg_name: str) -> DependencyContext:
        return DependencyContext(self.depth + 1, pkg_name, self)

    def including_packages(self) -> list[str]:
        """从根包开始，列出引入该依赖的包名链"""
        names = self.parent.including_packages() if self.parent else []
        if self.from_pkg is not None:
            names.append(self.from_pkg)
        return names

    def __str__(self) -> str:
        return " -> ".join(self.including_packages())


def child(ctx: DependencyContext | None, pkg_name: str) -> DependencyContext:
    """ctx 为 None（构建根）时返回深度为 1 的上下文"""
    if ctx is None:
        return DependencyContext(1, pkg_name, None)
    return ctx.child(pkg_name)


def val(ctx: DependencyContext | None) -> int:
    return 0 if ctx is None else ctx.depth


def merge(
    ctx1: DependencyContext | None, ctx2: DependencyContext | None,
) -> DependencyContext | None:
    """返回深度不大于另一方的上下文，相等时保留 ctx1"""
    return ctx1 if val(ctx1) <= val(ctx2) else ctx2


def has_priority(
    ctx1: DependencyContext | None, ctx2: DependencyContext | None,
) -> bool:
    # 深度更小者优先
    return val(ctx1) < val(ctx2)


@dataclass
class PackageDependency:
    pkg: RepositoryPackage
    ctx: DependencyContext | None


class DependencyCollection:
    """保持插入顺序的 (包, 上下文) 集合，每个包只保留一项"""

    def __init__(self) -> None:
        self._deps: dict[str, PackageDependency] = {}

    def add_dependency(
        self, pkg: RepositoryPackage, ctx: DependencyContext | None,
    ) -> PackageDependency:
        existing = self._deps.get(pkg.package_name)
        if existing is None:
            dep = PackageDependency(pkg, ctx)
            self._deps[pkg.package_name] = dep
            return dep
        if has_priority(ctx, existing.ctx):
            existing.ctx = ctx
        return existing

    def get(self, pkg_name: str) -> PackageDependency | None:
        return self._deps.get(pkg_name)

    @property
    def needed_deps(self) -> list[PackageDependency]:
        return list(self._deps.values())

    def __iter__(self) -> Iterator[PackageDependency]:
        return iter(list(self._deps.values()))

    def __len__(self) -> int:
        return len(self._deps)

    def __contains__(self, item: object) -> bool:
        name = item if isinstance(item, str) else getattr(item, "package_name", None)
        return name in self._deps
