"""仓库包

一个包有若干候选来源，安装时按声明顺序依次尝试，第一个成功的来源
成为 current_source。包按 package_name 判等，在 RepositorySystem 中唯一。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pkgrepo.core.repos import context as depctx
from pkgrepo.core.repos.context import DependencyContext

if TYPE_CHECKING:
    from pkgrepo.core.repos.manager import AbstractRepositoryManager
    from pkgrepo.core.repos.source import RepositorySource

logger = logging.getLogger(__name__)


class RepositoryPackage:
    """由某个仓库管理器管理的第三方包"""

    def __init__(
        self,
        manager: AbstractRepositoryManager,
        package_name: str,
        file_name: str | None = None,
        sources: list[RepositorySource] | None = None,
    ) -> None:
        self.package_name = package_name
        self.file_name = file_name
        self.sources: list[RepositorySource] = []
        self.current_source: RepositorySource | None = None

        self.installed = False
        self.defines_classes = True
        # None 表示依赖尚未计算（与"没有依赖"的空列表区分）
        self.dependencies: list[RepositoryPackage] | None = None
        # 上次安装记录中的依赖 URL，跳过安装时用于恢复 dependencies
        self.saved_dependencies: list[str] | None = None

        self.installed_time: int | None = None
        self.install_error: str | None = None
        self.rebuild_reason: str | None = None

        self.manager = manager
        self.installed_root = ""
        for src in sources or []:
            src.pkg = self
            self.sources.append(src)
        self.update_install_root(manager)

    # ------------------------------------------------------------------
    # 目录
    # ------------------------------------------------------------------

    def update_install_root(self, manager: AbstractRepositoryManager) -> None:
        """管理器变化时重新计算安装目录"""
        self.manager = manager
        root = Path(manager.package_root)
        if self.file_name is None:
            self.installed_root = str(root)
        else:
            self.installed_root = str(root / self.package_name)

    @property
    def version_root(self) -> Path:
        """版本相关的安装目录；普通包即 installed_root"""
        return Path(self.installed_root)

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def install(self, ctx: DependencyContext | None = None) -> str | None:
        """依次尝试各来源，返回 None 表示成功，否则返回汇总的错误信息

        递归保护由 RepositorySystem 的安装中集合负责，这里不预先标记 installed。
        """
        self.installed = False
        self.install_error = None
        previous = self.current_source
        errors: list[str] = []
        tried = False
        for src in list(self.sources):
            if not src.manager.is_active():
                continue
            tried = True
            err = src.manager.install(src, ctx)
            if err is None:
                self.set_current_source(src)
                self.installed = True
                self.install_error = None
                return None
            logger.debug("来源 %s 安装失败: %s", src.url, err)
            errors.append(err)

        if not tried:
            errors.append(f"没有可用的仓库管理器来安装包: {self.package_name}")
        self.current_source = previous
        self.install_error = "; ".join(errors)
        return self.install_error

    def update(self) -> str | None:
        if not self.installed or self.current_source is None:
            return f"包 {self.package_name} 未安装，跳过更新"
        return self.current_source.manager.update(self.current_source)

    def set_current_source(self, src: RepositorySource | None) -> None:
        self.current_source = src

    # ------------------------------------------------------------------
    # 来源
    # ------------------------------------------------------------------

    def add_new_source(self, src: RepositorySource) -> RepositorySource:
        """合并一个新来源，返回包内的规范来源对象

        相同 url 的来源只保留一个并合并上下文（深度小者胜），
        新来源插在第一个优先级低于它的来源之前，否则追加到末尾。
        """
        for i, old in enumerate(self.sources):
            if old == src:
                new_ctx = depctx.merge(old.ctx, src.ctx)
                if new_ctx is not old.ctx:
                    old.ctx = new_ctx
                    self.sources.pop(i)
                    self._insert_by_priority(old, limit=i)
                return old

        src.pkg = self
        self._insert_by_priority(src)
        return src

    def _insert_by_priority(
        self, src: RepositorySource, limit: int | None = None,
    ) -> None:
        pos = len(self.sources)
        for j, existing in enumerate(self.sources):
            if depctx.has_priority(src.ctx, existing.ctx):
                pos = j
                break
        if limit is not None:
            pos = min(pos, limit)
        self.sources.insert(pos, src)

    def find_source(self, url: str) -> RepositorySource | None:
        for src in self.sources:
            if src.url == url:
                return src
        return None

    # ------------------------------------------------------------------
    # Class path
    # ------------------------------------------------------------------

    def class_path_file_name(self) -> str | None:
        src = self.current_source or (self.sources[0] if self.sources else None)
        return src.class_path_file_name() if src is not None else None

    def class_path_entry(self) -> str | None:
        """该包自身贡献的 class path 条目，未安装或不含类时为 None"""
        if not self.installed or not self.defines_classes:
            return None
        name = self.class_path_file_name()
        return str(self.version_root / name) if name else str(self.version_root)

    def add_to_class_path(self, entries: dict[str, None], visited: set[str]) -> None:
        """深度优先前序遍历: 先自身，再按声明顺序遍历依赖"""
        if self.package_name in visited:
            return
        visited.add(self.package_name)
        entry = self.class_path_entry()
        if entry is not None:
            entries.setdefault(entry, None)
        for dep in self.dependencies or []:
            dep.add_to_class_path(entries, visited)

    def get_class_path(self) -> str | None:
        if not self.installed:
            return None
        entries: dict[str, None] = {}
        self.add_to_class_path(entries, set())
        return os.pathsep.join(entries)

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        deps = []
        for dep in self.dependencies or []:
            dep_src = dep.current_source or (dep.sources[0] if dep.sources else None)
            if dep_src is not None:
                deps.append(dep_src.url)
        return {
            "package_name": self.package_name,
            "file_name": self.file_name,
            "defines_classes": self.defines_classes,
            "installed_time": self.installed_time,
            "current_source": (
                self.current_source.to_record() if self.current_source else None
            ),
            "sources": [s.to_record() for s in self.sources],
            "dependencies": deps,
        }

    def update_from_saved(self, record: dict[str, Any]) -> bool:
        """比对上次安装的记录，一致则复用安装结果（不重新安装）

        只要求当前声明的来源是记录中来源列表的前缀：记录里可能还有
        安装时经由依赖追加的来源。
        """
        if record.get("package_name") != self.package_name:
            return False
        if record.get("file_name") != self.file_name:
            return False

        saved_urls = [s.get("url") for s in record.get("sources") or []]
        if not saved_urls or len(self.sources) > len(saved_urls):
            return False
        for src, saved_url in zip(self.sources, saved_urls):
            if src.url != saved_url:
                return False

        system = self.manager.system
        saved_current = record.get("current_source")
        if saved_current:
            src = self.find_source(saved_current.get("url", ""))
            if src is None:
                src = system.source_from_record(saved_current)
                if src is not None:
                    src = self.add_new_source(src)
            self.set_current_source(src)

        self.defines_classes = bool(record.get("defines_classes", True))
        self.installed_time = record.get("installed_time")

        self.saved_dependencies = list(record.get("dependencies") or [])
        return True

    def restore_saved_dependencies(self, ctx: DependencyContext | None = None) -> None:
        """跳过安装时，按记录重新加入并安装依赖（依赖本身通常也会命中缓存）"""
        if self.saved_dependencies is None:
            return
        system = self.manager.system
        dep_ctx = depctx.child(ctx, self.package_name)
        deps: list[RepositoryPackage] = []
        for dep_url in self.saved_dependencies:
            dep = system.add_package(dep_url, install=True, ctx=dep_ctx)
            if dep is not None:
                deps.append(dep)
        self.dependencies = deps
        self.saved_dependencies = None

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositoryPackage):
            return NotImplemented
        return other.package_name == self.package_name

    def __hash__(self) -> int:
        return hash(self.package_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.package_name!r})"

    def __str__(self) -> str:
        return self.package_name
