"""仓库系统

持有管理器注册表、包缓存、安装中集合和包记录存储，
是添加 / 安装包的唯一入口。所有状态都属于 RepositorySystem 实例，
同一进程内可以并存多个互不干扰的系统（测试即如此使用）。
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pkgrepo.core import messages
from pkgrepo.core.config import Config
from pkgrepo.core.exceptions import (
    InvalidPackageURLError,
    RepositoryNotFoundError,
    ValidationError,
)
from pkgrepo.core.messages import MessageSink
from pkgrepo.core.repos.context import DependencyCollection, DependencyContext
from pkgrepo.core.repos.manager import AbstractRepositoryManager
from pkgrepo.core.repos.manifest import PackageManifest
from pkgrepo.core.repos.package import RepositoryPackage
from pkgrepo.core.repos.source import RepositorySource
from pkgrepo.core.repos.store import PackageStore
from pkgrepo.core.repos.transports import (
    GitRepositoryManager,
    LocalRepositoryManager,
    ScpRepositoryManager,
    URLRepositoryManager,
)
from pkgrepo.utils.net import Downloader, UrllibDownloader
from pkgrepo.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)


class RepositorySystem:
    """包管理入口: URL → 管理器 → 包 → 安装"""

    def __init__(
        self,
        config: Config | None = None,
        sink: MessageSink | None = None,
        *,
        executor: CommandExecutor | None = None,
        downloader: Downloader | None = None,
    ) -> None:
        self.config = config or Config()
        self.msg = sink
        self.package_root = Path(self.config.package_root)
        self.verbose = self.config.info
        self.reinstall = self.config.reinstall
        self.update_mode = self.config.update
        self.store = PackageStore(self.config.index_root)
        self.executor = executor or LocalExecutor()
        self.downloader = downloader or UrllibDownloader(self.config.download_timeout)

        self._lock = threading.RLock()
        self._packages: dict[str, RepositoryPackage] = {}
        self._managers: dict[str, AbstractRepositoryManager] = {}
        self._in_progress: set[str] = set()

        self._register_builtin_managers()

    def _register_builtin_managers(self) -> None:
        # mvn 管理器依赖本模块导出的类型，在此延迟导入
        from pkgrepo.core.mvn.manager import MvnRepositoryManager

        common: dict[str, Any] = {"sink": self.msg, "verbose": self.verbose}
        root = self.package_root
        self.add_repository_manager(
            ScpRepositoryManager(self, root, executor=self.executor, **common))
        self.add_repository_manager(
            GitRepositoryManager(self, root, executor=self.executor, **common))
        self.add_repository_manager(
            URLRepositoryManager(self, root, downloader=self.downloader, **common))
        self.add_repository_manager(LocalRepositoryManager(self, root, **common))
        self.add_repository_manager(MvnRepositoryManager(
            self, root,
            repositories=self.config.maven_repositories,
            local_repository=self.config.maven_local_repository,
            use_local_repository=self.config.use_local_maven_repository,
            scopes=self.config.maven_scopes,
            downloader=self.downloader,
            **common,
        ))

    # ------------------------------------------------------------------
    # 管理器注册表
    # ------------------------------------------------------------------

    def add_repository_manager(
        self, manager: AbstractRepositoryManager,
    ) -> AbstractRepositoryManager | None:
        """按 manager_name（即 URL 协议）注册，返回被替换的旧管理器"""
        with self._lock:
            old = self._managers.get(manager.manager_name)
            self._managers[manager.manager_name] = manager
        return old

    def get_repository_manager(self, name: str) -> AbstractRepositoryManager | None:
        return self._managers.get(name)

    @property
    def managers(self) -> list[AbstractRepositoryManager]:
        return list(self._managers.values())

    def get_manager_from_url(self, url: str) -> AbstractRepositoryManager:
        """按 URL 协议前缀查找管理器

        Raises:
            InvalidPackageURLError: 缺少 "<协议>://" 前缀
            RepositoryNotFoundError: 协议没有对应的管理器
        """
        scheme, sep, _ = url.partition("://")
        if not sep or not scheme:
            raise InvalidPackageURLError(
                f"无效的包 URL，应为 <类型>://<位置>: {url}"
            )
        manager = self._managers.get(scheme)
        if manager is None:
            raise RepositoryNotFoundError(f"没有注册仓库管理器: {scheme} (URL: {url})")
        return manager

    def set_message_sink(self, sink: MessageSink | None) -> None:
        self.msg = sink
        for manager in self.managers:
            manager.set_message_sink(sink)

    # ------------------------------------------------------------------
    # 包缓存
    # ------------------------------------------------------------------

    def add_package(
        self,
        url: str,
        install: bool = True,
        ctx: DependencyContext | None = None,
    ) -> RepositoryPackage | None:
        """解析 URL 并加入包缓存，解析失败上报诊断并返回 None"""
        try:
            manager = self.get_manager_from_url(url)
            pkg = manager.create_package(url)
        except (ValidationError, RepositoryNotFoundError) as e:
            messages.error(self.msg, f"无法添加包: {e}", log=logger)
            return None
        for src in pkg.sources:
            src.ctx = ctx
        return self.add_package_instance(pkg, install, ctx)

    def add_package_instance(
        self,
        pkg: RepositoryPackage,
        install: bool = True,
        ctx: DependencyContext | None = None,
    ) -> RepositoryPackage:
        """加入一个已构造的包；同名包已存在时合并来源"""
        with self._lock:
            existing = self._packages.get(pkg.package_name)
            if existing is None:
                self._packages[pkg.package_name] = pkg
                target = pkg
            else:
                for src in pkg.sources:
                    existing.add_new_source(src)
                if existing.installed:
                    return existing
                target = existing
        if install:
            self.install_package(target, ctx)
        return target

    def get_package(self, name: str) -> RepositoryPackage | None:
        with self._lock:
            return self._packages.get(name)

    @property
    def packages(self) -> list[RepositoryPackage]:
        with self._lock:
            return list(self._packages.values())

    def source_from_record(self, record: dict[str, Any]) -> RepositorySource | None:
        """由持久化的来源记录重建来源，管理器未注册时返回 None"""
        manager = self._managers.get(record.get("manager", ""))
        url = record.get("url")
        if manager is None or not url:
            return None
        try:
            return manager.create_source(url, bool(record.get("unzip", False)))
        except ValidationError as e:
            logger.warning("无法恢复来源 %s: %s", url, e)
            return None

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def install_package(
        self, pkg: RepositoryPackage, ctx: DependencyContext | None = None,
    ) -> str | None:
        """安装包（含其依赖），返回 None 表示成功或无需安装

        传输失败只上报，不抛异常；正在安装中的包直接返回（循环依赖保护）。
        """
        name = pkg.package_name
        if pkg.installed:
            if self.update_mode:
                err = pkg.update()
                if err:
                    messages.warning(self.msg, f"更新包失败: {name} - {err}", log=logger)
            return None

        with self._lock:
            if name in self._in_progress:
                logger.debug("包 %s 正在安装，跳过循环依赖", name)
                return None
            self._in_progress.add(name)
        try:
            err = pkg.install(ctx)
        finally:
            with self._lock:
                self._in_progress.discard(name)

        if err is None:
            self.store.save(pkg)
            return None

        chain = f" 依赖链: {ctx}" if ctx is not None else ""
        messages.error(self.msg, f"安装仓库包失败: {name}{chain} - {err}", log=logger)
        return err

    def install_deps(self, collection: DependencyCollection) -> None:
        """按收集顺序安装依赖"""
        for dep in collection:
            self.install_package(dep.pkg, dep.ctx)

    def get_class_path(self, packages: Iterable[RepositoryPackage | str]) -> str:
        """多个根包的合并 class path，按首次发现的顺序去重"""
        entries: dict[str, None] = {}
        visited: set[str] = set()
        for item in packages:
            pkg = self.get_package(item) if isinstance(item, str) else item
            if pkg is None:
                logger.warning("class path 中的包不存在: %s", item)
                continue
            pkg.add_to_class_path(entries, visited)
        return os.pathsep.join(entries)

    def install_manifest(
        self, path: str | Path | None = None,
    ) -> list[RepositoryPackage]:
        """加载包清单并依次添加 / 安装其中的包

        Raises:
            ConfigError: 清单文件不存在或格式错误
        """
        manifest = PackageManifest.from_file(path or self.config.manifest)
        result: list[RepositoryPackage] = []
        for entry in manifest:
            manager = self._managers.get(entry.scheme)
            if manager is None:
                messages.error(
                    self.msg, f"包 {entry.name} 的类型未知: {entry.scheme}", log=logger)
                continue
            try:
                pkg = manager.create_package(entry.full_url)
            except ValidationError as e:
                messages.error(self.msg, f"包 {entry.name} 的 URL 无效: {e}", log=logger)
                continue
            if entry.file_name:
                pkg.file_name = entry.file_name
                pkg.update_install_root(manager)
            if entry.unzip is not None:
                for src in pkg.sources:
                    src.unzip = entry.unzip
            result.append(self.add_package_instance(pkg, install=entry.install))
        return result
