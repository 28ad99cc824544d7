"""仓库管理器基类

每种传输方式（git / scp / url / local / mvn）一个管理器，
URL 的协议前缀即管理器名称。

安装缓存策略（install）:
  1. 版本目录下的 .scPackageInstalled 记录上次成功安装的时间（毫秒）
  2. 来源的最后修改时间未知（None）且存在安装标记 → 视为已安装，不再拉取
  3. 最后修改时间已知且安装时间严格大于它 → 视为最新
  4. 其余情况执行 do_install；失败删除标记（下次重试），成功写入当前时间
"""

from __future__ import annotations

import abc
import logging
import shutil
import time
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pkgrepo.core import messages
from pkgrepo.core.exceptions import PkgRepoError, RecordError
from pkgrepo.core.messages import MessageSink
from pkgrepo.core.repos.package import RepositoryPackage
from pkgrepo.core.repos.source import RepositorySource

if TYPE_CHECKING:
    from pkgrepo.core.repos.context import DependencyContext
    from pkgrepo.core.repos.system import RepositorySystem

logger = logging.getLogger(__name__)

TAG_FILE_NAME = ".scPackageInstalled"
REPLACED_DIR_NAME = ".replacedPackages"


class ManagerKind(str, Enum):
    """内置传输方式（封闭集合），值即 URL 协议名"""

    SCP = "scp"
    GIT = "git"
    URL = "url"
    LOCAL = "local"
    MVN = "mvn"


class AbstractRepositoryManager(abc.ABC):
    """仓库管理器: 把 URL 解析为包 + 来源，并把来源拉取到安装目录"""

    kind: ManagerKind

    def __init__(
        self,
        system: RepositorySystem,
        package_root: str | Path,
        *,
        manager_name: str | None = None,
        sink: MessageSink | None = None,
        verbose: bool = False,
    ) -> None:
        self.system = system
        self.manager_name = manager_name or self.kind.value
        self.package_root = Path(package_root)
        self.msg = sink
        self.verbose = verbose
        self.active = True

    def is_active(self) -> bool:
        return self.active

    def set_message_sink(self, sink: MessageSink | None) -> None:
        self.msg = sink

    # ------------------------------------------------------------------
    # URL -> 包 / 来源
    # ------------------------------------------------------------------

    def location(self, src: RepositorySource) -> str:
        """去掉 "<协议>://" 前缀后的实际位置"""
        prefix = f"{self.manager_name}://"
        if src.url.startswith(prefix):
            return src.url[len(prefix):]
        return src.url

    def default_unzip(self, url: str) -> bool:
        return False

    def create_source(
        self, url: str, unzip: bool = False, ctx: DependencyContext | None = None,
    ) -> RepositorySource:
        return RepositorySource(self, url, unzip, ctx)

    def create_package(self, url: str) -> RepositoryPackage:
        """由 URL 创建包，包名和文件名取 URL 最后一段"""
        src = self.create_source(url, self.default_unzip(url))
        name = src.default_package_name()
        return RepositoryPackage(self, name, name, [src])

    def class_path_file_name(self, src: RepositorySource) -> str | None:
        return None

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def tag_file(self, pkg: RepositoryPackage) -> Path:
        # 放在版本目录内，目录被删除时标记一并消失
        return pkg.version_root / TAG_FILE_NAME

    @staticmethod
    def read_tag(tag: Path) -> int | None:
        try:
            return int(tag.read_text(encoding="utf-8").strip().splitlines()[0])
        except (OSError, ValueError, IndexError) as e:
            logger.warning("无法解析安装标记时间: %s - %s", tag, e)
            return None

    def get_deps_info(self, ctx: DependencyContext | None) -> str:
        return f" 来自: {ctx}" if ctx is not None and self.verbose else ""

    def install(
        self, src: RepositorySource, ctx: DependencyContext | None = None,
    ) -> str | None:
        """安装单个来源，成功返回 None，失败返回错误信息"""
        pkg = src.pkg
        if pkg is None:
            return f"来源未关联到包: {src.url}"

        # 版本目录可能依赖来源（Maven 版本号），先设置当前来源
        pkg.set_current_source(src)
        tag = self.tag_file(pkg)
        root = pkg.version_root
        root.parent.mkdir(parents=True, exist_ok=True)

        installed_time: int | None = None
        if root.exists() and tag.is_file():
            installed_time = self.read_tag(tag)
            pkg.rebuild_reason = None if installed_time is not None else "安装标记无法解析"
        else:
            pkg.rebuild_reason = "没有安装标记"

        record_matched = False
        try:
            record = self.system.store.read(pkg.package_name)
        except RecordError as e:
            logger.warning("%s，已删除", e)
            self.system.store.delete(pkg.package_name)
            installed_time = None
            pkg.rebuild_reason = "包记录无法读取"
        else:
            if record is not None:
                if pkg.update_from_saved(record):
                    record_matched = True
                else:
                    installed_time = None
                    pkg.rebuild_reason = "包描述已变化"

        if self.system.reinstall:
            installed_time = None
            pkg.rebuild_reason = "重新安装"

        package_time = self.get_last_modified_time(src)
        if installed_time is not None and (
            package_time is None or installed_time > package_time
        ):
            if self.verbose:
                self.info(f"包 {pkg.package_name} 已是最新{self.get_deps_info(ctx)}")
            pkg.installed_time = installed_time
            if record_matched:
                pkg.restore_saved_dependencies(ctx)
            return self.init_installed(src, ctx)

        if installed_time is not None:
            pkg.rebuild_reason = "文件已过期"
        pkg.saved_dependencies = None

        if self.system.reinstall:
            self._backup_existing(pkg)

        self.info(
            f"安装包: {pkg.package_name} ({pkg.rebuild_reason}) "
            f"来源: {src.url}{self.get_deps_info(ctx)}"
        )
        try:
            self.do_install(src, ctx)
        except (PkgRepoError, OSError) as e:
            err = str(e)
            tag.unlink(missing_ok=True)
            logger.error("安装包 %s 失败: %s", pkg.package_name, err)
            pkg.install_error = err
            return err

        now = int(time.time() * 1000)
        pkg.installed_time = now
        try:
            root.mkdir(parents=True, exist_ok=True)
            tag.write_text(f"{now}\n", encoding="utf-8")
        except OSError as e:
            logger.warning("无法写入安装标记: %s - %s", tag, e)
        return None

    def init_installed(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> str | None:
        """跳过拉取时调用，子类可在此恢复依赖等安装期信息"""
        return None

    @abc.abstractmethod
    def do_install(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        """把来源拉取到包的安装目录，失败抛 TransportError"""

    def get_last_modified_time(self, src: RepositorySource) -> int | None:
        """来源最后修改时间（毫秒），None 表示无法获知"""
        return None

    def update(self, src: RepositorySource) -> str | None:
        return None

    def _backup_existing(self, pkg: RepositoryPackage) -> None:
        """重新安装前把非空的旧目录移到 .replacedPackages 下"""
        root = pkg.version_root
        if not root.is_dir() or _is_empty_dir(root):
            return
        stamp = time.strftime("%H.%M")
        backup = (
            self.package_root / REPLACED_DIR_NAME
            / f"{pkg.package_name.replace('/', '.')}.{stamp}"
        )
        backup.parent.mkdir(parents=True, exist_ok=True)
        if backup.exists():
            shutil.rmtree(backup)
        self.info(f"备份包 {pkg.package_name} 到: {backup}")
        shutil.move(str(root), str(backup))
        root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # 诊断
    # ------------------------------------------------------------------

    def info(self, text: str) -> None:
        messages.info(self.msg, text, log=logger)

    def error(self, text: str) -> None:
        messages.error(self.msg, text, log=logger)

    def __str__(self) -> str:
        return self.manager_name


def _is_empty_dir(path: Path) -> bool:
    return all(p.name.startswith(".") for p in path.iterdir())
