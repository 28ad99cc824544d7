"""传输实现: git / scp / url / local

URL 形式:
  git://host/repo.git        → 原样交给 git clone
  scp://user@host:/path      → scp user@host:/path
  url://https://host/f.zip   → 原样下载；url://host/f.zip → https://host/f.zip
  local:///abs/path          → 复制本地文件或目录
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from pkgrepo.core.exceptions import TransportError
from pkgrepo.core.repos.manager import AbstractRepositoryManager, ManagerKind
from pkgrepo.utils.archive import extract_archive, is_archive
from pkgrepo.utils.net import Downloader, UrllibDownloader
from pkgrepo.utils.shell import CommandExecutor, LocalExecutor, run_checked

if TYPE_CHECKING:
    from pkgrepo.core.repos.context import DependencyContext
    from pkgrepo.core.repos.source import RepositorySource
    from pkgrepo.core.repos.system import RepositorySystem

logger = logging.getLogger(__name__)


def _basename(location: str) -> str:
    return location.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]


def _unpack(archive: Path, dest_dir: Path) -> None:
    """解压并删除归档本身"""
    extract_archive(archive, dest_dir)
    archive.unlink(missing_ok=True)


class GitRepositoryManager(AbstractRepositoryManager):
    """git clone / git pull"""

    kind = ManagerKind.GIT

    def __init__(
        self,
        system: RepositorySystem,
        package_root: str | Path,
        *,
        executor: CommandExecutor | None = None,
        **kwargs,
    ) -> None:
        super().__init__(system, package_root, **kwargs)
        self.executor = executor or LocalExecutor()

    def location(self, src: RepositorySource) -> str:
        return src.url

    def do_install(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        root = src.pkg.version_root
        if (root / ".git").is_dir():
            run_checked(self.executor, ["git", "pull"], cwd=str(root), label="git pull")
            return
        root.parent.mkdir(parents=True, exist_ok=True)
        run_checked(
            self.executor,
            ["git", "clone", self.location(src), str(root)],
            label="git clone",
        )

    def update(self, src: RepositorySource) -> str | None:
        root = src.pkg.version_root
        if not (root / ".git").is_dir():
            return f"不是 git 工作目录: {root}"
        try:
            run_checked(self.executor, ["git", "pull"], cwd=str(root), label="git pull")
        except TransportError as e:
            return str(e)
        return None


class ScpRepositoryManager(AbstractRepositoryManager):
    """scp 复制远端文件或目录"""

    kind = ManagerKind.SCP

    def __init__(
        self,
        system: RepositorySystem,
        package_root: str | Path,
        *,
        executor: CommandExecutor | None = None,
        **kwargs,
    ) -> None:
        super().__init__(system, package_root, **kwargs)
        self.executor = executor or LocalExecutor()

    def default_unzip(self, url: str) -> bool:
        return is_archive(url)

    def do_install(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        loc = self.location(src)
        root = src.pkg.version_root
        root.mkdir(parents=True, exist_ok=True)
        if is_archive(loc):
            dest = root / _basename(loc)
            run_checked(self.executor, ["scp", loc, str(dest)], label="scp")
            if src.unzip:
                _unpack(dest, root)
        else:
            # 目录内容直接放进安装目录
            run_checked(
                self.executor,
                ["scp", "-r", loc.rstrip("/") + "/.", str(root)],
                label="scp",
            )


class URLRepositoryManager(AbstractRepositoryManager):
    """HTTP(S) 下载"""

    kind = ManagerKind.URL

    def __init__(
        self,
        system: RepositorySystem,
        package_root: str | Path,
        *,
        downloader: Downloader | None = None,
        **kwargs,
    ) -> None:
        super().__init__(system, package_root, **kwargs)
        self.downloader = downloader or UrllibDownloader()

    def location(self, src: RepositorySource) -> str:
        loc = super().location(src)
        if "://" not in loc:
            loc = "https://" + loc
        return loc

    def class_path_file_name(self, src: RepositorySource) -> str | None:
        if src.unzip:
            return None
        return _basename(self.location(src))

    def do_install(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        loc = self.location(src)
        root = src.pkg.version_root
        dest = root / _basename(loc)
        self.downloader.download(loc, dest)
        if src.unzip:
            _unpack(dest, root)

    def get_last_modified_time(self, src: RepositorySource) -> int | None:
        return self.downloader.last_modified(self.location(src))


class LocalRepositoryManager(AbstractRepositoryManager):
    """复制本地文件或目录（目录合并到安装目录）"""

    kind = ManagerKind.LOCAL

    def do_install(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        path = Path(self.location(src))
        root = src.pkg.version_root
        if not path.exists():
            raise TransportError(f"本地路径不存在: {path}")
        root.mkdir(parents=True, exist_ok=True)
        if path.is_dir():
            shutil.copytree(path, root, dirs_exist_ok=True)
        elif src.unzip and is_archive(path.name):
            extract_archive(path, root)
        else:
            shutil.copy2(path, root / path.name)
        logger.debug("  已复制: %s -> %s", path, root)

    def class_path_file_name(self, src: RepositorySource) -> str | None:
        path = Path(self.location(src))
        if path.is_dir() or (src.unzip and is_archive(path.name)):
            return None
        return path.name

    def get_last_modified_time(self, src: RepositorySource) -> int | None:
        try:
            return int(Path(self.location(src)).stat().st_mtime * 1000)
        except OSError:
            return None
