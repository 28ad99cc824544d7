"""仓库来源

同一个包可以有多个来源（不同管理器、不同镜像），安装时依次尝试。
来源按 url 判等。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pkgrepo.utils.archive import strip_archive_suffix

if TYPE_CHECKING:
    from pkgrepo.core.repos.context import DependencyContext
    from pkgrepo.core.repos.manager import AbstractRepositoryManager
    from pkgrepo.core.repos.package import RepositoryPackage


class RepositorySource:
    """包的一个可拉取位置"""

    def __init__(
        self,
        manager: AbstractRepositoryManager,
        url: str,
        unzip: bool = False,
        ctx: DependencyContext | None = None,
    ) -> None:
        self.manager = manager
        self.url = url
        self.unzip = unzip
        # 该来源作为依赖被引入时的上下文，直接声明的来源为 None
        self.ctx = ctx
        self.pkg: RepositoryPackage | None = None

    @property
    def manager_name(self) -> str:
        return self.manager.manager_name

    def class_path_file_name(self) -> str | None:
        """相对版本目录的 class path 文件名，None 表示版本目录本身"""
        return self.manager.class_path_file_name(self)

    def default_package_name(self) -> str:
        """从 URL 最后一段推导包名，去掉归档和 .git 后缀"""
        tail = self.url.rstrip("/").rsplit("/", 1)[-1]
        tail = tail.rsplit(":", 1)[-1]
        if tail.endswith(".git"):
            tail = tail[:-4]
        return strip_archive_suffix(tail)

    def to_record(self) -> dict[str, Any]:
        return {"manager": self.manager_name, "url": self.url, "unzip": self.unzip}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositorySource):
            return NotImplemented
        return other.url == self.url

    def __hash__(self) -> int:
        return hash(self.url)

    def __repr__(self) -> str:
        return f"RepositorySource({self.url!r})"

    def __str__(self) -> str:
        return self.url
