"""测试用假实现: 命令执行器、下载器、POM 生成"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from pkgrepo.core.exceptions import TransportError
from pkgrepo.core.repos.manager import AbstractRepositoryManager, ManagerKind
from pkgrepo.utils.shell import CommandResult

MAVEN_TEST_REPO = "https://repo.test/maven2/"


class FakeExecutor:
    """记录命令；handler 可按命令模拟副作用和返回码"""

    def __init__(
        self,
        handler: Callable[[list[str], str | None], CommandResult] | None = None,
    ) -> None:
        self.calls: list[tuple[list[str], str | None]] = []
        self.handler = handler

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append((list(args), cwd))
        if self.handler is not None:
            return self.handler(list(args), cwd)
        return CommandResult(returncode=0, stdout="", stderr="")


class FakeDownloader:
    """URL → 内容；未登记的 URL 视为 HTTP 404"""

    def __init__(
        self,
        files: dict[str, bytes | str] | None = None,
        modified: dict[str, int] | None = None,
    ) -> None:
        self.files: dict[str, bytes | str] = dict(files or {})
        self.modified: dict[str, int] = dict(modified or {})
        self.calls: list[str] = []
        self.succeeded: list[str] = []

    def download(self, url: str, dest: Path) -> int:
        self.calls.append(url)
        if url not in self.files:
            raise TransportError(f"下载失败: {url} - HTTP 404")
        data = self.files[url]
        if isinstance(data, str):
            data = data.encode("utf-8")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        self.succeeded.append(url)
        return len(data)

    def last_modified(self, url: str) -> int | None:
        return self.modified.get(url)


def pom_xml(
    group: str,
    artifact: str,
    version: str,
    deps: list[tuple[str, str, str]] | tuple = (),
    *,
    packaging: str | None = None,
    extra: str = "",
) -> str:
    """生成一个带命名空间的最小 POM"""
    dep_xml = "".join(
        f"<dependency><groupId>{g}</groupId><artifactId>{a}</artifactId>"
        f"<version>{v}</version></dependency>"
        for g, a, v in deps
    )
    pkg_xml = f"<packaging>{packaging}</packaging>" if packaging else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">'
        "<modelVersion>4.0.0</modelVersion>"
        f"<groupId>{group}</groupId><artifactId>{artifact}</artifactId>"
        f"<version>{version}</version>{pkg_xml}{extra}"
        f"<dependencies>{dep_xml}</dependencies>"
        "</project>"
    )


def maven_url(group: str, artifact: str, version: str, ext: str, base: str = MAVEN_TEST_REPO) -> str:
    return f"{base}{group.replace('.', '/')}/{artifact}/{version}/{artifact}-{version}.{ext}"


class CountingManager(AbstractRepositoryManager):
    """记录拉取次数的管理器；fail / modified 控制拉取结果和最后修改时间"""

    kind = ManagerKind.LOCAL

    def __init__(self, system, package_root, **kwargs) -> None:
        kwargs.setdefault("manager_name", "fake")
        super().__init__(system, package_root, **kwargs)
        self.fetches = 0
        self.fail = False
        self.modified: int | None = None

    def do_install(self, src, ctx) -> None:
        self.fetches += 1
        if self.fail:
            raise TransportError(f"拉取失败: {src.url}")
        root = src.pkg.version_root
        root.mkdir(parents=True, exist_ok=True)
        (root / "payload.txt").write_text(str(self.fetches), encoding="utf-8")

    def get_last_modified_time(self, src) -> int | None:
        return self.modified


def add_counting_manager(system, name: str = "fake") -> CountingManager:
    mgr = CountingManager(system, system.package_root, manager_name=name, sink=system.msg)
    system.add_repository_manager(mgr)
    return mgr
