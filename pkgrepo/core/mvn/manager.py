"""Maven 仓库管理器

处理 mvn://groupId/artifactId/version:
  1. 取 POM（本地 ~/.m2 优先，再按顺序尝试各镜像，第一个成功即停止）
  2. 解析 POM，按 scope 收集依赖，加入 DependencyCollection 后统一安装
  3. 下载 jar/war（packaging=pom 时 jar 可选）

安装目录: <package_root>/<groupId>/<artifactId>/<version>/
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pkgrepo.core.config import MAVEN_CENTRAL
from pkgrepo.core.exceptions import POMError, TransportError
from pkgrepo.core.mvn.descriptor import MvnDescriptor
from pkgrepo.core.mvn.pom import POMFile
from pkgrepo.core.mvn.repository import MvnRepository
from pkgrepo.core.repos import context as depctx
from pkgrepo.core.repos.context import DependencyCollection
from pkgrepo.core.repos.manager import AbstractRepositoryManager, ManagerKind
from pkgrepo.core.repos.package import RepositoryPackage
from pkgrepo.core.repos.source import RepositorySource
from pkgrepo.utils.net import Downloader, UrllibDownloader

if TYPE_CHECKING:
    from pkgrepo.core.repos.context import DependencyContext
    from pkgrepo.core.repos.system import RepositorySystem

logger = logging.getLogger(__name__)

POM_FILE_NAME = "pom.xml"
NOT_FOUND_SUFFIX = ".notFound"

# 这些 packaging 会产出类文件（pom 类型的 jar 可能存在，下载时可选）
CLASS_PACKAGINGS = ("jar", "bundle", "orbit", "war", "pom")


class MvnRepositorySource(RepositorySource):
    """带 Maven 坐标的来源"""

    def __init__(
        self,
        manager: AbstractRepositoryManager,
        url: str,
        unzip: bool = False,
        ctx: DependencyContext | None = None,
        desc: MvnDescriptor | None = None,
    ) -> None:
        super().__init__(manager, url, unzip, ctx)
        self.desc = desc or MvnDescriptor.from_url(url)


class MvnRepositoryPackage(RepositoryPackage):
    """Maven 包，版本目录按当前来源的版本号区分"""

    def __init__(self, *args, **kwargs) -> None:
        self.packaging = "jar"
        self.pom_file: POMFile | None = None
        super().__init__(*args, **kwargs)

    @property
    def descriptor(self) -> MvnDescriptor | None:
        src = self.current_source or (self.sources[0] if self.sources else None)
        return getattr(src, "desc", None)

    @property
    def version_root(self) -> Path:
        desc = self.descriptor
        root = Path(self.installed_root)
        if desc is not None and desc.version:
            return root / desc.version
        return root

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record["packaging"] = self.packaging
        return record

    def update_from_saved(self, record: dict[str, Any]) -> bool:
        if not super().update_from_saved(record):
            return False
        self.packaging = record.get("packaging") or "jar"
        return True


class MvnRepositoryManager(AbstractRepositoryManager):
    kind = ManagerKind.MVN

    def __init__(
        self,
        system: RepositorySystem,
        package_root: str | Path,
        *,
        repositories: list[str] | None = None,
        local_repository: str | Path | None = "~/.m2/repository",
        use_local_repository: bool = True,
        scopes: list[str] | None = None,
        downloader: Downloader | None = None,
        **kwargs,
    ) -> None:
        super().__init__(system, package_root, **kwargs)
        self.repositories = [MvnRepository(u) for u in (repositories or [MAVEN_CENTRAL])]
        self.local_repository = (
            Path(local_repository).expanduser() if local_repository else None
        )
        self.use_local_repository = use_local_repository
        self.scopes = list(scopes or ["compile"])
        self.downloader = downloader or UrllibDownloader()
        # 按 POM 文件路径缓存，None 表示上次解析 / 下载失败
        self.pom_cache: dict[str, POMFile | None] = {}

    # ------------------------------------------------------------------
    # URL -> 包 / 来源
    # ------------------------------------------------------------------

    def create_source(
        self, url: str, unzip: bool = False, ctx: DependencyContext | None = None,
    ) -> MvnRepositorySource:
        return MvnRepositorySource(self, url, False, ctx)

    def create_package(self, url: str) -> MvnRepositoryPackage:
        src = self.create_source(url)
        desc = src.desc
        return MvnRepositoryPackage(self, desc.package_name, desc.jar_file_name(), [src])

    def class_path_file_name(self, src: RepositorySource) -> str | None:
        pkg = src.pkg
        ext = "war" if isinstance(pkg, MvnRepositoryPackage) and pkg.packaging == "war" else "jar"
        return src.desc.jar_file_name(ext)

    def pom_path(self, desc: MvnDescriptor) -> Path:
        return self.package_root / desc.group_id / desc.artifact_id / desc.version / POM_FILE_NAME

    # ------------------------------------------------------------------
    # 文件获取
    # ------------------------------------------------------------------

    def install_mvn_file(self, desc: MvnDescriptor, dest: Path, ext: str) -> bool:
        """获取一个构件文件，依次尝试: 已下载 → 本地仓库 → 各镜像"""
        if not self.system.reinstall and dest.is_file():
            logger.debug("文件已下载: %s", dest)
            return True
        dest.parent.mkdir(parents=True, exist_ok=True)

        if self.use_local_repository and self.local_repository is not None:
            local = (
                self.local_repository / desc.group_path / desc.artifact_id
                / desc.version / desc.jar_file_name(ext)
            )
            if local.is_file():
                try:
                    shutil.copy2(local, dest)
                    return True
                except OSError as e:
                    self.info(f"无法从本地仓库复制: {local} -> {dest}: {e}")

        for repo in self.repositories:
            url = repo.file_url(desc, ext)
            try:
                self.downloader.download(url, dest)
            except TransportError as e:
                logger.debug("镜像 %s 获取失败: %s", repo, e)
                continue
            return True
        return False

    def install_pom(
        self,
        desc: MvnDescriptor,
        ctx: DependencyContext | None = None,
        pkg: RepositoryPackage | None = None,
    ) -> POMFile:
        """获取并解析 POM

        Raises:
            POMError: 各仓库都找不到，或解析失败
        """
        path = self.pom_path(desc)
        not_found = path.with_name(path.name + NOT_FOUND_SUFFIX)
        if not self.system.reinstall and not_found.is_file():
            self.pom_cache[str(path)] = None
            raise POMError(f"POM 文件上次检查时不存在: {path}")
        if not self.install_mvn_file(desc, path, "pom"):
            self.pom_cache[str(path)] = None
            not_found.parent.mkdir(parents=True, exist_ok=True)
            not_found.write_text("does not exist\n", encoding="utf-8")
            path.unlink(missing_ok=True)
            raise POMError(
                f"Maven POM 文件 {desc.group_id}/{desc.artifact_id}/{desc.version} "
                f"在仓库中未找到: {self.repositories}"
            )
        not_found.unlink(missing_ok=True)
        return POMFile.read(path, self, ctx, pkg)

    def get_pom_file(
        self,
        desc: MvnDescriptor,
        ctx: DependencyContext | None = None,
        pkg: RepositoryPackage | None = None,
    ) -> POMFile | None:
        """带缓存的 POM 获取，失败上报诊断并返回 None（parent / import 使用）"""
        key = str(self.pom_path(desc))
        if key in self.pom_cache:
            return self.pom_cache[key]
        try:
            return self.install_pom(desc, ctx, pkg)
        except POMError as e:
            self.error(str(e))
            return None

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def do_install(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        pkg = src.pkg
        desc = src.desc
        pom = self.pom_cache.get(str(self.pom_path(desc)))
        if pom is None:
            pom = self.install_pom(desc, ctx, pkg)
        self._apply_pom(pkg, pom)

        deps = DependencyCollection()
        self.collect_dependencies(src, ctx, deps)
        self.system.install_deps(deps)

        ext, optional = _artifact_ext(pom.packaging, desc)
        if ext is None:
            logger.warning("未识别的 packaging: %s (%s)", pom.packaging, desc)
            pkg.defines_classes = False
            return
        if not pkg.defines_classes:
            return
        dest = pkg.version_root / desc.jar_file_name(ext)
        if self.install_mvn_file(desc, dest, ext):
            return
        if optional:
            pkg.defines_classes = False
            return
        raise TransportError(
            f"Maven {ext} 文件 {desc.to_url()} 在仓库中未找到: {self.repositories}"
        )

    def init_installed(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> str | None:
        """跳过下载时，记录中没有依赖信息则从本地 POM 恢复"""
        pkg = src.pkg
        if pkg.dependencies is not None:
            return None
        pom = self.get_pom_file(src.desc, ctx, pkg)
        if pom is None:
            self.info(f"无法读取已安装包的 POM，依赖信息缺失: {pkg.package_name}")
            return None
        self._apply_pom(pkg, pom)
        deps = DependencyCollection()
        self.collect_dependencies(src, ctx, deps)
        self.system.install_deps(deps)
        return None

    def _apply_pom(self, pkg: RepositoryPackage, pom: POMFile) -> None:
        if isinstance(pkg, MvnRepositoryPackage):
            pkg.pom_file = pom
            pkg.packaging = pom.packaging
        pkg.defines_classes = pom.packaging in CLASS_PACKAGINGS

    def init_dependencies(
        self, src: RepositorySource, ctx: DependencyContext | None,
    ) -> None:
        """由 POM 计算 pkg.dependencies，依赖包只加入缓存、不安装"""
        pkg = src.pkg
        pom = getattr(pkg, "pom_file", None)
        if pom is None:
            return
        dep_ctx = depctx.child(ctx, pkg.package_name)
        deps: list[RepositoryPackage] = []
        for dep_desc in pom.get_dependencies(self.scopes):
            if dep_desc.version is None:
                self.info(f"Maven 依赖没有版本号: {dep_desc.package_name} (来自 {pkg.package_name})")
                continue
            dep = self.system.add_package(dep_desc.to_url(), install=False, ctx=dep_ctx)
            if dep is not None and dep not in deps:
                deps.append(dep)
        pkg.dependencies = deps

    def collect_dependencies(
        self,
        src: RepositorySource,
        ctx: DependencyContext | None,
        collection: DependencyCollection,
    ) -> None:
        """全部依赖先加入集合再统一安装，保证来源按上下文深度排好序"""
        pkg = src.pkg
        if pkg.dependencies is None:
            self.init_dependencies(src, ctx)
        dep_ctx = depctx.child(ctx, pkg.package_name)
        for dep in pkg.dependencies or []:
            collection.add_dependency(dep, dep_ctx)


def _artifact_ext(packaging: str, desc: MvnDescriptor) -> tuple[str | None, bool]:
    """packaging → (构件扩展名, 是否可选)"""
    if packaging == "war":
        # classifier=classes 的 war 依赖实际引用的是 jar
        return ("jar" if desc.classifier == "classes" else "war"), False
    if packaging in ("jar", "bundle", "orbit"):
        return "jar", False
    if packaging == "pom":
        return "jar", True
    return None, False
