"""Maven POM 文件解析

只实现依赖解析需要的子集:
  - packaging（默认 jar）
  - <properties> 与 ${...} 变量替换（含 project.* / pom.groupId）
  - <parent> 继承: groupId / version / properties / dependencyManagement / dependencies
  - <dependencyManagement> 为缺少版本号的依赖提供默认值（含 scope=import）
  - get_dependencies(scopes): 按 scope 过滤直接依赖，跳过 optional

XML 命名空间在解析后统一去掉，之后按本地标签名查找。
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import TYPE_CHECKING

from pkgrepo.core import messages
from pkgrepo.core.exceptions import POMError
from pkgrepo.core.mvn.descriptor import DEFAULT_SCOPE, MvnDescriptor
from pkgrepo.core.repos import context as depctx

if TYPE_CHECKING:
    from pkgrepo.core.messages import MessageSink
    from pkgrepo.core.mvn.manager import MvnRepositoryManager
    from pkgrepo.core.repos.context import DependencyContext
    from pkgrepo.core.repos.package import RepositoryPackage

logger = logging.getLogger(__name__)

# 防止属性互相引用导致死循环
_MAX_SUBSTITUTIONS = 64


def _strip_namespaces(root: ET.Element) -> None:
    for el in root.iter():
        if isinstance(el.tag, str) and el.tag.startswith("{"):
            el.tag = el.tag.split("}", 1)[1]


def _child_text(el: ET.Element | None, name: str) -> str | None:
    if el is None:
        return None
    child = el.find(name)
    if child is None:
        return None
    return (child.text or "").strip()


class POMFile:
    """一个已解析的 pom.xml"""

    def __init__(
        self,
        path: str | Path,
        manager: MvnRepositoryManager | None = None,
        ctx: DependencyContext | None = None,
        pkg: RepositoryPackage | None = None,
        *,
        parent: POMFile | None = None,
        sink: MessageSink | None = None,
    ) -> None:
        self.path = Path(path)
        self.manager = manager
        self.ctx = ctx
        self.pkg = pkg
        self.parent_pom = parent
        self.msg = sink if sink is not None else (manager.msg if manager else None)

        self.project: ET.Element | None = None
        self.packaging = "jar"
        self.artifact_id: str | None = None
        self.properties: dict[str, str] = {}
        self.dependency_management: list[MvnDescriptor] | None = None
        self.imported_poms: list[POMFile] = []

    @classmethod
    def read(
        cls,
        path: str | Path,
        manager: MvnRepositoryManager | None = None,
        ctx: DependencyContext | None = None,
        pkg: RepositoryPackage | None = None,
        *,
        parent: POMFile | None = None,
        sink: MessageSink | None = None,
    ) -> POMFile:
        """读取并解析 POM 文件

        Raises:
            POMError: 文件无法读取、不是合法 XML 或根元素不是 <project>
        """
        pom = cls(path, manager, ctx, pkg, parent=parent, sink=sink)
        if manager is not None:
            # 先放进缓存，parent / import 链回指自身时不会重复解析
            manager.pom_cache[str(pom.path)] = pom
        try:
            pom.parse()
        except POMError:
            if manager is not None:
                manager.pom_cache[str(pom.path)] = None
            raise
        return pom

    def parse(self) -> None:
        try:
            tree = ET.parse(self.path)
        except (ET.ParseError, OSError) as e:
            raise POMError(f"无法解析 POM 文件: {self.path}: {e}") from e
        root = tree.getroot()
        _strip_namespaces(root)
        if root.tag != "project":
            raise POMError(self.error(
                f"POM 文件根元素为 <{root.tag}>，应为 <project>: {self.path}"))
        self.project = root

        self.packaging = _child_text(root, "packaging") or "jar"
        self._init_properties()
        if self.parent_pom is None:
            self._init_parent()
        self.artifact_id = _child_text(root, "artifactId")
        self.init_dependency_management()

    def _init_properties(self) -> None:
        props = self.project.find("properties")
        if props is None:
            return
        for prop in props:
            if isinstance(prop.tag, str):
                self.properties[prop.tag] = (prop.text or "").strip()

    def _init_parent(self) -> None:
        parent_tag = self.project.find("parent")
        if parent_tag is None or self.manager is None:
            return
        desc = MvnDescriptor.from_tag(self, parent_tag, inherit=False)
        if not desc.group_id or not desc.artifact_id or not desc.version:
            self.error(f"<parent> 缺少坐标: {self.path}")
            return
        parent = self.manager.get_pom_file(desc, self._child_ctx())
        if parent is not None and self._in_parent_chain(parent):
            self.error(
                f"<parent> 链回指自身: {desc.group_id}/{desc.artifact_id}/{desc.version}"
                f" ({self.path})")
            return
        self.parent_pom = parent

    def _in_parent_chain(self, pom: POMFile) -> bool:
        """self 是否出现在 pom 及其 parent 链上"""
        seen: set[int] = set()
        node: POMFile | None = pom
        while node is not None:
            if node is self or id(node) in seen:
                return True
            seen.add(id(node))
            node = node.parent_pom
        return False

    def _child_ctx(self) -> DependencyContext | None:
        if self.pkg is None:
            return self.ctx
        return depctx.child(self.ctx, self.pkg.package_name)

    # ------------------------------------------------------------------
    # 属性与变量
    # ------------------------------------------------------------------

    def group_id(self) -> str | None:
        own = _child_text(self.project, "groupId")
        if own:
            return own
        if self.parent_pom is not None:
            return self.parent_pom.group_id()
        return _child_text(self.project.find("parent"), "groupId")

    def version(self) -> str | None:
        own = _child_text(self.project, "version")
        if own:
            return own
        if self.parent_pom is not None:
            return self.parent_pom.version()
        return _child_text(self.project.find("parent"), "version")

    def get_property(self, name: str) -> str | None:
        parts = name.split(".")
        if parts[0] in ("project", "pom") and len(parts) > 1:
            path = parts[1:]
            if path == ["groupId"]:
                return self.group_id()
            if path == ["version"]:
                return self.version()
            el = self.project
            for part in path[:-1]:
                el = el.find(part) if el is not None else None
            value = _child_text(el, path[-1])
            if value is not None:
                return value
            if self.parent_pom is not None:
                return self.parent_pom.get_property(name)
            return None

        if name in self.properties:
            return self.properties[name]
        if self.parent_pom is not None:
            return self.parent_pom.get_property(name)
        return None

    def replace_variables(self, text: str) -> str:
        for _ in range(_MAX_SUBSTITUTIONS):
            start = text.find("${")
            if start == -1:
                return text
            end = text.find("}", start)
            if end == -1:
                self.error(f"POM 变量缺少右括号: {text} ({self.path})")
                return text
            name = text[start + 2:end]
            value = self.get_property(name)
            if value is None:
                self.error(f"POM 变量没有值: {name} ({self.path})")
                return text
            text = text[:start] + value + text[end + 1:]
        self.error(f"POM 变量替换次数过多: {text} ({self.path})")
        return text

    def tag_value(self, tag: ET.Element, name: str) -> str | None:
        value = _child_text(tag, name)
        if value is None:
            return None
        return self.replace_variables(value)

    # ------------------------------------------------------------------
    # 依赖
    # ------------------------------------------------------------------

    def init_dependency_management(self) -> None:
        if self.dependency_management is not None:
            return
        self.dependency_management = []
        deps_root = self.project.find("dependencyManagement/dependencies")
        if deps_root is None:
            return
        for tag in deps_root.findall("dependency"):
            if _child_text(tag, "scope") == "import":
                self._import_pom(tag)
            else:
                self.dependency_management.append(
                    MvnDescriptor.from_tag(self, tag, dependency=True, inherit=False))

    def _import_pom(self, tag: ET.Element) -> None:
        if self.manager is None:
            return
        desc = MvnDescriptor.from_tag(self, tag, inherit=False)
        imported = self.manager.get_pom_file(desc, self._child_ctx())
        if imported is None:
            logger.warning("无法读取 scope=import 的 POM: %s", desc)
            return
        imported.init_dependency_management()
        self.imported_poms.append(imported)

    def append_inherited(
        self, desc: MvnDescriptor, visited: set[int] | None = None,
    ) -> None:
        """从 dependencyManagement（本文件、parent、import）补全版本号和 classifier"""
        visited = visited if visited is not None else set()
        if id(self) in visited:
            return
        visited.add(id(self))
        if desc.version is not None and desc.classifier is not None:
            return
        self.init_dependency_management()
        for managed in self.dependency_management:
            if not desc.matches(managed):
                continue
            if desc.version is None and managed.version is not None:
                desc.version = managed.version
            if desc.classifier is None and managed.classifier is not None:
                desc.classifier = managed.classifier
        if self.parent_pom is not None:
            self.parent_pom.append_inherited(desc, visited)
        for imported in self.imported_poms:
            imported.append_inherited(desc, visited)

    def get_dependencies(self, scopes: list[str] | tuple[str, ...]) -> list[MvnDescriptor]:
        """按 scope 过滤的直接依赖（含从 parent 继承的依赖）"""
        deps_tags = self.project.findall("dependencies")
        if len(deps_tags) > 1:
            self.error(f"POM 中有多个 <dependencies> 标签，只使用第一个: {self.path}")

        result: list[MvnDescriptor] = []
        if deps_tags:
            for tag in deps_tags[0].findall("dependency"):
                scope = _child_text(tag, "scope") or DEFAULT_SCOPE
                if scope not in scopes:
                    continue
                desc = MvnDescriptor.from_tag(self, tag, dependency=True)
                if desc.optional:
                    continue
                result.append(desc)

        if self.parent_pom is not None:
            for inherited in self.parent_pom.get_dependencies(scopes):
                if not any(d.package_name == inherited.package_name for d in result):
                    result.append(inherited)
        return result

    # ------------------------------------------------------------------

    def error(self, text: str) -> str:
        return messages.error(self.msg, text, location_url=str(self.path), log=logger)

    def __str__(self) -> str:
        return str(self.path)
