"""Maven 坐标描述: groupId / artifactId / version (+ type, classifier, scope)"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from xml.etree.ElementTree import Element

from pkgrepo.core.exceptions import InvalidPackageURLError

if TYPE_CHECKING:
    from pkgrepo.core.mvn.pom import POMFile

MVN_URL_PREFIX = "mvn://"
DEFAULT_TYPE = "jar"
DEFAULT_SCOPE = "compile"


def _str_matches(a: str | None, b: str | None) -> bool:
    if a == b:
        return True
    if a is None or b is None:
        return False
    return a == "*" or b == "*"


@dataclass
class MvnDescriptor:
    group_id: str | None
    artifact_id: str | None
    version: str | None = None
    type: str | None = None
    classifier: str | None = None
    scope: str | None = None
    optional: bool = False

    @classmethod
    def from_url(cls, url: str) -> MvnDescriptor:
        """解析 mvn://groupId/artifactId/version

        artifactId 可以含 "/"（子模块），groupId 取第一段，version 取最后一段。

        Raises:
            InvalidPackageURLError: 格式不正确
        """
        rest = url
        scheme, sep, tail = url.partition("://")
        if sep:
            if scheme != "mvn":
                raise InvalidPackageURLError(f"不是 Maven URL: {url}")
            rest = tail
        rest = rest.strip("/")
        parts = rest.split("/")
        if len(parts) < 3 or any(not p for p in parts):
            raise InvalidPackageURLError(
                f"Maven URL 格式应为 mvn://groupId/artifactId/version: {url}"
            )
        return cls(
            group_id=parts[0],
            artifact_id="/".join(parts[1:-1]),
            version=parts[-1],
        )

    @classmethod
    def from_tag(
        cls,
        pom: POMFile,
        tag: Element,
        *,
        dependency: bool = False,
        inherit: bool = True,
    ) -> MvnDescriptor:
        """从 <dependency> / <parent> 等元素读取坐标，变量已替换

        inherit 为 True 时从 dependencyManagement 补全缺失的版本号。
        """
        desc = cls(
            group_id=pom.tag_value(tag, "groupId"),
            artifact_id=pom.tag_value(tag, "artifactId"),
            version=pom.tag_value(tag, "version"),
            type=pom.tag_value(tag, "type"),
            classifier=pom.tag_value(tag, "classifier"),
        )
        if inherit:
            pom.append_inherited(desc)
        if dependency:
            desc.scope = pom.tag_value(tag, "scope") or DEFAULT_SCOPE
            optional = pom.tag_value(tag, "optional")
            desc.optional = optional is not None and optional.lower() == "true"
        return desc

    def to_url(self) -> str:
        return f"{MVN_URL_PREFIX}{self.group_id}/{self.artifact_id}/{self.version}"

    @property
    def package_name(self) -> str:
        return f"{self.group_id}/{self.artifact_id}"

    @property
    def group_path(self) -> str:
        return (self.group_id or "").replace(".", "/")

    def jar_file_name(self, ext: str = "jar") -> str:
        """版本目录内的构件文件名: artifactId-version[-classifier].ext"""
        classifier = f"-{self.classifier}" if self.classifier and ext != "pom" else ""
        return f"{self.artifact_id}-{self.version}{classifier}.{ext}"

    def matches(self, other: MvnDescriptor) -> bool:
        """groupId / artifactId 必须一致（支持 "*"），版本仅在本方指定时比较"""
        return (
            _str_matches(other.group_id, self.group_id)
            and _str_matches(other.artifact_id, self.artifact_id)
            and (self.version is None or _str_matches(self.version, other.version))
            and (
                _str_matches(self.type, other.type)
                or (self.type is None and other.type == DEFAULT_TYPE)
            )
            and (
                self.classifier is None
                or other.classifier is None
                or _str_matches(self.classifier, other.classifier)
            )
        )

    def __str__(self) -> str:
        return self.to_url()
