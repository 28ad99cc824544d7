"""Maven 远程仓库（镜像）"""

from __future__ import annotations

from pkgrepo.core.mvn.descriptor import MvnDescriptor


class MvnRepository:
    """一个 Maven 仓库根地址，例如 https://repo1.maven.org/maven2/"""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def file_url(self, desc: MvnDescriptor, ext: str) -> str:
        """<base>/<groupId 点换斜杠>/<artifactId>/<version>/<文件名>"""
        base = self.base_url.rstrip("/")
        return (
            f"{base}/{desc.group_path}/{desc.artifact_id}/{desc.version}/"
            f"{desc.jar_file_name(ext)}"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MvnRepository):
            return NotImplemented
        return other.base_url.rstrip("/") == self.base_url.rstrip("/")

    def __hash__(self) -> int:
        return hash(self.base_url.rstrip("/"))

    def __repr__(self) -> str:
        return self.base_url
