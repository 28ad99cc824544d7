"""包记录持久化

每个包一个 YAML 记录文件，带显式 schema_version。
读取失败或版本不匹配的记录直接删除，视为"从未安装过"，
下次运行会重新安装该包。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from pkgrepo.core.exceptions import RecordError
from pkgrepo.utils.yaml_io import load_yaml, save_yaml

if TYPE_CHECKING:
    from pkgrepo.core.repos.package import RepositoryPackage

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
RECORD_SUFFIX = ".pkg.yml"

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9_.\-]")


class PackageStore:
    """包记录存储，目录结构: <index_root>/<编码后的包名>.pkg.yml"""

    def __init__(self, index_root: str | Path) -> None:
        self.index_root = Path(index_root)

    def record_path(self, package_name: str) -> Path:
        # 包名可能含 "/"（Maven 的 groupId/artifactId），编码为单个文件名
        safe = _UNSAFE_CHARS_RE.sub("_", package_name.replace("/", "__"))
        return self.index_root / f"{safe}{RECORD_SUFFIX}"

    def save(self, pkg: RepositoryPackage) -> Path:
        path = self.record_path(pkg.package_name)
        data = {"schema_version": SCHEMA_VERSION, **pkg.to_record()}
        try:
            save_yaml(path, data)
        except (OSError, yaml.YAMLError) as e:
            logger.error("无法写入包记录: %s - %s", path, e)
        return path

    def read(self, package_name: str) -> dict[str, Any] | None:
        """读取记录，不存在返回 None；损坏 / 版本不匹配抛 RecordError"""
        path = self.record_path(package_name)
        if not path.exists():
            return None
        try:
            data = load_yaml(path, strict=True)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise RecordError(f"包记录损坏: {path}: {e}") from e
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise RecordError(
                f"包记录版本不匹配: {path} (记录={version}, 当前={SCHEMA_VERSION})"
            )
        if data.get("package_name") != package_name:
            raise RecordError(f"包记录名称不匹配: {path}")
        return data

    def load(self, package_name: str) -> dict[str, Any] | None:
        """读取记录；无法使用的记录被删除并返回 None"""
        try:
            return self.read(package_name)
        except RecordError as e:
            logger.warning("%s，已删除", e)
            self.delete(package_name)
            return None

    def delete(self, package_name: str) -> bool:
        path = self.record_path(package_name)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_records(self) -> list[dict[str, Any]]:
        """列出所有可用记录（跳过并清理无法使用的记录）"""
        if not self.index_root.exists():
            return []
        records = []
        for path in sorted(self.index_root.glob(f"*{RECORD_SUFFIX}")):
            try:
                data = load_yaml(path, strict=True)
            except (yaml.YAMLError, ValueError, OSError) as e:
                logger.warning("包记录损坏: %s: %s，已删除", path, e)
                path.unlink(missing_ok=True)
                continue
            if data.get("schema_version") != SCHEMA_VERSION:
                logger.warning("包记录版本不匹配: %s，已删除", path)
                path.unlink(missing_ok=True)
                continue
            records.append(data)
        return records
