"""包清单: 在 YAML 中声明项目需要的第三方包

格式::

    packages:
      junit:
        type: mvn
        url: mvn://junit/junit/4.12
      tomcat:
        url: url://archive.apache.org/dist/tomcat/apache-tomcat-9.0.0.zip
        unzip: true
        install: false

type 省略时取 URL 的协议；url 没有 "<协议>://" 前缀时按 type 补全。
条目名只用于诊断，包名始终由管理器从 URL 推导。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pkgrepo.core.exceptions import ConfigError
from pkgrepo.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class ManifestEntry:
    """清单中的一个包声明"""

    name: str
    url: str
    type: str | None = None
    file_name: str | None = None
    unzip: bool | None = None
    install: bool = True

    @property
    def scheme(self) -> str:
        if self.type:
            return self.type
        return self.url.partition("://")[0]

    @property
    def full_url(self) -> str:
        if "://" in self.url or not self.type:
            return self.url
        return f"{self.type}://{self.url}"

    @classmethod
    def from_dict(cls, name: str, data: Any) -> ManifestEntry:
        if isinstance(data, str):
            return cls(name=name, url=data)
        if not isinstance(data, dict):
            raise ConfigError(f"包清单条目 {name} 必须是映射或 URL 字符串")
        url = data.get("url")
        if not url:
            raise ConfigError(f"包清单条目 {name} 缺少 url")
        unzip = data.get("unzip")
        return cls(
            name=name,
            url=str(url),
            type=data.get("type"),
            file_name=data.get("file_name"),
            unzip=None if unzip is None else bool(unzip),
            install=bool(data.get("install", True)),
        )


class PackageManifest:
    """按声明顺序保存的包清单"""

    def __init__(self, entries: list[ManifestEntry] | None = None) -> None:
        self.entries: list[ManifestEntry] = list(entries or [])

    @classmethod
    def from_file(cls, path: str | Path) -> PackageManifest:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"包清单不存在: {p}")
        try:
            data = load_yaml(p, strict=True)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"无法读取包清单 {p}: {e}") from e
        packages = data.get("packages") or {}
        if not isinstance(packages, dict):
            raise ConfigError(f"包清单 {p} 的 packages 必须是映射")
        entries = [ManifestEntry.from_dict(str(k), v) for k, v in packages.items()]
        logger.debug("已加载包清单 %s: %d 个包", p, len(entries))
        return cls(entries)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
