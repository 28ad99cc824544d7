"""集中配置管理

包存储目录、安装模式开关、Maven 镜像列表等统一在此配置。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from pkgrepo.core.exceptions import ConfigError
from pkgrepo.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

MAVEN_CENTRAL = "https://repo1.maven.org/maven2/"


@dataclass
class Config:
    """全局配置"""

    # 目录
    package_root: str = "deps/packages"
    pkg_index_root: str = ""          # 为空时使用 <package_root>/.pkgindex
    manifest: str = "deps/manifest.yml"

    # 安装模式
    info: bool = False                # 输出每个包的详细安装信息
    reinstall: bool = False           # 忽略安装标记，备份旧目录后重新安装
    update: bool = False              # 已安装的包执行 update（git pull）

    # Maven
    maven_repositories: list[str] = field(default_factory=lambda: [MAVEN_CENTRAL])
    maven_local_repository: str = "~/.m2/repository"
    use_local_maven_repository: bool = True
    maven_scopes: list[str] = field(default_factory=lambda: ["compile"])

    # 网络，None 表示不设超时
    download_timeout: float | None = None

    extra: dict = field(default_factory=dict)

    @property
    def index_root(self) -> Path:
        if self.pkg_index_root:
            return Path(self.pkg_index_root)
        return Path(self.package_root) / ".pkgindex"

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (OSError, ValueError) as e:
            raise ConfigError(f"无法读取配置文件 {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"配置文件格式错误 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        for key in ("maven_repositories", "maven_scopes"):
            if key in matched and not isinstance(matched[key], list):
                raise ConfigError(f"配置项 {key} 必须是列表")
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局实例仅供 CLI / Web 入口使用；核心对象都显式接收 Config
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
