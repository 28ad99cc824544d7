"""包服务: CLI / Web 共用的包查询与安装入口

RepositorySystem 的诊断通过 CollectingSink 收集，
每次操作返回本次产生的错误信息，供接口层展示。
安装类操作与错误收集在同一把锁内串行执行（Web 多线程共用一个实例）。
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from pkgrepo.core.messages import CollectingSink
from pkgrepo.core.repos.package import RepositoryPackage
from pkgrepo.core.repos.system import RepositorySystem

logger = logging.getLogger(__name__)


def package_to_dict(pkg: RepositoryPackage) -> dict[str, Any]:
    src = pkg.current_source
    return {
        "name": pkg.package_name,
        "manager": pkg.manager.manager_name,
        "file_name": pkg.file_name,
        "installed": pkg.installed,
        "installed_root": pkg.installed_root,
        "version_root": str(pkg.version_root),
        "current_source": src.url if src is not None else None,
        "sources": [s.url for s in pkg.sources],
        "dependencies": [d.package_name for d in pkg.dependencies or []],
        "defines_classes": pkg.defines_classes,
        "installed_time": pkg.installed_time,
        "install_error": pkg.install_error,
        "class_path_entry": pkg.class_path_entry(),
    }


class PackageService:
    """包的添加、安装与查询"""

    def __init__(self, system: RepositorySystem, sink: CollectingSink | None = None) -> None:
        self.system = system
        self.sink = sink if sink is not None else CollectingSink()
        system.set_message_sink(self.sink)
        self._lock = threading.Lock()

    def _take_errors(self) -> list[str]:
        errors = list(self.sink.errors)
        self.sink.clear()
        return errors

    def add(self, url: str, install: bool = True) -> tuple[dict[str, Any] | None, list[str]]:
        """添加包；URL 无效时返回 (None, 错误列表)

        Raises:
            InvalidPackageURLError / RepositoryNotFoundError: 协议无法解析
        """
        # 先校验协议，让接口层拿到带错误码的异常
        self.system.get_manager_from_url(url)
        with self._lock:
            pkg = self.system.add_package(url, install=install)
            errors = self._take_errors()
            if pkg is None:
                return None, errors
            logger.info("已添加包: %s (installed=%s)", pkg.package_name, pkg.installed)
            return package_to_dict(pkg), errors

    def install_manifest(self, path: str | Path | None = None) -> tuple[list[dict[str, Any]], list[str]]:
        with self._lock:
            pkgs = self.system.install_manifest(path)
            return [package_to_dict(p) for p in pkgs], self._take_errors()

    def list_all(self) -> list[dict[str, Any]]:
        return [package_to_dict(p) for p in self.system.packages]

    def list_records(self) -> list[dict[str, Any]]:
        """上次安装留下的包记录（本进程尚未加载的包也包含在内）"""
        return self.system.store.list_records()

    def get(self, name: str) -> dict[str, Any] | None:
        pkg = self.system.get_package(name)
        return package_to_dict(pkg) if pkg is not None else None

    def class_path(self, names: list[str]) -> str:
        return self.system.get_class_path(names)
