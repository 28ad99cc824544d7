"""服务容器: CLI 和 Web 层通过 get_container() 获取共享的仓库系统

同一容器内的 RepositorySystem 只构造一次，包缓存在多次请求之间共享。

用法:
    container = ServiceContainer(config=Config.from_file("configs/default.yml"))
    container.packages.add("mvn://junit/junit/4.12")

    # 全局单例（Web / CLI）
    from pkgrepo.services.container import get_container
    svc = get_container().packages
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkgrepo.core.config import Config
    from pkgrepo.core.repos.system import RepositorySystem
    from pkgrepo.services.package_service import PackageService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from pkgrepo.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def system(self) -> RepositorySystem:
        if "system" not in self._instances:
            from pkgrepo.core.repos.system import RepositorySystem
            self._instances["system"] = RepositorySystem(self._config)
            logger.debug("仓库系统已创建: %s", self._config.package_root)
        return self._instances["system"]  # type: ignore[return-value]

    @property
    def packages(self) -> PackageService:
        if "packages" not in self._instances:
            from pkgrepo.services.package_service import PackageService
            self._instances["packages"] = PackageService(self.system)
        return self._instances["packages"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
