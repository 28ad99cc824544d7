"""仓库包管理模块

拆分说明:
- context.py: 依赖上下文 / 依赖集合
- source.py: 仓库来源
- package.py: 仓库包与安装算法
- store.py: 包记录持久化（带 schema 版本）
- manager.py: 仓库管理器基类（安装标记缓存）
- transports.py: git / scp / url / local 传输实现
- manifest.py: 包清单加载
- system.py: 仓库系统（管理器注册表 + 包缓存 + 安装驱动）
"""

from pkgrepo.core.repos.context import DependencyCollection, DependencyContext
from pkgrepo.core.repos.manager import AbstractRepositoryManager, ManagerKind
from pkgrepo.core.repos.package import RepositoryPackage
from pkgrepo.core.repos.source import RepositorySource
from pkgrepo.core.repos.system import RepositorySystem

__all__ = [
    "AbstractRepositoryManager",
    "DependencyCollection",
    "DependencyContext",
    "ManagerKind",
    "RepositoryPackage",
    "RepositorySource",
    "RepositorySystem",
]
