"""统一异常体系

所有业务异常继承 PkgRepoError，替代散落的 ValueError / RuntimeError。
Web 层可据此自动映射 HTTP 状态码，CLI 层可据此输出友好提示。

说明:
    传输层失败（子进程、网络）在仓库管理器内部以 TransportError 抛出，
    由 AbstractRepositoryManager.install 统一转换为错误字符串，
    并在多个来源之间汇总，不会中断整个依赖图的解析。
"""

from __future__ import annotations


class PkgRepoError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PkgRepoError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(PkgRepoError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class InvalidPackageURLError(ValidationError):
    """包 URL 格式错误（缺少 type:// 前缀等）"""

    code = "INVALID_PACKAGE_URL"


class RepositoryNotFoundError(PkgRepoError):
    """URL 协议对应的仓库管理器未注册"""

    code = "REPOSITORY_NOT_FOUND"


class TransportError(PkgRepoError):
    """拉取失败: 子进程 / 网络 / 解压"""

    code = "TRANSPORT_ERROR"


class RecordError(PkgRepoError):
    """持久化的包记录损坏或版本不匹配"""

    code = "RECORD_ERROR"


class POMError(PkgRepoError):
    """POM 文件无法解析"""

    code = "POM_ERROR"
