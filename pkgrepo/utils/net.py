"""网络工具: URL 安全校验与文件下载

Downloader 协议抽象 HTTP 下载，URL / Maven 仓库管理器通过它拉取文件，
测试时注入假实现。
"""

from __future__ import annotations

import logging
import shutil
import urllib.error
import urllib.request
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

from pkgrepo.core.exceptions import TransportError, ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


class Downloader(Protocol):
    """下载器协议"""

    def download(self, url: str, dest: Path) -> int:
        """下载 url 到 dest，返回字节数；失败抛 TransportError"""
        ...

    def last_modified(self, url: str) -> int | None:
        """远端最后修改时间（毫秒），无法获知时返回 None"""
        ...


class UrllibDownloader:
    """基于 urllib.request 的阻塞下载器（默认实现）"""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def download(self, url: str, dest: Path) -> int:
        try:
            validate_url_scheme(url, context="download")
        except ValidationError as e:
            raise TransportError(str(e)) from e

        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = dest.with_name(dest.name + ".part")
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as resp, \
                    open(tmp, "wb") as out:  # nosec B310
                shutil.copyfileobj(resp, out)
            num_bytes = tmp.stat().st_size
            if num_bytes <= 0:
                raise TransportError(f"下载未返回数据: {url}")
            tmp.replace(dest)
        except urllib.error.HTTPError as e:
            raise TransportError(f"下载失败: {url} - HTTP {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(f"下载失败: {url} - {e}") from e
        finally:
            tmp.unlink(missing_ok=True)
        logger.debug("  已保存: %s (%d 字节)", dest, num_bytes)
        return num_bytes

    def last_modified(self, url: str) -> int | None:
        if urlparse(url).scheme not in _ALLOWED_SCHEMES:
            return None
        req = urllib.request.Request(url, method="HEAD")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                header = resp.headers.get("Last-Modified")
        except (urllib.error.URLError, OSError) as e:
            logger.debug("无法获取最后修改时间: %s - %s", url, e)
            return None
        if not header:
            return None
        try:
            return int(parsedate_to_datetime(header).timestamp() * 1000)
        except (TypeError, ValueError):
            return None
