"""诊断消息上报

仓库管理器和 POM 解析器的所有诊断都经由 MessageSink 上报，
同时写入 logging（未挂接 sink 时日志即为控制台输出）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from pkgrepo.utils.logger import LOCATION_ATTR

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


_LOG_LEVELS = {
    MessageType.INFO: logging.INFO,
    MessageType.WARNING: logging.WARNING,
    MessageType.ERROR: logging.ERROR,
    MessageType.DEBUG: logging.DEBUG,
}


class MessageSink(Protocol):
    """诊断消息接收方"""

    def report_message(
        self,
        text: str,
        location_url: str | None,
        line: int,
        col: int,
        severity: MessageType,
    ) -> None:
        ...


@dataclass
class Message:
    text: str
    location_url: str | None = None
    line: int = -1
    col: int = -1
    severity: MessageType = MessageType.INFO


@dataclass
class CollectingSink:
    """把消息收集到内存，供 Web 接口和测试读取"""

    messages: list[Message] = field(default_factory=list)

    def report_message(
        self,
        text: str,
        location_url: str | None,
        line: int,
        col: int,
        severity: MessageType,
    ) -> None:
        self.messages.append(Message(text, location_url, line, col, severity))

    @property
    def errors(self) -> list[str]:
        return [m.text for m in self.messages if m.severity == MessageType.ERROR]

    def clear(self) -> None:
        self.messages.clear()


def report(
    sink: MessageSink | None,
    severity: MessageType,
    *parts: object,
    location_url: str | None = None,
    line: int = -1,
    col: int = -1,
    log: logging.Logger | None = None,
) -> str:
    """拼接消息片段，写日志并上报 sink，返回消息文本"""
    text = "".join(str(p) for p in parts)
    where = f" ({location_url})" if location_url else ""
    (log or logger).log(
        _LOG_LEVELS[severity], "%s%s", text, where,
        extra={LOCATION_ATTR: location_url},
    )
    if sink is not None:
        sink.report_message(text, location_url, line, col, severity)
    return text


def error(sink: MessageSink | None, *parts: object, **kwargs) -> str:
    return report(sink, MessageType.ERROR, *parts, **kwargs)


def warning(sink: MessageSink | None, *parts: object, **kwargs) -> str:
    return report(sink, MessageType.WARNING, *parts, **kwargs)


def info(sink: MessageSink | None, *parts: object, **kwargs) -> str:
    return report(sink, MessageType.INFO, *parts, **kwargs)
