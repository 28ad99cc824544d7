"""pkgrepo 日志配置

文本格式给人看，JSON 格式给 CI 收集。messages.report 上报诊断时会把
出错文件 / URL 放进 LogRecord 的 location 属性，JSON 输出里单列一个字段。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# messages.report 通过 extra 传入
LOCATION_ATTR = "location"


class JSONFormatter(logging.Formatter):
    """一行一个 JSON 对象

    字段: timestamp / level / logger / message / line，
    另有 location（诊断所在的 POM 或 URL）与 exception（仅在存在时输出）。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        location = getattr(record, LOCATION_ATTR, None)
        if location:
            entry["location"] = location
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _clear_handlers(root: logging.Logger) -> None:
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> None:
    """配置根日志器，重复调用只保留最后一次的 handler

    未知的级别名按 INFO 处理；stream 默认 stderr，stdout 留给命令输出。
    """
    root = logging.getLogger()
    _clear_handlers(root)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    """移除根日志器的全部 handler（测试之间使用）"""
    _clear_handlers(logging.getLogger())
