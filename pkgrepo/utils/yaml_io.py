"""YAML 文件读写工具

包清单、配置文件和包记录都经由此模块读写。
统一 encoding="utf-8"、空值保护、原子写入。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 包记录和清单都很小，超过此大小的文件视为异常
MAX_YAML_SIZE = 4 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入: 同目录临时文件 + os.replace，中途崩溃不会留下半个记录"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path, *, strict: bool = False) -> dict[str, Any]:
    """读取 YAML 文件，返回字典

    参数:
        path: 文件路径
        strict: 为 True 时内容不是字典也抛 ValueError（包记录使用），
            否则记录警告并返回空字典

    返回:
        dict: 文件不存在或为空时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        ValueError: 文件过大，或 strict 模式下顶层不是字典
        OSError: IO 错误
    """
    p = Path(path)
    if not p.exists():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节)")

    with open(p, encoding="utf-8") as f:
        result = yaml.safe_load(f)

    if result is None:
        return {}
    if not isinstance(result, dict):
        if strict:
            raise ValueError(
                f"{p} 顶层不是字典 (实际类型: {type(result).__name__})"
            )
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            p, type(result).__name__,
        )
        return {}
    return result


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML 文件，保持键顺序，允许 Unicode"""
    content = yaml.safe_dump(
        data, default_flow_style=False,
        allow_unicode=True, sort_keys=False,
    )
    atomic_write(Path(path), content)
