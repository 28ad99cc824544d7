"""pkgrepo 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os
from pathlib import Path
from typing import Any

import click

from pkgrepo import __version__
from pkgrepo.core.config import init_config
from pkgrepo.core.exceptions import ConfigError
from pkgrepo.services.container import get_container, reset_container
from pkgrepo.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path", default="configs/default.yml",
    help="配置文件路径（不存在时使用默认配置）",
)
def main(config_path: str) -> None:
    """pkgrepo - 第三方包获取、缓存与依赖解析"""
    setup_logging(
        level=os.getenv("PKGREPO_LOG_LEVEL", "INFO"),
        json_output=os.getenv("PKGREPO_LOG_JSON", "") == "1",
    )
    if Path(config_path).exists():
        try:
            init_config(config_path)
        except ConfigError as e:
            raise click.ClickException(str(e)) from e
    reset_container()


# 注册各领域子命令
from pkgrepo.cli.cmd_pkg import register as _reg_pkg  # noqa: E402

_reg_pkg(main)
