"""子进程调用: git / scp 等外部传输命令

通过 CommandExecutor 协议抽象子进程执行，仓库管理器持有执行器实例，
测试时注入假实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from pkgrepo.core.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果，不因非零退出码抛异常"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现），阻塞直到命令结束"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            # 命令本身不存在（未安装 git/scp）
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        except subprocess.TimeoutExpired as e:
            return CommandResult(returncode=-1, stdout="", stderr=f"超时: {e}")
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


def args_to_string(args: list[str]) -> str:
    """命令参数拼成一行，用于日志和错误信息"""
    return " ".join(args)


def run_checked(
    executor: CommandExecutor,
    args: list[str],
    *,
    cwd: str | None = None,
    label: str = "cmd",
) -> CommandResult:
    """执行命令，失败抛 TransportError

    Args:
        executor: 命令执行器
        args: 命令参数列表
        cwd: 工作目录
        label: 日志标签
    """
    logger.info("  %s: %s", label, args_to_string(args))
    r = executor.execute(args, cwd=cwd)
    if not r.success:
        raise TransportError(
            f"{label}失败 (rc={r.returncode}): {args_to_string(args)}: "
            f"{r.stderr.strip()[:500]}"
        )
    return r
