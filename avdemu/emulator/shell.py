"""外部命令执行器。

所有对 ``emulator`` / ``adb`` / ``avdmanager`` / ``sdkmanager`` / ``ps`` 的调用
都经过 :class:`ShellExecutor`，以便统一记录命令行、统一转换错误，并在测试中
整体替换。
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence

from loguru import logger

from avdemu.infra import SessionConfig, ToolError


class ShellExecutor:
    """阻塞式外部命令执行器，本身不持有状态。

    Parameters
    ----------
    session:
        会话配置；仅使用 ``print_invocations`` 决定命令行的日志级别。
    """

    def __init__(self, session: SessionConfig | None = None) -> None:
        self._session = session or SessionConfig()

    def run(self, args: Sequence[str], *, input: str | None = None) -> str:
        """运行命令直至退出，返回标准输出。

        Parameters
        ----------
        args:
            命令行参数列表。
        input:
            写入子进程标准输入的文本；为 None 时标准输入指向 ``/dev/null``。

        Raises
        ------
        ToolError
            命令无法启动或以非零状态退出；携带命令行与 stderr。
        """
        command = [str(a) for a in args]
        self._log_invocation(command)
        try:
            result = subprocess.run(
                command,
                input=input,
                stdin=subprocess.DEVNULL if input is None else None,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            raise ToolError(command, stderr=str(exc)) from exc

        if result.returncode != 0:
            raise ToolError(command, result.returncode, result.stderr or result.stdout)
        return result.stdout

    def spawn(self, args: Sequence[str], *, capture_stdout: bool = False) -> subprocess.Popen:
        """启动一个脱离当前会话的后台进程，不等待其退出。

        Parameters
        ----------
        args:
            命令行参数列表。
        capture_stdout:
            为 True 时将 stdout/stderr 合并到管道中，供启动日志观察使用；
            否则丢弃输出。

        Raises
        ------
        ToolError
            进程无法启动。
        """
        command = [str(a) for a in args]
        self._log_invocation(command)
        try:
            return subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if capture_stdout else subprocess.DEVNULL,
                stderr=subprocess.STDOUT if capture_stdout else subprocess.DEVNULL,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as exc:
            raise ToolError(command, stderr=str(exc)) from exc

    def _log_invocation(self, command: list[str]) -> None:
        line = shlex.join(command)
        if self._session.print_invocations:
            logger.info("$ {}", line)
        else:
            logger.debug("$ {}", line)
