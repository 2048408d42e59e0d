"""进程表扫描 — 从宿主进程列表中找出模拟器进程及其 AVD 名称。

流程
----
1. ``ps -A -ww -o pid=,comm=`` 列出全部进程，保留命令名包含
   ``qemu-system`` 的行。
2. 对每个 pid 运行 ``ps -ww -o args= -p <pid>`` 读取完整启动参数，
   以 ``@`` 开头的参数即 AVD 名称。

两次查询之间进程可能已经退出，此时该进程视为无关进程。
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from avdemu.infra import OutputParseError, ToolError, ToolsConfig

from .shell import ShellExecutor


@dataclass(frozen=True, slots=True)
class EmulatorProcess:
    """正在运行的模拟器进程。

    Attributes
    ----------
    pid:
        宿主进程号。
    avd_name:
        启动参数中 ``@`` 之后的 AVD 名称。
    """

    pid: int
    avd_name: str


def list_emulator_pids(executor: ShellExecutor, tools: ToolsConfig) -> list[int]:
    """返回所有模拟器底层进程的 pid。

    Raises
    ------
    ToolError
        ``ps`` 调用失败。
    OutputParseError
        pid 字段不是整数（``ps`` 输出格式已变化，无法可靠关联）。
    """
    output = executor.run([tools.ps, "-A", "-ww", "-o", "pid=,comm="])

    pids: list[int] = []
    for line in output.splitlines():
        if tools.emulator_process not in line:
            continue
        fields = line.split()
        try:
            pids.append(int(fields[0]))
        except ValueError as exc:
            raise OutputParseError(f"无法解析进程号: {line.strip()!r}") from exc
    return pids


def avd_name_of_pid(executor: ShellExecutor, tools: ToolsConfig, pid: int) -> str:
    """返回 *pid* 进程所运行的 AVD 名称。

    进程不是模拟器进程（没有 ``@`` 参数）或已经退出时返回空字符串。
    """
    try:
        output = executor.run([tools.ps, "-ww", "-o", "args=", "-p", str(pid)])
    except ToolError as exc:
        if exc.returncode is None:
            raise
        logger.debug("[Process] pid {} 已不存在: {}", pid, exc)
        return ""

    for arg in output.strip().split(" "):
        if arg.startswith("@"):
            return arg.removeprefix("@")
    return ""


def scan_emulator_processes(executor: ShellExecutor, tools: ToolsConfig) -> list[EmulatorProcess]:
    """扫描进程表，返回能识别出 AVD 名称的模拟器进程。"""
    processes: list[EmulatorProcess] = []
    for pid in list_emulator_pids(executor, tools):
        name = avd_name_of_pid(executor, tools, pid)
        if not name:
            logger.debug("[Process] 忽略无 AVD 参数的模拟器进程: {}", pid)
            continue
        processes.append(EmulatorProcess(pid=pid, avd_name=name))

    logger.debug("[Process] 检测到 {} 个模拟器进程", len(processes))
    return processes
