"""AVD 枚举与运行状态合并。

``emulator -list-avds`` 给出已声明的 AVD，进程表给出正在运行的模拟器，
两者没有共享的标识，只能按 AVD 名称做精确匹配。

运行状态每次查询都重新计算，从不缓存：外部进程随时可能启动或退出。
调用方拿到的记录只是一个快照，在执行改变状态的操作之前应重新查询。

使用方式::

    from avdemu.emulator.avd import DeviceReconciler

    reconciler = DeviceReconciler(executor, config.tools)
    for avd in reconciler.list():
        print(avd.describe())
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from avdemu.infra import AVDNotFoundError, ToolsConfig

from .process_table import scan_emulator_processes
from .shell import ShellExecutor

# emulator v34 会把崩溃报告提示混进 -list-avds 的输出
_NOISE_MARKERS: tuple[str, ...] = ("Storing crashdata",)


@dataclass(slots=True)
class VirtualDevice:
    """已声明的 AVD 及其当前运行状态。

    Attributes
    ----------
    name:
        AVD 名称，例如 ``"Pixel_7_API_34"``。
    running:
        是否找到以该名称启动的模拟器进程。
    pid:
        模拟器进程号；未运行时为 ``0``。
    """

    name: str
    running: bool = False
    pid: int = 0

    def describe(self) -> str:
        suffix = " RUNNING" if self.running else ""
        return f"{self.name}{suffix}"


def list_declared_avds(executor: ShellExecutor, tools: ToolsConfig) -> list[str]:
    """返回 ``emulator -list-avds`` 列出的 AVD 名称，过滤空行与工具噪音。

    Raises
    ------
    ToolError
        ``emulator`` 调用失败。
    """
    output = executor.run([tools.emulator, "-list-avds"])

    names: list[str] = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        if any(marker in line for marker in _NOISE_MARKERS):
            logger.debug("[AVD] 忽略工具噪音: {}", line)
            continue
        names.append(line)
    return names


class DeviceReconciler:
    """合并 AVD 声明与进程表，得到每个 AVD 的运行状态。

    Parameters
    ----------
    executor:
        外部命令执行器。
    tools:
        外部工具配置。
    """

    def __init__(self, executor: ShellExecutor, tools: ToolsConfig) -> None:
        self._executor = executor
        self._tools = tools

    def list(self) -> list[VirtualDevice]:
        """返回全部已声明 AVD，顺序与 ``emulator -list-avds`` 一致。

        Raises
        ------
        ToolError
            任一外部命令调用失败。
        OutputParseError
            进程表格式无法解析。
        """
        avds = [VirtualDevice(name=name) for name in list_declared_avds(self._executor, self._tools)]
        by_name = {avd.name: avd for avd in avds}

        for process in scan_emulator_processes(self._executor, self._tools):
            avd = by_name.get(process.avd_name)
            if avd is None:
                logger.debug(
                    "[AVD] 进程 {} 运行的 AVD '{}' 未声明，忽略",
                    process.pid,
                    process.avd_name,
                )
                continue
            if avd.running:
                logger.warning(
                    "[AVD] AVD '{}' 存在多个进程 ({}, {})，使用第一个",
                    avd.name,
                    avd.pid,
                    process.pid,
                )
                continue
            avd.running = True
            avd.pid = process.pid

        return avds

    def find(self, name: str) -> VirtualDevice:
        """重新查询并返回名为 *name* 的 AVD。

        Raises
        ------
        AVDNotFoundError
            *name* 未声明。
        """
        for avd in self.list():
            if avd.name == name:
                return avd
        raise AVDNotFoundError(name)
