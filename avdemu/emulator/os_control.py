"""AVD 进程管理 — 在宿主操作系统上启动、强杀、查询模拟器进程。

每个操作都先重新合并一次 AVD 声明与进程表，再决定是否执行；
查询与操作之间存在无法避免的竞争窗口，由 adb 传输层自行兜底。

使用方式::

    from avdemu.emulator.os_control import AVDProcessManager

    manager = AVDProcessManager(config)
    manager.start("Pixel_7_API_34")
    manager.wait_until_online("Pixel_7_API_34", timeout=60)
    manager.kill("Pixel_7_API_34")
"""

from __future__ import annotations

import os
import signal
import subprocess
import time

from loguru import logger

from avdemu.infra import (
    AVDAlreadyRunningError,
    AVDNotRunningError,
    BootError,
    EmulatorError,
    UserConfig,
)

from .avd import DeviceReconciler, VirtualDevice
from .avdmanager import AVDLifecycleManager
from .boot import BootWatcher
from .shell import ShellExecutor

# Windows 没有 SIGKILL
_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


class AVDProcessManager:
    """AVD 进程生命周期管理。

    Parameters
    ----------
    config:
        用户配置。
    executor:
        外部命令执行器；为 None 时按会话配置新建。
    """

    def __init__(self, config: UserConfig, executor: ShellExecutor | None = None) -> None:
        self._config = config
        self._tools = config.tools
        self._executor = executor or ShellExecutor(config.session)
        self._reconciler = DeviceReconciler(self._executor, self._tools)
        self._lifecycle = AVDLifecycleManager(config, self._executor)

    @property
    def reconciler(self) -> DeviceReconciler:
        return self._reconciler

    @property
    def lifecycle(self) -> AVDLifecycleManager:
        return self._lifecycle

    # ── 查询 ──

    def list(self) -> list[VirtualDevice]:
        """全部已声明 AVD 及其当前运行状态。"""
        return self._reconciler.list()

    def is_running(self, name: str) -> bool:
        """AVD 是否正在运行。

        Raises
        ------
        AVDNotFoundError
            *name* 未声明。
        """
        return self._reconciler.find(name).running

    # ── 启动 / 停止 ──

    def start(
        self,
        name: str,
        *,
        wait_boot: bool = False,
        timeout: float | None = None,
    ) -> subprocess.Popen:
        """在后台启动 AVD，进程创建后立即返回。

        返回成功只表示进程已创建，不表示系统已启动完成；新进程要过一段时间
        才会出现在进程表中。

        Parameters
        ----------
        name:
            AVD 名称。
        wait_boot:
            为 True 时观察模拟器输出，直到出现成功/错误标记或超时。
        timeout:
            观察超时秒数；为 None 时使用 ``boot.timeout``。

        Raises
        ------
        AVDNotFoundError
            *name* 未声明。
        AVDAlreadyRunningError
            AVD 已在运行，不会启动第二个进程。
        ToolError
            模拟器进程无法创建。
        BootError
            ``wait_boot`` 时启动日志报错或超时（进程保持运行）。
        """
        avd = self._reconciler.find(name)
        if avd.running:
            raise AVDAlreadyRunningError(name, avd.pid)

        args = [self._tools.emulator, f"@{name}", "-no-boot-anim", "-no-audio"]
        process = self._executor.spawn(args, capture_stdout=wait_boot)
        logger.info("[AVD] 正在启动 {} (pid {})", name, process.pid)

        if wait_boot:
            boot = self._config.boot
            watcher = BootWatcher.from_config(process.stdout, boot)
            result = watcher.wait(boot.timeout if timeout is None else timeout)
            if not result.ok:
                raise BootError(name, result.outcome.value, result.line)
            logger.info("[AVD] {} 已启动", name)

        return process

    def kill(self, name: str) -> int:
        """向 AVD 的模拟器进程发送一次强杀信号，返回其 pid。

        不做优雅关闭，也不重试。

        Raises
        ------
        AVDNotFoundError
            *name* 未声明，不发送任何信号。
        AVDNotRunningError
            AVD 未运行，或进程在发送信号前已退出。
        EmulatorError
            发送信号失败。
        """
        avd = self._reconciler.find(name)
        if not avd.running:
            raise AVDNotRunningError(name)
        self._terminate(avd)
        return avd.pid

    def kill_all(self) -> list[int]:
        """强杀所有正在运行的 AVD，返回被终止的 pid。"""
        killed: list[int] = []
        for avd in self._reconciler.list():
            if not avd.running:
                continue
            try:
                self._terminate(avd)
            except AVDNotRunningError:
                logger.debug("[AVD] {} (pid {}) 已退出", avd.name, avd.pid)
                continue
            killed.append(avd.pid)
        return killed

    def _terminate(self, avd: VirtualDevice) -> None:
        try:
            os.kill(avd.pid, _KILL_SIGNAL)
        except ProcessLookupError as exc:
            raise AVDNotRunningError(avd.name) from exc
        except OSError as exc:
            raise EmulatorError(f"无法终止 AVD '{avd.name}' (pid {avd.pid}): {exc}") from exc
        logger.info("[AVD] 已终止 {} (pid {})", avd.name, avd.pid)

    def restart(self, name: str, timeout: float = 30) -> subprocess.Popen:
        """强杀后等待进程消失，再重新启动。"""
        self.kill(name)
        self.wait_until_offline(name, timeout=timeout)
        return self.start(name)

    def wait_until_online(self, name: str, timeout: float = 120) -> None:
        """阻塞等待 AVD 进程出现在进程表中。

        Raises
        ------
        EmulatorError
            超时仍未出现。
        """
        start_time = time.monotonic()
        while not self.is_running(name):
            if time.monotonic() - start_time > timeout:
                raise EmulatorError(f"AVD '{name}' 启动超时 ({timeout}s)")
            time.sleep(1)

    def wait_until_offline(self, name: str, timeout: float = 30) -> None:
        """阻塞等待 AVD 进程从进程表中消失。

        Raises
        ------
        EmulatorError
            超时仍在运行。
        """
        start_time = time.monotonic()
        while self.is_running(name):
            if time.monotonic() - start_time > timeout:
                raise EmulatorError(f"AVD '{name}' 停止超时 ({timeout}s)")
            time.sleep(1)

    # ── 删除 ──

    def delete(self, name: str) -> None:
        """删除 AVD 的磁盘定义；正在运行的 AVD 拒绝删除。

        Raises
        ------
        AVDNotFoundError
            *name* 未声明。
        AVDAlreadyRunningError
            AVD 正在运行。
        AVDDeleteError
            删除失败。
        """
        avd = self._reconciler.find(name)
        if avd.running:
            raise AVDAlreadyRunningError(name, avd.pid)
        self._lifecycle.delete(name)
