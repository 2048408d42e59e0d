"""模拟器层 — AVD 状态合并、进程管理、磁盘定义与设备设置。

提供四类核心能力：

1. **状态合并** (`DeviceReconciler`)：
   合并 ``emulator -list-avds`` 与进程表，得到每个 AVD 的运行状态与 pid。

2. **进程管理** (`AVDProcessManager`)：
   启动、强杀、等待 AVD 进程。

3. **磁盘定义** (`AVDLifecycleManager`)：
   通过 avdmanager 创建 AVD、修补 config.ini、删除 AVD。

4. **设备设置** (`ADBController` / `resolve_serial`)：
   选择目标 serial 并通过 adb shell 写入系统设置。
"""

from avdemu.emulator.avd import (
    DeviceReconciler,
    VirtualDevice,
    list_declared_avds,
)
from avdemu.emulator.avdmanager import (
    AVDLifecycleManager,
    CreatedAVD,
    avd_name_for,
    patch_config,
    patch_config_lines,
)
from avdemu.emulator.boot import BootResult, BootWatcher, watch_boot
from avdemu.emulator.controller import ADBController
from avdemu.emulator.detector import (
    TransportEndpoint,
    detect_transports,
    list_adb_devices,
    resolve_serial,
)
from avdemu.emulator.os_control import AVDProcessManager
from avdemu.emulator.process_table import (
    EmulatorProcess,
    avd_name_of_pid,
    list_emulator_pids,
    scan_emulator_processes,
)
from avdemu.emulator.sdkmanager import SystemImage, list_system_images
from avdemu.emulator.shell import ShellExecutor

__all__ = [
    # avd
    "DeviceReconciler",
    "VirtualDevice",
    "list_declared_avds",
    # avdmanager
    "AVDLifecycleManager",
    "CreatedAVD",
    "avd_name_for",
    "patch_config",
    "patch_config_lines",
    # boot
    "BootResult",
    "BootWatcher",
    "watch_boot",
    # controller
    "ADBController",
    # detector
    "TransportEndpoint",
    "detect_transports",
    "list_adb_devices",
    "resolve_serial",
    # os_control
    "AVDProcessManager",
    # process_table
    "EmulatorProcess",
    "avd_name_of_pid",
    "list_emulator_pids",
    "scan_emulator_processes",
    # sdkmanager
    "SystemImage",
    "list_system_images",
    # shell
    "ShellExecutor",
]
