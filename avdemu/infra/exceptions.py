"""avdemu 异常层级体系。

层级树::

    AVDEmuError
    ├── ConfigError
    ├── EmulatorError
    │   ├── ToolError
    │   └── BootError
    ├── OutputParseError
    │   └── InvalidSystemImageError
    ├── NotFoundError
    │   ├── AVDNotFoundError
    │   ├── SerialNotFoundError
    │   └── NoDevicesError
    ├── StateConflictError
    │   ├── AVDAlreadyRunningError
    │   └── AVDNotRunningError
    └── LifecycleError
        ├── AVDConfigError
        └── AVDDeleteError

所有外部调用只尝试一次，本层不做任何重试。
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


# ── 基类 ──


class AVDEmuError(Exception):
    """所有 avdemu 异常的基类。"""


# ── 基础设施异常 ──


class ConfigError(AVDEmuError):
    """配置错误（文件缺失、字段非法、环境变量未设置等）。"""


# ── 外部工具异常 ──


class EmulatorError(AVDEmuError):
    """模拟器操作失败。"""


class ToolError(EmulatorError):
    """外部命令启动失败或以非零状态退出。

    Attributes
    ----------
    command:
        完整的命令行参数列表。
    returncode:
        退出码；命令未能启动时为 ``None``。
    stderr:
        捕获到的诊断输出（或启动失败的原因）。
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        msg = f"命令执行失败: {self.command_line}"
        if returncode is not None:
            msg += f" (退出码 {returncode})"
        if self.stderr:
            msg += f": {self.stderr}"
        super().__init__(msg)

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


class BootError(EmulatorError):
    """启动日志中出现错误标记，或等待超时。"""

    def __init__(self, name: str, outcome: str, line: str = "") -> None:
        self.name = name
        self.outcome = outcome
        self.line = line
        msg = f"AVD '{name}' 启动失败 ({outcome})"
        if line:
            msg += f": {line}"
        super().__init__(msg)


# ── 输出解析异常 ──


class OutputParseError(AVDEmuError):
    """外部工具输出格式与预期不符，无法可靠解析。"""


class InvalidSystemImageError(OutputParseError):
    """系统镜像标识不是 ``system-images;<platform>;<variant>;<abi>`` 四段格式。"""

    def __init__(self, package: str, reason: str = "") -> None:
        self.package = package
        msg = f"非法的系统镜像标识: '{package}'"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


# ── 查找失败 ──


class NotFoundError(AVDEmuError):
    """指定对象不在当前枚举结果中。"""


class AVDNotFoundError(NotFoundError):
    """AVD 未声明。"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"AVD '{name}' 不存在")


class SerialNotFoundError(NotFoundError):
    """显式指定的 serial 不在 ``adb devices`` 输出中。"""

    def __init__(self, serial: str, available: Sequence[str] = ()) -> None:
        self.serial = serial
        self.available = list(available)
        listed = ", ".join(self.available) or "无"
        super().__init__(f'serial {serial} 不在 "adb devices" 输出中 (在线设备: {listed})')


class NoDevicesError(NotFoundError):
    """没有任何在线设备。"""

    def __init__(self) -> None:
        super().__init__("未检测到任何在线 Android 设备")


# ── 状态冲突 ──


class StateConflictError(AVDEmuError):
    """AVD 当前运行状态不允许该操作。"""


class AVDAlreadyRunningError(StateConflictError):
    """AVD 已在运行。"""

    def __init__(self, name: str, pid: int = 0) -> None:
        self.name = name
        self.pid = pid
        msg = f"AVD '{name}' 正在运行"
        if pid:
            msg += f" (pid {pid})"
        super().__init__(msg)


class AVDNotRunningError(StateConflictError):
    """AVD 未运行。"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"AVD '{name}' 未运行")


# ── 生命周期异常 ──


class LifecycleError(AVDEmuError):
    """AVD 磁盘定义的创建/修改/删除失败。"""


class AVDConfigError(LifecycleError):
    """AVD 已由 avdmanager 创建，但 config.ini 修补失败。

    此时设备存在但配置不完整，调用方应提示执行 ``repair`` 而不是重新创建。
    """

    def __init__(self, name: str, path: Path, reason: str = "") -> None:
        self.name = name
        self.path = path
        msg = f"AVD '{name}' 已创建，但修补配置失败: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class AVDDeleteError(LifecycleError):
    """删除 AVD 描述文件或数据目录失败。"""

    def __init__(self, name: str, path: Path, reason: str = "") -> None:
        self.name = name
        self.path = path
        msg = f"删除 AVD '{name}' 失败: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
