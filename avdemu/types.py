"""全局枚举类型定义。

AVD 状态、ADB 传输状态以及设备设置档位等枚举集中于此，供各层引用。
"""

from __future__ import annotations

from enum import Enum


# ── 枚举基类 ──


class BaseEnum(Enum):
    """提供更友好的中文报错信息。"""

    @classmethod
    def _missing_(cls, value: object) -> None:
        supported = ", ".join(str(m.value) for m in cls)
        raise ValueError(f'"{value}" 不是合法的 {cls.__name__} 取值。 支持: [{supported}]')


class StrEnum(str, BaseEnum):
    """字符串枚举基类。"""


class FloatEnum(float, BaseEnum):
    """浮点枚举基类。"""


# ── ADB 传输 ──


class TransportStatus(StrEnum):
    """``adb devices`` 第二列给出的连接状态。"""

    device = "device"
    offline = "offline"
    unauthorized = "unauthorized"
    bootloader = "bootloader"
    recovery = "recovery"
    sideload = "sideload"
    host = "host"
    no_permissions = "no"

    @property
    def online(self) -> bool:
        """仅 ``device`` 状态可以接收 shell 命令。"""
        return self is TransportStatus.device


# ── 启动观察 ──


class BootOutcome(StrEnum):
    """启动日志观察的终止原因。"""

    booted = "booted"
    """出现成功标记"""
    failed = "failed"
    """出现错误前缀"""
    exited = "exited"
    """输出流结束但未出现任何标记"""
    timeout = "timeout"
    """超过等待时限"""

    @property
    def ok(self) -> bool:
        return self is BootOutcome.booted


# ── 设备设置档位 ──


class FontScale(StrEnum):
    """系统字体缩放档位（``settings put system font_scale``）。"""

    small = "0.85"
    default = "1.0"
    large = "1.15"
    largest = "1.30"


class DisplaySize(FloatEnum):
    """显示大小档位，数值为相对物理 density 的倍率。"""

    small = 0.85
    default = 1.0
    large = 1.1625
    largest = 1.325
    ultra = 1.5


class NightMode(StrEnum):
    """``cmd uimode night`` 取值。"""

    yes = "yes"
    no = "no"

    @classmethod
    def from_enabled(cls, enabled: bool) -> NightMode:
        return cls.yes if enabled else cls.no
