"""Android 设备设置控制器。

通过 ``adb -s <serial> shell`` 写入系统设置（深色模式、字体缩放、显示大小、
动画开关）。这些操作都是幂等的单次写入；每次调用都重新解析目标 serial，
不缓存设备列表。

使用方式::

    from avdemu.emulator.controller import ADBController

    ctrl = ADBController(config)
    ctrl.set_night_mode(True)
    ctrl.set_font_scale(FontScale.large)
"""

from __future__ import annotations

import re

from loguru import logger

from avdemu.infra import OutputParseError, UserConfig
from avdemu.types import DisplaySize, FontScale, NightMode

from .detector import resolve_serial
from .shell import ShellExecutor

ANIMATION_SCALES: tuple[str, ...] = (
    "window_animation_scale",
    "transition_animation_scale",
    "animator_duration_scale",
)

_NIGHT_MODE_RE = re.compile(r"^Night mode: (yes|no)$")
_DENSITY_RE = re.compile(r"Physical density: (\d+)")


class ADBController:
    """设备设置控制器。

    Parameters
    ----------
    config:
        用户配置；使用其中的 adb 路径与会话 serial。
    executor:
        外部命令执行器；为 None 时按会话配置新建。
    """

    def __init__(self, config: UserConfig, executor: ShellExecutor | None = None) -> None:
        self._config = config
        self._executor = executor or ShellExecutor(config.session)

    def serial(self) -> str:
        """解析本次命令的目标 serial。"""
        return resolve_serial(self._config.session, self._executor, self._config.tools)

    def shell(self, *cmd: str) -> str:
        """在目标设备上执行 shell 命令，返回标准输出。

        Raises
        ------
        SerialNotFoundError, NoDevicesError
            无法确定目标设备。
        ToolError
            adb 调用失败。
        """
        serial = self.serial()
        return self._executor.run([self._config.tools.adb, "-s", serial, "shell", *cmd])

    # ── 深色模式 ──

    def night_mode(self) -> bool:
        """当前是否为深色模式。"""
        output = self.shell("cmd", "uimode", "night").strip()
        match = _NIGHT_MODE_RE.match(output)
        if match is None:
            raise OutputParseError(f"无法解析深色模式状态: {output!r}")
        return match.group(1) == NightMode.yes.value

    def set_night_mode(self, enabled: bool) -> None:
        self.shell("cmd", "uimode", "night", NightMode.from_enabled(enabled).value)
        logger.info("[Settings] 深色模式: {}", "开" if enabled else "关")

    def toggle_night_mode(self) -> bool:
        """切换深色模式，返回切换后的状态。"""
        enabled = not self.night_mode()
        self.set_night_mode(enabled)
        return enabled

    # ── 字体 / 显示大小 ──

    def set_font_scale(self, scale: FontScale | str) -> None:
        value = scale.value if isinstance(scale, FontScale) else str(scale)
        self.shell("settings", "put", "system", "font_scale", value)
        logger.info("[Settings] 字体缩放: {}", value)

    def physical_density(self) -> int:
        """读取 ``wm density`` 中的物理 density。"""
        output = self.shell("wm", "density")
        match = _DENSITY_RE.search(output)
        if match is None:
            raise OutputParseError(f"无法解析 density: {output.strip()!r}")
        return int(match.group(1))

    def set_display_size(self, factor: DisplaySize | float) -> int:
        """按物理 density 的倍率设置显示大小，返回写入的 density。"""
        density = int(self.physical_density() * float(factor))
        self.shell("wm", "density", str(density))
        logger.info("[Settings] 显示 density: {}", density)
        return density

    # ── 动画 ──

    def animations_enabled(self) -> bool:
        # 三个缩放值始终同步，读取一个即可
        output = self.shell("settings", "get", "global", ANIMATION_SCALES[0]).strip()
        if output not in ("0", "1"):
            raise OutputParseError(f"无法解析动画缩放: {output!r}")
        return output == "1"

    def set_animations(self, enabled: bool) -> None:
        value = "1" if enabled else "0"
        for key in ANIMATION_SCALES:
            self.shell("settings", "put", "global", key, value)
        logger.info("[Settings] 动画: {}", "开" if enabled else "关")

    def toggle_animations(self) -> bool:
        """切换动画开关，返回切换后的状态。"""
        enabled = not self.animations_enabled()
        self.set_animations(enabled)
        return enabled
