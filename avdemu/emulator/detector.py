"""ADB 设备探测与 serial 解析。

流程
----
1. 运行 ``adb devices`` 获取当前连接的设备列表。
2. 只保留状态为 ``device`` 的在线设备，保持 adb 给出的顺序。
3. 结合 :class:`~avdemu.infra.config.SessionConfig` 决定使用哪个 serial：

   - ``session.serial`` 非空 → 必须出现在在线设备中，否则报错
   - 没有在线设备        → 报错
   - 其余                → 取第一个在线设备

公开接口
--------
.. code-block:: python

    from avdemu.emulator.detector import detect_transports, resolve_serial

    # 仅探测
    endpoints = detect_transports(executor, config.tools)

    # 结合会话配置决策（ADBController 内部调用）
    serial = resolve_serial(config.session, executor, config.tools)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from avdemu.infra import NoDevicesError, SerialNotFoundError, SessionConfig, ToolsConfig
from avdemu.types import TransportStatus

from .shell import ShellExecutor


@dataclass
class TransportEndpoint:
    """``adb devices`` 中的单个连接。

    Attributes
    ----------
    serial:
        ADB serial，例如 ``"emulator-5554"``、``"127.0.0.1:5555"``。
    status:
        ADB 返回的设备状态，通常为 ``"device"``、``"offline"`` 或 ``"unauthorized"``。
    description:
        向用户展示的描述字符串。
    """

    serial: str
    status: str
    description: str = field(init=False)

    def __post_init__(self) -> None:
        self.description = f"{self.serial:<25} ({self.status})"

    @property
    def online(self) -> bool:
        """仅 ``device`` 状态在线；adb 新增的未知状态视为离线。"""
        try:
            return TransportStatus(self.status).online
        except ValueError:
            return False


# ── 核心探测函数 ──


def list_adb_devices(executor: ShellExecutor, tools: ToolsConfig) -> list[tuple[str, str]]:
    """运行 ``adb devices`` 并解析结果。

    Returns
    -------
    list[tuple[str, str]]
        ``(serial, status)`` 列表，**不含** ``List of devices attached`` 首行
        以及 adb 守护进程的 ``* daemon ...`` 提示行。

    Raises
    ------
    ToolError
        ``adb`` 调用失败。
    """
    output = executor.run([tools.adb, "devices"])

    devices: list[tuple[str, str]] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2:
            devices.append((parts[0], parts[1]))
    return devices


def detect_transports(executor: ShellExecutor, tools: ToolsConfig) -> list[TransportEndpoint]:
    """探测当前所有在线（status == 'device'）的连接，顺序与 adb 输出一致。"""
    endpoints: list[TransportEndpoint] = []
    for serial, status in list_adb_devices(executor, tools):
        endpoint = TransportEndpoint(serial=serial, status=status)
        if endpoint.online:
            endpoints.append(endpoint)
        else:
            logger.debug("[Detector] 忽略非在线设备: {}", endpoint.description)

    logger.debug("[Detector] 检测到 {} 个在线设备", len(endpoints))
    return endpoints


# ── 主入口：结合会话配置决策 ──


def resolve_serial(
    session: SessionConfig,
    executor: ShellExecutor,
    tools: ToolsConfig,
) -> str:
    """根据会话配置和当前在线设备决定命令发往哪个 serial。

    每次调用都重新枚举设备；显式指定的 serial 也必须在线才会被使用。

    Returns
    -------
    str
        最终使用的 ADB serial。

    Raises
    ------
    SerialNotFoundError
        ``session.serial`` 不在在线设备中。
    NoDevicesError
        未指定 serial 且没有在线设备。
    ToolError
        ``adb`` 调用失败。
    """
    endpoints = detect_transports(executor, tools)
    serials = [e.serial for e in endpoints]

    if session.serial:
        if session.serial not in serials:
            raise SerialNotFoundError(session.serial, serials)
        logger.debug("[Detector] 使用指定的 serial: {}", session.serial)
        return session.serial

    if not endpoints:
        raise NoDevicesError()

    if len(endpoints) > 1:
        logger.debug(
            "[Detector] 检测到 {} 个在线设备，使用第一个: {}",
            len(endpoints),
            endpoints[0].serial,
        )
    return endpoints[0].serial
