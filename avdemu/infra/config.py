"""配置管理 — 基于 Pydantic v2。

配置从 YAML 文件加载，经过 Pydantic 校验后生成不可变的配置对象。
所有原本属于进程级全局变量的开关（打印命令行、会话 serial）都放在
:class:`SessionConfig` 中，显式传给需要它的组件。

使用方式::

    from avdemu.infra.config import ConfigManager

    config = ConfigManager.load("avdemu.yaml")
    print(config.session.avd_home)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigError
from .file_utils import load_yaml, merge_dicts


# ── 子配置模型 ──


class ToolsConfig(BaseModel):
    """外部命令行工具。既可以是 PATH 中的命令名，也可以是绝对路径。"""

    model_config = {"frozen": True}

    emulator: str = "emulator"
    """模拟器可执行文件"""
    adb: str = "adb"
    """ADB 可执行文件"""
    avdmanager: str = "avdmanager"
    """AVD 管理工具"""
    sdkmanager: str = "sdkmanager"
    """SDK 管理工具"""
    ps: str = "ps"
    """进程列表工具"""
    emulator_process: str = "qemu-system"
    """模拟器底层进程名（子串匹配）"""


class SessionConfig(BaseModel):
    """单次会话的上下文。"""

    model_config = {"frozen": True}

    print_invocations: bool = False
    """以 INFO 级别输出每条外部命令"""
    serial: str | None = None
    """显式指定的 ADB serial。None = 取第一个在线设备"""
    android_home: Path | None = None
    """SDK 根目录。None = 读取 ANDROID_HOME / ANDROID_SDK_ROOT"""
    android_user_home: Path | None = None
    """用户数据根目录。None = 读取 ANDROID_USER_HOME，缺省 ~/.android"""
    avd_home: Path | None = None
    """AVD 定义目录。None = 读取 ANDROID_AVD_HOME，缺省 <android_user_home>/avd"""

    @field_validator("serial")
    @classmethod
    def _blank_serial(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _resolve_env_defaults(self) -> SessionConfig:
        """从环境变量填充未显式给出的路径。"""
        if self.android_home is None:
            sdk = os.environ.get("ANDROID_HOME") or os.environ.get("ANDROID_SDK_ROOT")
            if sdk:
                object.__setattr__(self, "android_home", Path(sdk))

        if self.android_user_home is None:
            user_home = os.environ.get("ANDROID_USER_HOME")
            resolved = Path(user_home) if user_home else Path.home() / ".android"
            object.__setattr__(self, "android_user_home", resolved)

        if self.avd_home is None:
            avd_home = os.environ.get("ANDROID_AVD_HOME")
            resolved = Path(avd_home) if avd_home else self.android_user_home / "avd"
            object.__setattr__(self, "avd_home", resolved)
        return self


class BootConfig(BaseModel):
    """启动日志观察配置。"""

    model_config = {"frozen": True}

    ok_token: str = "emulator: INFO: Found systemPath"
    """出现即视为启动成功的子串"""
    error_prefix: str = "ERROR"
    """以此开头的行视为启动失败"""
    timeout: float = 5.0
    """等待终止标记的最长秒数"""

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("boot.timeout 必须为正数")
        return v


class LogConfig(BaseModel):
    """日志配置。"""

    model_config = {"frozen": True}

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    """控制台日志级别"""
    dir: Path | None = None
    """日志文件目录。None = 仅输出到控制台"""

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


# ── 顶层配置 ──


class UserConfig(BaseModel):
    """用户配置（顶层聚合）。"""

    model_config = {"frozen": True}

    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    boot: BootConfig = Field(default_factory=BootConfig)
    log: LogConfig = Field(default_factory=LogConfig)

    sdcard_mb: int = 8192
    """新建 AVD 的默认 SD 卡大小 (MB)"""

    @field_validator("sdcard_mb")
    @classmethod
    def _validate_sdcard(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("sdcard_mb 必须为正整数")
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> UserConfig:
        """从 YAML 文件加载配置。

        Raises
        ------
        ConfigError
            YAML 语法错误、顶层不是映射，或字段校验失败。
        """
        try:
            data = load_yaml(path)
        except yaml.YAMLError as exc:
            raise ConfigError(f"配置文件 {path} 解析失败: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"配置文件 {path} 顶层必须是映射，实际为 {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"配置文件 {path} 校验失败: {exc}") from exc

    def with_overrides(self, overrides: dict[str, Any]) -> UserConfig:
        """返回叠加了 *overrides*（嵌套字典，值为 None 的键忽略）的新配置。

        Raises
        ------
        ConfigError
            叠加后的字段校验失败。
        """
        cleaned = _drop_none(overrides)
        if not cleaned:
            return self
        data = merge_dicts(self.model_dump(exclude_unset=True), cleaned)
        try:
            return UserConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"配置校验失败: {exc}") from exc


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _drop_none(value)
            if not value:
                continue
        elif value is None:
            continue
        result[key] = value
    return result


# ── ConfigManager ──


class ConfigManager:
    """配置管理器 — 提供加载入口。"""

    @staticmethod
    def load(path: str | Path | None) -> UserConfig:
        """从文件加载用户配置。未指定或不存在时返回默认配置。"""
        if path is None:
            return UserConfig()
        path = Path(path)
        if not path.exists():
            logger.warning("配置文件 {} 不存在，使用默认配置", path)
            return UserConfig()
        config = UserConfig.from_yaml(path)
        logger.info("已加载配置: {}", path)
        return config
