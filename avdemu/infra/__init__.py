"""基础设施层 — 日志、配置、异常体系、文件工具。"""

from .config import (
    BootConfig,
    ConfigManager,
    LogConfig,
    SessionConfig,
    ToolsConfig,
    UserConfig,
)
from .exceptions import (
    AVDAlreadyRunningError,
    AVDConfigError,
    AVDDeleteError,
    AVDEmuError,
    AVDNotFoundError,
    AVDNotRunningError,
    BootError,
    ConfigError,
    EmulatorError,
    InvalidSystemImageError,
    LifecycleError,
    NoDevicesError,
    NotFoundError,
    OutputParseError,
    SerialNotFoundError,
    StateConflictError,
    ToolError,
)
from .file_utils import load_yaml, merge_dicts, replace_lines
from .logger import setup_logger

__all__ = [
    # config
    "BootConfig",
    "ConfigManager",
    "LogConfig",
    "SessionConfig",
    "ToolsConfig",
    "UserConfig",
    # exceptions
    "AVDAlreadyRunningError",
    "AVDConfigError",
    "AVDDeleteError",
    "AVDEmuError",
    "AVDNotFoundError",
    "AVDNotRunningError",
    "BootError",
    "ConfigError",
    "EmulatorError",
    "InvalidSystemImageError",
    "LifecycleError",
    "NoDevicesError",
    "NotFoundError",
    "OutputParseError",
    "SerialNotFoundError",
    "StateConflictError",
    "ToolError",
    # file_utils
    "load_yaml",
    "merge_dicts",
    "replace_lines",
    # logger
    "setup_logger",
]
