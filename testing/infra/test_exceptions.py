"""测试异常层级。"""

from pathlib import Path

import pytest

from avdemu.infra import (
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


class TestHierarchy:
    """所有异常都应继承自 AVDEmuError。"""

    @pytest.mark.parametrize(
        ("exc", "parent"),
        [
            (ConfigError("x"), AVDEmuError),
            (ToolError(["adb"]), EmulatorError),
            (BootError("a", "failed"), EmulatorError),
            (InvalidSystemImageError("x"), OutputParseError),
            (AVDNotFoundError("a"), NotFoundError),
            (SerialNotFoundError("s"), NotFoundError),
            (NoDevicesError(), NotFoundError),
            (AVDAlreadyRunningError("a"), StateConflictError),
            (AVDNotRunningError("a"), StateConflictError),
            (AVDConfigError("a", Path("c")), LifecycleError),
            (AVDDeleteError("a", Path("c")), LifecycleError),
        ],
    )
    def test_parent(self, exc, parent):
        assert isinstance(exc, parent)
        assert isinstance(exc, AVDEmuError)


class TestToolError:
    def test_attributes(self):
        err = ToolError(["adb", "devices"], 1, "  boom\n")
        assert err.command == ["adb", "devices"]
        assert err.returncode == 1
        assert err.stderr == "boom"
        assert err.command_line == "adb devices"

    def test_message_with_returncode(self):
        err = ToolError(["ps", "-A"], 2, "bad option")
        assert str(err) == "命令执行失败: ps -A (退出码 2): bad option"

    def test_message_not_started(self):
        err = ToolError(["nope"], stderr="No such file")
        assert err.returncode is None
        assert "退出码" not in str(err)
        assert "No such file" in str(err)


class TestMessages:
    def test_avd_not_found(self):
        err = AVDNotFoundError("Pixel_7_API_34")
        assert err.name == "Pixel_7_API_34"
        assert "不存在" in str(err)

    def test_already_running_with_pid(self):
        err = AVDAlreadyRunningError("Pixel", 123)
        assert err.pid == 123
        assert "pid 123" in str(err)

    def test_serial_not_found_lists_available(self):
        err = SerialNotFoundError("emulator-5556", ["emulator-5554"])
        assert err.available == ["emulator-5554"]
        assert "emulator-5554" in str(err)

    def test_serial_not_found_none_available(self):
        assert "无" in str(SerialNotFoundError("x"))

    def test_boot_error(self):
        err = BootError("Pixel", "failed", "ERROR | bad")
        assert err.outcome == "failed"
        assert "ERROR | bad" in str(err)

    def test_config_error_carries_path(self):
        err = AVDConfigError("Pixel", Path("/tmp/config.ini"), "denied")
        assert err.path == Path("/tmp/config.ini")
        assert "denied" in str(err)
