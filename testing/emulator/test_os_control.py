"""测试 emulator.os_control 模块。

进程表与 avdmanager 由 FakeExecutor 模拟，信号发送通过 patch ``os.kill`` 验证。
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from avdemu.emulator.os_control import _KILL_SIGNAL, AVDProcessManager
from avdemu.infra import (
    AVDAlreadyRunningError,
    AVDNotFoundError,
    AVDNotRunningError,
    BootError,
    EmulatorError,
)

QEMU = "qemu-system-x86_64"
OK_LINE = "INFO    | emulator: INFO: Found systemPath /opt/sdk/system-images/android-34/"


def _args(name: str) -> str:
    return f"/opt/sdk/emulator/qemu/linux-x86_64/{QEMU} -netdelay none @{name}"


@pytest.fixture
def manager(user_config, fake_executor) -> AVDProcessManager:
    fake_executor.set_avds("Pixel_7_API_34", "Nexus_5_API_30")
    fake_executor.set_processes([(4210, QEMU, _args("Pixel_7_API_34"))])
    return AVDProcessManager(user_config, fake_executor)


# ═══════════════════════════════════════════════
# 查询
# ═══════════════════════════════════════════════


class TestQueries:
    def test_list(self, manager):
        assert [a.describe() for a in manager.list()] == ["Pixel_7_API_34 RUNNING", "Nexus_5_API_30"]

    def test_is_running(self, manager):
        assert manager.is_running("Pixel_7_API_34")
        assert not manager.is_running("Nexus_5_API_30")

    def test_is_running_unknown(self, manager):
        with pytest.raises(AVDNotFoundError):
            manager.is_running("Nope")

    def test_lifecycle_uses_avd_home(self, manager, avd_home):
        assert manager.lifecycle.ini_path("Pixel") == avd_home / "Pixel.ini"
        assert manager.lifecycle.avd_dir("Pixel") == avd_home / "Pixel.avd"


# ═══════════════════════════════════════════════
# 启动
# ═══════════════════════════════════════════════


class TestStart:
    def test_start_stopped(self, manager, fake_executor):
        process = manager.start("Nexus_5_API_30")
        assert process.pid == fake_executor.spawn_pid
        assert fake_executor.spawned == [["emulator", "@Nexus_5_API_30", "-no-boot-anim", "-no-audio"]]
        assert process.stdout is None

    def test_already_running_spawns_nothing(self, manager, fake_executor):
        with pytest.raises(AVDAlreadyRunningError) as exc_info:
            manager.start("Pixel_7_API_34")
        assert exc_info.value.pid == 4210
        assert fake_executor.spawned == []

    def test_unknown_spawns_nothing(self, manager, fake_executor):
        with pytest.raises(AVDNotFoundError):
            manager.start("Nope")
        assert fake_executor.spawned == []

    def test_wait_boot_ok(self, manager, fake_executor):
        fake_executor.spawn_output = ["INFO    | Android emulator version 34.1.19\n", OK_LINE + "\n"]
        manager.start("Nexus_5_API_30", wait_boot=True, timeout=2)
        assert len(fake_executor.spawned) == 1

    def test_wait_boot_error(self, manager, fake_executor):
        fake_executor.spawn_output = ["ERROR   | x86_64 emulation currently requires hardware acceleration!\n"]
        with pytest.raises(BootError) as exc_info:
            manager.start("Nexus_5_API_30", wait_boot=True, timeout=2)
        assert exc_info.value.outcome == "failed"
        assert "hardware acceleration" in exc_info.value.line

    def test_wait_boot_exited(self, manager, fake_executor):
        fake_executor.spawn_output = ["INFO | bye\n"]
        with pytest.raises(BootError, match="exited"):
            manager.start("Nexus_5_API_30", wait_boot=True, timeout=2)


# ═══════════════════════════════════════════════
# 强杀
# ═══════════════════════════════════════════════


class TestKill:
    @patch("avdemu.emulator.os_control.os.kill")
    def test_kill_running(self, mock_kill, manager):
        assert manager.kill("Pixel_7_API_34") == 4210
        mock_kill.assert_called_once_with(4210, _KILL_SIGNAL)

    @patch("avdemu.emulator.os_control.os.kill")
    def test_kill_unknown_sends_nothing(self, mock_kill, manager):
        with pytest.raises(AVDNotFoundError):
            manager.kill("Nope")
        mock_kill.assert_not_called()

    @patch("avdemu.emulator.os_control.os.kill")
    def test_kill_stopped(self, mock_kill, manager):
        with pytest.raises(AVDNotRunningError):
            manager.kill("Nexus_5_API_30")
        mock_kill.assert_not_called()

    @patch("avdemu.emulator.os_control.os.kill", side_effect=ProcessLookupError())
    def test_process_already_gone(self, mock_kill, manager):
        with pytest.raises(AVDNotRunningError):
            manager.kill("Pixel_7_API_34")

    @patch("avdemu.emulator.os_control.os.kill", side_effect=PermissionError("not permitted"))
    def test_signal_failure(self, mock_kill, manager):
        with pytest.raises(EmulatorError, match="not permitted"):
            manager.kill("Pixel_7_API_34")

    @patch("avdemu.emulator.os_control.os.kill")
    def test_kill_all(self, mock_kill, user_config, fake_executor):
        fake_executor.set_avds("A", "B", "C")
        fake_executor.set_processes([(1, QEMU, _args("A")), (3, QEMU, _args("C"))])
        mock_kill.side_effect = [None, ProcessLookupError()]

        killed = AVDProcessManager(user_config, fake_executor).kill_all()
        assert killed == [1]
        assert mock_kill.call_count == 2


# ═══════════════════════════════════════════════
# 等待 / 重启
# ═══════════════════════════════════════════════


class TestWait:
    @patch("avdemu.emulator.os_control.time")
    def test_wait_until_online(self, mock_time, user_config, fake_executor):
        """首次查询时未运行，第二次出现在进程表中。"""
        fake_executor.set_avds("Pixel")
        mock_time.monotonic.return_value = 0.0

        def appear(_command):
            fake_executor.set_processes([(55, QEMU, _args("Pixel"))])

        fake_executor.on("ps", "-A", output="", effect=appear)
        AVDProcessManager(user_config, fake_executor).wait_until_online("Pixel", timeout=10)
        mock_time.sleep.assert_called_once_with(1)

    @patch("avdemu.emulator.os_control.time")
    def test_wait_until_online_timeout(self, mock_time, user_config, fake_executor):
        fake_executor.set_avds("Pixel")
        fake_executor.set_processes([])
        mock_time.monotonic.side_effect = [0.0, 0.5, 2.0]
        with pytest.raises(EmulatorError, match="启动超时"):
            AVDProcessManager(user_config, fake_executor).wait_until_online("Pixel", timeout=1)

    @patch("avdemu.emulator.os_control.time")
    def test_wait_until_offline_timeout(self, mock_time, manager):
        mock_time.monotonic.side_effect = [0.0, 5.0]
        with pytest.raises(EmulatorError, match="停止超时"):
            manager.wait_until_offline("Pixel_7_API_34", timeout=1)

    @patch("avdemu.emulator.os_control.time", MagicMock())
    @patch("avdemu.emulator.os_control.os.kill")
    def test_restart(self, mock_kill, manager, fake_executor):
        mock_kill.side_effect = lambda pid, sig: fake_executor.set_processes([])
        manager.restart("Pixel_7_API_34")
        mock_kill.assert_called_once()
        assert fake_executor.spawned[0][1] == "@Pixel_7_API_34"


# ═══════════════════════════════════════════════
# 删除
# ═══════════════════════════════════════════════


class TestDelete:
    def test_running_refused(self, manager, avd_home):
        (avd_home / "Pixel_7_API_34.ini").write_text("", encoding="utf-8")
        with pytest.raises(AVDAlreadyRunningError):
            manager.delete("Pixel_7_API_34")
        assert (avd_home / "Pixel_7_API_34.ini").exists()

    def test_delete_stopped(self, manager, avd_home):
        (avd_home / "Nexus_5_API_30.ini").write_text("", encoding="utf-8")
        (avd_home / "Nexus_5_API_30.avd").mkdir()
        manager.delete("Nexus_5_API_30")
        assert list(avd_home.iterdir()) == []

    def test_delete_unknown(self, manager):
        with pytest.raises(AVDNotFoundError):
            manager.delete("Nope")
