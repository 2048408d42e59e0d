"""测试公共 fixtures。

外部命令全部通过 :class:`FakeExecutor` 按命令前缀返回预设输出，
测试不依赖真实的 emulator / adb / avdmanager / ps。
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from avdemu.infra import SessionConfig, ToolError, ToolsConfig, UserConfig


class FakeExecutor:
    """脚本化的 ShellExecutor 替身。

    ``on(*prefix, ...)`` 注册一条响应；调用时选择与命令前缀匹配的最长规则，
    长度相同时后注册的优先（便于在测试中途改变进程表）。
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []
        self.spawned: list[list[str]] = []
        self.spawn_output: list[str] = []
        self.spawn_pid = 4242
        self._rules: list[tuple[tuple[str, ...], str, Exception | None, Callable | None]] = []

    def on(
        self,
        *prefix: str,
        output: str = "",
        error: Exception | None = None,
        effect: Callable[[list[str]], None] | None = None,
    ) -> FakeExecutor:
        self._rules.append((tuple(prefix), output, error, effect))
        return self

    def set_processes(self, processes: Iterable[tuple[int, str, str]]) -> FakeExecutor:
        """注册 ps 输出。每项为 ``(pid, comm, args)``。"""
        processes = list(processes)
        listing = "".join(f"{pid:>6} {comm}\n" for pid, comm, _ in processes)
        self.on("ps", "-A", output=listing)
        for pid, _, args in processes:
            self.on("ps", "-ww", "-o", "args=", "-p", str(pid), output=args + "\n")
        return self

    def set_avds(self, *names: str) -> FakeExecutor:
        self.on("emulator", "-list-avds", output="".join(f"{n}\n" for n in names))
        return self

    def run(self, args: Sequence[str], *, input: str | None = None) -> str:
        command = [str(a) for a in args]
        self.calls.append(command)
        self.inputs.append(input)

        matches = [r for r in self._rules if tuple(command[: len(r[0])]) == r[0]]
        if not matches:
            raise ToolError(command, 127, "unexpected command")
        _, output, error, effect = max(reversed(matches), key=lambda r: len(r[0]))
        if effect is not None:
            effect(command)
        if error is not None:
            raise error
        return output

    def spawn(self, args: Sequence[str], *, capture_stdout: bool = False) -> MagicMock:
        command = [str(a) for a in args]
        self.spawned.append(command)
        process = MagicMock()
        process.pid = self.spawn_pid
        process.stdout = iter(self.spawn_output) if capture_stdout else None
        return process

    def commands(self, program: str) -> list[list[str]]:
        return [c for c in self.calls if c and c[0] == program]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    """脚本化执行器。"""
    return FakeExecutor()


@pytest.fixture
def tools() -> ToolsConfig:
    return ToolsConfig()


@pytest.fixture
def avd_home(tmp_path: Path) -> Path:
    """临时 AVD 定义目录。"""
    path = tmp_path / "android" / "avd"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def user_config(tmp_path: Path, avd_home: Path) -> UserConfig:
    """指向临时目录的用户配置。"""
    return UserConfig(
        session=SessionConfig(
            android_home=tmp_path / "sdk",
            android_user_home=tmp_path / "android",
            avd_home=avd_home,
        )
    )


@pytest.fixture
def tmp_yaml(tmp_path: Path):
    """创建临时 YAML 文件的工厂 fixture。"""

    def _factory(name: str, content: str) -> Path:
        p = tmp_path / name
        p.write_text(content, encoding="utf-8")
        return p

    return _factory
