"""启动日志观察。

模拟器进程的标准输出被视为一个有限的、只能消费一次的行序列。
后台线程负责读取，调用方在以下任一条件满足时停止等待：

- 某行包含成功标记（默认 ``emulator: INFO: Found systemPath``）
- 某行以错误前缀开头（默认 ``ERROR``）
- 输出流结束
- 超过等待时限

停止等待后后台线程继续读空管道但不再缓存，避免子进程因管道写满而阻塞。
这只在当前进程存活期间成立：当前进程退出后管道读端关闭，模拟器之后的
写入会收到 EPIPE。需要长期保留模拟器输出时，应直接重定向到文件。
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from avdemu.infra import BootConfig
from avdemu.types import BootOutcome

_EOF = object()


@dataclass(frozen=True, slots=True)
class BootResult:
    """启动观察结果。

    Attributes
    ----------
    outcome:
        终止原因。
    line:
        触发终止的日志行；超时或流结束时为空。
    """

    outcome: BootOutcome
    line: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome.ok


def classify_line(line: str, ok_token: str, error_prefix: str) -> BootOutcome | None:
    """判断单行日志是否为终止标记。"""
    if ok_token in line:
        return BootOutcome.booted
    if line.startswith(error_prefix):
        return BootOutcome.failed
    return None


class BootWatcher:
    """在后台线程中读取启动日志，由单个调用方等待终止标记。

    Parameters
    ----------
    lines:
        日志行的可迭代对象，通常是 ``Popen.stdout``。
    ok_token:
        成功标记子串。
    error_prefix:
        错误行前缀。
    """

    def __init__(
        self,
        lines: Iterable[str],
        *,
        ok_token: str = BootConfig().ok_token,
        error_prefix: str = BootConfig().error_prefix,
    ) -> None:
        self._ok_token = ok_token
        self._error_prefix = error_prefix
        self._queue: queue.Queue[object] = queue.Queue()
        self._cancelled = threading.Event()
        self._consumed = False
        self._thread = threading.Thread(
            target=self._pump,
            args=(lines,),
            name="boot-watcher",
            daemon=True,
        )
        self._thread.start()

    @classmethod
    def from_config(cls, lines: Iterable[str], config: BootConfig) -> BootWatcher:
        return cls(lines, ok_token=config.ok_token, error_prefix=config.error_prefix)

    def _pump(self, lines: Iterable[str]) -> None:
        try:
            for line in lines:
                if not self._cancelled.is_set():
                    self._queue.put(line.rstrip("\r\n"))
        except (OSError, ValueError) as exc:
            # 管道在读取过程中被关闭
            logger.debug("[Boot] 日志流读取结束: {}", exc)
        finally:
            self._queue.put(_EOF)

    def wait(self, timeout: float | None = None) -> BootResult:
        """阻塞等待终止条件。

        Parameters
        ----------
        timeout:
            最长等待秒数；None 表示一直等到标记出现或流结束。

        Raises
        ------
        RuntimeError
            重复调用。日志流只能被消费一次。
        """
        if self._consumed:
            raise RuntimeError("BootWatcher 只能等待一次")
        self._consumed = True

        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            while True:
                remaining = None
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return BootResult(BootOutcome.timeout)
                try:
                    item = self._queue.get(timeout=remaining)
                except queue.Empty:
                    return BootResult(BootOutcome.timeout)

                if item is _EOF:
                    return BootResult(BootOutcome.exited)

                line = str(item)
                logger.trace("[Boot] {}", line)
                outcome = classify_line(line, self._ok_token, self._error_prefix)
                if outcome is not None:
                    return BootResult(outcome, line)
        finally:
            self.cancel()

    def cancel(self) -> None:
        """停止缓存日志；当前进程存活期间后台线程继续读空输出流。"""
        self._cancelled.set()
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break


def watch_boot(lines: Iterable[str], config: BootConfig | None = None) -> BootResult:
    """观察 *lines* 直到出现终止条件，超时取 ``config.timeout``。"""
    config = config or BootConfig()
    return BootWatcher.from_config(lines, config).wait(config.timeout)
