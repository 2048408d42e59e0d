"""AVD 磁盘定义的生命周期：创建、修补配置、删除。

创建分两步，两步之间没有事务保证：

1. ``avdmanager create avd`` 生成 ``<avd_home>/<name>.ini`` 与
   ``<avd_home>/<name>.avd/``；
2. 修补 ``<name>.avd/config.ini``，强制开启键盘输入并设置堆大小。

第 2 步失败时设备已经存在但配置不完整，抛出 :class:`AVDConfigError`，
调用方应执行 :meth:`AVDLifecycleManager.repair_config` 而不是重新创建。

使用方式::

    from avdemu.emulator.avdmanager import AVDLifecycleManager
    from avdemu.emulator.sdkmanager import SystemImage

    lifecycle = AVDLifecycleManager(config)
    created = lifecycle.create(
        SystemImage("system-images;android-34;google_apis_playstore;arm64-v8a"),
        skin="pixel_7",
    )
    lifecycle.delete(created.name)
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from avdemu.infra import (
    AVDConfigError,
    AVDDeleteError,
    AVDNotFoundError,
    ConfigError,
    UserConfig,
    replace_lines,
)

from .sdkmanager import SystemImage, list_system_images
from .shell import ShellExecutor

KEYBOARD_KEY = "hw.keyboard"
HEAPSIZE_KEY = "vm.heapSize"
MIN_HEAPSIZE = "1024M"

_WORD_START = re.compile(r"(^|[\s\-])(\w)")


@dataclass(frozen=True, slots=True)
class CreatedAVD:
    """新建 AVD 的名称与数据目录。"""

    name: str
    path: Path


def avd_name_for(image: SystemImage, skin: str) -> str:
    """由设备外观与系统镜像推导 AVD 名称。

    外观中每个单词首字母大写（其余字符保持不变），空白替换为 ``_``，
    再拼接 ``_API_<api_level>``：``pixel_7`` + android-34 → ``Pixel_7_API_34``。
    """
    titled = _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), skin.strip())
    titled = "_".join(titled.split())
    return f"{titled}_API_{image.api_level}"


def patch_config_lines(lines: Iterable[str]) -> list[str]:
    """对 config.ini 的各行应用修补规则，返回新的行列表（不含换行符）。

    - ``hw.keyboard=no`` → ``hw.keyboard=yes``
    - ``vm.heapSize=<任意值>`` → ``vm.heapSize=1024M``（键名不区分大小写，保留原写法）
    - 其余行去掉首尾空白后原样保留
    - 文件中缺失的键追加到末尾

    规则是幂等的：对结果再次应用得到相同的行。
    """
    patched: list[str] = []
    seen: set[str] = set()

    for raw in lines:
        line = raw.strip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key.lower() == KEYBOARD_KEY.lower():
            seen.add(KEYBOARD_KEY)
            if value.strip() == "no":
                line = f"{key}=yes"
        elif sep and key.lower() == HEAPSIZE_KEY.lower():
            seen.add(HEAPSIZE_KEY)
            line = f"{key}={MIN_HEAPSIZE}"
        patched.append(line)

    if KEYBOARD_KEY not in seen:
        patched.append(f"{KEYBOARD_KEY}=yes")
    if HEAPSIZE_KEY not in seen:
        patched.append(f"{HEAPSIZE_KEY}={MIN_HEAPSIZE}")
    return patched


def patch_config(path: Path) -> None:
    """修补 config.ini。

    读取完成后整体写入临时文件再替换原文件，失败时原文件保持不变。

    Raises
    ------
    OSError
        读取或写入失败。
    UnicodeDecodeError
        文件不是合法的 UTF-8 文本。
    """
    with open(path, encoding="utf-8") as f:
        lines = f.read().splitlines()
    replace_lines(path, patch_config_lines(lines))
    logger.debug("[AVDManager] 已修补配置: {}", path)


class AVDLifecycleManager:
    """AVD 磁盘定义管理。

    Parameters
    ----------
    config:
        用户配置；使用其中的工具路径、``avd_home`` 与 ``android_home``。
    executor:
        外部命令执行器；为 None 时按会话配置新建。
    """

    def __init__(self, config: UserConfig, executor: ShellExecutor | None = None) -> None:
        self._config = config
        self._tools = config.tools
        self._session = config.session
        self._executor = executor or ShellExecutor(config.session)

    # ── 路径 ──

    @property
    def avd_home(self) -> Path:
        return self._session.avd_home

    def ini_path(self, name: str) -> Path:
        return self.avd_home / f"{name}.ini"

    def avd_dir(self, name: str) -> Path:
        return self.avd_home / f"{name}.avd"

    # ── 创建 ──

    def create(
        self,
        image: SystemImage | str,
        skin: str,
        sdcard_mb: int | None = None,
    ) -> CreatedAVD:
        """创建 AVD 并修补其配置。

        Parameters
        ----------
        image:
            系统镜像标识。
        skin:
            设备外观 id，例如 ``"pixel_7"``。
        sdcard_mb:
            SD 卡大小 (MB)；为 None 时使用配置中的默认值。

        Raises
        ------
        InvalidSystemImageError
            镜像标识格式非法（此时未调用 avdmanager）。
        ToolError
            avdmanager 调用失败，设备未创建。
        AVDConfigError
            设备已创建，但修补配置失败。
        """
        if isinstance(image, str):
            image = SystemImage(image)
        if sdcard_mb is None:
            sdcard_mb = self._config.sdcard_mb

        name = avd_name_for(image, skin)
        args = [
            self._tools.avdmanager, "create", "avd",
            "--sdcard", f"{sdcard_mb}M",
            "--package", image.package,
            "--name", name,
            "--device", skin,
        ]
        logger.info("[AVDManager] 正在创建 AVD: {}", name)
        # 拒绝 "Do you wish to create a custom hardware profile?" 提示
        self._executor.run(args, input="no\n")

        path = self.avd_dir(name)
        self._patch(name, path)
        logger.info("[AVDManager] AVD 已创建: {}", path)
        return CreatedAVD(name=name, path=path)

    def repair_config(self, name: str) -> Path:
        """重新修补已存在 AVD 的配置，返回 config.ini 路径。

        Raises
        ------
        AVDNotFoundError
            AVD 数据目录不存在。
        AVDConfigError
            修补失败。
        """
        path = self.avd_dir(name)
        if not path.is_dir():
            raise AVDNotFoundError(name)
        self._patch(name, path)
        logger.info("[AVDManager] 已修复 AVD 配置: {}", name)
        return path / "config.ini"

    def _patch(self, name: str, avd_dir: Path) -> None:
        config_path = avd_dir / "config.ini"
        try:
            patch_config(config_path)
        except (OSError, UnicodeDecodeError) as exc:
            raise AVDConfigError(name, config_path, str(exc)) from exc

    # ── 删除 ──

    def delete(self, name: str) -> None:
        """删除 AVD 描述文件与数据目录。

        先删除描述文件；描述文件删除失败时立即报错，不再尝试删除数据目录，
        避免留下“描述文件还在、目录已删”的半删除状态。

        本方法不检查运行状态，删除正在运行的 AVD 应先经过
        :meth:`AVDProcessManager.delete`。

        Raises
        ------
        AVDNotFoundError
            描述文件不存在。
        AVDDeleteError
            描述文件或数据目录删除失败。
        """
        ini_path = self.ini_path(name)
        try:
            ini_path.unlink()
        except FileNotFoundError as exc:
            raise AVDNotFoundError(name) from exc
        except OSError as exc:
            raise AVDDeleteError(name, ini_path, str(exc)) from exc

        avd_dir = self.avd_dir(name)
        try:
            shutil.rmtree(avd_dir)
        except FileNotFoundError:
            logger.warning("[AVDManager] 数据目录不存在，跳过: {}", avd_dir)
        except OSError as exc:
            raise AVDDeleteError(name, avd_dir, str(exc)) from exc

        logger.info("[AVDManager] AVD 已删除: {}", name)

    # ── 查询 ──

    def skins(self) -> list[str]:
        """返回 ``$ANDROID_HOME/skins`` 下的设备外观名称。

        Raises
        ------
        ConfigError
            未设置 android_home，或外观目录无法读取。
        """
        android_home = self._session.android_home
        if android_home is None:
            raise ConfigError("未设置 ANDROID_HOME 环境变量")

        skins_path = android_home / "skins"
        try:
            return sorted(entry.name for entry in skins_path.iterdir() if entry.is_dir())
        except OSError as exc:
            raise ConfigError(f"无法读取目录 {skins_path}: {exc}") from exc

    def system_images(self) -> list[SystemImage]:
        """返回已安装的系统镜像。"""
        return list_system_images(self._executor, self._tools)
