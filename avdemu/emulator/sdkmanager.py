"""Android 系统镜像。

系统镜像标识由 ``sdkmanager`` 定义，固定为四段::

    system-images;android-34;google_apis_playstore;arm64-v8a
    system-images;android-35;google_apis;x86_64
    system-images;android-Baklava;google_apis;arm64-v8a
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from avdemu.infra import InvalidSystemImageError, ToolsConfig

from .shell import ShellExecutor

SYSTEM_IMAGE_PREFIX = "system-images;"


@dataclass(frozen=True, slots=True)
class SystemImage:
    """不可变的系统镜像标识。

    Attributes
    ----------
    package:
        完整标识，例如 ``"system-images;android-34;google_apis;x86_64"``。
    """

    package: str

    def __str__(self) -> str:
        return self.package

    def _fields(self) -> list[str]:
        fields = self.package.split(";")
        if len(fields) != 4:
            raise InvalidSystemImageError(self.package, f"应为 4 段，实际 {len(fields)} 段")
        return fields

    @property
    def platform(self) -> str:
        """平台段，例如 ``"android-34"``、``"android-34-ext9"``。"""
        return self._fields()[1]

    @property
    def variant(self) -> str:
        """镜像变体，例如 ``"google_apis_playstore"``。"""
        return self._fields()[2]

    @property
    def abi(self) -> str:
        """CPU 架构，例如 ``"arm64-v8a"``。"""
        return self._fields()[3]

    @property
    def api_level(self) -> str:
        """API 等级。

        新版本 Android 在正式发布前只有代号，因此返回字符串：
        ``android-35`` → ``"35"``，``android-Baklava`` → ``"Baklava"``，
        ``android-34-ext9`` → ``"34"``。

        Raises
        ------
        InvalidSystemImageError
            标识不是四段，或平台段中没有 ``-``。
        """
        parts = self.platform.split("-")
        if len(parts) < 2 or not parts[1]:
            raise InvalidSystemImageError(self.package, f"无法从 '{self.platform}' 解析 API 等级")
        return parts[1]


def list_system_images(executor: ShellExecutor, tools: ToolsConfig) -> list[SystemImage]:
    """返回已安装的系统镜像。

    ``sdkmanager --list_installed`` 输出示例::

        system-images;android-33;google_apis;arm64-v8a  | 17 | Google APIs ARM 64 v8a System Image | system-images/android-33/...

    Raises
    ------
    ToolError
        ``sdkmanager`` 调用失败。
    """
    output = executor.run([tools.sdkmanager, "--list_installed"])

    images: list[SystemImage] = []
    for line in output.splitlines():
        token = line.strip().split(" ")[0]
        if token.startswith(SYSTEM_IMAGE_PREFIX):
            images.append(SystemImage(token))

    logger.debug("[SDK] 已安装 {} 个系统镜像", len(images))
    return images
