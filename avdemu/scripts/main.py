"""``emu`` 命令行入口。

用法
----
列出 AVD::

    emu list

启动 / 强杀::

    emu run Pixel_7_API_34 --wait-boot
    emu kill Pixel_7_API_34
    emu kill --all

创建 / 删除::

    emu create --image "system-images;android-34;google_apis;x86_64" --skin pixel_7
    emu delete Pixel_7_API_34

设备设置（多设备时用 ``-s`` 指定 serial）::

    emu -s emulator-5556 theme dark
    emu fontsize large
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from avdemu.emulator import ADBController, AVDProcessManager, SystemImage
from avdemu.infra import AVDConfigError, AVDEmuError, ConfigManager, UserConfig, setup_logger
from avdemu.types import DisplaySize, FontScale


# ══════════════════════════════════════════════════════════════════════════════
# 子命令
# ══════════════════════════════════════════════════════════════════════════════


def cmd_run(config: UserConfig, args: argparse.Namespace) -> None:
    if args.timeout is not None and not args.wait_boot:
        raise AVDEmuError("--timeout 只能与 --wait-boot 一起使用")
    manager = AVDProcessManager(config)
    manager.start(args.avd, wait_boot=args.wait_boot, timeout=args.timeout)
    print(f"started {args.avd}")


def cmd_list(config: UserConfig, args: argparse.Namespace) -> None:
    for avd in AVDProcessManager(config).list():
        print(avd.describe())


def cmd_kill(config: UserConfig, args: argparse.Namespace) -> None:
    if args.all and args.avd:
        raise AVDEmuError("--all 与 AVD 名称不能同时指定")
    manager = AVDProcessManager(config)
    if args.all:
        for pid in manager.kill_all():
            print(f"killed pid {pid}")
        return
    if not args.avd:
        raise AVDEmuError("未指定 AVD")
    pid = manager.kill(args.avd)
    print(f"killed {args.avd} (pid {pid})")


def cmd_create(config: UserConfig, args: argparse.Namespace) -> None:
    manager = AVDProcessManager(config)
    try:
        created = manager.lifecycle.create(SystemImage(args.image), args.skin, args.sdcard)
    except AVDConfigError as exc:
        logger.warning("运行 `emu repair {}` 修复配置", exc.name)
        raise
    print(f"{created.name}\t{created.path}")


def cmd_delete(config: UserConfig, args: argparse.Namespace) -> None:
    AVDProcessManager(config).delete(args.avd)
    print(f"deleted {args.avd}")


def cmd_repair(config: UserConfig, args: argparse.Namespace) -> None:
    path = AVDProcessManager(config).lifecycle.repair_config(args.avd)
    print(f"repaired {path}")


def cmd_images(config: UserConfig, args: argparse.Namespace) -> None:
    for image in AVDProcessManager(config).lifecycle.system_images():
        print(image)


def cmd_skins(config: UserConfig, args: argparse.Namespace) -> None:
    for skin in AVDProcessManager(config).lifecycle.skins():
        print(skin)


def cmd_theme(config: UserConfig, args: argparse.Namespace) -> None:
    ctrl = ADBController(config)
    match args.mode:
        case "dark":
            ctrl.set_night_mode(True)
        case "light":
            ctrl.set_night_mode(False)
        case "toggle":
            ctrl.toggle_night_mode()


def cmd_fontsize(config: UserConfig, args: argparse.Namespace) -> None:
    ADBController(config).set_font_scale(FontScale[args.size])


def cmd_displaysize(config: UserConfig, args: argparse.Namespace) -> None:
    ADBController(config).set_display_size(DisplaySize[args.size])


def cmd_animations(config: UserConfig, args: argparse.Namespace) -> None:
    ctrl = ADBController(config)
    match args.mode:
        case "on":
            ctrl.set_animations(True)
        case "off":
            ctrl.set_animations(False)
        case "toggle":
            ctrl.toggle_animations()


# ══════════════════════════════════════════════════════════════════════════════
# 参数解析
# ══════════════════════════════════════════════════════════════════════════════


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="emu", description="Manage Android emulators with ease")
    p.add_argument("-s", "--serial", default=None, help="使用指定 serial 的设备")
    p.add_argument(
        "--print-invocations",
        action="store_true",
        default=None,
        help="输出每条外部命令",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML 配置文件")
    p.add_argument("--log-level", default=None, help="日志级别（DEBUG / INFO / WARNING）")

    sub = p.add_subparsers(dest="command", required=True, metavar="<command>")

    run = sub.add_parser("run", help="启动 AVD")
    run.add_argument("avd")
    run.add_argument("--wait-boot", action="store_true", help="等待启动日志中的成功标记")
    run.add_argument("--timeout", type=float, default=None, help="等待超时秒数")
    run.set_defaults(func=cmd_run)

    ls = sub.add_parser("list", aliases=["ls"], help="列出全部 AVD")
    ls.set_defaults(func=cmd_list)

    kill = sub.add_parser("kill", help="强杀正在运行的 AVD")
    kill.add_argument("avd", nargs="?")
    kill.add_argument("-a", "--all", action="store_true", help="强杀全部模拟器")
    kill.set_defaults(func=cmd_kill)

    create = sub.add_parser("create", help="创建 AVD")
    create.add_argument("--image", required=True, help="系统镜像标识")
    create.add_argument("--skin", required=True, help="设备外观 id，例如 pixel_7")
    create.add_argument("--sdcard", type=int, default=None, help="SD 卡大小 (MB)")
    create.set_defaults(func=cmd_create)

    delete = sub.add_parser("delete", help="删除 AVD")
    delete.add_argument("avd")
    delete.set_defaults(func=cmd_delete)

    repair = sub.add_parser("repair", help="重新修补 AVD 配置")
    repair.add_argument("avd")
    repair.set_defaults(func=cmd_repair)

    sub.add_parser("images", help="列出已安装的系统镜像").set_defaults(func=cmd_images)
    sub.add_parser("skins", help="列出可用的设备外观").set_defaults(func=cmd_skins)

    theme = sub.add_parser("theme", help="切换深色/浅色模式")
    theme.add_argument("mode", choices=["light", "dark", "toggle"])
    theme.set_defaults(func=cmd_theme)

    fontsize = sub.add_parser("fontsize", help="调整字体大小")
    fontsize.add_argument("size", choices=[m.name for m in FontScale])
    fontsize.set_defaults(func=cmd_fontsize)

    displaysize = sub.add_parser("displaysize", help="调整显示大小")
    displaysize.add_argument("size", choices=[m.name for m in DisplaySize])
    displaysize.set_defaults(func=cmd_displaysize)

    animations = sub.add_parser("animations", help="开关系统动画")
    animations.add_argument("mode", choices=["on", "off", "toggle"])
    animations.set_defaults(func=cmd_animations)

    return p


def load_config(args: argparse.Namespace) -> UserConfig:
    """加载配置文件并叠加命令行参数。"""
    config = ConfigManager.load(args.config)
    return config.with_overrides(
        {
            "session": {
                "serial": args.serial,
                "print_invocations": args.print_invocations,
            },
            "log": {"level": args.log_level},
        }
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    func: Callable[[UserConfig, argparse.Namespace], None] = args.func
    try:
        config = load_config(args)
        setup_logger(log_dir=config.log.dir, level=config.log.level)
        func(config, args)
    except AVDEmuError as exc:
        logger.error("{}", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
