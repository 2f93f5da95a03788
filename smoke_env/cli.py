"""Command-line entry point for ``python -m smoke_env``.

Exposes the provisioning steps that are handy to run by hand while
debugging a smoke-test machine.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import SetupConfig
from .errors import SmokeEnvError
from .provisioner import EnvironmentProvisioner
from .utils import console, print_error, print_success


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smoke-env",
        description="Provision disposable React Native workspaces for smoke tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m smoke_env rn-version --sdk 35\n"
            "  python -m smoke_env prepare-rn ./resources ./resources/latestRNApp latestRNApp\n"
            "  python -m smoke_env set-ios-target ./resources/latestRNApp 'Debug iOS' --target simulator\n"
            "  python -m smoke_env clean-up --workspace ./resources/latestRNApp\n"
        ),
    )
    parser.add_argument(
        "--artifacts",
        default=None,
        help="Artifacts directory for log files (default: $SMOKE_ARTIFACTS_DIR or ./artifacts)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    rn_version = sub.add_parser("rn-version", help="Print the RN version supported by Expo")
    rn_version.add_argument("--sdk", default=None, help="Expo SDK major version")

    prepare_rn = sub.add_parser("prepare-rn", help="Create a React Native workspace")
    prepare_rn.add_argument("resources", help="Directory holding the fixtures")
    prepare_rn.add_argument("workspace", help="Workspace directory created by the scaffold")
    prepare_rn.add_argument("app_name")
    prepare_rn.add_argument("--entry-point-folder", default="ReactNativeSample")
    prepare_rn.add_argument("--version", default=None, help="React Native version")

    prepare_expo = sub.add_parser("prepare-expo", help="Create an Expo workspace")
    prepare_expo.add_argument("resources")
    prepare_expo.add_argument("workspace")
    prepare_expo.add_argument("app_name")
    prepare_expo.add_argument("--sdk", default=None, help="Expo SDK major version")

    patch_metro = sub.add_parser("patch-metro", help="Append the Metro patch to metro.config.js")
    patch_metro.add_argument("workspace")

    patch_settings = sub.add_parser("patch-expo-settings", help="Fix .expo/settings.json")
    patch_settings.add_argument("workspace")

    ios_target = sub.add_parser("set-ios-target", help="Set or clear a launch.json target")
    ios_target.add_argument("workspace")
    ios_target.add_argument("config_name")
    ios_target.add_argument("--target", default=None, help="Omit to remove the target")

    clean_up = sub.add_parser("clean-up", help="Remove test directories")
    clean_up.add_argument("--test-dir", default=None)
    clean_up.add_argument("--user-data-dir", default=None)
    clean_up.add_argument("--logs-dir", default=None)
    clean_up.add_argument("--workspace", action="append", default=[])
    clean_up.add_argument("--expo-cache-dir", default=None)

    return parser


async def _dispatch(args: argparse.Namespace, provisioner: EnvironmentProvisioner) -> None:
    if args.command == "rn-version":
        version = await provisioner.get_latest_supported_rn_version_for_expo(args.sdk)
        console.print(version)
    elif args.command == "prepare-rn":
        workspace = Path(args.workspace)
        await provisioner.prepare_react_native_application(
            workspace / "App.js",
            Path(args.resources),
            workspace,
            args.app_name,
            args.entry_point_folder,
            args.version,
        )
    elif args.command == "prepare-expo":
        workspace = Path(args.workspace)
        await provisioner.prepare_expo_application(
            workspace / "App.tsx", Path(args.resources), workspace, args.app_name, args.sdk
        )
    elif args.command == "patch-metro":
        provisioner.patch_metro_config(Path(args.workspace))
    elif args.command == "patch-expo-settings":
        provisioner.patch_expo_settings_file(Path(args.workspace))
    elif args.command == "set-ios-target":
        provisioner.set_ios_target_to_launch_json(
            Path(args.workspace), args.config_name, args.target
        )
    elif args.command == "clean-up":
        expo_cache = args.expo_cache_dir or provisioner.config.ios_expo_apps_cache_dir
        provisioner.clean_up(
            _optional_path(args.test_dir),
            _optional_path(args.user_data_dir),
            _optional_path(args.logs_dir),
            [Path(p) for p in args.workspace],
            Path(expo_cache),
        )


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m smoke_env``."""
    args = build_parser().parse_args(argv)

    config = SetupConfig.from_env()
    if args.artifacts:
        config.artifacts_dir = Path(args.artifacts)

    provisioner = EnvironmentProvisioner(config)
    try:
        asyncio.run(_dispatch(args, provisioner))
    except SmokeEnvError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    if args.command != "rn-version":
        print_success(f"{args.command} completed")


if __name__ == "__main__":
    main()
