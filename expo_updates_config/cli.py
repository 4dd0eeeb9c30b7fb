#!/usr/bin/env python3
"""expo-updates-config CLI - configure expo-updates in native Expo projects."""

import argparse
import sys

from .android import MetaData
from .config import (
    PLATFORMS,
    get_configuration_options,
    get_runtime_version,
    get_sdk_version,
    get_update_url,
    get_updates_check_on_launch,
    get_updates_enabled,
    get_updates_timeout,
)
from .ios import PlistKey
from .updates import configure_updates, is_updates_configured


def _add_common_args(parser):
    parser.add_argument("--project-dir", "-p", default=".", help="Project root (contains app.json)")
    parser.add_argument("--username", "-u", help="Expo username (or set EXPO_USERNAME)")
    parser.add_argument("--platform", action="append", choices=PLATFORMS,
                        help="Limit to a platform (repeatable, default: from expo-updates.yaml or both)")


def show_config(project_dir: str, username=None):
    """Print the values expo-updates will be configured with."""
    exp, username = get_configuration_options(project_dir, username)
    values = {
        "enabled": get_updates_enabled(exp),
        "update_url": get_update_url(exp, username),
        "check_on_launch": get_updates_check_on_launch(exp),
        "launch_wait_ms": get_updates_timeout(exp),
        "runtime_version": get_runtime_version(exp),
        "sdk_version": get_sdk_version(exp),
    }
    ios_keys = {
        "enabled": PlistKey.ENABLED,
        "update_url": PlistKey.UPDATE_URL,
        "check_on_launch": PlistKey.CHECK_ON_LAUNCH,
        "launch_wait_ms": PlistKey.LAUNCH_WAIT_MS,
        "runtime_version": PlistKey.RUNTIME_VERSION,
        "sdk_version": PlistKey.SDK_VERSION,
    }
    android_keys = {
        "enabled": MetaData.ENABLED,
        "update_url": MetaData.UPDATE_URL,
        "check_on_launch": MetaData.CHECK_ON_LAUNCH,
        "launch_wait_ms": MetaData.LAUNCH_WAIT_MS,
        "runtime_version": MetaData.RUNTIME_VERSION,
        "sdk_version": MetaData.SDK_VERSION,
    }

    print("iOS (Expo.plist):")
    for field, value in values.items():
        if value is not None:
            print(f"  {ios_keys[field]} = {value}")
    print("Android (AndroidManifest.xml):")
    for field, value in values.items():
        if value is not None:
            print(f"  {android_keys[field]} = {value}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="expo-updates-config",
        description="Configure expo-updates in the native iOS and Android projects of an Expo app"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # configure
    configure_parser = subparsers.add_parser("configure", help="Patch the native projects for expo-updates")
    _add_common_args(configure_parser)
    configure_parser.add_argument("--non-interactive", action="store_true",
                                  help="Never prompt (fails if changes need to be committed)")
    configure_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # check
    check_parser = subparsers.add_parser("check", help="Exit 0 if expo-updates is already configured")
    _add_common_args(check_parser)

    # show
    show_parser = subparsers.add_parser("show", help="Print the values that will be configured")
    _add_common_args(show_parser)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "configure":
            configure_updates(
                args.project_dir,
                non_interactive=args.non_interactive,
                username=args.username,
                platforms=args.platform,
                verbose=args.verbose,
            )

        elif args.command == "check":
            if is_updates_configured(args.project_dir, username=args.username, platforms=args.platform):
                print("✅ expo-updates is configured")
            else:
                print("⚠️  expo-updates is not configured, run: expo-updates-config configure")
                sys.exit(1)

        elif args.command == "show":
            show_config(args.project_dir, username=args.username)

    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
