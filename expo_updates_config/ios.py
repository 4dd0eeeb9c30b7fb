#!/usr/bin/env python3
"""iOS side of expo-updates: the Xcode bundle build phase and Expo.plist.

The "Bundle React Native code and images" shell script phase must call the
expo-updates manifest script, and ios/<Name>/Supporting/Expo.plist must hold
the EXUpdates* keys matching the app config.
"""

import plistlib
from pathlib import Path
from typing import Optional

from pbxproj import XcodeProject

from . import git
from .config import (
    debug,
    get_runtime_version,
    get_sdk_version,
    get_update_url,
    get_updates_check_on_launch,
    get_updates_enabled,
    get_updates_timeout,
    log,
)

BUILD_SCRIPT = "../node_modules/expo-updates/scripts/create-manifest-ios.sh"
BUNDLE_PHASE_NAME = "Bundle React Native code and images"


class PlistKey:
    ENABLED = "EXUpdatesEnabled"
    CHECK_ON_LAUNCH = "EXUpdatesCheckOnLaunch"
    LAUNCH_WAIT_MS = "EXUpdatesLaunchWaitMs"
    RUNTIME_VERSION = "EXUpdatesRuntimeVersion"
    SDK_VERSION = "EXUpdatesSDKVersion"
    UPDATE_URL = "EXUpdatesURL"


def set_updates_config(exp: dict, expo_plist: dict, username: Optional[str]) -> dict:
    """Return a copy of expo_plist with the EXUpdates* keys for this app config.

    Keys whose desired value is None are dropped, so a plist can lose its
    EXUpdatesURL when no owner or username is known.
    """
    new_plist = {
        **expo_plist,
        PlistKey.ENABLED: get_updates_enabled(exp),
        PlistKey.UPDATE_URL: get_update_url(exp, username),
        PlistKey.CHECK_ON_LAUNCH: get_updates_check_on_launch(exp),
        PlistKey.LAUNCH_WAIT_MS: get_updates_timeout(exp),
    }

    runtime_version = get_runtime_version(exp)
    sdk_version = get_sdk_version(exp)
    if runtime_version:
        new_plist[PlistKey.RUNTIME_VERSION] = runtime_version
        new_plist[PlistKey.SDK_VERSION] = None
    elif sdk_version:
        new_plist[PlistKey.SDK_VERSION] = sdk_version
        new_plist[PlistKey.RUNTIME_VERSION] = None

    return {k: v for k, v in new_plist.items() if v is not None}


def get_pbxproj_path(project_dir) -> Path:
    paths = sorted((Path(project_dir) / "ios").glob("*/project.pbxproj"))
    if not paths:
        raise FileNotFoundError("Couldn't find Xcode project")
    return paths[0].resolve()


def get_xcode_project(pbxproj_path) -> XcodeProject:
    return XcodeProject.load(str(pbxproj_path))


def get_expo_plist_path(project_dir, pbxproj_path) -> Path:
    # ios/Foo.xcodeproj/project.pbxproj -> ios/Foo/Supporting/Expo.plist
    xcodeproj = Path(pbxproj_path).parent
    name = xcodeproj.name
    if name.endswith(".xcodeproj"):
        name = name[: -len(".xcodeproj")]
    return Path(project_dir).resolve() / "ios" / name / "Supporting" / "Expo.plist"


def get_bundle_react_native_phase(project: XcodeProject):
    for phase in project.objects.get_objects_in_section("PBXShellScriptBuildPhase"):
        name = getattr(phase, "name", None)
        if name and str(name).strip('"') == BUNDLE_PHASE_NAME:
            return phase
    raise RuntimeError(f'Couldn\'t find a build phase script for "{BUNDLE_PHASE_NAME}"')


def has_build_script(shell_script: str) -> bool:
    return BUILD_SCRIPT in shell_script


def append_build_script(shell_script: str) -> str:
    if has_build_script(shell_script):
        return shell_script
    if shell_script and not shell_script.endswith("\n"):
        shell_script += "\n"
    return f"{shell_script}{BUILD_SCRIPT}\n"


def read_expo_plist(path) -> dict:
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        return plistlib.load(f)


def write_expo_plist(path, data: dict):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        plistlib.dump(data, f)


def configure_updates_ios(project_dir, exp: dict, username: Optional[str], verbose: bool = False) -> bool:
    """Patch the Xcode project and Expo.plist. Returns True if anything changed."""
    changed = False
    pbxproj_path = get_pbxproj_path(project_dir)
    project = get_xcode_project(pbxproj_path)
    bundle_phase = get_bundle_react_native_phase(project)

    shell_script = str(getattr(bundle_phase, "shellScript", None) or "")
    if not has_build_script(shell_script):
        bundle_phase.shellScript = append_build_script(shell_script)
        project.save()
        changed = True
        log(f"  ✅ Added {BUILD_SCRIPT} to \"{BUNDLE_PHASE_NAME}\"")
    else:
        debug(f"Build phase already runs {BUILD_SCRIPT}", verbose)

    expo_plist_path = get_expo_plist_path(project_dir, pbxproj_path)
    expo_plist = read_expo_plist(expo_plist_path)
    new_plist = set_updates_config(exp, expo_plist, username)

    if new_plist != expo_plist or not expo_plist_path.exists():
        write_expo_plist(expo_plist_path, new_plist)
        changed = True
        log(f"  ✅ Wrote {expo_plist_path}")
    else:
        debug(f"{expo_plist_path} is up to date", verbose)

    if git.has_repo(expo_plist_path.parent):
        git.git_add(expo_plist_path, intent_to_add=True)

    return changed


def is_updates_configured_ios(project_dir, exp: dict, username: Optional[str]) -> bool:
    pbxproj_path = get_pbxproj_path(project_dir)
    project = get_xcode_project(pbxproj_path)
    bundle_phase = get_bundle_react_native_phase(project)

    if not has_build_script(str(getattr(bundle_phase, "shellScript", None) or "")):
        return False

    expo_plist_path = get_expo_plist_path(project_dir, pbxproj_path)
    if not expo_plist_path.exists():
        return False

    expo_plist = read_expo_plist(expo_plist_path)

    runtime_version = get_runtime_version(exp)
    if runtime_version:
        versions_match = expo_plist.get(PlistKey.RUNTIME_VERSION) == runtime_version
    else:
        versions_match = expo_plist.get(PlistKey.SDK_VERSION) == get_sdk_version(exp)

    return versions_match and expo_plist.get(PlistKey.UPDATE_URL) == get_update_url(exp, username)
