#!/usr/bin/env python3
"""Android side of expo-updates: app/build.gradle and AndroidManifest.xml."""

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

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

BUILD_SCRIPT_APPLY = 'apply from: "../../node_modules/expo-updates/scripts/create-manifest-android.gradle"'

ANDROID_NS = "http://schemas.android.com/apk/res/android"
ANDROID_NAME = f"{{{ANDROID_NS}}}name"
ANDROID_VALUE = f"{{{ANDROID_NS}}}value"

ET.register_namespace("android", ANDROID_NS)


class MetaData:
    ENABLED = "expo.modules.updates.ENABLED"
    CHECK_ON_LAUNCH = "expo.modules.updates.EXPO_UPDATES_CHECK_ON_LAUNCH"
    LAUNCH_WAIT_MS = "expo.modules.updates.EXPO_UPDATES_LAUNCH_WAIT_MS"
    SDK_VERSION = "expo.modules.updates.EXPO_SDK_VERSION"
    RUNTIME_VERSION = "expo.modules.updates.EXPO_RUNTIME_VERSION"
    UPDATE_URL = "expo.modules.updates.EXPO_UPDATE_URL"


# ── build.gradle ──────────────────────────────────────────────────────

def get_build_gradle_path(project_dir) -> Path:
    return Path(project_dir) / "android" / "app" / "build.gradle"


def read_build_gradle(build_gradle_path) -> str:
    path = Path(build_gradle_path)
    if not path.exists():
        raise FileNotFoundError(f"Couldn't find gradle build script at {path}")
    return path.read_text(encoding="utf-8")


def has_build_script_apply(build_gradle: str) -> bool:
    # both single and double quotes
    accepted = {BUILD_SCRIPT_APPLY, BUILD_SCRIPT_APPLY.replace('"', "'")}
    return any(line.strip() in accepted for line in build_gradle.split("\n"))


def add_build_script_apply(build_gradle: str) -> str:
    if has_build_script_apply(build_gradle):
        return build_gradle
    return f"{build_gradle}\n// Integration with Expo updates\n{BUILD_SCRIPT_APPLY}\n"


# ── AndroidManifest.xml ───────────────────────────────────────────────

def get_manifest_path(project_dir) -> Path:
    return Path(project_dir) / "android" / "app" / "src" / "main" / "AndroidManifest.xml"


def read_manifest(manifest_path) -> ET.ElementTree:
    path = Path(manifest_path)
    if not path.exists():
        raise FileNotFoundError(f"Couldn't find Android manifest at {path}")
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        _register_source_namespaces(path)
        return ET.parse(path, parser=parser)
    except ET.ParseError as e:
        raise ValueError(f"Failed to parse Android manifest at {path}: {e}") from e


def _register_source_namespaces(path: Path):
    # keep prefixes such as tools: on rewrite instead of ns0:, ns1:
    for _event, (prefix, uri) in ET.iterparse(path, events=("start-ns",)):
        if prefix and not re.match(r"ns\d+$", prefix):
            ET.register_namespace(prefix, uri)


def write_manifest(manifest_path, tree: ET.ElementTree):
    ET.indent(tree, space="    ")
    tree.write(manifest_path, encoding="utf-8", xml_declaration=True)


def get_main_application(tree: ET.ElementTree) -> ET.Element:
    application = tree.getroot().find("application")
    if application is None:
        raise RuntimeError("Manifest does not contain an <application> element")
    return application


def _find_metadata(application: ET.Element, name: str) -> Optional[ET.Element]:
    for node in application.findall("meta-data"):
        if node.get(ANDROID_NAME) == name:
            return node
    return None


def get_metadata_value(tree: ET.ElementTree, name: str) -> Optional[str]:
    node = _find_metadata(get_main_application(tree), name)
    if node is None:
        return None
    return node.get(ANDROID_VALUE)


def set_metadata_value(tree: ET.ElementTree, name: str, value: str):
    application = get_main_application(tree)
    node = _find_metadata(application, name)
    if node is None:
        node = ET.SubElement(application, "meta-data")
        node.set(ANDROID_NAME, name)
    node.set(ANDROID_VALUE, value)


def remove_metadata_item(tree: ET.ElementTree, name: str):
    application = get_main_application(tree)
    node = _find_metadata(application, name)
    if node is not None:
        application.remove(node)


def set_updates_config(exp: dict, tree: ET.ElementTree, username: Optional[str]) -> ET.ElementTree:
    """Write the expo.modules.updates.* meta-data for this app config into tree."""
    set_metadata_value(tree, MetaData.ENABLED, str(get_updates_enabled(exp)).lower())
    set_metadata_value(tree, MetaData.CHECK_ON_LAUNCH, get_updates_check_on_launch(exp))
    set_metadata_value(tree, MetaData.LAUNCH_WAIT_MS, str(get_updates_timeout(exp)))

    update_url = get_update_url(exp, username)
    if update_url:
        set_metadata_value(tree, MetaData.UPDATE_URL, update_url)
    else:
        remove_metadata_item(tree, MetaData.UPDATE_URL)

    runtime_version = get_runtime_version(exp)
    sdk_version = get_sdk_version(exp)
    if runtime_version:
        remove_metadata_item(tree, MetaData.SDK_VERSION)
        set_metadata_value(tree, MetaData.RUNTIME_VERSION, runtime_version)
    elif sdk_version:
        remove_metadata_item(tree, MetaData.RUNTIME_VERSION)
        set_metadata_value(tree, MetaData.SDK_VERSION, sdk_version)
    else:
        remove_metadata_item(tree, MetaData.RUNTIME_VERSION)
        remove_metadata_item(tree, MetaData.SDK_VERSION)

    return tree


def is_metadata_set(tree: ET.ElementTree, exp: dict, username: Optional[str]) -> bool:
    runtime_version = get_runtime_version(exp)
    if runtime_version:
        versions_match = get_metadata_value(tree, MetaData.RUNTIME_VERSION) == runtime_version
    else:
        versions_match = get_metadata_value(tree, MetaData.SDK_VERSION) == get_sdk_version(exp)

    return versions_match and get_metadata_value(tree, MetaData.UPDATE_URL) == get_update_url(exp, username)


# ── Entry points ──────────────────────────────────────────────────────

def configure_updates_android(project_dir, exp: dict, username: Optional[str], verbose: bool = False) -> bool:
    """Patch build.gradle and the manifest. Returns True if anything changed."""
    changed = False
    build_gradle_path = get_build_gradle_path(project_dir)
    build_gradle = read_build_gradle(build_gradle_path)

    if not has_build_script_apply(build_gradle):
        build_gradle_path.write_text(add_build_script_apply(build_gradle), encoding="utf-8")
        changed = True
        log(f"  ✅ Applied create-manifest-android.gradle in {build_gradle_path}")
    else:
        debug(f"{build_gradle_path} already applies create-manifest-android.gradle", verbose)

    manifest_path = get_manifest_path(project_dir)
    tree = read_manifest(manifest_path)

    if not is_metadata_set(tree, exp, username):
        write_manifest(manifest_path, set_updates_config(exp, tree, username))
        changed = True
        log(f"  ✅ Updated expo-updates meta-data in {manifest_path}")
    else:
        debug(f"{manifest_path} is up to date", verbose)

    return changed


def is_updates_configured_android(project_dir, exp: dict, username: Optional[str]) -> bool:
    if not has_build_script_apply(read_build_gradle(get_build_gradle_path(project_dir))):
        return False
    return is_metadata_set(read_manifest(get_manifest_path(project_dir)), exp, username)
