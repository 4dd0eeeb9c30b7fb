#!/usr/bin/env python3
"""App config and settings for expo-updates-config.

Reads app.json / package.json from the project, the optional
expo-updates.yaml settings file, and the Expo CLI state in ~/.expo/state.json.
"""

import json
import os
from pathlib import Path
from typing import Optional

import yaml

STATE_PATH = Path.home() / ".expo" / "state.json"
SETTINGS_FILE = "expo-updates.yaml"

PLATFORMS = ("android", "ios")

DEFAULT_SETTINGS = {
    "username": None,
    "platforms": list(PLATFORMS),
    "commit_message": "Configure expo-updates",
}


def log(msg: str):
    print(msg)


def debug(msg: str, verbose: bool = False):
    if verbose:
        print(f"  [debug] {msg}")


def _read_json(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Couldn't find {path.name} at {path}")
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def load_app_config(project_dir) -> dict:
    """Return the `expo` section of app.json (or the whole file if it has none)."""
    data = _read_json(Path(project_dir) / "app.json")
    if isinstance(data.get("expo"), dict):
        return data["expo"]
    return data


def load_package_json(project_dir) -> dict:
    return _read_json(Path(project_dir) / "package.json")


def is_expo_updates_installed(project_dir) -> bool:
    dependencies = load_package_json(project_dir).get("dependencies") or {}
    return "expo-updates" in dependencies


def load_settings(project_dir) -> dict:
    """Load expo-updates.yaml from the project root, merged over the defaults."""
    settings = dict(DEFAULT_SETTINGS)
    path = Path(project_dir) / SETTINGS_FILE
    if not path.exists():
        return settings

    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return settings
    if not isinstance(data, dict):
        raise ValueError(f"{SETTINGS_FILE} must contain a mapping, got {type(data).__name__}")

    for key in DEFAULT_SETTINGS:
        if key in data:
            settings[key] = data[key]

    for key in ("username", "commit_message"):
        value = settings[key]
        if value is not None and not isinstance(value, str):
            raise ValueError(f"'{key}' in {SETTINGS_FILE} must be a string, got {type(value).__name__}")
    if settings["commit_message"] is None:
        settings["commit_message"] = DEFAULT_SETTINGS["commit_message"]

    platforms = settings["platforms"]
    if not isinstance(platforms, list) or not all(isinstance(p, str) for p in platforms):
        raise ValueError(f"'platforms' in {SETTINGS_FILE} must be a list of platform names, e.g. [android, ios]")

    unknown = [p for p in settings["platforms"] if p not in PLATFORMS]
    if unknown:
        raise ValueError(f"Unknown platform(s) in {SETTINGS_FILE}: {', '.join(unknown)}")
    return settings


def load_expo_state() -> dict:
    """Load the Expo CLI state file.

    Returns an empty dict if the file doesn't exist or is invalid.
    """
    if STATE_PATH.exists():
        try:
            return json.loads(STATE_PATH.read_text())
        except (OSError, json.JSONDecodeError):
            pass
    return {}


def resolve_username(explicit: Optional[str] = None, project_dir=None) -> Optional[str]:
    """Resolve the Expo username from args → env → settings file → Expo CLI state.

    Priority order:
      1. Explicit argument
      2. EXPO_USERNAME environment variable
      3. `username` in the project's expo-updates.yaml
      4. auth.username in ~/.expo/state.json
    """
    if explicit:
        return explicit

    env_username = os.environ.get("EXPO_USERNAME")
    if env_username:
        return env_username

    if project_dir is not None:
        settings_username = load_settings(project_dir).get("username")
        if settings_username:
            return settings_username

    auth = load_expo_state().get("auth") or {}
    return auth.get("username") or None


def get_configuration_options(project_dir, username: Optional[str] = None) -> tuple[dict, Optional[str]]:
    """Return (exp, username) for the project."""
    exp = load_app_config(project_dir)

    if not exp.get("runtimeVersion") and not exp.get("sdkVersion"):
        raise ValueError(
            "Couldn't find either 'runtimeVersion' or 'sdkVersion' to configure 'expo-updates'. "
            "Please specify at least one of these properties under the 'expo' key in 'app.json'"
        )

    return exp, resolve_username(username, project_dir)


# Desired values, shared by the iOS plist and the Android manifest.

def get_update_url(exp: dict, username: Optional[str]) -> Optional[str]:
    owner = exp.get("owner")
    user = owner if isinstance(owner, str) else username
    if not user:
        return None
    return f"https://exp.host/@{user}/{exp.get('slug')}"


def get_runtime_version(exp: dict) -> Optional[str]:
    value = exp.get("runtimeVersion")
    return value if isinstance(value, str) else None


def get_sdk_version(exp: dict) -> Optional[str]:
    value = exp.get("sdkVersion")
    return value if isinstance(value, str) else None


def get_updates_enabled(exp: dict) -> bool:
    return (exp.get("updates") or {}).get("enabled") is not False


def get_updates_timeout(exp: dict) -> int:
    timeout = (exp.get("updates") or {}).get("fallbackToCacheTimeout")
    return 0 if timeout is None else timeout


def get_updates_check_on_launch(exp: dict) -> str:
    if (exp.get("updates") or {}).get("checkAutomatically") == "ON_ERROR_RECOVERY":
        return "NEVER"
    return "ALWAYS"
