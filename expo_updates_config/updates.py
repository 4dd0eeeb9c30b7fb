#!/usr/bin/env python3
"""Configure expo-updates across the native projects, or check that it is configured."""

from pathlib import Path
from typing import Optional

from . import git
from .android import configure_updates_android, is_updates_configured_android
from .config import debug, get_configuration_options, is_expo_updates_installed, load_settings, log
from .ios import configure_updates_ios, is_updates_configured_ios

CONFIGURERS = {
    "android": configure_updates_android,
    "ios": configure_updates_ios,
}

CHECKERS = {
    "android": is_updates_configured_android,
    "ios": is_updates_configured_ios,
}


def _resolve_platforms(project_dir, platforms: Optional[list]) -> list:
    if platforms:
        return [p for p in CONFIGURERS if p in platforms]
    return [p for p in CONFIGURERS if p in load_settings(project_dir)["platforms"]]


def is_updates_configured(project_dir, username: Optional[str] = None, platforms: Optional[list] = None) -> bool:
    """True when expo-updates is not installed, or every platform already matches the app config."""
    if not is_expo_updates_installed(project_dir):
        return True

    exp, username = get_configuration_options(project_dir, username)
    return all(CHECKERS[p](project_dir, exp, username) for p in _resolve_platforms(project_dir, platforms))


def configure_updates(
    project_dir,
    non_interactive: bool = False,
    username: Optional[str] = None,
    platforms: Optional[list] = None,
    verbose: bool = False,
) -> bool:
    """Configure expo-updates in the native projects.

    When the project is a git repository and the configuration left the tree
    dirty, the user is asked to review and commit the changes.

    Returns True if any file was changed.
    """
    project_dir = Path(project_dir)
    if not is_expo_updates_installed(project_dir):
        debug("expo-updates is not a dependency, nothing to configure", verbose)
        return False

    log("🔧 Configuring expo-updates")
    exp, username = get_configuration_options(project_dir, username)
    settings = load_settings(project_dir)

    changed = False
    for platform in _resolve_platforms(project_dir, platforms):
        debug(f"Configuring {platform}", verbose)
        changed = CONFIGURERS[platform](project_dir, exp, username, verbose=verbose) or changed

    if not git.has_repo(project_dir):
        log("✅ Configured expo-updates")
        return changed

    try:
        git.ensure_git_status_is_clean(project_dir)
    except git.DirtyGitTreeError:
        log("✅ We configured expo-updates in your project\n")
        try:
            git.review_and_commit_changes(settings["commit_message"], project_dir, non_interactive=non_interactive)
        except RuntimeError as e:
            raise RuntimeError(
                "Aborting, run the command again once you're ready. "
                "Make sure to commit any changes you've made."
            ) from e
        log("✅ Successfully committed the configuration changes.")
    else:
        log("✅ Configured expo-updates")

    return changed
