#!/usr/bin/env python3
"""Git helpers used to stage and commit configuration changes."""

import subprocess
from pathlib import Path


class DirtyGitTreeError(RuntimeError):
    """Raised when the working tree has uncommitted changes."""


def run_git(args: list, cwd=None, check: bool = True) -> subprocess.CompletedProcess:
    cmd = ["git", *args]
    result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    if check and result.returncode != 0:
        raise RuntimeError(f"Command failed: {' '.join(str(c) for c in cmd)}\n{result.stderr}")
    return result


def has_repo(cwd) -> bool:
    try:
        result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=cwd, check=False)
    except FileNotFoundError:
        # git not installed
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def git_add(path, intent_to_add: bool = False):
    path = Path(path)
    args = ["add"]
    if intent_to_add:
        args.append("--intent-to-add")
    run_git([*args, path.name], cwd=path.parent)


def ensure_git_status_is_clean(cwd):
    result = run_git(["status", "--porcelain"], cwd=cwd)
    if result.stdout.strip():
        raise DirtyGitTreeError("Please commit all changes. Aborting...")


def show_diff(cwd):
    print(run_git(["status", "--short"], cwd=cwd).stdout)
    print(run_git(["--no-pager", "diff"], cwd=cwd).stdout)


def commit_all(message: str, cwd):
    run_git(["add", "-A"], cwd=cwd)
    run_git(["commit", "-m", message], cwd=cwd)


def review_and_commit_changes(message: str, cwd, non_interactive: bool = False):
    """Ask the user to commit the pending changes, optionally showing the diff first."""
    if non_interactive:
        raise RuntimeError(
            "Cannot commit changes when --non-interactive is specified. "
            "Run the command in interactive mode to review and commit changes."
        )

    while True:
        choice = input("Can we commit these changes to git for you? [Y]es / [n]o / [d]iff: ").strip().lower()
        if choice in ("", "y", "yes"):
            commit_all(message, cwd)
            return
        if choice in ("d", "diff"):
            show_diff(cwd)
            continue
        if choice in ("n", "no"):
            raise RuntimeError("Aborting commit.")
        print("  Please enter y, n, or d.")
