import subprocess

import pytest

from conftest import git_init, write_project
from expo_updates_config import git
from expo_updates_config.updates import configure_updates, is_updates_configured


def test_not_installed_counts_as_configured(tmp_path, exp):
    root = write_project(tmp_path / "bare", exp, dependencies={"expo": "^40.0.0"})
    assert is_updates_configured(root)
    assert configure_updates(root) is False
    assert "create-manifest-android.gradle" not in (root / "android" / "app" / "build.gradle").read_text()


def test_configure_then_check(project):
    assert not is_updates_configured(project, username="someone")
    assert configure_updates(project, username="someone")
    assert is_updates_configured(project, username="someone")
    assert configure_updates(project, username="someone") is False


def test_username_change_requires_reconfigure(project):
    configure_updates(project, username="someone")
    assert not is_updates_configured(project, username="someone-else")


def test_platforms_from_settings(project):
    (project / "expo-updates.yaml").write_text("platforms: [android]\n")
    configure_updates(project, username="someone")

    assert is_updates_configured(project, username="someone")
    assert not is_updates_configured(project, username="someone", platforms=["ios"])
    assert not (project / "ios" / "MyApp" / "Supporting" / "Expo.plist").exists()


def test_missing_versions_fail(tmp_path):
    root = write_project(tmp_path / "noversion", {"slug": "my-app"})
    with pytest.raises(ValueError, match="sdkVersion"):
        configure_updates(root)


def test_dirty_tree_non_interactive_aborts(project, git_env):
    git_init(project)
    with pytest.raises(RuntimeError, match="Aborting"):
        configure_updates(project, non_interactive=True, username="someone")
    # changes stay on disk for the user to review
    assert is_updates_configured(project, username="someone")


def test_dirty_tree_commits_when_confirmed(project, git_env, monkeypatch):
    git_init(project)
    monkeypatch.setattr("builtins.input", lambda _prompt: "y")

    configure_updates(project, username="someone")

    git.ensure_git_status_is_clean(project)
    log = subprocess.run(["git", "log", "--format=%s"], cwd=project, capture_output=True, text=True, check=True)
    assert log.stdout.splitlines()[0] == "Configure expo-updates"


def test_declined_commit_aborts(project, git_env, monkeypatch):
    git_init(project)
    answers = iter(["d", "n"])
    monkeypatch.setattr("builtins.input", lambda _prompt: next(answers))

    with pytest.raises(RuntimeError, match="Aborting"):
        configure_updates(project, username="someone")

    with pytest.raises(git.DirtyGitTreeError):
        git.ensure_git_status_is_clean(project)


def test_already_configured_clean_tree(project, git_env):
    configure_updates(project, username="someone")
    git_init(project)
    assert configure_updates(project, non_interactive=True, username="someone") is False


def test_has_repo(tmp_path, git_env):
    assert not git.has_repo(tmp_path)
    git_init(tmp_path, commit=False)
    assert git.has_repo(tmp_path)


def test_verbose_reports_up_to_date_files(project, capsys):
    configure_updates(project, username="someone")
    capsys.readouterr()

    configure_updates(project, username="someone", verbose=True)

    out = capsys.readouterr().out
    assert "  [debug] Configuring android" in out
    assert "is up to date" in out
