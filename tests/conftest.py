import json
import shutil
import subprocess
from pathlib import Path

import pytest

from expo_updates_config import config

PBXPROJ = r"""// !$*UTF8*$!
{
	archiveVersion = 1;
	classes = {
	};
	objectVersion = 46;
	objects = {

/* Begin PBXProject section */
		83CBB9F71A601CBA00E9B192 /* Project object */ = {
			isa = PBXProject;
			compatibilityVersion = "Xcode 3.2";
			developmentRegion = en;
			hasScannedForEncodings = 0;
			knownRegions = (
				en,
			);
			projectDirPath = "";
			projectRoot = "";
			targets = (
			);
		};
/* End PBXProject section */

/* Begin PBXShellScriptBuildPhase section */
		00DD1BFF1BD5951E006B06BC /* Bundle React Native code and images */ = {
			isa = PBXShellScriptBuildPhase;
			buildActionMask = 2147483647;
			files = (
			);
			inputPaths = (
			);
			name = "Bundle React Native code and images";
			outputPaths = (
			);
			runOnlyForDeploymentPostprocessing = 0;
			shellPath = /bin/sh;
			shellScript = "export NODE_BINARY=node\n../node_modules/react-native/scripts/react-native-xcode.sh\n";
		};
		FD10A7F022414F080027D42C /* Start Packager */ = {
			isa = PBXShellScriptBuildPhase;
			buildActionMask = 2147483647;
			files = (
			);
			inputPaths = (
			);
			name = "Start Packager";
			outputPaths = (
			);
			runOnlyForDeploymentPostprocessing = 0;
			shellPath = /bin/sh;
			shellScript = "echo packager\n";
		};
/* End PBXShellScriptBuildPhase section */
	};
	rootObject = 83CBB9F71A601CBA00E9B192 /* Project object */;
}
"""

BUILD_GRADLE = """apply plugin: "com.android.application"

android {
    compileSdkVersion 29
}

dependencies {
    implementation "com.facebook.react:react-native:+"
}
"""

MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="com.example.app">
    <uses-permission android:name="android.permission.INTERNET" />
    <!-- main application -->
    <application android:name=".MainApplication" android:label="@string/app_name">
        <activity android:name=".MainActivity" />
    </application>
</manifest>
"""


def write_project(root: Path, expo: dict, dependencies=None) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "app.json").write_text(json.dumps({"expo": expo}))
    if dependencies is None:
        dependencies = {"expo": "^40.0.0", "expo-updates": "~0.4.0"}
    (root / "package.json").write_text(json.dumps({"name": "app", "dependencies": dependencies}))

    xcodeproj = root / "ios" / "MyApp.xcodeproj"
    xcodeproj.mkdir(parents=True)
    (xcodeproj / "project.pbxproj").write_text(PBXPROJ)

    app_dir = root / "android" / "app"
    (app_dir / "src" / "main").mkdir(parents=True)
    (app_dir / "build.gradle").write_text(BUILD_GRADLE)
    (app_dir / "src" / "main" / "AndroidManifest.xml").write_text(MANIFEST)
    return root


@pytest.fixture(autouse=True)
def isolated_user_state(tmp_path, monkeypatch):
    monkeypatch.delenv("EXPO_USERNAME", raising=False)
    monkeypatch.setattr(config, "STATE_PATH", tmp_path / "home" / ".expo" / "state.json")


@pytest.fixture
def exp():
    return {"name": "MyApp", "slug": "my-app", "sdkVersion": "40.0.0"}


@pytest.fixture
def project(tmp_path, exp):
    return write_project(tmp_path / "project", exp)


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Test User")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "test@example.com")


def git_init(root: Path, commit: bool = True):
    subprocess.run(["git", "init", "-q"], cwd=root, check=True)
    if commit:
        subprocess.run(["git", "add", "-A"], cwd=root, check=True)
        subprocess.run(["git", "commit", "-q", "-m", "initial"], cwd=root, check=True)
