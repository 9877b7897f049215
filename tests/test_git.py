"""Tests for the git status / clean collaborators."""

import os
import subprocess
import tempfile

import pytest

from gitclean import git
from gitclean.errors import GitCommandError
from gitclean.git import clean_repository, has_untracked_files


def _create_test_repo(path: str) -> str:
    """Create a real git repo with one commit, a .gitignore and a tracked file."""
    subprocess.run(["git", "init", path], capture_output=True)
    subprocess.run(["git", "-C", path, "config", "user.email", "test@test.com"], capture_output=True)
    subprocess.run(["git", "-C", path, "config", "user.name", "Test User"], capture_output=True)
    subprocess.run(["git", "-C", path, "config", "commit.gpgsign", "false"], capture_output=True)

    with open(os.path.join(path, "main.py"), "w") as f:
        f.write("print('hello world')\n")
    with open(os.path.join(path, ".gitignore"), "w") as f:
        f.write("build/\n*.log\n")
    subprocess.run(["git", "-C", path, "add", "."], capture_output=True)
    subprocess.run(["git", "-C", path, "commit", "-m", "Initial commit"], capture_output=True)
    return path


def test_has_untracked_files_clean_repo():
    with tempfile.TemporaryDirectory() as tmp:
        repo = _create_test_repo(os.path.join(tmp, "repo"))
        assert has_untracked_files(repo) is False


def test_has_untracked_files_with_untracked():
    with tempfile.TemporaryDirectory() as tmp:
        repo = _create_test_repo(os.path.join(tmp, "repo"))
        with open(os.path.join(repo, "notes.txt"), "w") as f:
            f.write("not committed\n")
        assert has_untracked_files(repo) is True


def test_has_untracked_files_ignores_show_untracked_setting():
    with tempfile.TemporaryDirectory() as tmp:
        repo = _create_test_repo(os.path.join(tmp, "repo"))
        subprocess.run(
            ["git", "-C", repo, "config", "status.showUntrackedFiles", "no"], capture_output=True,
        )
        with open(os.path.join(repo, "notes.txt"), "w") as f:
            f.write("not committed\n")
        assert has_untracked_files(repo) is True


def test_has_untracked_files_ignores_ignored_and_modified():
    with tempfile.TemporaryDirectory() as tmp:
        repo = _create_test_repo(os.path.join(tmp, "repo"))
        os.makedirs(os.path.join(repo, "build"))
        with open(os.path.join(repo, "build", "out.bin"), "w") as f:
            f.write("artifact")
        with open(os.path.join(repo, "debug.log"), "w") as f:
            f.write("log")
        with open(os.path.join(repo, "main.py"), "a") as f:
            f.write("print('modified')\n")
        assert has_untracked_files(repo) is False


def test_has_untracked_files_not_a_repo():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(GitCommandError) as info:
            has_untracked_files(os.path.join(tmp, "nope"))
        assert info.value.returncode not in (None, 0)


def test_clean_repository_removes_untracked_and_ignored():
    with tempfile.TemporaryDirectory() as tmp:
        repo = _create_test_repo(os.path.join(tmp, "repo"))
        os.makedirs(os.path.join(repo, "build", "nested"))
        with open(os.path.join(repo, "build", "nested", "out.bin"), "w") as f:
            f.write("artifact")
        with open(os.path.join(repo, "debug.log"), "w") as f:
            f.write("log")
        os.makedirs(os.path.join(repo, "scratch"))
        with open(os.path.join(repo, "scratch", "tmp.txt"), "w") as f:
            f.write("untracked")

        clean_repository(repo)

        assert not os.path.exists(os.path.join(repo, "build"))
        assert not os.path.exists(os.path.join(repo, "debug.log"))
        assert not os.path.exists(os.path.join(repo, "scratch"))
        assert os.path.exists(os.path.join(repo, "main.py"))
        assert os.path.exists(os.path.join(repo, ".gitignore"))


def test_clean_repository_not_a_repo():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(GitCommandError):
            clean_repository(tmp)


def test_run_git_timeout(monkeypatch):
    def fake_run(*args, **kwargs):
        raise subprocess.TimeoutExpired(cmd=args[0], timeout=kwargs["timeout"])

    monkeypatch.setattr(git.subprocess, "run", fake_run)
    with pytest.raises(GitCommandError, match="timed out"):
        has_untracked_files("/some/repo", timeout=1)


def test_run_git_missing_executable(monkeypatch):
    def fake_run(*args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(git.subprocess, "run", fake_run)
    with pytest.raises(GitCommandError, match="could not run git"):
        clean_repository("/some/repo")


def test_run_git_passes_explicit_path_and_c_locale(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, stdout="Untracked files:\n  x\n", stderr="")

    monkeypatch.setattr(git.subprocess, "run", fake_run)
    assert has_untracked_files("/some/repo") is True
    cmd, kwargs = calls[0]
    assert cmd[:3] == ["git", "-C", "/some/repo"]
    assert "--untracked-files=normal" in cmd
    assert kwargs["env"]["LC_ALL"] == "C"
    assert "cwd" not in kwargs
    assert kwargs["env"]["GIT_CEILING_DIRECTORIES"] == "/some"


def test_broken_repo_does_not_fall_through_to_parent():
    with tempfile.TemporaryDirectory() as tmp:
        parent = _create_test_repo(os.path.join(tmp, "parent"))
        child = os.path.join(parent, "child")
        os.makedirs(os.path.join(child, ".git"))
        with open(os.path.join(child, "keep.txt"), "w") as f:
            f.write("must survive\n")
        with pytest.raises(GitCommandError):
            clean_repository(child)
        assert os.path.exists(os.path.join(child, "keep.txt"))
