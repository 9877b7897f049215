"""Git collaborators: subprocess calls, always with an explicit repo path."""

from __future__ import annotations

import logging
import os
import subprocess

from gitclean.errors import GitCommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300

# Only git's English status output is recognised, so the C locale is forced.
UNTRACKED_MARKER = "Untracked files:"

CLEAN_ARGS = ["clean", "-x", "-d", "-f"]


def _git_env(repo_path: str) -> dict[str, str]:
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    env["LANGUAGE"] = "C"
    # A broken .git must fail, not fall through to an enclosing repository
    env["GIT_CEILING_DIRECTORIES"] = os.path.dirname(os.path.abspath(repo_path))
    return env


def _run_git(repo_path: str, args: list[str], timeout: float = DEFAULT_TIMEOUT) -> str:
    """Run a git command against repo_path and return stdout.

    Raises GitCommandError when git is missing, times out, or exits non-zero.
    """
    cmd = ["git", "-C", repo_path] + args
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            errors="replace",
            env=_git_env(repo_path),
        )
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(repo_path, f"git {args[0]} timed out after {timeout}s") from exc
    except (FileNotFoundError, OSError) as exc:
        raise GitCommandError(repo_path, f"could not run git: {exc}") from exc

    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise GitCommandError(
            repo_path,
            f"git {args[0]} exited with {result.returncode}: {stderr}",
            returncode=result.returncode,
            stderr=stderr,
        )
    return result.stdout


def has_untracked_files(repo_path: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """True when ``git status`` reports untracked files in repo_path.

    The listing mode is pinned so a repo or user setting of
    ``status.showUntrackedFiles=no`` cannot hide them.
    """
    output = _run_git(repo_path, ["status", "--untracked-files=normal"], timeout=timeout)
    return UNTRACKED_MARKER in output


def clean_repository(repo_path: str, timeout: float = DEFAULT_TIMEOUT) -> None:
    """Delete untracked and ignored files and directories, without prompting."""
    _run_git(repo_path, CLEAN_ARGS, timeout=timeout)
