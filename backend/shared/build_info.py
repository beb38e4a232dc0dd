"""Build metadata reported by the ranking server's health endpoint.

Deployed builds set APP_VERSION and GIT_COMMIT. Otherwise the version comes
from the installed distribution and the commit from git, asked about the
source tree this module lives in rather than the working directory.
"""

import os
import subprocess
from importlib import metadata
from pathlib import Path

DISTRIBUTION = "ronin-ranking"
_SOURCE_DIR = Path(__file__).resolve().parent


def _installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "dev"


def _git_short_sha() -> str:
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            cwd=_SOURCE_DIR,
            text=True,
            stderr=subprocess.DEVNULL,
        ).strip()
    except (FileNotFoundError, subprocess.CalledProcessError):
        return "dev"


APP_VERSION: str = os.environ.get("APP_VERSION") or _installed_version()
GIT_COMMIT: str = os.environ.get("GIT_COMMIT") or _git_short_sha()


def build_metadata() -> dict[str, str]:
    return {"version": APP_VERSION, "commit": GIT_COMMIT}
