"""Locate a GitHub token the way the gh CLI does."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")
DEFAULT_HOST = "github.com"


class CredentialsNotFoundError(Exception):
    """No token in the environment or in the gh CLI's login cache."""


def gh_config_dir() -> Path:
    if os.environ.get("GH_CONFIG_DIR"):
        return Path(os.environ["GH_CONFIG_DIR"])
    if os.environ.get("XDG_CONFIG_HOME"):
        return Path(os.environ["XDG_CONFIG_HOME"]) / "gh"
    if sys.platform == "win32" and os.environ.get("APPDATA"):
        return Path(os.environ["APPDATA"]) / "GitHub CLI"
    return Path.home() / ".config" / "gh"


def token_from_env() -> str | None:
    for name in TOKEN_ENV_VARS:
        value = (os.environ.get(name) or "").strip()
        if value:
            logger.debug("Using token from $%s", name)
            return value
    return None


def token_from_hosts_file(host: str = DEFAULT_HOST, config_dir: Path | None = None) -> str | None:
    path = (config_dir or gh_config_dir()) / "hosts.yml"
    if not path.is_file():
        return None

    try:
        with path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable gh config %s: %s", path, type(e).__name__)
        return None
    if not isinstance(data, dict):
        return None

    entry = data.get(host)
    if not isinstance(entry, dict):
        return None
    token = entry.get("oauth_token")
    if isinstance(token, str) and token.strip():
        logger.debug("Using token from %s", path)
        return token.strip()
    return None


def token_from_gh_cli(host: str = DEFAULT_HOST) -> str | None:
    # Newer gh versions keep the token in the system keyring
    try:
        proc = subprocess.run(
            ["gh", "auth", "token", "--hostname", host],
            capture_output=True,
            text=True,
            check=False,
            timeout=10,
        )
    except FileNotFoundError:
        logger.debug("gh executable not found")
        return None
    except subprocess.TimeoutExpired:
        logger.warning("`gh auth token` timed out")
        return None

    token = proc.stdout.strip()
    if proc.returncode != 0 or not token:
        return None
    logger.debug("Using token from `gh auth token`")
    return token


def get_token(host: str = DEFAULT_HOST) -> str:
    token = token_from_env() or token_from_hosts_file(host) or token_from_gh_cli(host)
    if token is None:
        raise CredentialsNotFoundError(
            "GitHub token not found: set GH_TOKEN or GITHUB_TOKEN, or log in with `gh auth login`"
        )
    return token
