"""API key loading for msgstream.

The key is read from ANTHROPIC_API_KEY with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.msgstream/keys.env (saved with `save_key`)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from msgstream.errors import MissingApiKey

logger = logging.getLogger(__name__)

API_KEY_ENV = "ANTHROPIC_API_KEY"

# Directory for user-level msgstream configuration
MSGSTREAM_HOME = Path.home() / ".msgstream"
KEYS_FILE = MSGSTREAM_HOME / "keys.env"


def load_keys_env(files: list[Path] | None = None) -> None:
    """Load keys from ~/.msgstream/keys.env and .env into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over
    later ones.
    """
    for env_file in files or [KEYS_FILE, Path.cwd() / ".env"]:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def save_key(api_key: str, path: Path | None = None) -> Path:
    """Save the API key to ~/.msgstream/keys.env.

    Returns:
        Path to the saved file.
    """
    target = path or KEYS_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(f"{API_KEY_ENV}={api_key}\n", encoding="utf-8")

    # Restrict permissions on Unix (best-effort)
    try:
        target.chmod(0o600)
    except OSError:
        pass

    return target


def get_api_key(env_var: str = API_KEY_ENV) -> str:
    """Return the configured API key, loading key files first.

    Raises:
        MissingApiKey: If the key is unset or empty everywhere.
    """
    load_keys_env()
    api_key = os.environ.get(env_var, "").strip()
    if not api_key:
        raise MissingApiKey(
            f"{env_var} is not set. Export it or add it to {KEYS_FILE}."
        )
    return api_key
