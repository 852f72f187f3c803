"""Model-limit table and client configuration loader.

Loads output-token ceilings from models.toml and client defaults from
defaults.toml. The token-budget validator consults the cached default
table; it is never re-derived at runtime.
"""

from __future__ import annotations

import tomllib
from functools import cache
from pathlib import Path

from msgstream.schemas.config import ClientConfig, ModelLimit
from msgstream.schemas.models import ClaudeModel

# Default config directory relative to the msgstream package
_CONFIG_DIR = Path(__file__).parent / "config"


def load_model_limits(config_path: Path | None = None) -> dict[ClaudeModel, ModelLimit]:
    """Load the model-limit table from a TOML file.

    Args:
        config_path: Path to models.toml. Defaults to msgstream/config/models.toml.

    Returns:
        Dictionary mapping each model to its ModelLimit row.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid or a model is missing.
    """
    path = config_path or _CONFIG_DIR / "models.toml"
    if not path.exists():
        raise FileNotFoundError(f"Model-limit table not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    models_section = raw.get("models")
    if not models_section or not isinstance(models_section, dict):
        raise ValueError(f"No [models] section found in {path}")

    table: dict[ClaudeModel, ModelLimit] = {}
    for key, entry in models_section.items():
        if not isinstance(entry, dict):
            continue
        try:
            row = ModelLimit(**entry)
        except ValueError as e:
            raise ValueError(f"Invalid entry [models.{key}] in {path}: {e}") from e
        table[row.model] = row

    missing = [m.value for m in ClaudeModel if m not in table]
    if missing:
        raise ValueError(f"No limit configured for: {', '.join(missing)} ({path})")

    return table


@cache
def default_model_limits() -> dict[ClaudeModel, ModelLimit]:
    """The model-limit table shipped with the package, loaded once."""
    return load_model_limits()


def max_output_tokens(model: ClaudeModel) -> int:
    """Output-token ceiling for ``model`` from the shipped table."""
    return default_model_limits()[ClaudeModel(model)].max_output_tokens


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to msgstream/config/defaults.toml.

    Returns:
        ClientConfig with values from the [client] section.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Client config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    return ClientConfig(**raw.get("client", {}))
