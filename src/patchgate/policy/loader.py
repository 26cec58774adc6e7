"""Load policy overrides from YAML."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from patchgate.core.exceptions import ConfigurationError
from patchgate.policy.models import PolicyConfig

logger = logging.getLogger(__name__)


def load_policy_overrides(config_path: Path) -> dict[str, Any]:
    """Read a policy YAML file into an overrides mapping.

    A missing file is not an error; it just means no overrides.
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Policy file must be a mapping: {config_path}")

    # Allow the policy to sit under a top-level `policy:` key
    data = data.get("policy", data)
    if not isinstance(data, dict):
        raise ConfigurationError(f"'policy' must be a mapping: {config_path}")

    logger.debug("Loaded policy overrides from %s: %s", config_path, sorted(data))
    return data


def load_policy_config(config_path: Path, overrides: dict[str, Any] | None = None) -> PolicyConfig:
    """Defaults, then the YAML file, then explicit overrides."""
    merged = {**load_policy_overrides(config_path), **(overrides or {})}
    try:
        return PolicyConfig.merged(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid policy in {config_path}: {e}") from e
