"""YAML configuration file loader."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML

from feature_env.config.schema import OverrideSettings, PlanInput

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised for configuration loading / validation errors."""


# Override field → location in the YAML document.
_OVERRIDE_PATHS: dict[str, tuple[str, ...]] = {
    "feature_name": ("feature_name",),
    "pr_id": ("deployment", "pr_id"),
    "registry_server": ("deployment", "registry_server"),
    "nordic_image_tag": ("deployment", "nordic_image", "tag"),
    "worker_image_tag": ("deployment", "worker_image", "tag"),
    "waf_policy_id": ("deployment", "waf_policy_id"),
    "dns_zone_name": ("deployment", "dns_zone_name"),
    "elastic_endpoint": ("deployment", "elastic_endpoint"),
}


def _dotenv_overrides(config_dir: Path) -> dict[str, str]:
    """``FEATURE_ENV_*`` entries of the ``.env`` file next to the config, keyed by field."""
    env_file = config_dir / ".env"
    if not env_file.is_file():
        return {}
    prefix = OverrideSettings.model_config.get("env_prefix", "").upper()
    return {
        key[len(prefix) :].lower(): value
        for key, value in dotenv_values(env_file, encoding="utf-8-sig").items()
        if key.upper().startswith(prefix) and value is not None
    }


def _apply_overrides(raw: dict[str, Any], config_dir: Path) -> dict[str, Any]:
    """Fill fields absent from YAML from env vars, then the ``.env`` file.

    Priority (highest wins): YAML value > env var > ``.env`` file.
    """
    settings = OverrideSettings()
    dotenv_vals = _dotenv_overrides(config_dir)

    for field, path in _OVERRIDE_PATHS.items():
        value = getattr(settings, field)
        if value is None:
            value = dotenv_vals.get(field)
        if value is None:
            continue
        target = raw
        for key in path[:-1]:
            nested = target.get(key)
            if nested is None:
                nested = target[key] = {}
            if not isinstance(nested, dict):
                raise ConfigError(f"'{key}' must be a mapping")
            target = nested
        if target.get(path[-1]) is None:
            logger.debug("Using %s from environment", ".".join(path))
            target[path[-1]] = value

    return raw


def load_config(path: Path | str) -> PlanInput:
    """Load a YAML configuration file and return a ``PlanInput``.

    Raises:
        ConfigError: On YAML parse errors, missing sections, or validation failures.
    """
    path = Path(path)

    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    raw = _apply_overrides(raw, path.parent)
    try:
        plan_input = PlanInput.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    plan_input.config_dir = path.parent
    logger.info("Loaded config from %s (feature %s)", path, plan_input.feature_name)
    return plan_input
