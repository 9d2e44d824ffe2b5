"""YAML configuration loading and convenience planning API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from feature_env.config.loader import ConfigError, load_config
from feature_env.config.schema import OverrideSettings, PlanInput
from feature_env.planner.builder import build

if TYPE_CHECKING:
    from pathlib import Path

    from feature_env.planner.types import EnvironmentPlan

__all__ = [
    "ConfigError",
    "OverrideSettings",
    "PlanInput",
    "load",
    "load_config",
    "plan",
]


def load(path: Path | str) -> PlanInput:
    """Load a YAML configuration file."""
    return load_config(path)


def plan(plan_input: PlanInput) -> EnvironmentPlan:
    """Build the environment plan described by a loaded configuration."""
    return build(plan_input.feature_name, plan_input.references, plan_input.deployment)
