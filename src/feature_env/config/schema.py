"""Configuration models for YAML-based planning."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from feature_env.planner.inputs import DeploymentConfig  # noqa: TC001
from feature_env.resources.references import ExternalReferenceSet


class OverrideSettings(BaseSettings):
    """Values CI usually injects per run rather than committing to YAML.

    Read from ``FEATURE_ENV_*`` environment variables; the loader falls back to
    the same keys in a ``.env`` file next to the configuration.  Values present
    in YAML take precedence over both.
    """

    model_config = SettingsConfigDict(
        env_prefix="FEATURE_ENV_",
        extra="ignore",
    )

    feature_name: str | None = None
    pr_id: str | None = None
    registry_server: str | None = None
    nordic_image_tag: str | None = None
    worker_image_tag: str | None = None
    waf_policy_id: str | None = None
    dns_zone_name: str | None = None
    elastic_endpoint: str | None = None


class PlanInput(BaseModel):
    """A planning configuration file: identity, deployment options and references."""

    model_config = ConfigDict(extra="forbid")

    feature_name: str = Field(min_length=1)
    deployment: DeploymentConfig
    references: ExternalReferenceSet = Field(default_factory=ExternalReferenceSet)
    config_dir: Path = Path()
