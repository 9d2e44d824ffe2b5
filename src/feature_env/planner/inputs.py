"""Deployment inputs: images, feature flags and shared settings."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


def _stringify(v: Any) -> Any:
    """YAML reads ``pr_id: 1234`` and ``tag: 1.2`` as numbers; keep them as tokens."""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


Token = Annotated[str, BeforeValidator(_stringify), Field(pattern=r"^\S+$")]


class ImageRef(BaseModel):
    """A container image in the shared registry."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(pattern=r"^[a-z0-9]+(?:[._/-][a-z0-9]+)*$")
    tag: Annotated[
        str, BeforeValidator(_stringify), Field(pattern=r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")
    ]

    def reference(self, registry_server: str) -> str:
        return f"{registry_server}/{self.name}:{self.tag}"


class FeatureFlags(BaseModel):
    """Application switches rendered into every workload's environment."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enable_playground: bool = False
    enable_unsecure_playground: bool = False
    super_administrator_mode: bool = False
    include_exception_details: bool = False
    has_custom_jwt_secret: bool = False
    use_elastic8: bool = False


class DeploymentConfig(BaseModel):
    """Per-deployment settings shared by both workloads."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    registry_server: str = Field(pattern=r"^[a-z0-9.-]+(?::[0-9]+)?$")
    nordic_image: ImageRef
    worker_image: ImageRef
    feature_flags: FeatureFlags = Field(default_factory=FeatureFlags)
    elastic_endpoint: str = ""
    waf_policy_id: str = Field(min_length=1)
    dns_zone_name: str = Field(pattern=r"^(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z]{2,}$")
    pr_id: Token
    app_configuration_endpoint: str = ""
    jwt_secret_uri: str = ""
    nordic_port: int = Field(default=8080, ge=1, le=65535)
    worker_port: int = Field(default=8081, ge=1, le=65535)

    @model_validator(mode="after")
    def _gated_options_present(self) -> DeploymentConfig:
        flags = self.feature_flags
        if flags.use_elastic8 and not self.elastic_endpoint:
            raise ValueError("elastic_endpoint is required when feature_flags.use_elastic8 is set")
        return self

    @property
    def label(self) -> str:
        """App-configuration label selecting this pull request's settings."""
        return f"Feature-{self.pr_id}"
