"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from feature_env.config import load
from feature_env.planner import DeploymentConfig, build
from feature_env.resources import ExternalReference, ExternalReferenceSet, ReferenceRole

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from feature_env.config.schema import PlanInput
    from feature_env.planner import EnvironmentPlan

_FEATURE_ENV_VARS = (
    "FEATURE_ENV_FEATURE_NAME",
    "FEATURE_ENV_PR_ID",
    "FEATURE_ENV_REGISTRY_SERVER",
    "FEATURE_ENV_NORDIC_IMAGE_TAG",
    "FEATURE_ENV_WORKER_IMAGE_TAG",
    "FEATURE_ENV_WAF_POLICY_ID",
    "FEATURE_ENV_DNS_ZONE_NAME",
    "FEATURE_ENV_ELASTIC_ENDPOINT",
    "FEATURE_ENV_LOG",
    "NO_COLOR",
)

WAF_POLICY_ID = (
    "/subscriptions/0000/resourceGroups/edge/providers/"
    "Microsoft.Network/FrontDoorWebApplicationFirewallPolicies/featurewaf"
)


@pytest.fixture(autouse=True)
def _clean_feature_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove FEATURE_ENV_* env vars so unit tests don't leak CI config."""
    for var in _FEATURE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def deployment_data(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "registry_server": "nordicregistry.azurecr.io",
        "nordic_image": {"name": "nordic", "tag": "2024.10.1"},
        "worker_image": {"name": "nordic-worker", "tag": "2024.10.1"},
        "waf_policy_id": WAF_POLICY_ID,
        "dns_zone_name": "cust.nisportal.com",
        "pr_id": "1234",
        "app_configuration_endpoint": "https://nordic-config.azconfig.io",
    }
    data.update(overrides)
    return data


@pytest.fixture
def deployment() -> DeploymentConfig:
    return DeploymentConfig.model_validate(deployment_data())


@pytest.fixture
def make_deployment() -> Callable[..., DeploymentConfig]:
    """Factory fixture: deployment config with selected options overridden."""

    def _make(**overrides: Any) -> DeploymentConfig:
        return DeploymentConfig.model_validate(deployment_data(**overrides))

    return _make


@pytest.fixture
def references() -> ExternalReferenceSet:
    return ExternalReferenceSet(
        hosting_environment=ExternalReference(
            role=ReferenceRole.HOSTING_ENVIRONMENT,
            name="nordic-shared-env",
            resource_group="shared",
        ),
        edge_profile=ExternalReference(
            role=ReferenceRole.EDGE_PROFILE, name="nordic-edge", resource_group="edge"
        ),
        telemetry_workspace=ExternalReference(
            role=ReferenceRole.TELEMETRY_WORKSPACE, name="nordic-logs", resource_group="shared"
        ),
        identity=ExternalReference(
            role=ReferenceRole.IDENTITY,
            name="nordic-identity",
            resource_group="shared",
            attributes={"clientId": "11111111-2222-3333-4444-555555555555"},
        ),
        dns_zone=ExternalReference(
            role=ReferenceRole.DNS_ZONE, name="cust.nisportal.com", resource_group="dns"
        ),
    )


@pytest.fixture
def build_plan(
    references: ExternalReferenceSet,
    make_deployment: Callable[..., DeploymentConfig],
) -> Callable[..., EnvironmentPlan]:
    """Factory fixture: build a plan for *feature* with deployment overrides."""

    def _build(feature: str = "feature-1234", **overrides: Any) -> EnvironmentPlan:
        return build(feature, references, make_deployment(**overrides))

    return _build


_YAML = """\
feature_name: feature-1234
deployment:
  registry_server: nordicregistry.azurecr.io
  nordic_image:
    name: nordic
    tag: "2024.10.1"
  worker_image:
    name: nordic-worker
    tag: "2024.10.1"
  waf_policy_id: /subscriptions/0000/providers/waf/featurewaf
  dns_zone_name: cust.nisportal.com
  pr_id: 1234
  feature_flags:
    enable_playground: true
references:
  hosting_environment:
    name: nordic-shared-env
    resource_group: shared
  edge_profile:
    name: nordic-edge
  telemetry_workspace:
    name: nordic-logs
  identity:
    name: nordic-identity
    attributes:
      clientId: 11111111-2222-3333-4444-555555555555
  dns_zone:
    name: cust.nisportal.com
    resource_group: dns
"""


@pytest.fixture
def config_yaml() -> str:
    return _YAML


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., PlanInput]:
    """Factory fixture: write YAML + optional .env, return loaded PlanInput."""

    def _make(yaml_str: str = _YAML, *, dotenv: str | None = None) -> PlanInput:
        (tmp_path / "feature-env.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "feature-env.yaml")

    return _make
