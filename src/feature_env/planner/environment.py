"""Environment-variable composition for the nordic and worker workloads.

Composition order is a contract: shared base set, then the JWT block (only
when a custom JWT secret is configured), then the workload's port entry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from feature_env.resources.base import AttributeRef
from feature_env.resources.environment import EnvironmentVariable, EnvironmentVariableSet

if TYPE_CHECKING:
    from feature_env.planner.inputs import DeploymentConfig
    from feature_env.resources.references import ExternalReference

PORT_VARIABLE = "ASPNETCORE_HTTP_PORTS"
JWT_PREFIX = "Security__Jwt__"
JWT_SECRET_NAME = "jwt-secret"
JWT_ISSUER = "nordic"
JWT_AUDIENCE = "nordic"

_ELASTIC_VARIABLES = (
    "ElasticSearch__Url",
    "Serilog__Elasticsearch__NodeUris",
    "HealthChecks__Elasticsearch__Url",
)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def base_environment(
    config: DeploymentConfig,
    *,
    identity: ExternalReference,
    telemetry_component: str,
) -> EnvironmentVariableSet:
    """Variables shared by every workload."""
    flags = config.feature_flags
    elastic = config.elastic_endpoint if flags.use_elastic8 else ""
    return EnvironmentVariableSet.of(
        ("AZURE_CLIENT_ID", identity.attribute("clientId")),
        (
            "APPLICATIONINSIGHTS_CONNECTION_STRING",
            AttributeRef(target=telemetry_component, attribute="connectionString"),
        ),
        ("AppConfiguration__Endpoint", config.app_configuration_endpoint),
        ("AppConfiguration__Label", config.label),
        ("ASPNETCORE_ENVIRONMENT", "Feature"),
        *((name, elastic) for name in _ELASTIC_VARIABLES),
        ("FeatureFlags__EnablePlayground", _flag(flags.enable_playground)),
        ("FeatureFlags__EnableUnsecurePlayground", _flag(flags.enable_unsecure_playground)),
        ("FeatureFlags__SuperAdministratorMode", _flag(flags.super_administrator_mode)),
        ("FeatureFlags__IncludeExceptionDetails", _flag(flags.include_exception_details)),
        ("FeatureFlags__UseElastic8", _flag(flags.use_elastic8)),
    )


def jwt_environment(config: DeploymentConfig) -> EnvironmentVariableSet:
    if not config.feature_flags.has_custom_jwt_secret:
        return EnvironmentVariableSet()
    return EnvironmentVariableSet(
        entries=(
            EnvironmentVariable(name=f"{JWT_PREFIX}Issuer", value=JWT_ISSUER),
            EnvironmentVariable(name=f"{JWT_PREFIX}Audience", value=JWT_AUDIENCE),
            EnvironmentVariable(name=f"{JWT_PREFIX}Secret", secret_ref=JWT_SECRET_NAME),
        )
    )


def port_environment(port: int) -> EnvironmentVariableSet:
    return EnvironmentVariableSet.of((PORT_VARIABLE, str(port)))


def compose_environment(
    config: DeploymentConfig,
    *,
    identity: ExternalReference,
    telemetry_component: str,
    port: int,
) -> EnvironmentVariableSet:
    """Merge base, then JWT, then the workload port; the port entry is always last."""
    return EnvironmentVariableSet.merge(
        base_environment(config, identity=identity, telemetry_component=telemetry_component),
        jwt_environment(config),
        port_environment(port),
    )
