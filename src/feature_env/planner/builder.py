"""Environment plan builder.

Expands one feature identity into every per-feature resource, its explicit
dependency edges, and the outputs handed to the CI pipeline. The builder is a
pure function: no I/O, no clock, no shared state.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from feature_env.planner.environment import JWT_SECRET_NAME, compose_environment
from feature_env.planner.errors import DuplicateLogicalNameError, ValidationError
from feature_env.planner.graph import DependencyGraph
from feature_env.planner.inputs import DeploymentConfig
from feature_env.planner.naming import FeatureIdentity, ResourceNames
from feature_env.planner.types import ComputeServiceOutput, EnvironmentPlan, PlanOutputs
from feature_env.resources.base import AttributeRef, ResourceKind, ResourceSpec
from feature_env.resources.references import ExternalReferenceSet, ReferenceRole

if TYPE_CHECKING:
    from collections.abc import Iterable

    from feature_env.planner.inputs import ImageRef
    from feature_env.resources.environment import EnvironmentVariableSet
    from feature_env.resources.references import ExternalReference

logger = logging.getLogger(__name__)

HANGFIRE_MOUNT_PATH = "/hangfire"
WORKER_PATH_PREFIX = "/worker"
CATCH_ALL_PREFIX = "/"


def _pydantic_messages(exc: PydanticValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        messages.append(f"{loc}: {err['msg']}")
    return messages


def _coerce_config(config: DeploymentConfig | Mapping[str, Any]) -> DeploymentConfig:
    if isinstance(config, DeploymentConfig):
        return config
    try:
        return DeploymentConfig.model_validate(config)
    except PydanticValidationError as exc:
        raise ValidationError("invalid-config", _pydantic_messages(exc)) from exc


def _coerce_references(
    refs: ExternalReferenceSet | Mapping[str, Any],
) -> ExternalReferenceSet:
    if not isinstance(refs, ExternalReferenceSet):
        try:
            refs = ExternalReferenceSet.model_validate(refs)
        except PydanticValidationError as exc:
            raise ValidationError("invalid-config", _pydantic_messages(exc)) from exc

    missing = refs.missing()
    if missing:
        raise ValidationError(
            "missing-reference",
            [f"required external reference '{role.value}' is not set" for role in missing],
        )
    mismatched = refs.mismatched()
    if mismatched:
        raise ValidationError("invalid-config", mismatched)
    return refs


class _Assembler:
    """Declares the resources of one feature environment."""

    def __init__(
        self,
        names: ResourceNames,
        refs: ExternalReferenceSet,
        config: DeploymentConfig,
    ) -> None:
        self.names = names
        self.config = config
        self.hosting = self._ref(refs, ReferenceRole.HOSTING_ENVIRONMENT)
        self.profile = self._ref(refs, ReferenceRole.EDGE_PROFILE)
        self.workspace = self._ref(refs, ReferenceRole.TELEMETRY_WORKSPACE)
        self.identity = self._ref(refs, ReferenceRole.IDENTITY)
        self.dns_zone = self._ref(refs, ReferenceRole.DNS_ZONE)
        self.tags = {"feature": names.feature, "label": config.label}

    @staticmethod
    def _ref(refs: ExternalReferenceSet, role: ReferenceRole) -> ExternalReference:
        ref = refs.get(role)
        if ref is None:  # pragma: no cover - guarded by _coerce_references
            raise ValidationError("missing-reference", [f"'{role.value}' is not set"])
        return ref

    def _spec(
        self,
        kind: ResourceKind,
        logical_name: str,
        properties: dict[str, Any],
        depends_on: Iterable[str] = (),
        *,
        physical_name: str | None = None,
    ) -> ResourceSpec:
        spec = ResourceSpec(
            kind=kind,
            logical_name=logical_name,
            physical_name=physical_name or logical_name,
            properties=properties,
            depends_on=frozenset(depends_on),
        )
        logger.debug("Planned %s (depends on: %s)", spec.address, sorted(spec.depends_on) or "-")
        return spec

    # -- storage and telemetry --------------------------------------------

    def telemetry_component(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.TELEMETRY_COMPONENT,
            self.names.telemetry_component,
            {
                "kind": "web",
                "applicationType": "web",
                "workspaceResourceId": self.workspace.id_ref(),
                "tags": self.tags,
            },
            [self.workspace.address],
        )

    def storage_account(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.STORAGE_ACCOUNT,
            self.names.storage_account,
            {
                "kind": "StorageV2",
                "sku": "Standard_LRS",
                "minimumTlsVersion": "TLS1_2",
                "allowBlobPublicAccess": False,
                "tags": self.tags,
            },
        )

    def file_share(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.FILE_SHARE,
            self.names.file_share_logical,
            {
                "storageAccount": self.names.storage_account,
                "shareName": self.names.file_share,
                "enabledProtocols": "SMB",
            },
            [self.names.storage_account],
            physical_name=self.names.file_share,
        )

    def storage_mount(self) -> ResourceSpec:
        # Registered in the shared hosting environment; the account key is
        # only known once the storage account exists.
        return self._spec(
            ResourceKind.STORAGE_MOUNT,
            self.names.storage_mount,
            {
                "environmentId": self.hosting.id_ref(),
                "azureFile": {
                    "accountName": self.names.storage_account,
                    "accountKey": AttributeRef(
                        target=self.names.storage_account, attribute="primaryKey"
                    ),
                    "shareName": self.names.file_share,
                    "accessMode": "ReadWrite",
                },
            },
            [self.names.storage_account, self.names.file_share_logical, self.hosting.address],
        )

    # -- compute ----------------------------------------------------------

    def _environment(self, port: int) -> EnvironmentVariableSet:
        return compose_environment(
            self.config,
            identity=self.identity,
            telemetry_component=self.names.telemetry_component,
            port=port,
        )

    def _compute_service(
        self,
        name: str,
        workload: str,
        image: ImageRef,
        port: int,
        *,
        volumes: list[dict[str, Any]],
        volume_mounts: list[dict[str, Any]],
        extra_depends_on: Iterable[str] = (),
    ) -> ResourceSpec:
        identity_id = self.identity.id_ref()
        secrets: list[dict[str, Any]] = []
        if self.config.feature_flags.has_custom_jwt_secret:
            # Without a vault URI the secret value is supplied at apply time.
            secret: dict[str, Any] = {"name": JWT_SECRET_NAME}
            if self.config.jwt_secret_uri:
                secret.update(keyVaultUrl=self.config.jwt_secret_uri, identity=identity_id)
            secrets.append(secret)
        container: dict[str, Any] = {
            "name": workload,
            "image": image.reference(self.config.registry_server),
            "env": self._environment(port).to_property(),
        }
        if volume_mounts:
            container["volumeMounts"] = volume_mounts
        return self._spec(
            ResourceKind.COMPUTE_SERVICE,
            name,
            {
                "environmentId": self.hosting.id_ref(),
                "identity": {"type": "UserAssigned", "userAssignedIdentities": [identity_id]},
                "registries": [{"server": self.config.registry_server, "identity": identity_id}],
                "ingress": {"external": True, "targetPort": port, "transport": "auto"},
                "secrets": secrets,
                "containers": [container],
                "volumes": volumes,
                "scale": {"minReplicas": 1, "maxReplicas": 1},
                "tags": self.tags,
            },
            [
                self.names.telemetry_component,
                self.hosting.address,
                self.identity.address,
                *extra_depends_on,
            ],
        )

    def nordic(self) -> ResourceSpec:
        return self._compute_service(
            self.names.nordic,
            "nordic",
            self.config.nordic_image,
            self.config.nordic_port,
            volumes=[],
            volume_mounts=[],
        )

    def worker(self) -> ResourceSpec:
        # The volume cannot attach before the mount exists in the hosting environment.
        return self._compute_service(
            self.names.worker,
            "worker",
            self.config.worker_image,
            self.config.worker_port,
            volumes=[
                {
                    "name": self.names.file_share,
                    "storageType": "AzureFile",
                    "storageName": self.names.storage_mount,
                }
            ],
            volume_mounts=[{"volumeName": self.names.file_share, "mountPath": HANGFIRE_MOUNT_PATH}],
            extra_depends_on=[self.names.storage_mount],
        )

    def routing(self) -> ResourceSpec:
        # Rules are evaluated first-match: the /worker rule must stay ahead of
        # the catch-all or the worker is unreachable.
        rules = [
            {
                "description": "worker",
                "routes": [
                    {
                        "match": {"prefix": WORKER_PATH_PREFIX},
                        "action": {"prefixRewrite": CATCH_ALL_PREFIX},
                    }
                ],
                "targets": [{"containerApp": self.names.worker}],
            },
            {
                "description": "nordic",
                "routes": [{"match": {"prefix": CATCH_ALL_PREFIX}}],
                "targets": [{"containerApp": self.names.nordic}],
            },
        ]
        return self._spec(
            ResourceKind.ROUTING_RULE,
            self.names.routing,
            {"environmentId": self.hosting.id_ref(), "rules": rules},
            [self.names.nordic, self.names.worker, self.hosting.address],
        )

    # -- edge -------------------------------------------------------------

    def edge_endpoint(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.EDGE_ENDPOINT,
            self.names.edge_endpoint,
            {"profile": self.profile.name, "enabledState": "Enabled", "tags": self.tags},
            [self.profile.address],
        )

    def origin_group(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.EDGE_ORIGIN_GROUP,
            self.names.origin_group,
            {
                "profile": self.profile.name,
                "loadBalancingSettings": {
                    "sampleSize": 4,
                    "successfulSamplesRequired": 3,
                    "additionalLatencyInMilliseconds": 50,
                },
                "healthProbeSettings": {
                    "probePath": "/",
                    "probeRequestType": "HEAD",
                    "probeProtocol": "Https",
                    "probeIntervalInSeconds": 100,
                },
                "sessionAffinityState": "Disabled",
            },
            [self.profile.address],
        )

    def origin(self) -> ResourceSpec:
        fqdn = AttributeRef(target=self.names.routing, attribute="fqdn")
        return self._spec(
            ResourceKind.EDGE_ORIGIN,
            self.names.origin,
            {
                "originGroup": self.names.origin_group,
                "hostName": fqdn,
                "originHostHeader": fqdn,
                "httpPort": 80,
                "httpsPort": 443,
                "priority": 1,
                "weight": 1000,
                "enforceCertificateNameCheck": True,
            },
            [self.names.origin_group, self.names.routing],
        )

    def custom_domain(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.EDGE_CUSTOM_DOMAIN,
            self.names.custom_domain,
            {
                "profile": self.profile.name,
                "hostName": self.names.hostname,
                "azureDnsZone": self.dns_zone.id_ref(),
                "tlsSettings": {
                    "certificateType": "ManagedCertificate",
                    "minimumTlsVersion": "TLS12",
                },
            },
            [self.profile.address, self.dns_zone.address],
        )

    def edge_route(self) -> ResourceSpec:
        # The origin must exist so the group is non-empty when the route activates.
        return self._spec(
            ResourceKind.EDGE_ROUTE,
            self.names.edge_route,
            {
                "endpoint": self.names.edge_endpoint,
                "originGroup": self.names.origin_group,
                "customDomains": [self.names.custom_domain],
                "supportedProtocols": ["Http", "Https"],
                "patternsToMatch": ["/*"],
                "forwardingProtocol": "HttpsOnly",
                "linkToDefaultDomain": "Enabled",
                "httpsRedirect": "Enabled",
            },
            [
                self.names.origin,
                self.names.origin_group,
                self.names.edge_endpoint,
                self.names.custom_domain,
            ],
        )

    def security_policy(self) -> ResourceSpec:
        return self._spec(
            ResourceKind.EDGE_SECURITY_POLICY,
            self.names.security_policy,
            {
                "profile": self.profile.name,
                "parameters": {
                    "type": "WebApplicationFirewall",
                    "wafPolicy": self.config.waf_policy_id,
                    "associations": [
                        {"domains": [self.names.custom_domain], "patternsToMatch": ["/*"]}
                    ],
                },
            },
            [self.names.custom_domain, self.names.edge_endpoint, self.profile.address],
        )

    def resources(self) -> list[ResourceSpec]:
        return [
            self.telemetry_component(),
            self.storage_account(),
            self.file_share(),
            self.storage_mount(),
            self.nordic(),
            self.worker(),
            self.routing(),
            self.edge_endpoint(),
            self.origin_group(),
            self.origin(),
            self.custom_domain(),
            self.edge_route(),
            self.security_policy(),
        ]

    def outputs(self) -> PlanOutputs:
        return PlanOutputs(
            feature_url=self.names.feature_url,
            custom_domain_hostname=self.names.hostname,
            endpoint_hostname=AttributeRef(target=self.names.edge_endpoint, attribute="hostName"),
            domain_validation_token=AttributeRef(
                target=self.names.custom_domain, attribute="validationToken"
            ),
            compute_services=tuple(
                ComputeServiceOutput(name=name, workload=workload, internal_url=f"http://{name}")
                for name, workload in (
                    (self.names.nordic, "nordic"),
                    (self.names.worker, "worker"),
                )
            ),
        )


def _check_edges(resources: list[ResourceSpec], external_addresses: Iterable[str]) -> None:
    seen: set[str] = set()
    for r in resources:
        if r.logical_name in seen:
            raise DuplicateLogicalNameError(r.logical_name)
        seen.add(r.logical_name)

    known = seen | set(external_addresses)
    dangling = [
        f"{r.address} depends on unknown '{dep}'"
        for r in resources
        for dep in sorted(r.depends_on)
        if dep not in known
    ]
    if dangling:
        raise ValidationError("dangling-reference", dangling)


def order_resources(resources: list[ResourceSpec]) -> list[ResourceSpec]:
    """Sort *resources* into deterministic creation order."""
    by_name = {r.logical_name: r for r in resources}
    graph = DependencyGraph(
        nodes=by_name,
        dependencies={r.logical_name: r.depends_on for r in resources},
        priorities={r.logical_name: r.kind.plan_priority for r in resources},
    )
    return [by_name[name] for name in graph.topological_order()]


def build(
    identity: FeatureIdentity | str,
    refs: ExternalReferenceSet | Mapping[str, Any],
    config: DeploymentConfig | Mapping[str, Any],
) -> EnvironmentPlan:
    """Build the environment plan for one feature.

    Raises:
        ValidationError: On an invalid feature name (``invalid-name``), an absent
            shared-infrastructure reference (``missing-reference``), a malformed
            option (``invalid-config``), an edge to an undeclared resource
            (``dangling-reference``), a repeated logical name (``duplicate-name``)
            or a cycle in the declared edges (``dependency-cycle``). No partial
            plan is ever returned.
    """
    feature = FeatureIdentity.parse(identity)
    reference_set = _coerce_references(refs)
    deployment = _coerce_config(config)

    names = ResourceNames.derive(feature, deployment.dns_zone_name)
    assembler = _Assembler(names, reference_set, deployment)
    resources = assembler.resources()

    external = reference_set.present()
    _check_edges(resources, external)
    ordered = order_resources(resources)

    plan = EnvironmentPlan(
        feature=names.feature,
        label=deployment.label,
        resources=tuple(ordered),
        external_references=external,
        outputs=assembler.outputs(),
    )
    logger.info("Built plan for %s (%d resources)", names.feature, len(plan.resources))
    return plan
