"""Feature identity validation and deterministic resource naming.

Every physical name is a pure function of the feature identity, so two
features hosted in the same shared environment never collide and rebuilding
a plan for the same feature yields the same names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from feature_env.planner.errors import ValidationError

HANGFIRE_SHARE_NAME = "hangfire"

_STORAGE_SUFFIX = "storage"
_STORAGE_NAME_MIN_LEN = 3
_STORAGE_NAME_MAX_LEN = 24
_COMPUTE_NAME_MAX_LEN = 32
_DNS_LABEL_MAX_LEN = 63
_STORAGE_NAME_RE = re.compile(r"^[a-z0-9]+$")


def _normalize(v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v


class FeatureIdentity(BaseModel):
    """The ``feature_name`` all derived names are seeded from."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    value: Annotated[
        str,
        BeforeValidator(_normalize),
        Field(pattern=r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$"),
    ]

    @classmethod
    def parse(cls, value: FeatureIdentity | str) -> FeatureIdentity:
        """Validate *value*, raising ``ValidationError(reason="invalid-name")``."""
        if isinstance(value, FeatureIdentity):
            identity = value
        else:
            try:
                identity = cls(value=value)
            except PydanticValidationError as exc:
                msg = (
                    f"feature name {value!r} must be lowercase letters, digits and inner "
                    "hyphens"
                )
                raise ValidationError("invalid-name", [msg]) from exc

        errors = name_limit_errors(identity.value)
        if errors:
            raise ValidationError("invalid-name", errors)
        return identity

    def __str__(self) -> str:
        return self.value


def storage_account_name(feature: str) -> str:
    return feature.replace("-", "").lower() + _STORAGE_SUFFIX


def name_limit_errors(feature: str) -> list[str]:
    """Check *feature* against the most restrictive downstream naming rules."""
    errors: list[str] = []
    storage = storage_account_name(feature)
    if not _STORAGE_NAME_RE.match(storage):
        errors.append(f"storage account name '{storage}' must be lowercase alphanumeric")
    if not _STORAGE_NAME_MIN_LEN <= len(storage) <= _STORAGE_NAME_MAX_LEN:
        errors.append(
            f"storage account name '{storage}' is {len(storage)} characters "
            f"(allowed {_STORAGE_NAME_MIN_LEN}-{_STORAGE_NAME_MAX_LEN})"
        )
    for service in (f"{feature}-nordic", f"{feature}-worker"):
        if len(service) > _COMPUTE_NAME_MAX_LEN:
            errors.append(
                f"compute service name '{service}' exceeds {_COMPUTE_NAME_MAX_LEN} characters"
            )
    if len(feature) > _DNS_LABEL_MAX_LEN:
        errors.append(f"feature name exceeds the {_DNS_LABEL_MAX_LEN}-character DNS label limit")
    return errors


def custom_domain_logical_name(hostname: str) -> str:
    """Resource-id safe name for a host name (dots become hyphens)."""
    return hostname.replace(".", "-")


@dataclass(frozen=True)
class ResourceNames:
    """All per-feature names derived from one identity."""

    feature: str
    dns_zone_name: str

    @classmethod
    def derive(cls, identity: FeatureIdentity, dns_zone_name: str) -> ResourceNames:
        return cls(feature=identity.value, dns_zone_name=dns_zone_name)

    @property
    def storage_account(self) -> str:
        return storage_account_name(self.feature)

    @property
    def file_share(self) -> str:
        return HANGFIRE_SHARE_NAME

    @property
    def file_share_logical(self) -> str:
        return f"{self.storage_account}-{HANGFIRE_SHARE_NAME}"

    @property
    def storage_mount(self) -> str:
        return f"{self.feature}-hangfire"

    @property
    def telemetry_component(self) -> str:
        return f"{self.feature}-application-insights"

    @property
    def nordic(self) -> str:
        return f"{self.feature}-nordic"

    @property
    def worker(self) -> str:
        return f"{self.feature}-worker"

    @property
    def routing(self) -> str:
        return f"{self.feature}-routing"

    @property
    def edge_endpoint(self) -> str:
        return self.feature

    @property
    def origin_group(self) -> str:
        return f"{self.feature}-origins"

    @property
    def origin(self) -> str:
        return f"{self.feature}-origin"

    @property
    def hostname(self) -> str:
        return f"{self.feature}.{self.dns_zone_name}"

    @property
    def custom_domain(self) -> str:
        return custom_domain_logical_name(self.hostname)

    @property
    def edge_route(self) -> str:
        return f"{self.feature}-route"

    @property
    def security_policy(self) -> str:
        return f"{self.feature}-security-policy"

    @property
    def feature_url(self) -> str:
        return f"https://{self.hostname}"
