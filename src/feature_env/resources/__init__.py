"""Resource, reference and environment-variable models."""

from feature_env.resources.base import AttributeRef, ResourceKind, ResourceSpec
from feature_env.resources.environment import EnvironmentVariable, EnvironmentVariableSet
from feature_env.resources.references import (
    ExternalReference,
    ExternalReferenceSet,
    ReferenceRole,
)

__all__ = [
    "AttributeRef",
    "EnvironmentVariable",
    "EnvironmentVariableSet",
    "ExternalReference",
    "ExternalReferenceSet",
    "ReferenceRole",
    "ResourceKind",
    "ResourceSpec",
]
