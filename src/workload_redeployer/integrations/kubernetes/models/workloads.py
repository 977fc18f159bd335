"""Workload models: pods, controller targets, and restart outcomes."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from workload_redeployer.integrations.kubernetes.models.base import (
    OwnerReference,
    _get_owner_references,
    _safe_get,
)

if TYPE_CHECKING:
    from workload_redeployer.integrations.kubernetes.exceptions import KubernetesError


class ControllerKind(StrEnum):
    """Owner kinds, with every unrecognized kind collapsed into OTHER."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    OTHER = "Other"

    @classmethod
    def from_owner_kind(cls, kind: str | None) -> ControllerKind:
        """Map an owner reference kind string onto a ControllerKind."""
        try:
            kind_value = cls(kind)
        except ValueError:
            return cls.OTHER
        return kind_value

    @property
    def actionable(self) -> bool:
        """Whether controllers of this kind can be restarted."""
        return self is not ControllerKind.OTHER


class PodRecord(BaseModel):
    """A running pod and the controllers that own it."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(description="Pod name")
    namespace: str = Field(default="", description="Pod namespace")
    owner_references: tuple[OwnerReference, ...] = Field(
        default=(), description="Owner references, in API order"
    )

    @classmethod
    def from_k8s_object(cls, obj: Any) -> PodRecord:
        """Create from a kubernetes V1Pod object."""
        return cls(
            name=_safe_get(obj, "metadata", "name", default=""),
            namespace=_safe_get(obj, "metadata", "namespace", default=""),
            owner_references=tuple(_get_owner_references(obj)),
        )


class ControllerTarget(BaseModel):
    """A Deployment or StatefulSet selected for a rolling restart."""

    model_config = ConfigDict(frozen=True)

    kind: ControllerKind
    namespace: str
    name: str

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: ControllerKind) -> ControllerKind:
        if not v.actionable:
            raise ValueError(f"{v} controllers cannot be restarted")
        return v

    def __str__(self) -> str:
        """Return ``Kind namespace/name``."""
        return f"{self.kind} {self.namespace}/{self.name}"


class RestartOutcome(BaseModel):
    """Result of one restart attempt."""

    model_config = ConfigDict(frozen=True)

    target: ControllerTarget
    success: bool
    restarted_at: str | None = Field(default=None, description="Marker value written")
    error: str | None = Field(default=None, description="Failure description")
    error_type: str | None = Field(default=None, description="Exception class name")
    status_code: int | None = Field(default=None, description="HTTP status of the failure")

    @property
    def kind(self) -> ControllerKind:
        return self.target.kind

    @property
    def name(self) -> str:
        return self.target.name

    @property
    def namespace(self) -> str:
        return self.target.namespace

    @classmethod
    def succeeded(cls, target: ControllerTarget, restarted_at: str) -> RestartOutcome:
        """Build a success outcome."""
        return cls(target=target, success=True, restarted_at=restarted_at)

    @classmethod
    def failed(cls, target: ControllerTarget, error: KubernetesError) -> RestartOutcome:
        """Build a failure outcome from a translated Kubernetes error."""
        return cls(
            target=target,
            success=False,
            error=str(error),
            error_type=type(error).__name__,
            status_code=error.status_code,
        )
