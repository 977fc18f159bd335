"""Base models for Kubernetes resources read by the redeployer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class OwnerReference(BaseModel):
    """Kubernetes owner reference."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    api_version: str | None = None
    kind: str | None = None
    name: str | None = None
    uid: str | None = None

    @classmethod
    def from_k8s_object(cls, obj: Any) -> OwnerReference:
        """Create from a kubernetes V1OwnerReference object."""
        if obj is None:
            return cls()
        return cls(
            api_version=getattr(obj, "api_version", None),
            kind=getattr(obj, "kind", None),
            name=getattr(obj, "name", None),
            uid=getattr(obj, "uid", None),
        )


def _safe_get(obj: Any, *attrs: str, default: Any = None) -> Any:
    """Safely traverse nested attributes on kubernetes SDK objects."""
    current = obj
    for attr in attrs:
        if current is None:
            return default
        current = getattr(current, attr, None)
    return current if current is not None else default


def _get_owner_references(obj: Any) -> list[OwnerReference]:
    """Extract owner references in the order the API returned them."""
    owner_refs = _safe_get(obj, "metadata", "owner_references") or []
    return [OwnerReference.from_k8s_object(ref) for ref in owner_refs]
