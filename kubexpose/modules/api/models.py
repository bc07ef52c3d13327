"""
Kubexpose shared data models.

These models define the structure of the service descriptors read from the
cluster and the exposure targets handed back to callers.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

# Kubernetes IntOrString
IntOrString = Union[int, str]

# Enums


class PortProtocol(str, Enum):
    """Protocols a Kubernetes service port can declare."""

    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


# Input Models (read from the cluster)


class PortEntry(BaseModel):
    """A single port declared by a service."""

    protocol: PortProtocol = Field(default=PortProtocol.TCP, description="Port protocol")
    name: str = Field(default="", description="Optional symbolic port name")
    port: Optional[int] = Field(None, description="Port exposed by the service")
    target_port: IntOrString = Field(..., description="Port or port name on the backing pods")

    @property
    def is_tcp(self) -> bool:
        return self.protocol == PortProtocol.TCP


class ServiceDescriptor(BaseModel):
    """Read-only view of a Kubernetes service."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(default="default", description="Service namespace")
    name: str = Field(..., description="Service name", min_length=1)
    labels: Dict[str, str] = Field(default_factory=dict)
    ports: List[PortEntry] = Field(default_factory=list)

    @classmethod
    def from_k8s(cls, obj: Dict[str, Any]) -> "ServiceDescriptor":
        """
        Create from a Service object as returned by ``kubectl get svc -o json``.

        Kubernetes defaults an omitted ``targetPort`` to ``port`` and an
        omitted ``protocol`` to TCP; the same defaults apply here.
        """
        metadata = obj.get("metadata", {})
        spec = obj.get("spec", {})

        ports = []
        for raw in spec.get("ports") or []:
            target_port = raw.get("targetPort")
            if target_port is None:
                target_port = raw.get("port", 0)
            ports.append(
                PortEntry(
                    protocol=raw.get("protocol", PortProtocol.TCP.value),
                    name=raw.get("name") or "",
                    port=raw.get("port"),
                    target_port=target_port,
                )
            )

        return cls(
            namespace=metadata.get("namespace", "default"),
            name=metadata.get("name", ""),
            labels=metadata.get("labels") or {},
            ports=ports,
        )


# Output Models


class PortSpec(BaseModel):
    """Selects a single target port by number or by name."""

    model_config = ConfigDict(frozen=True)

    target_port: IntOrString

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.target_port, int)


class ExposureTarget(BaseModel):
    """Which service, and optionally which port, a route forwards traffic to."""

    model_config = ConfigDict(frozen=True)

    destination_name: str = Field(..., description="Service the route points at", min_length=1)
    display_name: str = Field(default="", description="Route name, defaults to the destination")
    labels: Mapping[str, str] = Field(
        default_factory=dict, validate_default=True, description="Read-only copy of the service labels"
    )
    port_selector: Optional[PortSpec] = Field(
        None, description="Target port; None lets the router pick one"
    )

    @model_validator(mode="before")
    @classmethod
    def default_display_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display_name"):
            data = {**data, "display_name": data.get("destination_name", "")}
        return data

    @field_validator("labels")
    @classmethod
    def freeze_labels(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @field_serializer("labels")
    def serialize_labels(self, v: Mapping[str, str]) -> Dict[str, str]:
        return dict(v)
