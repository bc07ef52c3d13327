"""
API Module - Black Box Interface

Purpose: Shared data models
Interface: ServiceDescriptor, PortEntry, PortSpec, ExposureTarget
Hidden: Kubernetes JSON parsing and field defaults
"""

from .models import (
    ExposureTarget,
    IntOrString,
    PortEntry,
    PortProtocol,
    PortSpec,
    ServiceDescriptor,
)

__all__ = [
    "ExposureTarget",
    "IntOrString",
    "PortEntry",
    "PortProtocol",
    "PortSpec",
    "ServiceDescriptor",
]
