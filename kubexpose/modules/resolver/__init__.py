"""
Resolver Module - Black Box Interface

Purpose: Decide which service and port a route forwards traffic to
Interface: ExposureTargetResolver.resolve(), resolve_port_hint()
Hidden: Service classification, port selection precedence

Works against any ServiceLookup (kubectl, API client, in-memory).
"""

from .resolver import (
    ExposureTargetResolver,
    ResolutionCase,
    ServiceLookup,
    ServiceResolution,
    classify,
    first_tcp_port,
    resolve_port_hint,
)

__all__ = [
    "ExposureTargetResolver",
    "ResolutionCase",
    "ServiceLookup",
    "ServiceResolution",
    "classify",
    "first_tcp_port",
    "resolve_port_hint",
]
