"""
Exposure-target resolver.

Builds the target of a route from the live definition of the service it
points at. The route only gets a port selector when the router could not pick
the right port on its own.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from kubexpose.errors import MissingPortError, ServiceLookupError, UnsupportedProtocolError
from kubexpose.modules.api.models import ExposureTarget, PortEntry, PortSpec, ServiceDescriptor

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")

# Ports outside the int64 range are treated as names
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


class ServiceLookup(Protocol):
    """Protocol for reading services from the cluster."""

    def get_service(self, namespace: str, name: str) -> Optional[ServiceDescriptor]:
        """
        Fetch a service.

        Returns:
            The service, or None when it does not exist

        Raises:
            ServiceLookupError: the lookup itself failed
        """
        ...


class ResolutionCase(Enum):
    """The four ways a resolution can go."""

    ABSENT_WITHOUT_PORT = "absent_without_port"
    ABSENT_WITH_PORT = "absent_with_port"
    PRESENT_WITHOUT_TCP = "present_without_tcp"
    PRESENT_WITH_TCP = "present_with_tcp"


@dataclass(frozen=True)
class ServiceResolution:
    """Classified lookup result; tcp_port is set only for PRESENT_WITH_TCP."""

    case: ResolutionCase
    service: Optional[ServiceDescriptor] = None
    tcp_port: Optional[PortEntry] = None


def resolve_port_hint(port_hint: str) -> Optional[PortSpec]:
    """
    Turn a port hint into a selector.

    Base-10 integers select by number, anything else selects by name and an
    empty hint selects nothing.
    """
    if not port_hint:
        return None
    if _INTEGER.fullmatch(port_hint):
        number = int(port_hint)
        if _INT64_MIN <= number <= _INT64_MAX:
            return PortSpec(target_port=number)
    return PortSpec(target_port=port_hint)


def first_tcp_port(service: ServiceDescriptor) -> Optional[PortEntry]:
    """Return the first TCP port of a service, if any."""
    for port in service.ports:
        if port.is_tcp:
            return port
    return None


def classify(service: Optional[ServiceDescriptor], port_hint: str) -> ServiceResolution:
    """Classify a lookup result into one of the four resolution cases."""
    if service is None:
        if port_hint:
            return ServiceResolution(ResolutionCase.ABSENT_WITH_PORT)
        return ServiceResolution(ResolutionCase.ABSENT_WITHOUT_PORT)

    tcp_port = first_tcp_port(service)
    if tcp_port is None:
        return ServiceResolution(ResolutionCase.PRESENT_WITHOUT_TCP, service=service)
    return ServiceResolution(ResolutionCase.PRESENT_WITH_TCP, service=service, tcp_port=tcp_port)


class ExposureTargetResolver:
    """Resolves services to route targets."""

    def __init__(
        self,
        lookup: ServiceLookup,
        strict_lookup: bool = False,
        force_port: bool = False,
        default_namespace: str = "default",
    ):
        """
        Initialize resolver.

        Args:
            lookup: Service lookup collaborator
            strict_lookup: Raise lookup failures instead of treating the
                service as absent
            force_port: Default for resolve(force_port=None)
            default_namespace: Namespace used when resolve() gets none
        """
        self.lookup = lookup
        self.strict_lookup = strict_lookup
        self.force_port = force_port
        self.default_namespace = default_namespace

    def resolve(
        self,
        namespace: Optional[str],
        destination_name: str,
        target_name: str = "",
        port_hint: str = "",
        force_port: Optional[bool] = None,
    ) -> ExposureTarget:
        """
        Resolve the exposure target for a service.

        Args:
            namespace: Namespace of the service, empty for the default
            destination_name: Service the route forwards to
            target_name: Route name, defaults to destination_name
            port_hint: Explicit port number or name, empty for none
            force_port: Always set a port selector, even when the router
                could pick the port itself; None uses the resolver default

        Returns:
            ExposureTarget

        Raises:
            MissingPortError: service absent and no port_hint
            UnsupportedProtocolError: service has no TCP port
        """
        namespace = namespace or self.default_namespace
        if force_port is None:
            force_port = self.force_port

        service = self._get_service(namespace, destination_name)
        resolution = classify(service, port_hint)
        display_name = target_name or destination_name

        if resolution.case is ResolutionCase.ABSENT_WITHOUT_PORT:
            raise MissingPortError(
                f"a port is required when exposing service {destination_name!r} "
                f"which does not exist in namespace {namespace!r}"
            )

        if resolution.case is ResolutionCase.ABSENT_WITH_PORT:
            return ExposureTarget(
                destination_name=destination_name,
                display_name=display_name,
                port_selector=resolve_port_hint(port_hint),
            )

        if resolution.case is ResolutionCase.PRESENT_WITHOUT_TCP:
            raise UnsupportedProtocolError(f"service {destination_name!r} doesn't support TCP")

        return ExposureTarget(
            destination_name=destination_name,
            display_name=display_name,
            labels=dict(resolution.service.labels),
            port_selector=self._select_port(resolution, port_hint, force_port),
        )

    def _get_service(self, namespace: str, name: str) -> Optional[ServiceDescriptor]:
        try:
            return self.lookup.get_service(namespace, name)
        except ServiceLookupError as e:
            if self.strict_lookup:
                raise
            # Lookup failures are indistinguishable from a missing service here
            logger.debug(f"error getting service {name!r} in namespace {namespace!r}: {e}")
            return None

    @staticmethod
    def _select_port(
        resolution: ServiceResolution, port_hint: str, force_port: bool
    ) -> Optional[PortSpec]:
        # An explicit hint beats everything
        if port_hint:
            return resolve_port_hint(port_hint)

        tcp_port = resolution.tcp_port
        if tcp_port.name:
            return resolve_port_hint(tcp_port.name)
        if force_port:
            # Unnamed: fall back to the first declared port, TCP or not
            return resolve_port_hint(str(resolution.service.ports[0].target_port))
        return None
