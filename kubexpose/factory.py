"""
Kubexpose factory.

Composition root: reads configuration and wires the resolver, the poller and
the kubectl client together.
"""

import logging
from typing import Optional

from .config.provider import ConfigProvider
from .modules.cluster.kubectl import KubectlClient, KubectlServiceLookup
from .modules.poller.poller import ConvergencePoller
from .modules.resolver.resolver import ExposureTargetResolver, ServiceLookup

logger = logging.getLogger(__name__)


class KubexposeFactory:
    """Builds configured kubexpose components."""

    @staticmethod
    def build_client(config_provider: ConfigProvider) -> KubectlClient:
        """Build a kubectl client from configuration."""
        return KubectlClient(config_provider.get_kubectl_config())

    @staticmethod
    def build_resolver(
        config_provider: ConfigProvider,
        lookup: Optional[ServiceLookup] = None,
    ) -> ExposureTargetResolver:
        """
        Build the exposure-target resolver.

        Args:
            config_provider: Configuration provider
            lookup: Service lookup; defaults to one backed by kubectl

        Returns:
            ExposureTargetResolver
        """
        resolver_config = config_provider.get_resolver_config()
        if lookup is None:
            lookup = KubectlServiceLookup(KubexposeFactory.build_client(config_provider))

        if resolver_config.strict_lookup:
            logger.info("Building resolver with strict service lookups")
        return ExposureTargetResolver(
            lookup,
            strict_lookup=resolver_config.strict_lookup,
            force_port=resolver_config.force_port,
            default_namespace=resolver_config.default_namespace,
        )

    @staticmethod
    def build_poller(config_provider: ConfigProvider) -> ConvergencePoller:
        """Build a convergence poller from configuration."""
        poller_config = config_provider.get_poller_config()
        return ConvergencePoller(
            interval=poller_config.interval_seconds,
            timeout=poller_config.timeout_seconds,
            immediate=poller_config.immediate,
        )
