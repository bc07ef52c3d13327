"""Configuration provider following Black Box Design principles."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import yaml

from kubexpose.modules.poller.poller import validate_poll_window

logger = logging.getLogger(__name__)


@dataclass
class PollerConfig:
    """Convergence poller configuration."""
    interval_seconds: float
    timeout_seconds: float
    immediate: bool

    def __post_init__(self):
        validate_poll_window(self.interval_seconds, self.timeout_seconds)


@dataclass
class KubectlConfig:
    """kubectl invocation configuration."""
    binary: str
    kubeconfig: Optional[str]
    context: Optional[str]
    request_timeout_seconds: int


@dataclass
class ResolverConfig:
    """Exposure-target resolver configuration."""
    default_namespace: str
    force_port: bool
    strict_lookup: bool


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_poller_config(self) -> PollerConfig:
        """Get poller configuration."""
        ...

    def get_kubectl_config(self) -> KubectlConfig:
        """Get kubectl configuration."""
        ...

    def get_resolver_config(self) -> ResolverConfig:
        """Get resolver configuration."""
        ...


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _to_bool(value: Any) -> bool:
    """Parse a YAML setting; quoted strings only count as true when "true"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    raise ValueError(f"expected a boolean, got {value!r}")


def _env_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_poller_config(self) -> PollerConfig:
        """Get poller configuration from environment variables."""
        return PollerConfig(
            interval_seconds=_env_number("KUBEXPOSE_POLL_INTERVAL", "3"),
            timeout_seconds=_env_number("KUBEXPOSE_POLL_TIMEOUT", "300"),
            immediate=_env_bool("KUBEXPOSE_POLL_IMMEDIATE", "true"),
        )

    def get_kubectl_config(self) -> KubectlConfig:
        """Get kubectl configuration from environment variables."""
        return KubectlConfig(
            binary=os.getenv("KUBEXPOSE_KUBECTL", "kubectl"),
            kubeconfig=os.getenv("KUBECONFIG") or None,
            context=os.getenv("KUBEXPOSE_KUBE_CONTEXT") or None,
            request_timeout_seconds=_env_number("KUBEXPOSE_REQUEST_TIMEOUT", "30", cast=int),
        )

    def get_resolver_config(self) -> ResolverConfig:
        """Get resolver configuration from environment variables."""
        return ResolverConfig(
            default_namespace=os.getenv("KUBEXPOSE_NAMESPACE", "default"),
            force_port=_env_bool("KUBEXPOSE_FORCE_PORT", "false"),
            strict_lookup=_env_bool("KUBEXPOSE_STRICT_LOOKUP", "false"),
        )


class FileConfigProvider:
    """
    YAML file configuration provider.

    Example document:

        poller:
          intervalSeconds: 3
          timeoutSeconds: 300
          immediate: true
        kubectl:
          binary: kubectl
          context: kind-kind
          requestTimeoutSeconds: 30
        resolver:
          defaultNamespace: default
          forcePort: false
          strictLookup: false

    Sections or keys missing from the file fall back to the environment.
    """

    def __init__(self, config_path: str, fallback: Optional[ConfigProvider] = None):
        self.config_path = Path(config_path)
        self.fallback = fallback or EnvConfigProvider()
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            logger.info(f"Config file {self.config_path} not found, using environment")
            return {}

        with open(self.config_path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {self.config_path} must contain a mapping")
        logger.debug(f"Loaded configuration from {self.config_path}")
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Config section {name!r} must be a mapping")
        return section

    def get_poller_config(self) -> PollerConfig:
        """Get poller configuration from the file."""
        section = self._section("poller")
        defaults = self.fallback.get_poller_config()
        return PollerConfig(
            interval_seconds=float(section.get("intervalSeconds", defaults.interval_seconds)),
            timeout_seconds=float(section.get("timeoutSeconds", defaults.timeout_seconds)),
            immediate=_to_bool(section.get("immediate", defaults.immediate)),
        )

    def get_kubectl_config(self) -> KubectlConfig:
        """Get kubectl configuration from the file."""
        section = self._section("kubectl")
        defaults = self.fallback.get_kubectl_config()
        return KubectlConfig(
            binary=section.get("binary", defaults.binary),
            kubeconfig=section.get("kubeconfig", defaults.kubeconfig),
            context=section.get("context", defaults.context),
            request_timeout_seconds=int(
                section.get("requestTimeoutSeconds", defaults.request_timeout_seconds)
            ),
        )

    def get_resolver_config(self) -> ResolverConfig:
        """Get resolver configuration from the file."""
        section = self._section("resolver")
        defaults = self.fallback.get_resolver_config()
        return ResolverConfig(
            default_namespace=section.get("defaultNamespace", defaults.default_namespace),
            force_port=_to_bool(section.get("forcePort", defaults.force_port)),
            strict_lookup=_to_bool(section.get("strictLookup", defaults.strict_lookup)),
        )
