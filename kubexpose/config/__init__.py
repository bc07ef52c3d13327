"""Configuration providers."""

from .provider import (
    ConfigProvider,
    EnvConfigProvider,
    FileConfigProvider,
    KubectlConfig,
    PollerConfig,
    ResolverConfig,
)

__all__ = [
    "ConfigProvider",
    "EnvConfigProvider",
    "FileConfigProvider",
    "KubectlConfig",
    "PollerConfig",
    "ResolverConfig",
]
