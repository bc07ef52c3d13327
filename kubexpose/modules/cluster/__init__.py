"""
Cluster Module - Black Box Interface

Purpose: Read live objects from a Kubernetes cluster
Interface: KubectlClient.get_json(), fetcher(), list_fetcher(), KubectlServiceLookup
Hidden: kubectl invocation, error classification, JSON decoding

Can be replaced with a direct API client implementing the same contracts.
"""

from .kubectl import KubectlClient, KubectlResult, KubectlServiceLookup

__all__ = ["KubectlClient", "KubectlResult", "KubectlServiceLookup"]
