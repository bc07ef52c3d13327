"""
Ready-made convergence checks.

Each check is an accept predicate for the poller; the wait_for_* helpers pair
one with a kubectl fetcher and run the poll.
"""

from typing import Any, Dict, Optional

from kubexpose.modules.cluster.kubectl import KubectlClient
from kubexpose.modules.poller.poller import Accept, Acceptance, ConvergencePoller, PollResult


def secret_volume_name(workload: Dict[str, Any]) -> Optional[str]:
    """Secret name mounted by the first volume of a workload's pod template."""
    volumes = (
        workload.get("spec", {}).get("template", {}).get("spec", {}).get("volumes") or []
    )
    if not volumes:
        return None
    return (volumes[0].get("secret") or {}).get("secretName")


def secret_volume_matches(expected_secret: str) -> Accept:
    """
    Check that a workload mounts the expected secret.

    The workload existing with a different secret is a mismatch, not a
    reason to keep waiting.
    """

    def accept(workload: Dict[str, Any]) -> Acceptance:
        actual = secret_volume_name(workload)
        if actual is None:
            return Acceptance.mismatch("pod template has no secret volume")
        if actual != expected_secret:
            return Acceptance.mismatch(
                f"volume secret name {actual} does not match expectation {expected_secret}"
            )
        return Acceptance.converged()

    return accept


def resources_cleared() -> Accept:
    """Check that a list object has no items left."""

    def accept(listing: Dict[str, Any]) -> Acceptance:
        remaining = len(listing.get("items") or [])
        if remaining:
            return Acceptance.not_yet(f"{remaining} resource(s) remaining")
        return Acceptance.converged()

    return accept


def resource_present() -> Accept:
    """Check that always passes once the fetch succeeds."""
    return lambda _obj: Acceptance.converged()


def wait_for_secret_volume(
    client: KubectlClient,
    poller: ConvergencePoller,
    name: str,
    namespace: str,
    expected_secret: str,
    kind: str = "daemonset",
) -> PollResult:
    """Wait until a workload's pod template mounts expected_secret."""
    return poller.poll(
        client.fetcher(kind, name, namespace),
        secret_volume_matches(expected_secret),
        description=f"{kind}/{name} to mount secret {expected_secret}",
    )


def wait_for_resources_cleared(
    client: KubectlClient, poller: ConvergencePoller, kind: str, namespace: str
) -> PollResult:
    """Wait until no objects of a kind remain in a namespace."""
    return poller.poll(
        client.list_fetcher(kind, namespace),
        resources_cleared(),
        description=f"{kind} in {namespace} to clear",
    )


def wait_for_resource(
    client: KubectlClient, poller: ConvergencePoller, kind: str, name: str, namespace: str
) -> PollResult:
    """Wait until an object exists."""
    return poller.poll(
        client.fetcher(kind, name, namespace),
        resource_present(),
        description=f"{kind}/{name} to exist",
    )
