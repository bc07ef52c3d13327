"""
kubectl-backed cluster access.

Reads objects as JSON through ``kubectl get`` and exposes them as a
ServiceLookup for the resolver and as fetch callables for the poller.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from kubexpose.config.provider import KubectlConfig
from kubexpose.errors import FetchError, ResourceNotFoundError, ServiceLookupError
from kubexpose.modules.api.models import ServiceDescriptor

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = ("NotFound", "not found")


@dataclass
class KubectlResult:
    """Completed kubectl invocation."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def not_found(self) -> bool:
        return not self.success and any(m in self.stderr for m in NOT_FOUND_MARKERS)


class KubectlClient:
    """Thin read-only wrapper around the kubectl binary."""

    def __init__(self, config: Optional[KubectlConfig] = None):
        """
        Initialize client.

        Args:
            config: kubectl settings; defaults to plain ``kubectl`` with a
                30 second request timeout
        """
        self.config = config or KubectlConfig(
            binary="kubectl", kubeconfig=None, context=None, request_timeout_seconds=30
        )

    def _base_command(self) -> List[str]:
        cmd = [self.config.binary]
        if self.config.kubeconfig:
            cmd += ["--kubeconfig", self.config.kubeconfig]
        if self.config.context:
            cmd += ["--context", self.config.context]
        return cmd

    def run(self, args: List[str]) -> KubectlResult:
        """
        Execute kubectl command.

        Args:
            args: kubectl command arguments

        Returns:
            KubectlResult

        Raises:
            FetchError: kubectl timed out or could not be started
        """
        cmd = self._base_command() + args
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.request_timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            raise FetchError(
                f"kubectl {' '.join(args)} timed out after "
                f"{self.config.request_timeout_seconds}s"
            ) from None
        except OSError as e:
            raise FetchError(f"could not run {self.config.binary}: {e}") from e

        return KubectlResult(
            args=args,
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )

    def get_json(
        self, kind: str, name: Optional[str] = None, namespace: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Get one object, or a list when name is omitted, as parsed JSON.

        Raises:
            ResourceNotFoundError: the object does not exist
            FetchError: any other failure
        """
        args = ["get", kind]
        if name:
            args.append(name)
        if namespace:
            args += ["-n", namespace]
        args += ["-o", "json"]

        result = self.run(args)
        target = f"{kind}/{name}" if name else kind
        if result.not_found:
            raise ResourceNotFoundError(f"{target} not found in namespace {namespace!r}")
        if not result.success:
            raise FetchError(
                f"kubectl get {target} failed ({result.returncode}): {result.stderr.strip()}"
            )

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise FetchError(f"kubectl get {target} returned invalid JSON: {e}") from e

    def fetcher(self, kind: str, name: str, namespace: Optional[str] = None) -> Callable[[], Dict[str, Any]]:
        """Build a poller fetch callable for one object."""
        return lambda: self.get_json(kind, name, namespace)

    def list_fetcher(self, kind: str, namespace: Optional[str] = None) -> Callable[[], Dict[str, Any]]:
        """Build a poller fetch callable for a list of objects."""
        return lambda: self.get_json(kind, namespace=namespace)


class KubectlServiceLookup:
    """ServiceLookup backed by kubectl."""

    def __init__(self, client: KubectlClient):
        self.client = client

    def get_service(self, namespace: str, name: str) -> Optional[ServiceDescriptor]:
        try:
            obj = self.client.get_json("service", name, namespace)
        except ResourceNotFoundError:
            return None
        except FetchError as e:
            raise ServiceLookupError(str(e)) from e
        return ServiceDescriptor.from_k8s(obj)
