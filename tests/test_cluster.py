"""
Tests for kubectl-backed cluster access using mocked subprocess calls.
"""

import subprocess
from unittest.mock import patch

import pytest

from conftest import KubectlResponse
from fixtures.cluster_objects import (
    forbidden_response,
    json_response,
    list_json,
    not_found_response,
    port_json,
    service_json,
)
from kubexpose.config.provider import KubectlConfig
from kubexpose.errors import FetchError, ResourceNotFoundError, ServiceLookupError
from kubexpose.modules.cluster.kubectl import KubectlClient, KubectlServiceLookup


@pytest.mark.kubectl_mock
class TestKubectlClient:
    """Test KubectlClient."""

    def test_get_json_builds_command(self, kubectl_mocker):
        kubectl_mocker.register("get service web", json_response(service_json("web")))

        obj = KubectlClient().get_json("service", "web", "shop")

        assert obj["metadata"]["name"] == "web"
        assert kubectl_mocker.calls[0].command == [
            "kubectl", "get", "service", "web", "-n", "shop", "-o", "json"
        ]

    def test_kubeconfig_and_context_flags(self, kubectl_mocker):
        kubectl_mocker.register("get pods", json_response(list_json()))
        client = KubectlClient(KubectlConfig(
            binary="kubectl",
            kubeconfig="/tmp/kubeconfig",
            context="kind-kind",
            request_timeout_seconds=5,
        ))

        client.get_json("pods", namespace="default")

        assert kubectl_mocker.calls[0].command[:5] == [
            "kubectl", "--kubeconfig", "/tmp/kubeconfig", "--context", "kind-kind"
        ]

    def test_not_found(self, kubectl_mocker):
        kubectl_mocker.register("get daemonset router", not_found_response("daemonsets.apps", "router"))

        with pytest.raises(ResourceNotFoundError):
            KubectlClient().get_json("daemonset", "router", "openshift-ingress")

    def test_other_failure(self, kubectl_mocker):
        kubectl_mocker.register("get service", forbidden_response("services"))

        with pytest.raises(FetchError) as exc_info:
            KubectlClient().get_json("service", "web", "default")

        assert not isinstance(exc_info.value, ResourceNotFoundError)
        assert "Forbidden" in str(exc_info.value)

    def test_invalid_json(self, kubectl_mocker):
        kubectl_mocker.register("get service", KubectlResponse(stdout="Name: web"))

        with pytest.raises(FetchError, match="invalid JSON"):
            KubectlClient().get_json("service", "web", "default")

    def test_timeout(self):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["kubectl"], 30)):
            with pytest.raises(FetchError, match="timed out"):
                KubectlClient().get_json("service", "web", "default")

    def test_missing_binary(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("kubectl")):
            with pytest.raises(FetchError, match="could not run"):
                KubectlClient().run(["version"])

    def test_fetchers(self, kubectl_mocker):
        kubectl_mocker.register("get builds -n ci", json_response(list_json()))
        kubectl_mocker.register("get sa builder", json_response({"kind": "ServiceAccount"}))
        client = KubectlClient()

        assert client.list_fetcher("builds", "ci")() == list_json()
        assert client.fetcher("sa", "builder", "ci")()["kind"] == "ServiceAccount"
        assert kubectl_mocker.call_count == 2


@pytest.mark.kubectl_mock
class TestKubectlServiceLookup:
    """Test KubectlServiceLookup."""

    def test_returns_service(self, kubectl_mocker):
        kubectl_mocker.register("get service web", json_response(
            service_json("web", labels={"app": "web"}, ports=[port_json(8080, name="http")])
        ))

        svc = KubectlServiceLookup(KubectlClient()).get_service("default", "web")

        assert svc.name == "web"
        assert svc.labels == {"app": "web"}
        assert svc.ports[0].name == "http"

    def test_not_found_returns_none(self, kubectl_mocker):
        kubectl_mocker.register("get service ghost", not_found_response("services", "ghost"))

        assert KubectlServiceLookup(KubectlClient()).get_service("default", "ghost") is None

    def test_failure_raises_lookup_error(self, kubectl_mocker):
        kubectl_mocker.register("get service", forbidden_response("services"))

        with pytest.raises(ServiceLookupError):
            KubectlServiceLookup(KubectlClient()).get_service("default", "web")
